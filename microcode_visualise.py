#!/usr/bin/env python3
"""
Microcode Visualiser: Generate Graphviz DOT from a sequencer program.

Every populated address becomes a node labelled with its state, address and
requests. Each word contributes up to two edges:
  - the jump edge, labelled with the tested condition ('!' when inverted,
    'always' for an unconditional jump)
  - the fall-through edge to the next address, labelled 'else' (omitted for
    unconditional jumps, which never fall through)

Usage:
  microcode_visualise.py                     # Built-in elevator program
  microcode_visualise.py program.hex         # Hex listing input
  microcode_visualise.py - < program.hex     # Read from stdin
  microcode_visualise.py | dot -Tpng -o program.png
"""

import argparse
import sys
from typing import Optional

from condsel import Condition
from elevator_program import ELEVATOR_PROGRAM, state_label
from microcode import MASK_JUMP_ADDR, Instruction, ProgramMemory, parse_listing


def escape_dot(s: str) -> str:
    """Escape string for DOT labels."""
    return s.replace('"', '\\"').replace('<', '\\<').replace('>', '\\>')


def is_unconditional(instr: Instruction) -> bool:
    """An inverted never-active condition always jumps."""
    return instr.cond_invert and instr.cond_select in (Condition.RESERVED, Condition.ALWAYS_FALSE)


def condition_label(instr: Instruction) -> str:
    if is_unconditional(instr):
        return "always"
    name = Condition(instr.cond_select).name
    return f"!{name}" if instr.cond_invert else name


def requests_label(instr: Instruction) -> str:
    requests = []
    if instr.req_door_open:
        requests.append("door")
    if instr.req_move_up:
        requests.append("up")
    if instr.req_move_down:
        requests.append("down")
    if instr.req_reset:
        requests.append("reset")
    return ",".join(requests)


def node_name(memory: ProgramMemory, address: int) -> str:
    if memory is ELEVATOR_PROGRAM:
        return f"{address:02X} {state_label(address)}"
    return f"{address:02X}"


def program_to_dot(memory: ProgramMemory, title: Optional[str] = None) -> str:
    """Convert a program's control flow to Graphviz DOT format."""
    lines = []

    # Header
    lines.append("digraph Microcode {")
    lines.append("    rankdir=TB;")
    lines.append("    node [fontname=\"Helvetica\", fontsize=11, shape=box];")
    lines.append("    edge [fontname=\"Helvetica\", fontsize=10];")
    lines.append("")

    # Title
    if title:
        lines.append("    labelloc=\"t\";")
        lines.append(f"    label=\"{escape_dot(title)}\";")
        lines.append("")

    # Invisible start node for the reset address
    addresses = sorted(memory.populated)
    targets = set(addresses)
    for addr in addresses:
        instr = memory[addr]
        targets.add(instr.jump_addr)
        if not is_unconditional(instr):
            targets.add((addr + 1) & MASK_JUMP_ADDR)

    lines.append("    __start [shape=none, label=\"\", width=0, height=0];")
    lines.append(f"    __start -> \"{escape_dot(node_name(memory, 0))}\";")
    lines.append("")

    # Nodes
    for addr in sorted(targets):
        name = node_name(memory, addr)
        requests = requests_label(memory[addr])
        attrs = []
        if requests:
            attrs.append(f"label=\"{escape_dot(name)}\\n[{requests}]\"")
        if addr not in memory.populated:
            attrs.append("style=dashed")
        if attrs:
            lines.append(f"    \"{escape_dot(name)}\" [{', '.join(attrs)}];")
        else:
            lines.append(f"    \"{escape_dot(name)}\";")

    lines.append("")

    # Edges
    for addr in addresses:
        instr = memory[addr]
        src = escape_dot(node_name(memory, addr))
        tgt = escape_dot(node_name(memory, instr.jump_addr))
        lines.append(f"    \"{src}\" -> \"{tgt}\" [label=\"{escape_dot(condition_label(instr))}\"];")

        if not is_unconditional(instr):
            nxt = escape_dot(node_name(memory, (addr + 1) & MASK_JUMP_ADDR))
            lines.append(f"    \"{src}\" -> \"{nxt}\" [label=\"else\", style=dotted];")

    lines.append("}")

    return "\n".join(lines)


def main():
    parser = argparse.ArgumentParser(
        description="Generate Graphviz DOT from sequencer microcode",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                  # Built-in program to stdout
  %(prog)s program.hex -o program.dot       # Write DOT to file
  %(prog)s | dot -Tpng -o program.png       # Generate PNG
  elevator_program.py | %(prog)s -          # Read listing from stdin
        """
    )

    parser.add_argument("input", metavar="FILE", nargs="?",
                        help="Hex listing (AA:WWWW records), or '-' for stdin (default: built-in program)")
    parser.add_argument("-o", "--output", metavar="FILE", help="Output file (default: stdout)")
    parser.add_argument("-t", "--title", metavar="TITLE", help="Graph title")

    args = parser.parse_args()

    try:
        # Read input
        if args.input is None:
            memory = ELEVATOR_PROGRAM
        else:
            if args.input == "-":
                text = sys.stdin.read()
            else:
                with open(args.input, "r") as f:
                    text = f.read()
            words = parse_listing(text)
            if not words:
                raise ValueError("No AA:WWWW records found")
            memory = ProgramMemory(words)

        # Generate title
        title = args.title
        if not title:
            if memory is ELEVATOR_PROGRAM:
                title = "Elevator controller"
            else:
                title = f"Microcode: {len(memory.populated)} words"

        dot = program_to_dot(memory, title)

        # Write output
        if args.output:
            with open(args.output, "w") as f:
                f.write(dot)
                f.write("\n")
        else:
            print(dot)

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
