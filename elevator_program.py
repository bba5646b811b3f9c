#!/usr/bin/env python3
"""
The elevator controller program as 16-bit microcode words.

Word format: see microcode.py (INV | COND | RESET | DOOR | DOWN | UP | JUMP).

States are runs of consecutive program addresses:
  INIT        0   (1 word)   unconditional jump to IDLE on power-up
  IDLE        1   (3 words)  door open, wait for a call
  CLOSE_DOOR  4   (2 words)  a call is registered, close the door
  CHOOSE_DIR  6   (4 words)  door closed, pick above > below > same
  MOVE_UP     10  (2 words)  check arrival, then request one floor up
  MOVE_DOWN   12  (2 words)  check arrival, then request one floor down
  ARRIVED     14  (2 words)  open the door, clear the call

Each word tests one condition; if it is active the sequencer jumps to the
word's address, otherwise it falls through to the next word. A word with
INV + ALWAYS_FALSE is an unconditional jump.

Usage:
  elevator_program.py                 # print the program listing
  elevator_program.py -o program.hex  # write the listing to a file
"""

import argparse
import sys

from condsel import Condition
from microcode import (
    FIELD_DOOR_OPEN,
    FIELD_DOWN,
    FIELD_INV,
    FIELD_RESET,
    FIELD_UP,
    ProgramMemory,
    cond_field,
    format_listing,
)

# State start addresses
STATE_INIT = 0
STATE_IDLE = 1
STATE_CLOSE_DOOR = 4
STATE_CHOOSE_DIR = 6
STATE_MOVE_UP = 10
STATE_MOVE_DOWN = 12
STATE_ARRIVED = 14

STATE_NAMES = {
    STATE_INIT: "INIT",
    STATE_IDLE: "IDLE",
    STATE_CLOSE_DOOR: "CLOSE_DOOR",
    STATE_CHOOSE_DIR: "CHOOSE_DIR",
    STATE_MOVE_UP: "MOVE_UP",
    STATE_MOVE_DOWN: "MOVE_DOWN",
    STATE_ARRIVED: "ARRIVED",
}

# Condition select fields
COND_ANY_CALL = cond_field(Condition.ANY_CALL)
COND_CALL_BELOW = cond_field(Condition.CALL_BELOW)
COND_CALL_SAME = cond_field(Condition.CALL_SAME)
COND_CALL_ABOVE = cond_field(Condition.CALL_ABOVE)
COND_DOOR_CLOSED = cond_field(Condition.DOOR_CLOSED)
COND_DOOR_OPEN = cond_field(Condition.DOOR_OPEN)
COND_ALWAYS_FALSE = cond_field(Condition.ALWAYS_FALSE)

# Inverted "always false": jump unconditionally
ALWAYS = FIELD_INV | COND_ALWAYS_FALSE


def generate_program() -> dict[int, int]:
    """Generate the elevator program as {address: word}."""
    return {
        # === INIT ===
        STATE_INIT: ALWAYS | STATE_IDLE,

        # === IDLE ===
        # Leave on any call; otherwise clear a call on this floor and loop
        STATE_IDLE: COND_ANY_CALL | FIELD_DOOR_OPEN | STATE_CLOSE_DOOR,
        STATE_IDLE + 1: COND_CALL_SAME | FIELD_RESET | FIELD_DOOR_OPEN | STATE_IDLE,
        STATE_IDLE + 2: ALWAYS | FIELD_DOOR_OPEN | STATE_IDLE,

        # === CLOSE_DOOR ===
        STATE_CLOSE_DOOR: COND_DOOR_CLOSED | STATE_CHOOSE_DIR,
        STATE_CLOSE_DOOR + 1: ALWAYS | STATE_CLOSE_DOOR,

        # === CHOOSE_DIR ===
        STATE_CHOOSE_DIR: COND_CALL_ABOVE | STATE_MOVE_UP,
        STATE_CHOOSE_DIR + 1: COND_CALL_BELOW | STATE_MOVE_DOWN,
        STATE_CHOOSE_DIR + 2: COND_CALL_SAME | STATE_ARRIVED,
        STATE_CHOOSE_DIR + 3: ALWAYS | STATE_IDLE,

        # === MOVE_UP ===
        # Movement is only requested on the fall-through word, never while checking arrival
        STATE_MOVE_UP: COND_CALL_SAME | STATE_ARRIVED,
        STATE_MOVE_UP + 1: ALWAYS | FIELD_UP | STATE_MOVE_UP,

        # === MOVE_DOWN ===
        STATE_MOVE_DOWN: COND_CALL_SAME | STATE_ARRIVED,
        STATE_MOVE_DOWN + 1: ALWAYS | FIELD_DOWN | STATE_MOVE_DOWN,

        # === ARRIVED ===
        STATE_ARRIVED: COND_DOOR_OPEN | FIELD_RESET | FIELD_DOOR_OPEN | STATE_IDLE,
        STATE_ARRIVED + 1: ALWAYS | FIELD_RESET | FIELD_DOOR_OPEN | STATE_ARRIVED,
    }


ELEVATOR_PROGRAM = ProgramMemory(generate_program())


def state_label(address: int) -> str:
    """Name an address relative to the state it belongs to, e.g. 'IDLE+1'."""
    if address not in ELEVATOR_PROGRAM.populated:
        return "--"
    start = max(s for s in STATE_NAMES if s <= address)
    offset = address - start
    name = STATE_NAMES[start]
    return name if offset == 0 else f"{name}+{offset}"


def main():
    parser = argparse.ArgumentParser(
        description="Print the elevator controller program as hex microcode",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Listing format: AA:WWWW (address:word), WIDTH records per row.

Examples:
  %(prog)s                                  # Listing to stdout
  %(prog)s -o program.hex                   # Write listing to file
  %(prog)s | microcode_visualise.py -       # Render the program graph
        """
    )

    parser.add_argument("-o", "--output", metavar="FILE", help="Output file (default: stdout)")
    parser.add_argument("--width", type=int, default=4, help="Records per line")

    args = parser.parse_args()

    words = ELEVATOR_PROGRAM.listing()
    lines = [
        "# Elevator controller microcode",
        f"# States: {len(STATE_NAMES)}",
        f"# Words: {len(words)} of {len(ELEVATOR_PROGRAM)}",
        "# Format: AA:WWWW",
        "",
        format_listing(words, args.width),
    ]
    output = "\n".join(lines) + "\n"

    try:
        if args.output:
            with open(args.output, "w") as f:
                f.write(output)
        else:
            print(output, end="")
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
