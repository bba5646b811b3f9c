#!/usr/bin/env python3
"""
Microcode: instruction words and program memory for the elevator sequencer.

Instruction word format (16-bit unsigned):

  bit  15     = invert the selected condition
  bits 14-12  = condition select index (0-7)
  bit  11     = reset request (clear the call at the current floor)
  bit  10     = door-open request
  bit  9      = move-down request
  bit  8      = move-up request
  bits 7-0    = jump address

Hex listing format (one record per populated address, "AA:WWWW"):

  AA   = program address (00-FF)
  WWWW = instruction word (0000-FFFF)

  Records are grouped in rows separated by three spaces. Lines starting
  with '#' are comments.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Mapping


PROG_MEM_SIZE = 256

# Bit positions of instruction fields
BIT_POS_INV = 15
BIT_POS_COND_SEL = 12
BIT_POS_RESET = 11
BIT_POS_DOOR = 10
BIT_POS_DOWN = 9
BIT_POS_UP = 8

# Masks for multi-bit fields
MASK_COND_SEL = 0x7
MASK_JUMP_ADDR = 0xFF
MASK_WORD = 0xFFFF

# Pre-shifted single-bit fields
FIELD_INV = 1 << BIT_POS_INV
FIELD_RESET = 1 << BIT_POS_RESET
FIELD_DOOR_OPEN = 1 << BIT_POS_DOOR
FIELD_DOWN = 1 << BIT_POS_DOWN
FIELD_UP = 1 << BIT_POS_UP

RECORD_PATTERN = re.compile(r'\b([0-9A-Fa-f]{2}):([0-9A-Fa-f]{4})\b')


@dataclass(frozen=True)
class Instruction:
    """Decoded instruction word: actuator requests plus the next condition to test."""
    jump_addr: int = 0
    req_move_up: bool = False
    req_move_down: bool = False
    req_door_open: bool = False
    req_reset: bool = False
    cond_select: int = 0
    cond_invert: bool = False


ZERO_INSTRUCTION = Instruction()


def cond_field(index: int) -> int:
    """Pre-shift a condition index into the condition select field."""
    return (index & MASK_COND_SEL) << BIT_POS_COND_SEL


def decode_word(word: int) -> Instruction:
    """Split a 16-bit instruction word into its named fields."""
    word &= MASK_WORD
    return Instruction(
        jump_addr=word & MASK_JUMP_ADDR,
        req_move_up=bool((word >> BIT_POS_UP) & 1),
        req_move_down=bool((word >> BIT_POS_DOWN) & 1),
        req_door_open=bool((word >> BIT_POS_DOOR) & 1),
        req_reset=bool((word >> BIT_POS_RESET) & 1),
        cond_select=(word >> BIT_POS_COND_SEL) & MASK_COND_SEL,
        cond_invert=bool((word >> BIT_POS_INV) & 1)
    )


def encode_instruction(instr: Instruction) -> int:
    """Pack an Instruction back into a 16-bit word."""
    if not 0 <= instr.jump_addr <= MASK_JUMP_ADDR:
        raise ValueError(f"Jump address out of range: {instr.jump_addr} (max {MASK_JUMP_ADDR})")
    if not 0 <= instr.cond_select <= MASK_COND_SEL:
        raise ValueError(f"Condition index out of range: {instr.cond_select} (max {MASK_COND_SEL})")

    word = instr.jump_addr | cond_field(instr.cond_select)
    if instr.cond_invert:
        word |= FIELD_INV
    if instr.req_reset:
        word |= FIELD_RESET
    if instr.req_door_open:
        word |= FIELD_DOOR_OPEN
    if instr.req_move_down:
        word |= FIELD_DOWN
    if instr.req_move_up:
        word |= FIELD_UP
    return word


def format_word(address: int, word: int) -> str:
    """Format as 'AA:WWWW'."""
    return f"{address:02X}:{word:04X}"


def parse_word(record: str) -> tuple[int, int]:
    """Parse a record from 'AA:WWWW' format."""
    clean = record.strip()
    match = RECORD_PATTERN.fullmatch(clean)
    if match is None:
        raise ValueError(f"Invalid record: {record!r}")
    return int(match.group(1), 16), int(match.group(2), 16)


def format_listing(words: Iterable[tuple[int, int]], width: int = 4) -> str:
    """Format (address, word) pairs into rows of hex records."""
    records = [format_word(addr, word) for addr, word in words]
    lines = []
    for i in range(0, len(records), width):
        row = records[i:i+width]
        lines.append("   ".join(row))
    return "\n".join(lines)


def parse_listing(text: str) -> dict[int, int]:
    """Parse hex records from a listing. Returns {address: word}."""
    lines = [line for line in text.split("\n") if not line.strip().startswith("#")]
    text = "\n".join(lines)

    words = {}
    for match in RECORD_PATTERN.finditer(text):
        addr = int(match.group(1), 16)
        if addr in words:
            raise ValueError(f"Duplicate address in listing: {addr:02X}")
        words[addr] = int(match.group(2), 16)

    return words


class ProgramMemory:
    """
    Fixed, read-only table of PROG_MEM_SIZE instruction words.

    Slots not given at construction hold the zero word, which decodes to
    "test any-call, jump to 0, no requests". Every word is decoded once here
    so lookups never touch the packed representation.
    """

    def __init__(self, words: Mapping[int, int]):
        packed = [0] * PROG_MEM_SIZE
        for addr, word in words.items():
            if not 0 <= addr < PROG_MEM_SIZE:
                raise ValueError(f"Address out of range: {addr} (max {PROG_MEM_SIZE - 1})")
            if not 0 <= word <= MASK_WORD:
                raise ValueError(f"Word out of range at {addr:02X}: {word:#x}")
            packed[addr] = word

        self._words = tuple(packed)
        self._decoded = tuple(decode_word(w) for w in packed)
        self.populated = frozenset(words)

        largest_jump = max(instr.jump_addr for instr in self._decoded)
        if largest_jump >= len(self._words):
            raise ValueError(f"Jump target {largest_jump} outside program memory of {len(self._words)}")

    def __len__(self) -> int:
        return len(self._words)

    def __getitem__(self, address: int) -> Instruction:
        return self._decoded[address]

    def word(self, address: int) -> int:
        return self._words[address]

    def listing(self) -> list[tuple[int, int]]:
        """Populated slots as sorted (address, word) pairs."""
        return [(addr, self._words[addr]) for addr in sorted(self.populated)]
