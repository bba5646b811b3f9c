#!/usr/bin/env python3
"""
Sequential network: program counter plus program memory.

One step per control cycle:
  1. read the jump address of the word at the current PC
  2. PC = jump address if the condition is active, else PC + 1 (mod 256)
  3. return the decoded word at the new PC

The condition passed to step() was computed by the driver from the
cond_select/cond_invert fields returned by the previous step, so every
condition is consumed one cycle after it is selected.
"""

import logging
from typing import Optional

from elevator_program import ELEVATOR_PROGRAM
from microcode import MASK_JUMP_ADDR, Instruction, ProgramMemory

logger = logging.getLogger(__name__)


class Sequencer:
    """Steps one program; each instance owns its own program counter."""

    def __init__(self, program: Optional[ProgramMemory] = None):
        self.program = program if program is not None else ELEVATOR_PROGRAM
        self._pc = 0

    @property
    def pc(self) -> int:
        return self._pc

    def initialize(self):
        """Restart the program at address 0."""
        self._pc = 0

    def step(self, condition_active: bool) -> Instruction:
        """
        Advance the program counter and return the instruction it lands on.

        The returned flags belong to the new instruction, not to the one whose
        jump address was just used.
        """
        previous = self._pc
        jump_addr = self.program[previous].jump_addr

        if condition_active:
            self._pc = jump_addr
        else:
            self._pc = (previous + 1) & MASK_JUMP_ADDR

        if self._pc not in self.program.populated and previous in self.program.populated:
            logger.warning("PC left the program: %02X -> %02X (unpopulated, executing zero word)",
                           previous, self._pc)

        return self.program[self._pc]
