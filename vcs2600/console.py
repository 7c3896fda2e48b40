"""The console: processor, video chip, RAM and cartridge ROM on one bus."""

from __future__ import annotations

import logging
from typing import BinaryIO

from vcs2600.cpu import Mos6502
from vcs2600.tia import Tia

logger = logging.getLogger(__name__)

ROM_SIZE = 1 << 12
RAM_SIZE = 128

SWCHA = 0x280
SWCHB = 0x282

# Joystick port: 0 means pressed, so nothing is pressed.
_SWCHA_IDLE = 0xFF
# Console switches: difficulty, colour, select and reset settings.
_SWCHB_IDLE = 0x7F


class Atari2600:
    """A 4K-cartridge console with a debugger-style breakpoint set."""

    ROM_SIZE = ROM_SIZE

    def __init__(self) -> None:
        self.cpu = Mos6502(self.read, self.write)
        self.tia = Tia()
        self.ram = bytearray(RAM_SIZE)
        self.rom = bytearray(ROM_SIZE)
        self._breakpoints: set[int] = set()

    def load_rom(self, stream: BinaryIO) -> None:
        """Load up to 4 KiB of cartridge ROM from a binary stream."""
        data = stream.read(ROM_SIZE)
        if len(data) < ROM_SIZE:
            logger.warning("only read %d bytes from file to ROM", len(data))
        self.rom = bytearray(ROM_SIZE)
        self.rom[: len(data)] = data

    def read(self, addr: int) -> int:
        """Read a byte from the bus; unmapped locations read as 0."""
        # The 6507 has only 13 address pins.
        addr &= 0x1FFF

        if addr & 0x1000:
            return self.rom[addr & 0xFFF]
        if addr & 0x80:
            # RIOT chip: A12 = 0 and A7 = 1
            if addr & 0x200:
                if addr == SWCHA:
                    logger.debug("SWCHA read")
                    return _SWCHA_IDLE
                if addr == SWCHB:
                    logger.debug("SWCHB read")
                    return _SWCHB_IDLE
                return 0
            return self.ram[addr & 0x7F]
        return 0

    def write(self, addr: int, data: int) -> None:
        """Write a byte to the bus; writes to ROM and timers are ignored."""
        addr &= 0x1FFF
        data &= 0xFF

        if addr & 0x1000:
            return
        if addr & 0x80:
            # RIOT chip: A12 = 0 and A7 = 1
            if not addr & 0x200:
                self.ram[addr & 0x7F] = data
        else:
            # TIA: A12 = 0 and A7 = 0
            self.tia.write(addr, data)

    def exec_instructions(self, instruction_count: int) -> None:
        """Run up to ``instruction_count`` instructions, stopping at a breakpoint."""
        for _ in range(instruction_count):
            pixel_cycles = self.cpu.exec_one() * 3
            self.tia.advance_pixels(pixel_cycles)
            if self.cpu.pc in self._breakpoints:
                logger.info("Hit breakpoint at %x", self.cpu.pc)
                break
        self.tia.sync_pixels()

    def add_breakpoint(self, addr: int) -> None:
        """Stop execution whenever the program counter reaches ``addr``."""
        self._breakpoints.add(addr & 0xFFFF)

    def clear_breakpoints(self) -> None:
        """Remove every breakpoint."""
        self._breakpoints.clear()