"""MOS 6502 processor core driven by read and write callbacks."""

from __future__ import annotations

from typing import Callable

from vcs2600.instructions import OpInfo, build_op_table

ReadCallback = Callable[[int], int]
WriteCallback = Callable[[int, int], None]

RESET_VECTOR = 0xFFFC


class Mos6502:
    """A 6502 processor whose memory is reached through two callbacks.

    ``read(addr)`` returns the byte at a 16-bit address and
    ``write(addr, data)`` stores a byte there.
    """

    def __init__(self, read: ReadCallback, write: WriteCallback) -> None:
        self.read = read
        self.write = write

        self.a = 0
        self.x = 0
        self.y = 0
        self.sp = 0
        self.pc = 0

        # Bytes of the most recently decoded instruction.
        self.instr = [0, 0, 0]
        self.instr_len = 0

        self.carry = False
        self.zero = False
        self.irq_disable = True
        self.decimal_mode = False
        self.brk = True
        self.overflow = False
        self.negative = False

        self.resetting = True
        self.instr_cycle_count = 0

        self._op_table: tuple[OpInfo, ...] = build_op_table()

    def status(self) -> int:
        """Return the processor status byte (bit 5 always set)."""
        flags = (
            (self.negative, 7),
            (self.overflow, 6),
            (True, 5),
            (self.brk, 4),
            (self.decimal_mode, 3),
            (self.irq_disable, 2),
            (self.zero, 1),
            (self.carry, 0),
        )
        return sum(1 << bit for flag, bit in flags if flag)

    def exec_one(self) -> int:
        """Execute one instruction and return the clock cycles it took.

        The first call after construction loads ``pc`` from the reset vector.
        """
        if self.resetting:
            self.resetting = False
            pc_lo = self.read(RESET_VECTOR) & 0xFF
            pc_hi = self.read(RESET_VECTOR + 1) & 0xFF
            self.pc = (pc_hi << 8) | pc_lo
            return 2

        opcode = self.read(self.pc) & 0xFF
        self.instr[0] = opcode
        op_info = self._op_table[opcode]
        for offset in range(1, op_info.length):
            self.instr[offset] = self.read((self.pc + offset) & 0xFFFF) & 0xFF
        self.instr_len = op_info.length
        start_pc = self.pc
        self.pc = (self.pc + op_info.length) & 0xFFFF
        try:
            cycles = op_info.func(self)
        except Exception as ex:
            raise RuntimeError(
                f"Error running instruction at PC={start_pc:x} : {ex}"
            ) from ex
        self.instr_cycle_count += cycles
        return cycles

    def op_name(self, opcode: int) -> str:
        """Return the mnemonic of ``opcode``."""
        if not 0 <= opcode <= 0xFF:
            raise IndexError(f"opcode {opcode:#x} out of range")
        return self._op_table[opcode].name

    def format_regs(self) -> str:
        """Return the PC, A, X and Y registers as lines of hex text."""
        return (
            f"  PC: {self.pc:04x}\n"
            f"  A: {self.a:02x}\n"
            f"  X: {self.x:02x}\n"
            f"  Y: {self.y:02x}\n"
        )

    def update_nz(self, value: int) -> None:
        """Set the negative and zero flags from an 8-bit value."""
        value &= 0xFF
        self.zero = value == 0
        self.negative = bool(value & 0x80)

    def compare_flags(self, value1: int, value2: int) -> None:
        """Set N, Z, C and V as for ``value1 - value2``."""
        # Carry acts as an active-low borrow.
        total = (value1 - value2) & 0xFFFF
        carry6 = bool(((value1 & 0x7F) + (~value2 & 0x7F) + 1) & 0x80)
        self.carry = not (total & 0x100)
        self.overflow = self.carry != carry6
        self.update_nz(total)

    def branch(self) -> int:
        """Jump by the signed offset in ``instr[1]``; return the cycles used."""
        old_pc = self.pc
        offset = self.instr[1] & 0xFF
        if offset & 0x80:
            offset -= 0x100
        self.pc = (self.pc + offset) & 0xFFFF
        return 3 if (self.pc & 0xFF00) == (old_pc & 0xFF00) else 4

    def absolute_address(self) -> int:
        """Return the 16-bit operand address of the decoded instruction."""
        return (self.instr[2] << 8) | self.instr[1]