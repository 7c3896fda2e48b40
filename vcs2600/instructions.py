"""6502 opcode table: names, encoded lengths and the operations they perform.

Each operation takes a processor object and returns the number of clock
cycles the instruction used.  The processor must provide the registers
``a``, ``x``, ``y``, ``sp`` and ``pc``, the decoded instruction bytes in
``instr`` (three entries), the flags ``carry``, ``zero``, ``irq_disable``,
``decimal_mode``, ``overflow`` and ``negative``, and the bus accessors
``read(addr)`` and ``write(addr, data)``.  Operations are called after
``pc`` has been advanced past the instruction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, NamedTuple

logger = logging.getLogger(__name__)

OpFunc = Callable[[Any], int]
Operand = Callable[[Any, int], None]
UnaryOp = Callable[[Any, int], int]

INVALID_NAME = "<?>"


class InvalidInstructionError(RuntimeError):
    """Raised when the processor decodes an opcode it does not implement."""


class DuplicateOpcodeError(ValueError):
    """Raised when two instructions are registered under the same opcode."""


@dataclass(frozen=True)
class OpInfo:
    """One entry of the opcode table."""

    name: str
    func: OpFunc
    length: int


# --- flag and address helpers -------------------------------------------


def _set_nz(cpu: Any, value: int) -> None:
    value &= 0xFF
    cpu.zero = value == 0
    cpu.negative = bool(value & 0x80)


def _transfer(cpu: Any, value: int) -> int:
    _set_nz(cpu, value)
    return value & 0xFF


def _compare(cpu: Any, value1: int, value2: int) -> None:
    # Carry acts as an active-low borrow.
    total = (value1 - value2) & 0xFFFF
    carry6 = bool(((value1 & 0x7F) + (~value2 & 0x7F) + 1) & 0x80)
    cpu.carry = not (total & 0x100)
    cpu.overflow = cpu.carry != carry6
    _set_nz(cpu, total & 0xFF)


def _absolute_address(cpu: Any) -> int:
    return (cpu.instr[2] << 8) | cpu.instr[1]


def _branch(cpu: Any) -> int:
    old_pc = cpu.pc
    offset = cpu.instr[1]
    if offset & 0x80:
        offset -= 0x100
    cpu.pc = (cpu.pc + offset) & 0xFFFF
    return 3 if (cpu.pc & 0xFF00) == (old_pc & 0xFF00) else 4


# --- addressing modes -----------------------------------------------------


class _ReadMode(NamedTuple):
    length: int
    fetch: Callable[[Any], int]
    cycles: int


class _ModifyMode(NamedTuple):
    length: int
    address: Callable[[Any], int]
    cycles: int


def _indirect_x_address(cpu: Any) -> int:
    zpg = cpu.instr[1] + cpu.x
    lo = cpu.read(zpg & 0xFF)
    hi = cpu.read((zpg + 1) & 0xFF)
    return (hi << 8) | lo


def _indirect_y_address(cpu: Any) -> int:
    zpg = cpu.instr[1]
    lo = cpu.read(zpg)
    hi = cpu.read((zpg + 1) & 0xFF)
    return (((hi << 8) | lo) + cpu.y) & 0xFFFF


def _zero_page_x_address(cpu: Any) -> int:
    return (cpu.instr[1] + cpu.x) & 0xFF


def _absolute_x_address(cpu: Any) -> int:
    return (_absolute_address(cpu) + cpu.x) & 0xFFFF


def _absolute_y_address(cpu: Any) -> int:
    return (_absolute_address(cpu) + cpu.y) & 0xFFFF


IMMEDIATE = _ReadMode(2, lambda cpu: cpu.instr[1], 2)
ZERO_PAGE = _ReadMode(2, lambda cpu: cpu.read(cpu.instr[1]), 3)
ZERO_PAGE_X = _ReadMode(2, lambda cpu: cpu.read(_zero_page_x_address(cpu)), 4)
ABSOLUTE = _ReadMode(3, lambda cpu: cpu.read(_absolute_address(cpu)), 4)
# The indexed absolute modes report a single cycle regardless of page crossing.
ABSOLUTE_X = _ReadMode(3, lambda cpu: cpu.read(_absolute_x_address(cpu)), 1)
ABSOLUTE_Y = _ReadMode(3, lambda cpu: cpu.read(_absolute_y_address(cpu)), 1)
INDIRECT_X = _ReadMode(2, lambda cpu: cpu.read(_indirect_x_address(cpu)), 6)
INDIRECT_Y = _ReadMode(2, lambda cpu: cpu.read(_indirect_y_address(cpu)), 6)

MODIFY_ZERO_PAGE = _ModifyMode(2, lambda cpu: cpu.instr[1], 5)
MODIFY_ZERO_PAGE_X = _ModifyMode(2, _zero_page_x_address, 6)
MODIFY_ABSOLUTE = _ModifyMode(3, _absolute_address, 6)
MODIFY_ABSOLUTE_X = _ModifyMode(3, _absolute_x_address, 7)


# --- table construction ---------------------------------------------------


class _OpTableBuilder:
    """Collects instructions and rejects duplicate opcodes."""

    def __init__(self) -> None:
        self._ops: dict[int, OpInfo] = {}

    def add(self, opcode: int, name: str, length: int, func: OpFunc) -> None:
        if not 0 <= opcode <= 0xFF:
            raise IndexError(f"opcode {opcode:#x} out of range")
        previous = self._ops.get(opcode)
        if previous is not None:
            raise DuplicateOpcodeError(
                f"repeat instruction with opcode {opcode:02x} prev op {previous.name}"
            )
        self._ops[opcode] = OpInfo(name, func, length)

    def add_read(self, opcode: int, name: str, mode: _ReadMode, op: Operand) -> None:
        def run(cpu: Any) -> int:
            op(cpu, mode.fetch(cpu))
            return mode.cycles

        self.add(opcode, name, mode.length, run)

    def add_modify(
        self, opcode: int, name: str, mode: _ModifyMode, op: UnaryOp
    ) -> None:
        def run(cpu: Any) -> int:
            addr = mode.address(cpu)
            cpu.write(addr, op(cpu, cpu.read(addr)) & 0xFF)
            return mode.cycles

        self.add(opcode, name, mode.length, run)

    def add_modify_a(self, opcode: int, name: str, op: UnaryOp) -> None:
        def run(cpu: Any) -> int:
            cpu.a = op(cpu, cpu.a) & 0xFF
            return 2

        self.add(opcode, name, 1, run)

    def table(self) -> tuple[OpInfo, ...]:
        def invalid(cpu: Any) -> int:
            raise InvalidInstructionError(f"Invalid Instr {cpu.instr[0]:02x}")

        filler = OpInfo(INVALID_NAME, invalid, 1)
        logger.debug("OpCode Count %d", len(self._ops))
        return tuple(self._ops.get(opcode, filler) for opcode in range(256))


def _add_arithmetic(b: _OpTableBuilder) -> None:
    def inc_op(cpu: Any, operand: int) -> int:
        operand = (operand + 1) & 0xFF
        _set_nz(cpu, operand)
        return operand

    b.add_modify(0xE6, "INC zpg", MODIFY_ZERO_PAGE, inc_op)
    b.add_modify(0xF6, "INC zpg,x", MODIFY_ZERO_PAGE_X, inc_op)
    b.add_modify(0xEE, "INC abs", MODIFY_ABSOLUTE, inc_op)
    b.add_modify(0xFE, "INC abs,x", MODIFY_ABSOLUTE_X, inc_op)

    def inx(cpu: Any) -> int:
        cpu.x = (cpu.x + 1) & 0xFF
        _set_nz(cpu, cpu.x)
        return 2

    def iny(cpu: Any) -> int:
        cpu.y = (cpu.y + 1) & 0xFF
        _set_nz(cpu, cpu.y)
        return 2

    def dec_zpg(cpu: Any) -> int:
        addr = cpu.instr[1]
        data = (cpu.read(addr) - 1) & 0xFF
        _set_nz(cpu, data)
        cpu.write(addr, data)
        return 5

    def dex(cpu: Any) -> int:
        cpu.x = (cpu.x - 1) & 0xFF
        _set_nz(cpu, cpu.x)
        return 2

    def dey(cpu: Any) -> int:
        cpu.y = (cpu.y - 1) & 0xFF
        _set_nz(cpu, cpu.y)
        return 2

    b.add(0xE8, "INX", 1, inx)
    b.add(0xC8, "INY", 1, iny)
    b.add(0xC6, "DEC zpg", 2, dec_zpg)
    b.add(0xCA, "DEX", 1, dex)
    b.add(0x88, "DEY", 1, dey)

    def adc_op(cpu: Any, operand: int) -> None:
        carry_in = 1 if cpu.carry else 0
        total = cpu.a + operand + carry_in
        carry6 = bool(((cpu.a & 0x7F) + (operand & 0x7F) + carry_in) & 0x80)
        cpu.a = total & 0xFF
        cpu.carry = bool(total & 0x100)
        cpu.overflow = cpu.carry != carry6
        _set_nz(cpu, cpu.a)

    for opcode, name, mode in (
        (0x69, "ADC #", IMMEDIATE),
        (0x65, "ADC zpg", ZERO_PAGE),
        (0x75, "ADC zpg", ZERO_PAGE_X),
        (0x6D, "ADC abs", ABSOLUTE),
        (0x7D, "ADC abs,x", ABSOLUTE_X),
        (0x79, "ADC abs,y", ABSOLUTE_Y),
        (0x61, "ADC (indirect),x", INDIRECT_X),
        (0x71, "ADC (indirect,y)", INDIRECT_Y),
    ):
        b.add_read(opcode, name, mode, adc_op)

    def sbc_op(cpu: Any, operand: int) -> None:
        carry_in = 1 if cpu.carry else 0
        total = (cpu.a - operand - 1 + carry_in) & 0xFFFF
        carry6 = bool(((cpu.a & 0x7F) + (~operand & 0x7F) + carry_in) & 0x80)
        cpu.a = total & 0xFF
        cpu.carry = not (total & 0x100)
        cpu.overflow = cpu.carry != carry6
        _set_nz(cpu, cpu.a)

    for opcode, name, mode in (
        (0xE9, "SBC #", IMMEDIATE),
        (0xE5, "SBC zpg", ZERO_PAGE),
        (0xF5, "SBC zpg", ZERO_PAGE_X),
        (0xED, "SBC abs", ABSOLUTE),
        (0xFD, "SBC abs,x", ABSOLUTE_X),
        (0xF9, "SBC abs,y", ABSOLUTE_Y),
        (0xE1, "SBC (indirect),x", INDIRECT_X),
        (0xF1, "SBC (indirect,y)", INDIRECT_Y),
    ):
        b.add_read(opcode, name, mode, sbc_op)


def _add_loads(b: _OpTableBuilder) -> None:
    def loader(register: str) -> Operand:
        def op(cpu: Any, data: int) -> None:
            _set_nz(cpu, data)
            setattr(cpu, register, data & 0xFF)

        return op

    lda, ldx, ldy = loader("a"), loader("x"), loader("y")
    for opcode, name, mode, op in (
        (0xA9, "LDA #", IMMEDIATE, lda),
        (0xA5, "LDA zpg", ZERO_PAGE, lda),
        (0xB5, "LDA zpg,x", ZERO_PAGE_X, lda),
        (0xAD, "LDA abs", ABSOLUTE, lda),
        (0xBD, "LDA abs,x", ABSOLUTE_X, lda),
        (0xB9, "LDA abs,y", ABSOLUTE_Y, lda),
        (0xB1, "LDA (indirect),y", INDIRECT_Y, lda),
        (0xA2, "LDX #", IMMEDIATE, ldx),
        (0xA6, "LDX zpg", ZERO_PAGE, ldx),
        (0xAE, "LDX abs", ABSOLUTE, ldx),
        (0xBE, "LDX abs,y", ABSOLUTE_Y, ldx),
        (0xA0, "LDY #", IMMEDIATE, ldy),
        (0xA4, "LDY zpg", ZERO_PAGE, ldy),
        (0xB4, "LDY zpg,x", ZERO_PAGE_X, ldy),
        (0xAC, "LDY abs", ABSOLUTE, ldy),
        (0xBC, "LDY abs,x", ABSOLUTE_X, ldy),
    ):
        b.add_read(opcode, name, mode, op)


def _add_stores(b: _OpTableBuilder) -> None:
    def store(
        register: str, address: Callable[[Any], int], cycles: int
    ) -> OpFunc:
        def run(cpu: Any) -> int:
            cpu.write(address(cpu), getattr(cpu, register))
            return cycles

        return run

    def zero_page(cpu: Any) -> int:
        return cpu.instr[1]

    b.add(0x95, "STA zpg,x", 2, store("a", _zero_page_x_address, 4))
    b.add(0x85, "STA zpg", 2, store("a", zero_page, 3))
    b.add(0x8D, "STA abs", 3, store("a", _absolute_address, 4))
    b.add(0x9D, "STA abs,x", 3, store("a", _absolute_x_address, 5))
    b.add(0x99, "STA abs,y", 3, store("a", _absolute_y_address, 5))
    b.add(0x86, "STX zpg", 2, store("x", zero_page, 3))
    b.add(0x84, "STY zpg", 2, store("y", zero_page, 3))
    b.add(0x94, "STY zpg,x", 2, store("y", _zero_page_x_address, 4))
    b.add(0x8C, "STY abs", 3, store("y", _absolute_address, 4))


def _add_transfers(b: _OpTableBuilder) -> None:
    def move(source: str, target: str) -> OpFunc:
        def run(cpu: Any) -> int:
            setattr(cpu, target, _transfer(cpu, getattr(cpu, source)))
            return 2

        return run

    b.add(0x9A, "TXS", 1, move("x", "sp"))
    b.add(0xBA, "TSX", 1, move("sp", "x"))
    b.add(0x8A, "TXA", 1, move("x", "a"))
    b.add(0xAA, "TAX", 1, move("a", "x"))
    b.add(0xA8, "TAY", 1, move("a", "y"))
    b.add(0x98, "TYA", 1, move("y", "a"))


def _add_special(b: _OpTableBuilder) -> None:
    def set_flag(flag: str, value: bool) -> OpFunc:
        def run(cpu: Any) -> int:
            setattr(cpu, flag, value)
            return 2

        return run

    b.add(0xEA, "NOP", 1, lambda cpu: 2)
    b.add(0x78, "SEI", 1, set_flag("irq_disable", True))
    b.add(0xD8, "CLD", 1, set_flag("decimal_mode", False))
    b.add(0x38, "SEC", 1, set_flag("carry", True))
    b.add(0x18, "CLC", 1, set_flag("carry", False))


def _add_branches(b: _OpTableBuilder) -> None:
    def branch_if(flag: str, expected: bool) -> OpFunc:
        def run(cpu: Any) -> int:
            if bool(getattr(cpu, flag)) == expected:
                return _branch(cpu)
            return 2

        return run

    b.add(0xD0, "BNE", 2, branch_if("zero", False))
    b.add(0xF0, "BEQ", 2, branch_if("zero", True))
    b.add(0x10, "BPL", 2, branch_if("negative", False))
    b.add(0x30, "BMI", 2, branch_if("negative", True))
    b.add(0xB0, "BCS", 2, branch_if("carry", True))
    b.add(0x90, "BCC", 2, branch_if("carry", False))
    b.add(0x50, "BVC", 2, branch_if("overflow", False))
    b.add(0x70, "BVS", 2, branch_if("overflow", True))

    def jsr(cpu: Any) -> int:
        stack_addr = 0x100 + cpu.sp
        # pc already points past the instruction; the stack holds pc - 1
        ret_addr = (cpu.pc - 1) & 0xFFFF
        cpu.write(stack_addr, ret_addr >> 8)
        cpu.write(stack_addr - 1, ret_addr & 0xFF)
        cpu.sp = (cpu.sp - 2) & 0xFF
        cpu.pc = _absolute_address(cpu)
        return 6

    def rts(cpu: Any) -> int:
        stack_addr = 0x100 + cpu.sp
        pcl = cpu.read(stack_addr + 1)
        pch = cpu.read(stack_addr + 2)
        cpu.sp = (cpu.sp + 2) & 0xFF
        cpu.pc = (((pch << 8) | pcl) + 1) & 0xFFFF
        return 6

    def jmp(cpu: Any) -> int:
        cpu.pc = _absolute_address(cpu)
        return 3

    b.add(0x20, "JSR", 3, jsr)
    b.add(0x60, "RTS", 1, rts)
    b.add(0x4C, "JMP", 3, jmp)


def _add_stack(b: _OpTableBuilder) -> None:
    def pha(cpu: Any) -> int:
        cpu.write(0x100 + cpu.sp, cpu.a)
        cpu.sp = (cpu.sp - 1) & 0xFF
        return 3

    def pla(cpu: Any) -> int:
        cpu.sp = (cpu.sp + 1) & 0xFF
        cpu.a = cpu.read(0x100 + cpu.sp) & 0xFF
        _set_nz(cpu, cpu.a)
        return 3

    b.add(0x48, "PHA", 1, pha)
    b.add(0x68, "PLA", 1, pla)


def _add_compares(b: _OpTableBuilder) -> None:
    def comparer(register: str) -> Operand:
        def op(cpu: Any, operand: int) -> None:
            _compare(cpu, getattr(cpu, register), operand)

        return op

    cmp_op, cpx_op, cpy_op = comparer("a"), comparer("x"), comparer("y")
    for opcode, name, mode, op in (
        (0xC9, "CMP #", IMMEDIATE, cmp_op),
        (0xC5, "CMP zpg", ZERO_PAGE, cmp_op),
        (0xD5, "CMP zpg,x", ZERO_PAGE_X, cmp_op),
        (0xCD, "CMP abs", ABSOLUTE, cmp_op),
        (0xDD, "CMP abs,x", ABSOLUTE_X, cmp_op),
        (0xD9, "CMP abs,y", ABSOLUTE_Y, cmp_op),
        (0xC1, "CMP (indirect,x)", INDIRECT_X, cmp_op),
        (0xD1, "CMP (indirect),y", INDIRECT_Y, cmp_op),
        (0xE0, "CPX #", IMMEDIATE, cpx_op),
        (0xE4, "CPX zpg", ZERO_PAGE, cpx_op),
        (0xEC, "CPX abs", ABSOLUTE, cpx_op),
        (0xC0, "CPY #", IMMEDIATE, cpy_op),
        (0xC4, "CPY zpg", ZERO_PAGE, cpy_op),
        (0xCC, "CPY abs", ABSOLUTE, cpy_op),
    ):
        b.add_read(opcode, name, mode, op)


def _add_shifts(b: _OpTableBuilder) -> None:
    def asl_op(cpu: Any, operand: int) -> int:
        # Carry is taken from the low three bits and flags N/Z are untouched.
        cpu.carry = bool(operand & 7)
        return (operand << 1) & 0xFF

    def ror_op(cpu: Any, operand: int) -> int:
        carry_out = bool(operand & 1)
        operand = (operand >> 1) | (0x80 if cpu.carry else 0)
        cpu.carry = carry_out
        _set_nz(cpu, operand)
        return operand

    def rol_op(cpu: Any, operand: int) -> int:
        carry_out = bool(operand & 0x80)
        operand = ((operand << 1) & 0xFF) | (1 if cpu.carry else 0)
        cpu.carry = carry_out
        _set_nz(cpu, operand)
        return operand

    def lsr_a(cpu: Any) -> int:
        cpu.carry = bool(cpu.a & 1)
        cpu.a >>= 1
        return 2

    b.add_modify_a(0x0A, "ASL A", asl_op)
    b.add_modify(0x06, "ASL zpg", MODIFY_ZERO_PAGE, asl_op)
    b.add_modify(0x16, "ASL zpg,x", MODIFY_ZERO_PAGE_X, asl_op)
    b.add_modify(0x0E, "ASL abs", MODIFY_ABSOLUTE, asl_op)
    b.add_modify(0x1E, "ASL abs,x", MODIFY_ABSOLUTE_X, asl_op)

    b.add(0x4A, "LSR", 1, lsr_a)

    b.add_modify_a(0x6A, "ROR A", ror_op)
    b.add_modify(0x66, "ROR zpg", MODIFY_ZERO_PAGE, ror_op)
    b.add_modify(0x76, "ROR zpg,x", MODIFY_ZERO_PAGE_X, ror_op)
    b.add_modify(0x6E, "ROR abs", MODIFY_ABSOLUTE, ror_op)
    b.add_modify(0x7E, "ROR abs,x", MODIFY_ABSOLUTE_X, ror_op)

    b.add_modify_a(0x2A, "ROL A", rol_op)
    b.add_modify(0x26, "ROL zpg", MODIFY_ZERO_PAGE, rol_op)
    b.add_modify(0x36, "ROL zpg,x", MODIFY_ZERO_PAGE_X, rol_op)
    b.add_modify(0x2E, "ROL abs", MODIFY_ABSOLUTE, rol_op)
    b.add_modify(0x3E, "ROL abs,x", MODIFY_ABSOLUTE_X, rol_op)


def _add_logical(b: _OpTableBuilder) -> None:
    def and_op(cpu: Any, operand: int) -> None:
        cpu.a &= operand
        _set_nz(cpu, cpu.a)

    def or_op(cpu: Any, operand: int) -> None:
        cpu.a = (cpu.a | operand) & 0xFF
        _set_nz(cpu, cpu.a)

    def eor_op(cpu: Any, operand: int) -> None:
        cpu.a = (cpu.a ^ operand) & 0xFF
        _set_nz(cpu, cpu.a)

    def bit_op(cpu: Any, operand: int) -> None:
        cpu.zero = bool(cpu.a & operand)
        cpu.negative = bool(operand & 0x80)
        cpu.overflow = bool(operand & 0x40)

    for opcode, name, mode, op in (
        (0x29, "AND #", IMMEDIATE, and_op),
        (0x25, "AND zpg", ZERO_PAGE, and_op),
        (0x35, "AND zpg,x", ZERO_PAGE_X, and_op),
        (0x2D, "AND abs", ABSOLUTE, and_op),
        (0x3D, "AND abs,x", ABSOLUTE_X, and_op),
        # indexed by X although named for Y
        (0x39, "AND abs,y", ABSOLUTE_X, and_op),
        (0x21, "AND (indirect),x", INDIRECT_X, and_op),
        (0x31, "AND (indirect,y)", INDIRECT_Y, and_op),
        (0x09, "ORA #", IMMEDIATE, or_op),
        (0x05, "ORA zpg", ZERO_PAGE, or_op),
        (0x49, "EOR #", IMMEDIATE, eor_op),
        (0x45, "EOR zpg", ZERO_PAGE, eor_op),
        (0x24, "BIT zpg", ZERO_PAGE, bit_op),
        (0x2C, "BIT abs", ABSOLUTE, bit_op),
    ):
        b.add_read(opcode, name, mode, op)


def build_op_table() -> tuple[OpInfo, ...]:
    """Return the 256-entry opcode table; unknown opcodes raise when run."""
    builder = _OpTableBuilder()
    _add_arithmetic(builder)
    _add_loads(builder)
    _add_stores(builder)
    _add_transfers(builder)
    _add_special(builder)
    _add_branches(builder)
    _add_stack(builder)
    _add_compares(builder)
    _add_shifts(builder)
    _add_logical(builder)
    return builder.table()