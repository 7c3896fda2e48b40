"""Run a tiny fixed program on the processor and show its registers."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field

from vcs2600.cpu import Mos6502

PROGRAM = bytes(
    [
        0xA2, 0x12,  # LDX #12
        0xA9, 0xFF,  # LDA #FF
        0xA0, 0x34,  # LDY #34
        0xEA,  # NOP
        0xEA,  # NOP
    ]
)


@dataclass
class _DemoMemory:
    """Read-only program memory that mirrors every 8 bytes and logs writes."""

    program: bytes = PROGRAM
    writes: list[tuple[int, int]] = field(default_factory=list)

    def read(self, addr: int) -> int:
        return self.program[addr & 0x7]

    def write(self, addr: int, data: int) -> None:
        # Writes never reach the program; they are only recorded.
        self.writes.append((addr, data))


def run_demo(cycles: int) -> str:
    """Run the demo program for at least ``cycles`` clock cycles; return the trace."""
    memory = _DemoMemory()
    cpu = Mos6502(memory.read, memory.write)
    lines: list[str] = []
    cycle = 0
    while cycle < cycles:
        lines.append(f"Cycle {cycle}\n")
        cycle += cpu.exec_one()
        lines.append(cpu.format_regs())
    return "".join(lines)


def main(argv: list[str] | None = None) -> int:
    """Print the register trace of the demo program."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.parse_args(argv)
    print(run_demo(10), end="")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())