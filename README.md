# vcs2600

An Atari 2600 emulator core in pure Python. It needs nothing beyond the
standard library.

It models three parts:

- a MOS 6502 CPU (`vcs2600.cpu.Mos6502`). It runs from a 256-entry opcode
  table that `vcs2600.instructions.build_op_table` builds;
- the TIA television interface adapter (`vcs2600.tia.Tia`). It draws the
  playfield, the background and both players into a 160 x 259 buffer of
  `RGBA` values, one scan line at a time. It draws lazily and only catches up
  when a register write changes the drawing settings;
- the console itself (`vcs2600.console.Atari2600`). It joins the CPU, 128 bytes
  of RIOT RAM, a 4 KiB cartridge ROM and the TIA through the 6507's 13-bit
  address bus.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Usage

Load a cartridge and a palette, then step the machine:

```python
from vcs2600.console import Atari2600

atari = Atari2600()
with open("game.bin", "rb") as rom:
    atari.load_rom(rom)            # up to 4096 bytes; a short file is zero-padded
with open("palette.pal", "rb") as palette:
    atari.tia.load_palette(palette)  # 256 RGB triples (768 bytes)

atari.add_breakpoint(0xF010)
atari.exec_instructions(1000)      # stops early when the PC hits a breakpoint

print(atari.cpu.format_regs())
pixel = atari.tia.display_at(10, 20)  # an RGBA(r, g, b, a)
```

`Atari2600.clear_breakpoints()` removes every breakpoint. `Atari2600.read` and
`Atari2600.write` give direct access to the bus.

You can also drive the CPU on its own through read and write callbacks:

```python
from vcs2600.cpu import Mos6502

program = bytes([0xA2, 0x12, 0xA9, 0xFF, 0xA0, 0x34, 0xEA, 0xEA])
cpu = Mos6502(lambda addr: program[addr & 0x7], lambda addr, data: None)
cycles = cpu.exec_one()   # the first call loads PC from the reset vector
```

`Mos6502.exec_one` returns the clock cycles an instruction took. Any error
during an instruction is raised as a `RuntimeError` that names the PC. For an
opcode that is not implemented, the underlying cause is
`vcs2600.instructions.InvalidInstructionError`. `Mos6502.op_name(opcode)` gives
an opcode's mnemonic; unimplemented ones are named `"<?>"`.

The bit helpers in `vcs2600.bits` (`reverse_bits8`, `reverse_bits32`) and the
TIA helpers `addr_name`, `use_player`, `scan_to_display_x` and
`scan_to_display_y` are public too.

Diagnostics such as register writes, screen clears and breakpoint hits go to
the standard `logging` module under the `vcs2600.*` loggers.

## Demo

```
vcs2600-demo
```

This runs a short built-in program (three loads and two NOPs) for at least
10 clock cycles. It prints the cycle count and the PC, A, X and Y registers
after each instruction.

## What it does not do

- It has no screen, window or front end. The display lives only in
  `Tia.display` for your own code to show.
- It has no input. The joystick port (SWCHA) always reads as nothing pressed,
  and the console switches (SWCHB) read as a fixed value.
- The RIOT timers, sound, missiles, the ball, collisions and horizontal motion
  are not emulated. Writes to those registers are ignored.
- Only part of the 6502 instruction set is implemented, and only 4 KiB
  cartridges without bank switching are supported.