"""Atari 2600 emulator core: 6502 CPU, TIA video chip and console memory map."""

__version__ = "0.1.0"
__all__ = ["bits", "tia", "instructions", "cpu", "demo", "console"]