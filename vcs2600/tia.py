"""Television interface adapter: turns register writes into display pixels."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import BinaryIO

from vcs2600.bits import reverse_bits8, reverse_bits32

logger = logging.getLogger(__name__)

DISPLAY_WIDTH = 160
HORIZONTAL_BLANK = 68
DISPLAY_NOMINAL_HEIGHT = 192
VERTICAL_SYNC = 3
VERTICAL_BLANK = 37
OVERSCAN = 30
DISPLAY_HEIGHT = DISPLAY_NOMINAL_HEIGHT + VERTICAL_BLANK + OVERSCAN
AUTO_VSYNC = DISPLAY_HEIGHT + 100

PALETTE_SIZE = 3 * 256

_LINE_END = HORIZONTAL_BLANK + DISPLAY_WIDTH - 1


@dataclass(frozen=True, slots=True)
class RGBA:
    """One display pixel colour."""

    r: int
    g: int
    b: int
    a: int


_CLEAR = RGBA(0, 0, 0, 0)
_BLACK = RGBA(0, 0, 0, 255)
_WHITE = RGBA(255, 255, 255, 255)


@dataclass
class TiaSettings:
    """Drawing state that takes effect once pending pixels are drawn."""

    pf_mask: int = 0
    ctrl_pf: int = 0
    p0_mask: int = 0
    p1_mask: int = 0
    color_pf: int = 0
    color_bk: int = 0
    color_p0: int = 0
    color_p1: int = 0
    reflect_p0: bool = False
    reflect_p1: bool = False
    rgba_pf: RGBA = field(default=_CLEAR)
    rgba_bk: RGBA = field(default=_CLEAR)
    rgba_p0: RGBA = field(default=_CLEAR)
    rgba_p1: RGBA = field(default=_CLEAR)


class TiaRegister(IntEnum):
    """Write register addresses of the chip."""

    VSYNC = 0x0
    VBLANK = 0x1
    WSYNC = 0x2
    RSYNC = 0x3
    NUSIZ0 = 0x4
    NUSIZ1 = 0x5
    COLUP0 = 0x6
    COLUP1 = 0x7
    COLUPF = 0x8
    COLUBK = 0x9
    CTRLPF = 0xA
    REFP0 = 0xB
    REFP1 = 0xC
    PF0 = 0xD
    PF1 = 0xE
    PF2 = 0xF
    RESP0 = 0x10
    RESP1 = 0x11
    RESM0 = 0x12
    RESM1 = 0x13
    RESBL = 0x14
    AUDC0 = 0x15
    AUDC1 = 0x16
    AUDF0 = 0x17
    AUDV0 = 0x18
    AUDV1 = 0x19
    AUDF1 = 0x1A
    GRP0 = 0x1B
    GRP1 = 0x1C
    ENAM0 = 0x1D
    ENAM1 = 0x1E
    ENABL = 0x1F
    HMPL0 = 0x20
    HMPL1 = 0x21
    HMPM0 = 0x22
    HMPM1 = 0x23
    HMPBL = 0x24
    VDELP0 = 0x25
    VDELP1 = 0x26
    VDELBL = 0x27
    RESMP0 = 0x28
    RESMP1 = 0x29
    HMOVE = 0x2A
    HMCLR = 0x2B
    CXCLR = 0x2C


_AUDIO_REGISTERS = {
    TiaRegister.AUDC0,
    TiaRegister.AUDC1,
    TiaRegister.AUDF0,
    TiaRegister.AUDV0,
    TiaRegister.AUDV1,
    TiaRegister.AUDF1,
}

_REGISTER_NAMES = {
    int(reg): reg.name for reg in TiaRegister if reg not in _AUDIO_REGISTERS
}
_REGISTER_NAMES[TiaRegister.VDELBL] = "RESMBL"


def addr_name(addr: int) -> str:
    """Return the register name for ``addr``, or ``"?"`` if it has none."""
    return _REGISTER_NAMES.get(addr, "?")


def use_player(mask: int, position_x: int, display_x: int) -> bool:
    """Tell whether the player graphic covers ``display_x``."""
    offset = display_x - position_x
    if offset & ~7:
        return False
    return bool((mask >> offset) & 1)


def use_player_slow(mask: int, position_x: int, display_x: int) -> bool:
    """Reference version of :func:`use_player`; position 0xFF hides the player."""
    if position_x == 0xFF:
        return False
    offset = display_x - position_x
    if offset >= 8 or offset < 0:
        return False
    return bool(mask & (1 << offset))


def scan_to_display_x(scan_x: int) -> int:
    """Convert a horizontal scan position to a display column."""
    return scan_x - HORIZONTAL_BLANK


def scan_to_display_y(scan_y: int) -> int:
    """Convert a scan line to a display row."""
    return scan_y - VERTICAL_BLANK


class Tia:
    """Lazy pixel renderer driven by register writes and elapsed colour clocks."""

    DISPLAY_WIDTH = DISPLAY_WIDTH
    HORIZONTAL_BLANK = HORIZONTAL_BLANK
    DISPLAY_HEIGHT = DISPLAY_HEIGHT
    AUTO_VSYNC = AUTO_VSYNC

    def __init__(self) -> None:
        self.settings = TiaSettings()
        self.next_settings = TiaSettings()
        self.settings_changed = False
        self.palette: list[RGBA] = [_CLEAR] * 256
        self.wait_sync = False
        self.vertical_sync = False
        self.reset_p0 = False
        self.reset_p1 = False
        # 0xFF means the player is not displayed
        self.position_x_p0 = 0xFF
        self.position_x_p1 = 0xFF
        self.pixel_cycles = 0
        self.pixel_count = 0
        self.scan_x = -1
        self.scan_y = 0
        self.display: list[RGBA] = [_CLEAR] * (DISPLAY_WIDTH * DISPLAY_HEIGHT)
        self.clear_display()

    def clear_display(self) -> None:
        """Fill the display with a black and white checkerboard."""
        logger.debug("clear display")
        self.display = [
            _BLACK if (x ^ y) & 1 else _WHITE
            for y in range(DISPLAY_HEIGHT)
            for x in range(DISPLAY_WIDTH)
        ]

    def load_palette(self, stream: BinaryIO) -> None:
        """Load 256 RGB triplets from a binary stream."""
        data = stream.read(PALETTE_SIZE)
        if len(data) < PALETTE_SIZE:
            logger.error(
                "only read %d bytes from palette file, expected %d",
                len(data),
                PALETTE_SIZE,
            )
            data = data + bytes(PALETTE_SIZE - len(data))
        self.palette = [
            RGBA(data[i], data[i + 1], data[i + 2], 255)
            for i in range(0, PALETTE_SIZE, 3)
        ]

    def _index(self, display_x: int, scan_y: int) -> int:
        index = scan_y * DISPLAY_WIDTH + display_x
        if not 0 <= index < len(self.display):
            raise IndexError(f"display position ({display_x}, {scan_y}) out of range")
        return index

    def display_at(self, display_x: int, scan_y: int) -> RGBA:
        """Return the pixel at a display column and scan line."""
        return self.display[self._index(display_x, scan_y)]

    def draw_pixel_line(self, pixel_cycles: int) -> int:
        """Draw up to the end of the current line; return the cycles left over."""
        if pixel_cycles == 0:
            return 0

        if self.vertical_sync:
            if self.scan_y != 0 or self.scan_x != -1:
                self.clear_display()
            self.scan_x = -1
            self.scan_y = 0
            self.pixel_count += pixel_cycles
            return 0

        if self.scan_x >= _LINE_END:
            self.scan_x = -1
            self.scan_y += 1
            if self.scan_y >= AUTO_VSYNC:
                logger.warning("forcing screen refresh (needed vertical sync)")
                self.scan_y = 0
                self.clear_display()

        if self.scan_x < HORIZONTAL_BLANK - 1:
            to_line_start = (HORIZONTAL_BLANK - 1) - self.scan_x
            if pixel_cycles <= to_line_start:
                self.scan_x += pixel_cycles
                self.pixel_count += pixel_cycles
                return 0
            pixel_cycles -= to_line_start
            self.scan_x = HORIZONTAL_BLANK - 1

        if self.scan_y >= DISPLAY_HEIGHT:
            logger.warning("overdraw %d", self.scan_y)
            return 0

        to_line_end = _LINE_END - self.scan_x
        display_cycles = min(pixel_cycles, to_line_end)
        display_x = scan_to_display_x(self.scan_x + 1)
        display_x_stop = display_x + display_cycles
        self.scan_x += display_cycles
        pixel_cycles -= display_cycles

        settings = self.settings
        pf = settings.pf_mask
        if settings.ctrl_pf & 1:
            pf |= reverse_bits32((pf << 12) & 0xFFFFFFFF) << 20
        else:
            pf |= (pf & 0xFFFFF) << 20

        p0_mask = reverse_bits8(settings.p0_mask) if settings.reflect_p0 else settings.p0_mask
        p1_mask = reverse_bits8(settings.p1_mask) if settings.reflect_p1 else settings.p1_mask

        row = self.scan_y * DISPLAY_WIDTH
        for x in range(display_x, display_x_stop):
            if use_player(p0_mask, self.position_x_p0, x):
                rgba = settings.rgba_p0
            elif use_player(p1_mask, self.position_x_p1, x):
                rgba = settings.rgba_p1
            elif (pf >> (x >> 2)) & 1:
                rgba = settings.rgba_pf
            else:
                rgba = settings.rgba_bk
            self.display[row + x] = rgba

        self.pixel_count += display_cycles
        return pixel_cycles

    def sync_pixels(self) -> None:
        """Draw every pending pixel cycle to the display."""
        while self.pixel_cycles > 0:
            self.pixel_cycles = self.draw_pixel_line(self.pixel_cycles)

    def advance_pixels(self, pixel_cycles: int) -> None:
        """Account for elapsed pixel cycles, drawing only when settings change."""
        self.pixel_cycles += pixel_cycles

        if self.settings_changed:
            self.settings_changed = False
            self.sync_pixels()
            logger.debug("%d settings changed (after sync)", self.pixel_count)
            self.settings = dataclasses.replace(self.next_settings)

        if self.wait_sync:
            self.wait_sync = False
            self.pixel_cycles = 0
            to_line_end = _LINE_END - self.scan_x
            assert to_line_end >= 0
            remaining = self.draw_pixel_line(to_line_end)
            logger.debug("%d after wsync", self.pixel_count)
            assert remaining == 0

        if self.reset_p0:
            self.reset_p0 = False
            self.position_x_p0 = self.player_position_x()

        if self.reset_p1:
            self.reset_p1 = False
            self.position_x_p1 = self.player_position_x()

    def player_position_x(self) -> int:
        """Display column a player reset would move to, clamped to 0..255."""
        return max(0, min(scan_to_display_x(self.scan_x), 255))

    def read(self, addr: int) -> int:
        """Read a register; no read registers are modelled, so always 0."""
        return 0

    def write(self, addr: int, data: int) -> None:
        """Write ``data`` to the register at ``addr`` (only 6 address bits used)."""
        addr &= 0x3F
        data &= 0xFF
        logger.debug("TIA write %x to ADDR_%x %s", data, addr, addr_name(addr))

        nxt = self.next_settings
        changed = True
        match addr:
            case TiaRegister.WSYNC:
                self.wait_sync = True
            case TiaRegister.VSYNC:
                self.vertical_sync = bool(data & 2)
            case TiaRegister.COLUP0:
                nxt.color_p0 = data
                nxt.rgba_p0 = self.palette[data]
            case TiaRegister.COLUP1:
                nxt.color_p1 = data
                nxt.rgba_p1 = self.palette[data]
            case TiaRegister.COLUPF:
                nxt.color_pf = data
                nxt.rgba_pf = self.palette[data]
            case TiaRegister.COLUBK:
                nxt.color_bk = data
                nxt.rgba_bk = self.palette[data]
            case TiaRegister.CTRLPF:
                nxt.ctrl_pf = data
            case TiaRegister.REFP0:
                nxt.reflect_p0 = bool(data & 0x08)
            case TiaRegister.REFP1:
                nxt.reflect_p1 = bool(data & 0x08)
            case TiaRegister.PF0:
                nxt.pf_mask = (nxt.pf_mask & ~0xF) | ((data >> 4) & 0xF)
            case TiaRegister.PF1:
                # PF1 is drawn most significant bit first
                nxt.pf_mask = (nxt.pf_mask & ~0xFF0) | (reverse_bits8(data) << 4)
            case TiaRegister.PF2:
                nxt.pf_mask = (nxt.pf_mask & ~0xFF000) | (data << 12)
            case TiaRegister.RESP0:
                self.reset_p0 = True
            case TiaRegister.RESP1:
                self.reset_p1 = True
            case TiaRegister.GRP0:
                nxt.p0_mask = data
            case TiaRegister.GRP1:
                nxt.p1_mask = data
            case _:
                changed = False
        nxt.pf_mask &= 0xFFFFFFFF
        self.settings_changed = changed