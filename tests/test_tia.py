import io

import pytest

from vcs2600.tia import (
    AUTO_VSYNC,
    DISPLAY_HEIGHT,
    DISPLAY_WIDTH,
    RGBA,
    Tia,
    TiaRegister,
    TiaSettings,
    addr_name,
    scan_to_display_x,
    scan_to_display_y,
    use_player,
    use_player_slow,
)

WHITE = RGBA(255, 255, 255, 255)
BLACK = RGBA(0, 0, 0, 255)


def _palette_bytes():
    return bytes(v for i in range(256) for v in (i, 255 - i, i // 2))


def _color(i):
    return RGBA(i, 255 - i, i // 2, 255)


@pytest.fixture
def tia():
    chip = Tia()
    chip.load_palette(io.BytesIO(_palette_bytes()))
    return chip


def test_use_player_full_mask():
    for offset_x in range(192):
        assert use_player(0xFF, offset_x, offset_x)
        assert use_player(0xFF, offset_x, offset_x + 7)
        assert not use_player(0xFF, offset_x, offset_x - 1)
        assert not use_player(0xFF, offset_x, offset_x + 8)
        assert not use_player(0xFF, offset_x, offset_x - 10)
        assert not use_player(0xFF, offset_x, offset_x + 10)


def test_use_player_matches_slow():
    for display_x in range(192):
        for position_x in range(192 - 8):
            assert use_player(0xA7, position_x, display_x) == use_player_slow(
                0xA7, position_x, display_x
            )


def test_use_player_slow_hidden_position():
    assert use_player_slow(0xFF, 0xFF, 0xFF) is False


@pytest.mark.parametrize(
    "addr, name",
    [
        (0x00, "VSYNC"),
        (0x02, "WSYNC"),
        (0x09, "COLUBK"),
        (0x1B, "GRP0"),
        (0x27, "RESMBL"),
        (0x2C, "CXCLR"),
        (0x15, "?"),
        (0x1A, "?"),
        (0x3F, "?"),
    ],
)
def test_addr_name(addr, name):
    assert addr_name(addr) == name


def test_scan_conversions():
    assert scan_to_display_x(68) == 0
    assert scan_to_display_x(-1) == -69
    assert scan_to_display_y(37) == 0


def test_last_display_row_is_drawn():
    chip = Tia()
    assert DISPLAY_HEIGHT == 259
    chip.scan_y = DISPLAY_HEIGHT - 1
    chip.scan_x = 67
    assert chip.draw_pixel_line(1) == 0
    assert chip.display_at(0, DISPLAY_HEIGHT - 1) == RGBA(0, 0, 0, 0)
    assert chip.scan_x == 68


def test_initial_state_checkerboard():
    chip = Tia()
    assert chip.display_at(0, 0) == WHITE
    assert chip.display_at(1, 0) == BLACK
    assert chip.display_at(1, 1) == WHITE
    assert chip.scan_x == -1
    assert chip.scan_y == 0
    assert chip.position_x_p0 == 0xFF
    assert len(chip.display) == DISPLAY_WIDTH * DISPLAY_HEIGHT


def test_display_at_out_of_range():
    chip = Tia()
    with pytest.raises(IndexError):
        chip.display_at(0, DISPLAY_HEIGHT)
    with pytest.raises(IndexError):
        chip.display_at(-1, 0)


def test_load_palette(tia):
    assert tia.palette[0] == RGBA(0, 255, 0, 255)
    assert tia.palette[200] == _color(200)


def test_load_palette_short_input_pads_with_zero():
    chip = Tia()
    chip.load_palette(io.BytesIO(bytes([1, 2, 3, 4])))
    assert chip.palette[0] == RGBA(1, 2, 3, 255)
    assert chip.palette[1] == RGBA(4, 0, 0, 255)
    assert chip.palette[255] == RGBA(0, 0, 0, 255)


def test_write_color_sets_next_settings(tia):
    tia.write(TiaRegister.COLUBK, 0x10)
    assert tia.next_settings.color_bk == 0x10
    assert tia.next_settings.rgba_bk == _color(0x10)
    assert tia.settings_changed
    assert tia.settings == TiaSettings()


def test_write_masks_address(tia):
    tia.write(0x40 | TiaRegister.COLUPF, 0x22)
    assert tia.next_settings.color_pf == 0x22


def test_unknown_write_clears_changed_flag(tia):
    tia.write(TiaRegister.COLUBK, 0x10)
    tia.write(TiaRegister.AUDC0, 0x01)
    assert tia.settings_changed is False


def test_playfield_registers(tia):
    tia.write(TiaRegister.PF0, 0xF0)
    assert tia.next_settings.pf_mask == 0xF
    tia.write(TiaRegister.PF1, 0x01)
    assert tia.next_settings.pf_mask == 0x80F
    tia.write(TiaRegister.PF2, 0xFF)
    assert tia.next_settings.pf_mask == 0xFF80F
    tia.write(TiaRegister.PF0, 0x00)
    assert tia.next_settings.pf_mask == 0xFF800


def test_reflect_and_vsync_flags(tia):
    tia.write(TiaRegister.REFP0, 0x08)
    tia.write(TiaRegister.REFP1, 0x07)
    tia.write(TiaRegister.VSYNC, 0x02)
    assert tia.next_settings.reflect_p0 is True
    assert tia.next_settings.reflect_p1 is False
    assert tia.vertical_sync is True


def test_advance_applies_settings(tia):
    tia.write(TiaRegister.COLUBK, 0x10)
    tia.advance_pixels(0)
    assert tia.settings.rgba_bk == _color(0x10)
    assert tia.settings_changed is False
    tia.next_settings.color_bk = 0x11
    assert tia.settings.color_bk == 0x10


def test_partial_line_draw(tia):
    tia.write(TiaRegister.COLUBK, 0x10)
    tia.advance_pixels(0)
    tia.advance_pixels(68 + 10)
    assert tia.display_at(0, 0) == WHITE
    tia.sync_pixels()
    for x in range(10):
        assert tia.display_at(x, 0) == _color(0x10)
    assert tia.display_at(10, 0) == WHITE
    assert tia.scan_x == 77
    assert tia.pixel_cycles == 0


def test_wsync_finishes_line(tia):
    tia.advance_pixels(10)
    tia.write(TiaRegister.WSYNC, 0)
    tia.advance_pixels(3)
    assert tia.scan_x == 227
    assert tia.scan_y == 0
    assert tia.draw_pixel_line(1) == 0
    assert tia.scan_y == 1
    assert tia.scan_x == 0


def test_vsync_clears_display(tia):
    tia.write(TiaRegister.COLUBK, 0x10)
    tia.advance_pixels(0)
    tia.advance_pixels(228)
    tia.sync_pixels()
    assert tia.display_at(0, 0) == _color(0x10)
    tia.write(TiaRegister.VSYNC, 0x02)
    tia.advance_pixels(5)
    tia.sync_pixels()
    assert tia.display_at(0, 0) == WHITE
    assert tia.scan_x == -1
    assert tia.scan_y == 0


def test_player_drawn(tia):
    tia.position_x_p0 = 20
    tia.write(TiaRegister.GRP0, 0x01)
    tia.write(TiaRegister.COLUP0, 0x05)
    tia.write(TiaRegister.COLUBK, 0x10)
    tia.advance_pixels(0)
    tia.advance_pixels(228)
    tia.sync_pixels()
    assert tia.display_at(20, 0) == _color(0x05)
    assert tia.display_at(19, 0) == _color(0x10)
    assert tia.display_at(21, 0) == _color(0x10)


def test_reflected_player(tia):
    tia.position_x_p1 = 20
    tia.write(TiaRegister.GRP1, 0x01)
    tia.write(TiaRegister.REFP1, 0x08)
    tia.write(TiaRegister.COLUP1, 0x06)
    tia.write(TiaRegister.COLUBK, 0x10)
    tia.advance_pixels(0)
    tia.advance_pixels(228)
    tia.sync_pixels()
    assert tia.display_at(27, 0) == _color(0x06)
    assert tia.display_at(20, 0) == _color(0x10)


def test_playfield_repeated(tia):
    tia.write(TiaRegister.PF0, 0x10)
    tia.write(TiaRegister.COLUPF, 0x20)
    tia.write(TiaRegister.COLUBK, 0x10)
    tia.advance_pixels(0)
    tia.advance_pixels(228)
    tia.sync_pixels()
    assert tia.display_at(0, 0) == _color(0x20)
    assert tia.display_at(3, 0) == _color(0x20)
    assert tia.display_at(4, 0) == _color(0x10)
    assert tia.display_at(80, 0) == _color(0x20)
    assert tia.display_at(83, 0) == _color(0x20)
    assert tia.display_at(159, 0) == _color(0x10)


def test_playfield_reflected(tia):
    tia.write(TiaRegister.PF0, 0x10)
    tia.write(TiaRegister.CTRLPF, 0x01)
    tia.write(TiaRegister.COLUPF, 0x20)
    tia.write(TiaRegister.COLUBK, 0x10)
    tia.advance_pixels(0)
    tia.advance_pixels(228)
    tia.sync_pixels()
    assert tia.display_at(0, 0) == _color(0x20)
    assert tia.display_at(80, 0) == _color(0x10)
    assert tia.display_at(156, 0) == _color(0x20)
    assert tia.display_at(159, 0) == _color(0x20)


def test_resp0_positions_player(tia):
    tia.advance_pixels(68 + 10)
    tia.sync_pixels()
    tia.write(TiaRegister.RESP0, 0)
    tia.advance_pixels(0)
    assert tia.position_x_p0 == 9
    assert tia.reset_p0 is False


def test_player_position_clamped():
    chip = Tia()
    assert chip.player_position_x() == 0
    chip.scan_x = 400
    assert chip.player_position_x() == 255


def test_auto_vsync_wraps():
    chip = Tia()
    assert AUTO_VSYNC == 359
    chip.scan_y = AUTO_VSYNC - 1
    chip.scan_x = 227
    chip.draw_pixel_line(1)
    assert chip.scan_y == 0
    assert chip.scan_x == 0


def test_overdraw_draws_nothing():
    chip = Tia()
    chip.scan_y = DISPLAY_HEIGHT
    chip.scan_x = 67
    assert chip.draw_pixel_line(5) == 0
    assert chip.scan_x == 67


def test_draw_zero_cycles():
    chip = Tia()
    assert chip.draw_pixel_line(0) == 0
    assert chip.scan_x == -1


def test_read_returns_zero(tia):
    assert tia.read(0x00) == 0