"""Bit-reversal helpers used by the video chip."""

_MASK32 = 0xFFFFFFFF
_MASK8 = 0xFF


def reverse_bits32(value: int) -> int:
    """Reverse the order of the 32 low bits of ``value``."""
    value &= _MASK32
    value = ((value >> 16) | (value << 16)) & _MASK32
    value = ((value & 0xFF00FF00) >> 8) | ((value & 0x00FF00FF) << 8)
    value = ((value & 0xF0F0F0F0) >> 4) | ((value & 0x0F0F0F0F) << 4)
    value = ((value & 0xCCCCCCCC) >> 2) | ((value & 0x33333333) << 2)
    value = ((value & 0xAAAAAAAA) >> 1) | ((value & 0x55555555) << 1)
    return value & _MASK32


def reverse_bits8(value: int) -> int:
    """Reverse the order of the 8 low bits of ``value``."""
    value &= _MASK8
    value = ((value & 0xF0) >> 4) | ((value & 0x0F) << 4)
    value = ((value & 0xCC) >> 2) | ((value & 0x33) << 2)
    value = ((value & 0xAA) >> 1) | ((value & 0x55) << 1)
    return value & _MASK8


def _reverse_bits_slow(value: int, width: int) -> int:
    result = 0
    for bit in range(width):
        result = (result << 1) | ((value >> bit) & 1)
    return result


def reverse_bits32_slow(value: int) -> int:
    """Reverse 32 bits one bit at a time (reference implementation)."""
    return _reverse_bits_slow(value & _MASK32, 32)


def reverse_bits8_slow(value: int) -> int:
    """Reverse 8 bits one bit at a time (reference implementation)."""
    return _reverse_bits_slow(value & _MASK8, 8)