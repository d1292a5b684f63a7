"""CRC-8 and additive checksum used by Midea appliance frames.

The CRC is CRC-8/MAXIM (reflected polynomial 0x8C, init 0x00) computed over
the frame body. The checksum is the two's complement of the byte sum of the
frame without its 0xAA start byte.
"""

from __future__ import annotations

from typing import Final


def _build_table() -> tuple[int, ...]:
    table: list[int] = []
    for value in range(256):
        crc = value
        for _ in range(8):
            crc = (crc >> 1) ^ 0x8C if crc & 0x01 else crc >> 1
        table.append(crc)
    return tuple(table)


CRC8_TABLE: Final[tuple[int, ...]] = _build_table()


def crc8(data: bytes | bytearray) -> int:
    """Compute CRC-8/MAXIM over ``data``."""
    crc = 0
    for byte in data:
        crc = CRC8_TABLE[crc ^ byte]
    return crc


def checksum(data: bytes | bytearray) -> int:
    """Two's complement of the byte sum, truncated to one byte."""
    return (~sum(data) + 1) & 0xFF
