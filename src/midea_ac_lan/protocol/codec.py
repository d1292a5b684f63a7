"""LAN packet codec: wraps appliance frames for the TCP socket and back.

Packet layout (all multi-byte integers little-endian)::

    offset  size  field
    0       2     0x5A 0x5A
    2       2     message type 0x01 0x11
    4       2     packet length (header + frame + fingerprint)
    6       2     0x20 0x00
    8       4     message id
    12      8     timestamp
    20      8     device id
    28      12    padding
    40      n     appliance frame
    40+n    16    MD5(packet without fingerprint + sign key)
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from datetime import datetime
from typing import Final

from .command import FRAME_HEADER_LENGTH, FRAME_START, CommandBase
from .crc8 import checksum, crc8
from .exceptions import FrameDecodeError, FrameEncodeError
from .response import Response

__all__ = ["MideaCodec", "PACKET_HEADER_LENGTH", "SIGN_KEY"]

SIGN_KEY: Final = b"xhdiwjnchekd4d512chdjx5d8e4c394D2D7S"
PACKET_MAGIC: Final = b"\x5a\x5a"
PACKET_MESSAGE_TYPE: Final = b"\x01\x11"
PACKET_HEADER_LENGTH: Final = 40
FINGERPRINT_LENGTH: Final = 16
# start, length, appliance type, 5 reserved, version, msg type, crc, checksum
MIN_FRAME_LENGTH: Final = FRAME_HEADER_LENGTH + 2


def _timestamp(now: datetime) -> bytes:
    # one byte per field, least significant first
    return bytes(
        [
            (now.microsecond // 10000) & 0xFF,
            now.second,
            now.minute,
            now.hour,
            now.day,
            now.month,
            now.year % 100,
            now.year // 100,
        ],
    )


class MideaCodec:
    """Serializes commands into LAN packets and decodes device responses.

    The codec is stateless apart from the sign key and the clock, so one
    instance can be shared by every exchange on a session.
    """

    def __init__(self, sign_key: bytes = SIGN_KEY, clock: Callable[[], datetime] = datetime.now):
        self._sign_key = sign_key
        self._clock = clock

    def fingerprint(self, packet: bytes) -> bytes:
        return hashlib.md5(packet + self._sign_key).digest()

    def build_packet(self, frame: bytes, device_id: str) -> bytes:
        try:
            device = int(device_id).to_bytes(8, "little")
        except (ValueError, OverflowError) as e:
            msg = f"device id {device_id!r} is not an unsigned 64-bit integer"
            raise FrameEncodeError(msg) from e

        length = PACKET_HEADER_LENGTH + len(frame) + FINGERPRINT_LENGTH
        header = bytearray(PACKET_HEADER_LENGTH)
        header[0:2] = PACKET_MAGIC
        header[2:4] = PACKET_MESSAGE_TYPE
        header[4:6] = length.to_bytes(2, "little")
        header[6:8] = b"\x20\x00"
        header[12:20] = _timestamp(self._clock())
        header[20:28] = device

        packet = bytes(header) + frame
        return packet + self.fingerprint(packet)

    def encode(self, command: CommandBase, device_id: str) -> bytes:
        """Serialize ``command`` into a complete LAN packet.

        Raises:
            FrameEncodeError: Command fields or device id cannot be encoded
        """
        return self.build_packet(command.finalize(), device_id)

    def extract_frame(self, data: bytes) -> bytes:
        """Validate a LAN packet and return the appliance frame it carries.

        Only the first packet is considered when ``data`` holds more than
        one. Raises FrameDecodeError on any validation failure.
        """
        if len(data) < PACKET_HEADER_LENGTH + MIN_FRAME_LENGTH + FINGERPRINT_LENGTH:
            raise FrameDecodeError("too_short", data)
        if data[0:2] != PACKET_MAGIC:
            raise FrameDecodeError("bad_magic", data)

        declared = int.from_bytes(data[4:6], "little")
        if declared > len(data):
            raise FrameDecodeError("truncated", data)
        if declared < PACKET_HEADER_LENGTH + MIN_FRAME_LENGTH + FINGERPRINT_LENGTH:
            raise FrameDecodeError("bad_length", data)
        packet = data[:declared]

        body_end = declared - FINGERPRINT_LENGTH
        if self.fingerprint(packet[:body_end]) != packet[body_end:]:
            raise FrameDecodeError("bad_fingerprint", data)

        frame = packet[PACKET_HEADER_LENGTH:body_end]
        if frame[0] != FRAME_START:
            raise FrameDecodeError("bad_frame_start", data)
        if frame[1] != len(frame) - 1:
            raise FrameDecodeError("frame_length_mismatch", data)
        if checksum(frame[1:-1]) != frame[-1]:
            raise FrameDecodeError("bad_checksum", data)
        if crc8(frame[FRAME_HEADER_LENGTH:-2]) != frame[-2]:
            raise FrameDecodeError("bad_crc", data)
        return frame

    def decode(self, data: bytes) -> Response:
        """Decode received bytes into a Response.

        Raises:
            FrameDecodeError: Packet, frame or body is malformed
        """
        frame = self.extract_frame(data)
        return Response.from_body(frame[FRAME_HEADER_LENGTH:-2])

    def __repr__(self) -> str:
        return "MideaCodec()"
