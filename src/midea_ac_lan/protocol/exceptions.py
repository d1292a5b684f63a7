"""Custom exception types for Midea protocol errors.

This module defines the root of the exception hierarchy. Codec functions
raise instead of returning None, so a caller never mistakes a broken frame for
an empty state.
"""

from __future__ import annotations


class MideaProtocolError(Exception):
    """Base exception for all Midea client errors.

    Transport, codec and configuration errors all inherit from this class,
    enabling catch-all handling at the supervisor boundary while keeping
    specific types for detailed handling.
    """


class FrameDecodeError(MideaProtocolError):
    """Received bytes are not a valid response frame.

    Raised on a bad packet header, length mismatch, fingerprint mismatch,
    frame checksum or CRC mismatch, or an unexpected body type.

    Attributes:
        reason: Specific failure reason (e.g., "too_short", "bad_checksum")
        data_preview: First 16 bytes of the data (keeps logs short)
    """

    def __init__(self, reason: str, data: bytes = b""):
        self.reason = reason
        self.data_preview = data[:16] if data else b""
        super().__init__(f"Frame decode failed: {reason}")


class FrameEncodeError(MideaProtocolError):
    """Command cannot be serialized (e.g., device id out of range).

    Attributes:
        reason: Specific failure reason
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Frame encode failed: {reason}")
