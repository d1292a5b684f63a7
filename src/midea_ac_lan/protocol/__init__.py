"""Midea protocol package - command encoding, response decoding, and framing.

Public API:
- Commands (CommandBase, CommandSet) and their enums
- Decoded state (Response, Timer)
- LAN packet codec (MideaCodec)
"""

from midea_ac_lan.protocol.codec import MideaCodec
from midea_ac_lan.protocol.command import CommandBase, CommandSet, FanSpeed, OperationalMode, SwingMode
from midea_ac_lan.protocol.exceptions import FrameDecodeError, FrameEncodeError, MideaProtocolError
from midea_ac_lan.protocol.response import Response, Timer

__all__ = [
    # Codec
    "MideaCodec",
    # Commands
    "CommandBase",
    "CommandSet",
    "FanSpeed",
    "OperationalMode",
    "SwingMode",
    # Decoded state
    "Response",
    "Timer",
    # Errors
    "FrameDecodeError",
    "FrameEncodeError",
    "MideaProtocolError",
]
