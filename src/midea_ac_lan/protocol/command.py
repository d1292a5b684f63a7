"""Appliance commands: the status request and the full settings command.

A command serializes to an appliance frame::

    0xAA | length | 0xAC | 0x00 x5 | 0x00 | msg_type | body ... | crc8(body) | checksum

``length`` counts every byte after 0xAA except the trailing checksum.
The LAN packet wrapping is done by :mod:`midea_ac_lan.protocol.codec`.
"""

from __future__ import annotations

import itertools
import threading
from enum import IntEnum
from typing import TYPE_CHECKING, Final, Self, override

from .crc8 import checksum, crc8
from .exceptions import FrameEncodeError

if TYPE_CHECKING:
    from .response import Response

__all__ = [
    "BODY_LENGTH",
    "CommandBase",
    "CommandSet",
    "FanSpeed",
    "OperationalMode",
    "SwingMode",
]

APPLIANCE_TYPE_AC: Final = 0xAC
FRAME_START: Final = 0xAA
FRAME_HEADER_LENGTH: Final = 10
BODY_LENGTH: Final = 22

MSG_TYPE_QUERY: Final = 0x03
MSG_TYPE_SET: Final = 0x02

MIN_TARGET_TEMPERATURE: Final = 16.0
MAX_TARGET_TEMPERATURE: Final = 31.0

_message_ids = itertools.count()
_message_id_lock = threading.Lock()


def next_message_id() -> int:
    """Rolling one-byte message id stamped into the last body byte."""
    with _message_id_lock:
        return next(_message_ids) & 0xFF


class OperationalMode(IntEnum):
    UNKNOWN = 0
    AUTO = 1
    COOL = 2
    DRY = 3
    HEAT = 4
    FAN_ONLY = 5

    @classmethod
    @override
    def _missing_(cls, value: object) -> OperationalMode:
        return cls.UNKNOWN


class FanSpeed(IntEnum):
    UNKNOWN = 0
    SILENT = 20
    LOW = 40
    MEDIUM = 60
    HIGH = 80
    AUTO = 102

    @classmethod
    @override
    def _missing_(cls, value: object) -> FanSpeed:
        return cls.UNKNOWN


class SwingMode(IntEnum):
    OFF = 0x0
    HORIZONTAL = 0x3
    VERTICAL = 0xC
    BOTH = 0xF
    UNKNOWN = 0xFF

    @classmethod
    @override
    def _missing_(cls, value: object) -> SwingMode:
        return cls.UNKNOWN


class CommandBase:
    """Status request ("query") command.

    The device answers with a full 0xC0 status body, which is also what it
    returns after a settings command.
    """

    msg_type: int = MSG_TYPE_QUERY

    def body(self) -> bytearray:
        body = bytearray(BODY_LENGTH)
        body[0:8] = bytes([0x41, 0x81, 0x00, 0xFF, 0x03, 0xFF, 0x00, 0x02])
        return body

    def finalize(self) -> bytes:
        """Serialize to a complete appliance frame."""
        body = self.body()
        body[-1] = next_message_id()

        frame = bytearray([FRAME_START, 0x00, APPLIANCE_TYPE_AC, 0, 0, 0, 0, 0, 0x00, self.msg_type])
        frame.extend(body)
        frame.append(crc8(body))
        frame[1] = len(frame)
        frame.append(checksum(frame[1:]))
        return bytes(frame)

    @override
    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class CommandSet(CommandBase):
    """Settings command carrying the complete desired state.

    The device applies every field at once, so a CommandSet is normally
    derived from the last known state with :meth:`from_response` and then
    mutated field by field.
    """

    msg_type = MSG_TYPE_SET

    def __init__(self) -> None:
        self.power_state: bool = False
        self.prompt_tone: bool = False
        self.operational_mode: OperationalMode = OperationalMode.AUTO
        self.fan_speed: FanSpeed = FanSpeed.AUTO
        self.swing_mode: SwingMode = SwingMode.OFF
        self.eco_mode: bool = False
        self.turbo_mode: bool = False
        self.screen_display: bool = True
        self.fahrenheit: bool = False
        self._target_temperature: float = 24.0

    @classmethod
    def from_response(cls, response: Response | None) -> Self:
        """Build a settings command reflecting ``response`` (defaults if None)."""
        command = cls()
        if response is None:
            return command
        command.power_state = response.power_state
        command.operational_mode = (
            response.operational_mode
            if response.operational_mode is not OperationalMode.UNKNOWN
            else OperationalMode.AUTO
        )
        command.fan_speed = response.fan_speed if response.fan_speed is not FanSpeed.UNKNOWN else FanSpeed.AUTO
        command.swing_mode = response.swing_mode if response.swing_mode is not SwingMode.UNKNOWN else SwingMode.OFF
        command.eco_mode = response.eco_mode
        command.turbo_mode = response.turbo_mode
        command.fahrenheit = response.temp_unit
        if MIN_TARGET_TEMPERATURE <= response.target_temperature <= MAX_TARGET_TEMPERATURE:
            command.target_temperature = response.target_temperature
        return command

    @property
    def target_temperature(self) -> float:
        return self._target_temperature

    @target_temperature.setter
    def target_temperature(self, value: float) -> None:
        # half-degree resolution on the wire
        self._target_temperature = round(float(value) * 2) / 2

    @override
    def body(self) -> bytearray:
        temperature = self._target_temperature
        if not MIN_TARGET_TEMPERATURE <= temperature <= MAX_TARGET_TEMPERATURE:
            msg = f"target temperature {temperature} outside {MIN_TARGET_TEMPERATURE}-{MAX_TARGET_TEMPERATURE}"
            raise FrameEncodeError(msg)

        body = bytearray(BODY_LENGTH)
        body[0] = 0x40
        body[1] = (0x01 if self.power_state else 0x00) | (0x42 if self.prompt_tone else 0x00)

        whole = int(temperature)
        body[2] = (whole - 16) & 0x0F
        if temperature - whole:
            body[2] |= 0x10
        body[2] |= (int(self.operational_mode) << 5) & 0xE0

        body[3] = int(self.fan_speed) & 0x7F
        # on/off timers untouched
        body[4] = 0x7F
        body[5] = 0x7F
        body[7] = 0x30 | (int(self.swing_mode) & 0x0F)
        body[9] = 0xFF if self.eco_mode else 0x00
        body[10] = (
            (0x02 if self.turbo_mode else 0x00)
            | (0x04 if self.fahrenheit else 0x00)
            | (0x10 if self.screen_display else 0x00)
        )
        return body

    @override
    def __repr__(self) -> str:
        return (
            f"CommandSet(power={self.power_state}, mode={self.operational_mode.name}, "
            f"target={self._target_temperature}, fan={self.fan_speed.name}, swing={self.swing_mode.name}, "
            f"eco={self.eco_mode}, turbo={self.turbo_mode}, display={self.screen_display}, "
            f"fahrenheit={self.fahrenheit}, prompt_tone={self.prompt_tone})"
        )
