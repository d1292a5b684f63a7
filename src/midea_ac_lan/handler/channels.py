"""Channel model: channel ids, setting dispatch table and state rendering.

Writable channels map to a ChannelSpec whose ``apply`` mutates a CommandSet
derived from the last known state. Every other channel is read-only and only
ever receives values rendered from a Response.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum, IntEnum, StrEnum
from typing import Final

from midea_ac_lan.protocol.command import CommandSet, FanSpeed, OperationalMode, SwingMode
from midea_ac_lan.protocol.response import Response, Timer

__all__ = [
    "CHANNEL_SPECS",
    "READ_ONLY_CHANNELS",
    "ChannelKind",
    "ChannelSpec",
    "ChannelValue",
    "OnOffType",
    "RefreshType",
    "clamp_target_temperature",
    "parse_value",
    "response_to_channel_states",
]

CHANNEL_POWER: Final = "power"
CHANNEL_IMODE_RESUME: Final = "imode-resume"
CHANNEL_TIMER_MODE: Final = "timer-mode"
CHANNEL_APPLIANCE_ERROR: Final = "appliance-error"
CHANNEL_TARGET_TEMPERATURE: Final = "target-temperature"
CHANNEL_OPERATIONAL_MODE: Final = "operational-mode"
CHANNEL_FAN_SPEED: Final = "fan-speed"
CHANNEL_ON_TIMER: Final = "on-timer"
CHANNEL_OFF_TIMER: Final = "off-timer"
CHANNEL_SWING_MODE: Final = "swing-mode"
CHANNEL_COZY_SLEEP: Final = "cozy-sleep"
CHANNEL_SAVE: Final = "save"
CHANNEL_LOW_FREQUENCY_FAN: Final = "low-frequency-fan"
CHANNEL_SUPER_FAN: Final = "super-fan"
CHANNEL_FEEL_OWN: Final = "feel-own"
CHANNEL_CHILD_SLEEP_MODE: Final = "child-sleep-mode"
CHANNEL_EXCHANGE_AIR: Final = "exchange-air"
CHANNEL_DRY_CLEAN: Final = "dry-clean"
CHANNEL_AUX_HEAT: Final = "aux-heat"
CHANNEL_ECO_MODE: Final = "eco-mode"
CHANNEL_CLEAN_UP: Final = "clean-up"
CHANNEL_TEMP_UNIT: Final = "temp-unit"
CHANNEL_SLEEP_FUNCTION: Final = "sleep-function"
CHANNEL_TURBO_MODE: Final = "turbo-mode"
CHANNEL_CATCH_COLD: Final = "catch-cold"
CHANNEL_NIGHT_LIGHT: Final = "night-light"
CHANNEL_PEAK_ELEC: Final = "peak-elec"
CHANNEL_NATURAL_FAN: Final = "natural-fan"
CHANNEL_INDOOR_TEMPERATURE: Final = "indoor-temperature"
CHANNEL_OUTDOOR_TEMPERATURE: Final = "outdoor-temperature"
CHANNEL_HUMIDITY: Final = "humidity"
CHANNEL_PROMPT_TONE: Final = "prompt-tone"
CHANNEL_SCREEN_DISPLAY: Final = "screen-display"

MIN_TARGET_TEMPERATURE: Final = 17.0
MAX_TARGET_TEMPERATURE: Final = 30.0


class OnOffType(StrEnum):
    ON = "ON"
    OFF = "OFF"

    @classmethod
    def from_bool(cls, value: bool) -> OnOffType:
        return cls.ON if value else cls.OFF


class RefreshType(StrEnum):
    """Pseudo-command asking for a fresh status poll."""

    REFRESH = "REFRESH"


class ChannelKind(Enum):
    ON_OFF = "on_off"
    ENUM = "enum"
    NUMBER = "number"


ChannelValue = OnOffType | str | float | int | None
SettingValue = bool | str | float


@dataclass(frozen=True)
class ChannelSpec:
    """How a writable channel turns a value into a command mutation.

    Attributes:
        kind: Value kind accepted by the channel
        apply: Mutates the command with the already parsed value; None for
            channels that are accepted but never produce a command
        options: Accepted names for ENUM channels
        ignored: Accepted names that never produce a command
    """

    kind: ChannelKind
    apply: Callable[[CommandSet, SettingValue], None] | None
    options: tuple[str, ...] = ()
    ignored: tuple[str, ...] = ()


def clamp_target_temperature(value: float) -> float:
    """Limit a requested target temperature to what the unit accepts."""
    return min(max(float(value), MIN_TARGET_TEMPERATURE), MAX_TARGET_TEMPERATURE)


def _set_power(command: CommandSet, value: SettingValue) -> None:
    command.power_state = bool(value)


def _set_eco(command: CommandSet, value: SettingValue) -> None:
    command.eco_mode = bool(value)


def _set_screen_display(command: CommandSet, value: SettingValue) -> None:
    command.screen_display = bool(value)


def _set_temp_unit(command: CommandSet, value: SettingValue) -> None:
    command.fahrenheit = bool(value)


def _set_turbo(command: CommandSet, value: SettingValue) -> None:
    command.power_state = True
    command.turbo_mode = bool(value)


def _set_operational_mode(command: CommandSet, value: SettingValue) -> None:
    command.power_state = True
    command.operational_mode = OperationalMode[str(value)]


def _set_fan_speed(command: CommandSet, value: SettingValue) -> None:
    if value == "OFF":
        command.power_state = False
        return
    command.power_state = True
    command.fan_speed = FanSpeed[str(value)]


def _set_swing_mode(command: CommandSet, value: SettingValue) -> None:
    command.power_state = True
    command.swing_mode = SwingMode[str(value)]


def _set_target_temperature(command: CommandSet, value: SettingValue) -> None:
    command.power_state = True
    command.target_temperature = clamp_target_temperature(float(value))


CHANNEL_SPECS: Final[Mapping[str, ChannelSpec]] = {
    CHANNEL_POWER: ChannelSpec(ChannelKind.ON_OFF, _set_power),
    CHANNEL_ECO_MODE: ChannelSpec(ChannelKind.ON_OFF, _set_eco),
    CHANNEL_SCREEN_DISPLAY: ChannelSpec(ChannelKind.ON_OFF, _set_screen_display),
    CHANNEL_TEMP_UNIT: ChannelSpec(ChannelKind.ON_OFF, _set_temp_unit),
    CHANNEL_TURBO_MODE: ChannelSpec(ChannelKind.ON_OFF, _set_turbo),
    CHANNEL_OPERATIONAL_MODE: ChannelSpec(
        ChannelKind.ENUM,
        _set_operational_mode,
        ("OFF", "AUTO", "COOL", "DRY", "HEAT", "FAN_ONLY"),
        ignored=("OFF",),
    ),
    CHANNEL_FAN_SPEED: ChannelSpec(
        ChannelKind.ENUM,
        _set_fan_speed,
        ("OFF", "SILENT", "LOW", "MEDIUM", "HIGH", "AUTO"),
    ),
    CHANNEL_SWING_MODE: ChannelSpec(
        ChannelKind.ENUM,
        _set_swing_mode,
        ("OFF", "VERTICAL", "HORIZONTAL", "BOTH"),
    ),
    CHANNEL_TARGET_TEMPERATURE: ChannelSpec(ChannelKind.NUMBER, _set_target_temperature),
    # prompt tone is a configuration flag, not a device setting
    CHANNEL_PROMPT_TONE: ChannelSpec(ChannelKind.ON_OFF, None),
}


def parse_value(spec: ChannelSpec, raw: object) -> SettingValue | None:
    """Normalize ``raw`` for ``spec``; None when the value is not supported."""
    if spec.kind is ChannelKind.ON_OFF:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str) and raw.strip().upper() in (OnOffType.ON, OnOffType.OFF):
            return raw.strip().upper() == OnOffType.ON
        return None

    if spec.kind is ChannelKind.ENUM:
        if isinstance(raw, IntEnum):
            name = raw.name
        elif isinstance(raw, str):
            name = raw.strip().upper()
        else:
            return None
        return name if name in spec.options else None

    if isinstance(raw, bool):
        return None
    if isinstance(raw, int | float):
        return float(raw)
    if isinstance(raw, str):
        # tolerate a trailing unit such as "22.5 °C"
        text = raw.strip().split(" ", 1)[0]
        try:
            return float(text)
        except ValueError:
            return None
    return None


def _timer(timer: Timer) -> str:
    return timer.to_channel()


def response_to_channel_states(response: Response) -> dict[str, ChannelValue]:
    """Render every reported field as a channel value."""
    on_off = OnOffType.from_bool
    return {
        CHANNEL_POWER: on_off(response.power_state),
        CHANNEL_IMODE_RESUME: on_off(response.imode_resume),
        CHANNEL_TIMER_MODE: on_off(response.timer_mode),
        CHANNEL_APPLIANCE_ERROR: on_off(response.appliance_error),
        CHANNEL_TARGET_TEMPERATURE: response.target_temperature,
        CHANNEL_OPERATIONAL_MODE: response.operational_mode.name,
        CHANNEL_FAN_SPEED: response.fan_speed.name,
        CHANNEL_ON_TIMER: _timer(response.on_timer),
        CHANNEL_OFF_TIMER: _timer(response.off_timer),
        CHANNEL_SWING_MODE: response.swing_mode.name,
        CHANNEL_COZY_SLEEP: response.cozy_sleep,
        CHANNEL_SAVE: on_off(response.save),
        CHANNEL_LOW_FREQUENCY_FAN: on_off(response.low_frequency_fan),
        CHANNEL_SUPER_FAN: on_off(response.super_fan),
        CHANNEL_FEEL_OWN: on_off(response.feel_own),
        CHANNEL_CHILD_SLEEP_MODE: on_off(response.child_sleep_mode),
        CHANNEL_EXCHANGE_AIR: on_off(response.exchange_air),
        CHANNEL_DRY_CLEAN: on_off(response.dry_clean),
        CHANNEL_AUX_HEAT: on_off(response.aux_heat),
        CHANNEL_ECO_MODE: on_off(response.eco_mode),
        CHANNEL_CLEAN_UP: on_off(response.clean_up),
        CHANNEL_TEMP_UNIT: on_off(response.temp_unit),
        CHANNEL_SLEEP_FUNCTION: on_off(response.sleep_function),
        CHANNEL_TURBO_MODE: on_off(response.turbo_mode),
        CHANNEL_CATCH_COLD: on_off(response.catch_cold),
        CHANNEL_NIGHT_LIGHT: on_off(response.night_light),
        CHANNEL_PEAK_ELEC: on_off(response.peak_elec),
        CHANNEL_NATURAL_FAN: on_off(response.natural_fan),
        CHANNEL_INDOOR_TEMPERATURE: response.indoor_temperature,
        CHANNEL_OUTDOOR_TEMPERATURE: response.outdoor_temperature,
        CHANNEL_HUMIDITY: response.humidity,
    }


READ_ONLY_CHANNELS: Final = frozenset(
    {
        CHANNEL_IMODE_RESUME,
        CHANNEL_TIMER_MODE,
        CHANNEL_APPLIANCE_ERROR,
        CHANNEL_ON_TIMER,
        CHANNEL_OFF_TIMER,
        CHANNEL_COZY_SLEEP,
        CHANNEL_SAVE,
        CHANNEL_LOW_FREQUENCY_FAN,
        CHANNEL_SUPER_FAN,
        CHANNEL_FEEL_OWN,
        CHANNEL_CHILD_SLEEP_MODE,
        CHANNEL_EXCHANGE_AIR,
        CHANNEL_DRY_CLEAN,
        CHANNEL_AUX_HEAT,
        CHANNEL_CLEAN_UP,
        CHANNEL_SLEEP_FUNCTION,
        CHANNEL_CATCH_COLD,
        CHANNEL_NIGHT_LIGHT,
        CHANNEL_PEAK_ELEC,
        CHANNEL_NATURAL_FAN,
        CHANNEL_INDOOR_TEMPERATURE,
        CHANNEL_OUTDOOR_TEMPERATURE,
        CHANNEL_HUMIDITY,
    },
)
