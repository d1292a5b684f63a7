"""Device configuration: validation, YAML loading and the immutable Endpoint."""

from __future__ import annotations

import ipaddress
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from midea_ac_lan.const import (
    CONFIG_DEVICEID,
    CONFIG_IP,
    CONFIG_POLLING_TIME,
    CONFIG_PORT,
    CONFIG_PROMPT_TONE,
    MIDEA_DEFAULT_PORT,
    MIDEA_MONITOR_PERIOD,
    YES_ANSWER,
)
from midea_ac_lan.protocol.exceptions import MideaProtocolError

__all__ = [
    "ConfigurationError",
    "DeviceConfig",
    "Endpoint",
    "config_from_env",
    "load_config",
    "load_config_data",
    "parse_config",
]

_HOSTNAME_RE = re.compile(r"^(?=.{1,253}$)([A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)(\.[A-Za-z0-9]([A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*$")


class ConfigurationError(MideaProtocolError):
    """Device configuration is missing or malformed.

    Fatal for the current handler lifecycle: no connection attempt is made
    until the handler is initialized again with a valid configuration.

    Attributes:
        reason: Human readable summary of what is wrong
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid configuration: {reason}")


@dataclass(frozen=True)
class Endpoint:
    """Fixed (host, port, device_id) triple for one supervisor instance."""

    host: str
    port: int
    device_id: str

    def __str__(self) -> str:
        return f"{self.host}:{self.port}#{self.device_id}"


class DeviceConfig(BaseModel):
    """Configuration for one appliance.

    Accepts both the field names and the camelCase keys users write in
    configuration files (``ipAddress``, ``ipPort``, ``deviceId``,
    ``pollingTime``, ``promptTone``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    ip_address: str = Field(alias=CONFIG_IP)
    ip_port: int = Field(default=MIDEA_DEFAULT_PORT, alias=CONFIG_PORT, ge=1, le=65535)
    device_id: str = Field(alias=CONFIG_DEVICEID)
    polling_time: float = Field(default=MIDEA_MONITOR_PERIOD, alias=CONFIG_POLLING_TIME, gt=0)
    prompt_tone: bool = Field(default=False, alias=CONFIG_PROMPT_TONE)

    @field_validator("ip_address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        try:
            _ = ipaddress.ip_address(value)
        except ValueError:
            if not _HOSTNAME_RE.match(value):
                msg = f"not an IP address or hostname: {value!r}"
                raise ValueError(msg) from None
        return value

    @field_validator("device_id", mode="before")
    @classmethod
    def _check_device_id(cls, value: object) -> str:
        # Device ids are 64-bit integers; YAML may hand them over as int
        text = str(value).strip()
        if not text.isdigit():
            msg = f"device id must be a decimal number, got {value!r}"
            raise ValueError(msg)
        if int(text) >= 2**64:
            msg = "device id does not fit in 8 bytes"
            raise ValueError(msg)
        return text

    @property
    def endpoint(self) -> Endpoint:
        return Endpoint(host=self.ip_address, port=self.ip_port, device_id=self.device_id)


def parse_config(data: Mapping[str, Any] | DeviceConfig) -> DeviceConfig:
    """Validate raw configuration data, raising ConfigurationError when invalid."""
    if isinstance(data, DeviceConfig):
        return data
    try:
        return DeviceConfig.model_validate(dict(data))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(problems) from e


def load_config_data(config_file: Path) -> dict[str, Any]:
    """Read the raw settings mapping of a YAML device file, unvalidated.

    The file either holds the keys at top level or under a ``device`` section:

        device:
          ipAddress: 192.168.1.50
          ipPort: 6444
          deviceId: "30786325577745"
          promptTone: true
    """
    try:
        with config_file.open() as f:
            config_data = yaml.safe_load(f)
    except OSError as e:
        msg = f"cannot read {config_file}: {e}"
        raise ConfigurationError(msg) from e
    except yaml.YAMLError as e:
        msg = f"cannot parse {config_file}: {e}"
        raise ConfigurationError(msg) from e

    if not isinstance(config_data, Mapping):
        msg = f"{config_file} does not contain a mapping"
        raise ConfigurationError(msg)

    section = config_data.get("device", config_data)
    if not isinstance(section, Mapping):
        msg = f"'device' section of {config_file} is not a mapping"
        raise ConfigurationError(msg)
    return dict(section)


def load_config(config_file: Path) -> DeviceConfig:
    """Load and validate a YAML device file."""
    return parse_config(load_config_data(config_file))


def config_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect device settings from MIDEA_* environment variables.

    Only variables that are set are returned, so the result can be layered
    under command line arguments.
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}
    if host := env.get("MIDEA_HOST"):
        data[CONFIG_IP] = host
    if port := env.get("MIDEA_PORT"):
        data[CONFIG_PORT] = port
    if device_id := env.get("MIDEA_DEVICE_ID"):
        data[CONFIG_DEVICEID] = device_id
    if polling := env.get("MIDEA_POLLING_TIME"):
        data[CONFIG_POLLING_TIME] = polling
    if (prompt_tone := env.get("MIDEA_PROMPT_TONE")) is not None:
        data[CONFIG_PROMPT_TONE] = prompt_tone.casefold() in YES_ANSWER
    return data
