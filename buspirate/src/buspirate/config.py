"""YAML configuration for a Bus Pirate connection.

Example YAML configuration::

    buspirate:
      port: "/dev/ttyUSB0"
      baudrate: 115200
      read_timeout: 0.05
      write_timeout: 1.0
      handshake_attempts: 20

The top-level ``buspirate`` key is optional; a flat mapping is accepted too.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from buspirate.handshake import DEFAULT_ATTEMPTS
from buspirate.serial_port import DEFAULT_BAUDRATE


@dataclass(frozen=True)
class PortConfig:
    """Serial connection settings for a Bus Pirate.

    Attributes:
        port: Serial device name.
        baudrate: UART rate (> 0).
        read_timeout: Seconds a read waits before reporting "no data" (>= 0).
        write_timeout: Seconds a write waits before failing (> 0).
        handshake_attempts: Attempts per mode handshake (>= 1).
    """

    port: str
    baudrate: int = DEFAULT_BAUDRATE
    read_timeout: float = 0.05
    write_timeout: float = 1.0
    handshake_attempts: int = DEFAULT_ATTEMPTS

    def __post_init__(self) -> None:
        if not self.port:
            raise ValueError("port must be non-empty")
        if self.baudrate <= 0:
            raise ValueError("baudrate must be > 0")
        if self.read_timeout < 0:
            raise ValueError("read_timeout must be >= 0")
        if self.write_timeout <= 0:
            raise ValueError("write_timeout must be > 0")
        if self.handshake_attempts < 1:
            raise ValueError("handshake_attempts must be >= 1")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PortConfig:
        """Build a config from a parsed mapping.

        Raises:
            ValueError: If the mapping has unknown keys or invalid values.
        """
        if "buspirate" in data:
            data = data["buspirate"]
        if not isinstance(data, dict):
            raise ValueError("Bus Pirate configuration must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")
        if "port" not in data:
            raise ValueError("Configuration is missing 'port'")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> PortConfig:
        """Load a config from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            yaml.YAMLError: If YAML parsing fails.
            ValueError: If the configuration is invalid.
        """
        path = Path(path)

        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            raise ValueError(f"Configuration file {path} is empty")
        return cls.from_dict(data)
