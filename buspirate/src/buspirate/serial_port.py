"""pyserial transport for a Bus Pirate.

This module provides a serial-port transport implementing both
:class:`ByteWriter` and :class:`ByteReader`. Reads use a short port timeout
and report :class:`WouldBlock` when it expires without data, which is how
the mode handshakes detect the end of a device response.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import serial

from buspirate.errors import BusPirateError
from buspirate.transport import WouldBlock

if TYPE_CHECKING:
    from types import TracebackType

    from buspirate.config import PortConfig

#: Bus Pirate v3/v4 default UART rate.
DEFAULT_BAUDRATE = 115200


class SerialPort:
    """Byte transport backed by :class:`serial.Serial`.

    The port is opened explicitly with :meth:`open` (or by entering the
    object as a context manager) and can be passed to
    :class:`buspirate.BusPirate` as both writer and reader.

    Args:
        port: Device name (e.g. ``"/dev/ttyUSB0"`` or ``"COM3"``).
        baudrate: UART rate.
        read_timeout: Seconds to wait for a byte before reporting
            :class:`WouldBlock`.
        write_timeout: Seconds to wait for a write before failing.

    Example:
        >>> with SerialPort("/dev/ttyUSB0") as port:
        ...     bitbang = BusPirate(port).init()
    """

    def __init__(
        self,
        port: str,
        *,
        baudrate: int = DEFAULT_BAUDRATE,
        read_timeout: float = 0.05,
        write_timeout: float = 1.0,
    ) -> None:
        self._port_name = port
        self._baudrate = baudrate
        self._read_timeout = read_timeout
        self._write_timeout = write_timeout
        self._serial: Any = None
        self._pending = bytearray()

    @classmethod
    def from_config(cls, config: PortConfig) -> SerialPort:
        """Create an (unopened) port from a :class:`PortConfig`."""
        return cls(
            config.port,
            baudrate=config.baudrate,
            read_timeout=config.read_timeout,
            write_timeout=config.write_timeout,
        )

    # -- Properties ----------------------------------------------------------

    @property
    def port(self) -> str:
        """The serial device name."""
        return self._port_name

    @property
    def is_open(self) -> bool:
        """Return True if the port is currently open."""
        return self._serial is not None

    # -- Lifecycle -----------------------------------------------------------

    def open(self) -> None:
        """Open the serial port.

        Raises:
            BusPirateError: If the port cannot be opened.
        """
        if self._serial is not None:
            return
        try:
            self._serial = serial.Serial(
                self._port_name,
                self._baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=self._read_timeout,
                write_timeout=self._write_timeout,
            )
        except serial.SerialException as exc:
            raise BusPirateError(
                f"Failed to open serial port {self._port_name!r}: {exc}"
            ) from exc

    def close(self) -> None:
        """Close the serial port. Safe to call multiple times."""
        if self._serial is None:
            return
        try:
            self._serial.close()
        finally:
            self._serial = None
            self._pending.clear()

    def __enter__(self) -> SerialPort:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- Transport interface -------------------------------------------------

    def write_byte(self, value: int) -> None:
        """Queue one byte; it is sent on the next :meth:`flush`."""
        self._require_open()
        self._pending.append(value)

    def flush(self) -> None:
        """Send all queued bytes and wait until they are transmitted."""
        port = self._require_open()
        if self._pending:
            port.write(bytes(self._pending))
            self._pending.clear()
        port.flush()

    def read_byte(self) -> int:
        """Return the next received byte.

        Raises:
            WouldBlock: If no byte arrived within the read timeout.
        """
        port = self._require_open()
        if self._pending:
            self.flush()
        data = port.read(1)
        if not data:
            raise WouldBlock()
        return data[0]

    def _require_open(self) -> Any:
        if self._serial is None:
            raise BusPirateError("Serial port is not open")
        return self._serial
