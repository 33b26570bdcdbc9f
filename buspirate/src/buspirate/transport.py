"""Byte transport protocol definitions.

This module defines the structural interfaces a byte transport must provide
to carry the Bus Pirate binary protocol. The protocol engine never opens or
configures a port itself; callers open a transport and hand the writer and
reader halves to :class:`buspirate.BusPirate`.

Implementations include:
- :class:`buspirate.SerialPort`: pyserial-backed transport for real hardware
- :class:`buspirate.BusPirateEmulator`: in-process device emulator

A single object may implement both halves, in which case it is passed as
both the writer and the reader.
"""

from __future__ import annotations

from typing import Protocol


class WouldBlock(Exception):
    """Raised by a transport when a byte cannot be transferred yet.

    This is not an error. Blocking callers poll again; the mode handshakes
    treat it as "the device has nothing more to say for this attempt".
    """


class ByteWriter(Protocol):
    """Protocol for the transmit half of a byte transport.

    Example:
        >>> class MyWriter:
        ...     def write_byte(self, value: int) -> None:
        ...         pass
        ...     def flush(self) -> None:
        ...         pass
        ...
        >>> writer: ByteWriter = MyWriter()  # Type checks OK
    """

    def write_byte(self, value: int) -> None:
        """Queue one byte for transmission.

        Args:
            value: Byte value (0-255).

        Raises:
            WouldBlock: If the byte cannot be accepted yet.
        """
        ...

    def flush(self) -> None:
        """Push all queued bytes out to the device.

        Raises:
            WouldBlock: If the flush has not completed yet.
        """
        ...


class ByteReader(Protocol):
    """Protocol for the receive half of a byte transport."""

    def read_byte(self) -> int:
        """Return the next received byte.

        Returns:
            Byte value (0-255).

        Raises:
            WouldBlock: If no byte is available yet.
        """
        ...
