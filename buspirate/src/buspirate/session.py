"""Bus Pirate session and mode objects.

Each protocol mode is a distinct class exposing only the operations that are
legal in that mode. A mode transition moves the session's channel into a new
mode object; the old object is left without a channel and raises
:class:`StaleModeError` if used again, so no command can reach the device
through a stale mode.

Typical usage::

    from buspirate import BusPirate, SerialPort

    port = SerialPort("/dev/ttyUSB0")
    port.open()
    bitbang = BusPirate(port).init()
    spi = bitbang.to_spi()
    spi.chip_select(True)
    response = spi.transfer(bytearray([0x9F, 0, 0, 0]))
    spi.chip_select(False)
    writer, reader = spi.close().release()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from buspirate import commands, handshake
from buspirate.channel import Channel
from buspirate.commands import Pin
from buspirate.errors import BusPirateError, StaleModeError

if TYPE_CHECKING:
    from buspirate.spi import Spi
    from buspirate.transport import ByteReader, ByteWriter

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound="Mode")


class Mode:
    """Base class for all mode objects.

    Holds the session's channel until a transition consumes it.
    """

    #: Human-readable mode name used in log messages.
    name = "mode"

    def __init__(self, channel: Channel, *, attempts: int = handshake.DEFAULT_ATTEMPTS) -> None:
        if attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {attempts}")
        self._channel: Channel | None = channel
        self._attempts = attempts

    @classmethod
    def _adopt(cls: type[_M], channel: Channel, attempts: int) -> _M:
        mode = cls.__new__(cls)
        Mode.__init__(mode, channel, attempts=attempts)
        return mode

    @property
    def is_active(self) -> bool:
        """Whether this object still owns the session."""
        return self._channel is not None

    @property
    def attempts(self) -> int:
        """Handshake attempts used for transitions out of this mode."""
        return self._attempts

    @property
    def _ch(self) -> Channel:
        if self._channel is None:
            raise StaleModeError(f"{type(self).__name__} was consumed by a mode transition")
        return self._channel

    def _take(self) -> Channel:
        channel = self._ch
        self._channel = None
        return channel

    def _transition(self, step: Callable[[Channel], None], target: type[_M]) -> _M:
        """Move the channel through ``step`` into a new ``target`` mode.

        On failure the transport pair is attached to the raised exception.
        """
        channel = self._take()
        try:
            step(channel)
        except BusPirateError as exc:
            exc.transport = channel.release()
            logger.warning(
                "Transition from %s to %s failed: %s", self.name, target.name, exc
            )
            raise
        logger.info("Bus Pirate entered %s mode", target.name)
        return target._adopt(channel, self._attempts)


class BusPirate(Mode):
    """A Bus Pirate assumed to be in terminal (human-readable) mode.

    The terminal state is not verified on construction. Call :meth:`init` to
    reach binary bit-bang mode, which is the gateway to every other binary
    mode.

    Args:
        writer: Transmit half of the transport.
        reader: Receive half of the transport. Defaults to ``writer`` for
            transports that implement both halves.
        attempts: Handshake attempts for mode transitions.
    """

    name = "terminal"

    def __init__(
        self,
        writer: ByteWriter,
        reader: ByteReader | None = None,
        *,
        attempts: int = handshake.DEFAULT_ATTEMPTS,
    ) -> None:
        if reader is None:
            reader = writer  # type: ignore[assignment]
        super().__init__(Channel(writer, reader), attempts=attempts)  # type: ignore[arg-type]

    def init(self) -> BitBang:
        """Escape any terminal prompt and enter binary bit-bang mode.

        Returns:
            The session in bit-bang mode.

        Raises:
            ProtocolError: If the device never announced ``BBIO1``.
            TransportWriteError: If the writer fails.
            TransportReadError: If the reader fails.
        """

        def step(channel: Channel) -> None:
            handshake.escape_terminal(channel)
            handshake.bitbang_handshake(channel, self._attempts)

        return self._transition(step, BitBang)

    def to_bitbang(self) -> BitBang:
        """Alias of :meth:`init`."""
        return self.init()

    def release(self) -> tuple[Any, Any]:
        """End the session and return the ``(writer, reader)`` pair."""
        return self._take().release()


class BitBang(Mode):
    """A Bus Pirate in binary bit-bang mode.

    This mode gives direct control over the device's pins and is the
    intermediate step to the higher-level protocol modes.
    """

    name = "bitbang"

    def close(self) -> BusPirate:
        """Reset the device back to terminal mode."""
        return self._transition(handshake.close_handshake, BusPirate)

    def to_spi(self) -> Spi:
        """Switch to SPI mode.

        Raises:
            ProtocolError: If the device never announced ``SPI1``.
        """
        from buspirate.spi import Spi  # pylint: disable=import-outside-toplevel

        return self._transition(
            lambda channel: handshake.spi_handshake(channel, self._attempts), Spi
        )

    def configure_pins(self, inputs: Pin) -> Pin:
        """Configure AUX, MOSI, CLK, MISO and CS as inputs or outputs.

        Args:
            inputs: Pins to make inputs; all other I/O pins become outputs.

        Returns:
            Pin levels reported by the device.
        """
        return self._pin_command(commands.encode_pin_directions(inputs))

    def set_pins(self, high: Pin) -> Pin:
        """Set output pin levels and the power and pull-up switches.

        Args:
            high: Pins to drive high and features to switch on.

        Returns:
            Pin levels reported by the device.
        """
        return self._pin_command(commands.encode_pin_levels(high))

    def _pin_command(self, command: int) -> Pin:
        self._ch.write(command)
        self._ch.flush()
        return Pin(self._ch.read() & int(commands.ALL_PINS))
