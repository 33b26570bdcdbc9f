"""SPI mode.

SPI mode cannot be entered directly. Create a :class:`BusPirate`, call
:meth:`BusPirate.init` to reach bit-bang mode, then :meth:`BitBang.to_spi`::

    bitbang = BusPirate(port).init()
    spi = bitbang.to_spi()

Transfers are full duplex: every transmitted byte produces one received
byte, which overwrites the transmitted byte in the caller's buffer.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, Union

from buspirate import commands, handshake
from buspirate.commands import (
    BUFFERED_TRANSFER_MAX,
    SIMPLE_TRANSFER_MAX,
    PeripheralConfig,
    Speed,
    SpiConfig,
)
from buspirate.errors import RequestError
from buspirate.session import BitBang, BusPirate, Mode

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger(__name__)

#: Mutable byte buffers accepted by the in-place transfer operations.
WritableBuffer = Union[bytearray, memoryview]


class SpiComms(Protocol):
    """Data transfer actions of an SPI bus, without its configuration."""

    def transfer(self, data: WritableBuffer) -> WritableBuffer:
        """Transfer ``data`` of any length in place and return it.

        Long transfers are split into several device commands, so the
        clock may pause between groups of bytes. Use :meth:`transaction`
        for devices with strict timing requirements.
        """
        ...

    def transaction(
        self, write_from: Sequence[int], read_into: WritableBuffer, cs: bool
    ) -> None:
        """Send up to 4096 bytes, then receive up to 4096 bytes."""
        ...


class Spi(Mode):
    """A Bus Pirate in SPI mode."""

    name = "spi"

    # -- Mode transitions ----------------------------------------------------

    def close(self) -> BusPirate:
        """Reset the device back to terminal mode."""
        return self._transition(handshake.close_handshake, BusPirate)

    def to_bitbang(self) -> BitBang:
        """Switch back to binary bit-bang mode."""
        return self._transition(
            lambda channel: handshake.bitbang_handshake(channel, self._attempts), BitBang
        )

    # -- Configuration -------------------------------------------------------

    def set_speed(self, speed: Speed) -> None:
        """Change the SPI clock rate for subsequent transfers."""
        logger.debug("Setting SPI speed to %s", Speed(speed).name)
        self._ch.simple_command(commands.encode_speed(speed))

    def set_config(self, config: SpiConfig) -> None:
        """Apply SPI output, clock and sampling settings."""
        logger.debug("Applying %s", config)
        self._ch.simple_command(commands.encode_spi_config(config))

    def configure_peripherals(self, config: PeripheralConfig) -> None:
        """Switch the power supply, pull-ups, AUX and CS peripherals."""
        logger.debug("Applying %s", config)
        self._ch.simple_command(commands.encode_peripherals(config))

    def chip_select(self, active: bool) -> None:
        """Set the chip select signal.

        Chip select is active low: ``True`` drives the electrical signal low
        and ``False`` drives it high.
        """
        self._ch.simple_command(commands.encode_chip_select(active))

    # -- Transfers -----------------------------------------------------------

    def transfer_byte(self, value: int) -> int:
        """Transfer one byte and return the byte received.

        To only receive, transmit zero and keep the result.

        Raises:
            RequestError: If ``value`` is not a byte value.
        """
        if not 0 <= value <= 0xFF:
            raise RequestError(f"byte value must be 0-255, got {value}")
        ch = self._ch
        ch.write(commands.encode_transfer(1))
        ch.write(value)
        ch.flush()
        ch.read_ack()
        return ch.read()

    def transfer_bytes(self, data: WritableBuffer) -> WritableBuffer:
        """Transfer up to 16 bytes in a single device command.

        The received bytes overwrite ``data`` in place.

        Args:
            data: Bytes to transmit.

        Returns:
            ``data``, now holding the received bytes.

        Raises:
            RequestError: If ``data`` is longer than 16 bytes.
            ProtocolError: If the device does not acknowledge the transfer.
        """
        length = len(data)
        if length == 0:
            return data
        command = commands.encode_transfer(length)

        ch = self._ch
        ch.write(command)
        ch.write_all(data)
        ch.flush()
        ch.read_ack()
        for i in range(length):
            data[i] = ch.read()
        return data

    def transfer(self, data: WritableBuffer) -> WritableBuffer:
        """Transfer any number of bytes in place.

        Sends as many 16-byte simple transfers as needed, so the clock rate
        is irregular between groups.
        """
        view = memoryview(data)
        for start in range(0, len(view), SIMPLE_TRANSFER_MAX):
            self.transfer_bytes(view[start : start + SIMPLE_TRANSFER_MAX])
        return data

    def write_then_read(
        self,
        write_from: Sequence[int],
        read_into: WritableBuffer,
        cs: bool = True,
    ) -> None:
        """Transmit ``write_from`` then receive ``len(read_into)`` bytes.

        The device runs the whole exchange from its own buffer, so the
        timing is not affected by host round trips. This suits the common
        pattern of sending a request and clocking out the response.

        Args:
            write_from: Bytes to transmit (at most 4096).
            read_into: Buffer receiving the response (at most 4096 bytes and
                no longer than ``write_from``).
            cs: Hold chip select active for the duration.

        Raises:
            RequestError: If a length is outside the device limits or
                ``write_from`` holds a value that is not a byte.
            ProtocolError: If the device does not acknowledge the command.
        """
        try:
            write_from = bytes(write_from)
        except (TypeError, ValueError) as exc:
            raise RequestError(f"write data must be byte values: {exc}") from exc
        if len(write_from) > BUFFERED_TRANSFER_MAX:
            raise RequestError(f"cannot write more than {BUFFERED_TRANSFER_MAX} bytes")
        if len(read_into) > BUFFERED_TRANSFER_MAX:
            raise RequestError(f"cannot read more than {BUFFERED_TRANSFER_MAX} bytes")
        header = commands.encode_write_then_read(len(write_from), len(read_into), cs)

        ch = self._ch
        ch.write_all(header)
        ch.write_all(write_from)
        ch.flush()
        ch.read_ack()
        for i in range(len(read_into)):
            read_into[i] = ch.read()

    def transaction(
        self, write_from: Sequence[int], read_into: WritableBuffer, cs: bool
    ) -> None:
        """Alias of :meth:`write_then_read` satisfying :class:`SpiComms`."""
        self.write_then_read(write_from, read_into, cs)
