"""Mode transition handshakes.

A handshake writes an entry byte and waits for the device to announce the
new protocol with a fixed marker. The device's response timing after an
unknown state is not guaranteed, so the entry byte is resent on a bounded
number of attempts. Each attempt restarts the marker match from zero and
ends as soon as the reader reports that nothing more is available.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from buspirate import commands
from buspirate.channel import MarkerMatcher
from buspirate.errors import ProtocolError
from buspirate.transport import WouldBlock

if TYPE_CHECKING:
    from buspirate.channel import Channel

logger = logging.getLogger(__name__)

#: Default number of entry attempts before a handshake gives up.
DEFAULT_ATTEMPTS = 20


def escape_terminal(channel: Channel) -> None:
    """Leave any terminal menu or prompt and soft-reset the device.

    Sends the escape byte ten times, ``#``, one more escape byte, flushes,
    and discards the banner and prompt the device prints in response.
    """
    for _ in range(commands.ESCAPE_REPEAT):
        channel.write(commands.ESCAPE)
    channel.write(commands.SOFT_RESET)
    channel.write(commands.ESCAPE)
    channel.flush()
    channel.drain()


def mode_handshake(
    channel: Channel,
    send: int,
    expect: bytes,
    attempts: int = DEFAULT_ATTEMPTS,
) -> None:
    """Send ``send`` until the device answers with ``expect``.

    Args:
        channel: Channel to the device.
        send: Entry command byte, resent on every attempt.
        expect: Marker announcing the new mode.
        attempts: Maximum number of attempts.

    Raises:
        ProtocolError: If no attempt observes the marker.
        TransportWriteError: If the writer fails.
        TransportReadError: If the reader fails.
    """
    matcher = MarkerMatcher(expect)
    for attempt in range(1, attempts + 1):
        channel.flush()
        channel.write(send)
        matcher.reset()
        logger.debug("Handshake attempt %d/%d for %r", attempt, attempts, expect)
        while True:
            try:
                value = channel.poll()
            except WouldBlock:
                break
            if matcher.feed(value):
                channel.drain()
                logger.debug("Handshake for %r succeeded on attempt %d", expect, attempt)
                return

    logger.debug("No %r marker after %d attempts", expect, attempts)
    raise ProtocolError(f"device did not answer with {expect!r} after {attempts} attempts")


def bitbang_handshake(channel: Channel, attempts: int = DEFAULT_ATTEMPTS) -> None:
    """Enter (or re-enter) binary bit-bang mode."""
    mode_handshake(channel, commands.BITBANG_ENTER, commands.BITBANG_MARKER, attempts)


def spi_handshake(channel: Channel, attempts: int = DEFAULT_ATTEMPTS) -> None:
    """Enter SPI mode from binary bit-bang mode."""
    mode_handshake(channel, commands.SPI_ENTER, commands.SPI_MARKER, attempts)


def close_handshake(channel: Channel) -> None:
    """Reset the device from a binary mode back to terminal mode.

    No response is read, so only transport errors can occur.
    """
    channel.write(commands.CLOSE)
    channel.flush()
