"""Low-level channel primitives shared by every protocol mode.

The :class:`Channel` owns the writer/reader pair of a session and turns the
transport's non-blocking byte operations into the blocking primitives the
protocol needs. Individual byte reads and writes retry ``WouldBlock``
without bound; only mode handshakes bound their attempts.

:class:`MarkerMatcher` detects the fixed byte markers the device emits when
it enters a protocol mode.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from buspirate.errors import ProtocolError, TransportReadError, TransportWriteError
from buspirate.transport import WouldBlock

if TYPE_CHECKING:
    from collections.abc import Iterable

    from buspirate.transport import ByteReader, ByteWriter

logger = logging.getLogger(__name__)

#: Acknowledgement byte for simple commands and transfers.
ACK = 0x01


def _prefix_table(marker: bytes) -> list[int]:
    """Return, for each prefix of ``marker``, its longest proper border length."""
    table = [0] * len(marker)
    border = 0
    for i in range(1, len(marker)):
        while border and marker[i] != marker[border]:
            border = table[border - 1]
        if marker[i] == marker[border]:
            border += 1
        table[i] = border
    return table


class MarkerMatcher:
    """Incremental matcher for a contiguous byte marker.

    Tracks how many leading bytes of the marker have been seen. A byte that
    breaks a partial match falls back to the longest shorter prefix that is
    still a suffix of the bytes seen, and is re-tested there, so matching
    ``b"AAB"`` against the stream ``b"AAAB"`` succeeds.

    Args:
        expected: The marker to look for (non-empty).

    Example:
        >>> matcher = MarkerMatcher(b"AAB")
        >>> [matcher.feed(c) for c in b"AAAB"]
        [False, False, False, True]
    """

    def __init__(self, expected: bytes) -> None:
        if not expected:
            raise ValueError("marker must be non-empty")
        self._expected = bytes(expected)
        self._fallback = _prefix_table(self._expected)
        self._matched = 0

    @property
    def expected(self) -> bytes:
        """The marker being matched."""
        return self._expected

    @property
    def matched(self) -> int:
        """Number of marker bytes matched so far."""
        return self._matched

    @property
    def complete(self) -> bool:
        """Whether the whole marker has been seen."""
        return self._matched == len(self._expected)

    def reset(self) -> None:
        """Forget any partial match."""
        self._matched = 0

    def feed(self, value: int) -> bool:
        """Consume one byte.

        Args:
            value: The received byte.

        Returns:
            True once the marker has been matched completely.
        """
        if self.complete:
            return True
        while self._matched and value != self._expected[self._matched]:
            self._matched = self._fallback[self._matched - 1]
        if value == self._expected[self._matched]:
            self._matched += 1
        return self.complete


class Channel:
    """Exclusive owner of a session's writer/reader pair.

    Transport exceptions other than :class:`WouldBlock` are wrapped in
    :class:`TransportWriteError` or :class:`TransportReadError` with the
    original exception chained.

    Args:
        writer: Transmit half of the transport.
        reader: Receive half of the transport.
    """

    def __init__(self, writer: ByteWriter, reader: ByteReader) -> None:
        self._writer = writer
        self._reader = reader

    # -- Raw (non-blocking) operations ---------------------------------------

    def poll(self) -> int:
        """Read one byte without blocking.

        Returns:
            The received byte.

        Raises:
            WouldBlock: If no byte is available.
            TransportReadError: If the reader fails.
        """
        try:
            return self._reader.read_byte()
        except WouldBlock:
            raise
        except Exception as exc:
            raise TransportReadError(exc) from exc

    def _try_write(self, value: int) -> None:
        try:
            self._writer.write_byte(value)
        except WouldBlock:
            raise
        except Exception as exc:
            raise TransportWriteError(exc) from exc

    def _try_flush(self) -> None:
        try:
            self._writer.flush()
        except WouldBlock:
            raise
        except Exception as exc:
            raise TransportWriteError(exc) from exc

    # -- Blocking operations -------------------------------------------------

    def read(self) -> int:
        """Block until one byte is received and return it."""
        while True:
            try:
                return self.poll()
            except WouldBlock:
                continue

    def write(self, value: int) -> None:
        """Block until one byte has been accepted by the writer."""
        while True:
            try:
                self._try_write(value)
                return
            except WouldBlock:
                continue

    def write_all(self, data: Iterable[int]) -> None:
        """Write each byte of ``data`` in order."""
        for value in data:
            self.write(value)

    def flush(self) -> None:
        """Block until the writer has flushed."""
        while True:
            try:
                self._try_flush()
                return
            except WouldBlock:
                continue

    def read_ack(self) -> None:
        """Read one byte and require it to be the ack byte.

        Raises:
            ProtocolError: If any other byte is received.
        """
        response = self.read()
        if response != ACK:
            raise ProtocolError(f"expected ack 0x{ACK:02x}, got 0x{response:02x}")

    def simple_command(self, command: int) -> None:
        """Send a one-byte command and wait for its acknowledgement.

        Args:
            command: Command byte.

        Raises:
            ProtocolError: If the device does not acknowledge the command.
        """
        self.write(command)
        self.flush()
        self.read_ack()

    def drain(self) -> int:
        """Discard received bytes until the reader reports nothing available.

        Returns:
            Number of bytes discarded.
        """
        discarded = 0
        while True:
            try:
                self.poll()
            except WouldBlock:
                break
            discarded += 1
        if discarded:
            logger.debug("Discarded %d buffered byte(s)", discarded)
        return discarded

    def release(self) -> tuple[Any, Any]:
        """Return the ``(writer, reader)`` pair this channel owns."""
        return self._writer, self._reader
