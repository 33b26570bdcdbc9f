"""Exception types for the Bus Pirate protocol engine.

All exceptions raised by this package inherit from :class:`BusPirateError`,
allowing callers to catch every protocol or transport failure with a single
except clause.

Exception hierarchy:
    BusPirateError (base)
    +-- ProtocolError: Device response did not match the expected marker or ack
    +-- RequestError: Caller-supplied length exceeded a protocol limit
    +-- TransportWriteError: The byte writer failed
    +-- TransportReadError: The byte reader failed
    +-- StaleModeError: A mode object was used after it was consumed

When a mode transition fails, the transport pair that the consumed mode
object owned is attached to the exception as ``transport`` so the caller can
reuse it instead of reopening the port.
"""

from __future__ import annotations

from typing import Any


class BusPirateError(Exception):
    """Base exception for all Bus Pirate errors.

    Attributes:
        transport: ``(writer, reader)`` pair recovered from a failed mode
            transition, or None when the error did not consume a session.
    """

    transport: tuple[Any, Any] | None = None


class ProtocolError(BusPirateError):
    """Raised when the device response disagrees with the protocol.

    This covers a handshake that never saw its marker within the retry
    budget and any command whose acknowledgement byte was not ``0x01``.
    Recovery requires re-running the enclosing handshake or reopening the
    session.
    """


class RequestError(BusPirateError):
    """Raised when a caller-supplied length is outside a protocol bound.

    Nothing is written to the transport before this error is raised.
    """


class TransportWriteError(BusPirateError):
    """Raised when the underlying byte writer fails.

    Attributes:
        cause: The exception raised by the writer.
    """

    def __init__(self, cause: BaseException) -> None:
        """Initialize the error.

        Args:
            cause: The exception raised by the writer.
        """
        self.cause = cause
        super().__init__(f"transport write failed: {cause}")


class TransportReadError(BusPirateError):
    """Raised when the underlying byte reader fails.

    Attributes:
        cause: The exception raised by the reader.
    """

    def __init__(self, cause: BaseException) -> None:
        """Initialize the error.

        Args:
            cause: The exception raised by the reader.
        """
        self.cause = cause
        super().__init__(f"transport read failed: {cause}")


class StaleModeError(BusPirateError):
    """Raised when a mode object is used after a transition consumed it."""
