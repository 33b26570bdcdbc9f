"""Bus Pirate device emulator.

Provides an in-process model of a Bus Pirate implementing both
:class:`ByteWriter` and :class:`ByteReader`, so sessions can be exercised
without hardware. The emulator understands terminal mode (soft reset and
binary mode entry), binary bit-bang mode (pin commands, SPI entry, reset)
and SPI mode (configuration commands, simple and buffered transfers).

SPI traffic is exchanged with a target callable that receives each byte
clocked out and returns the byte clocked in. The default target is a
loopback that echoes every byte.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from buspirate import commands
from buspirate.channel import ACK
from buspirate.transport import WouldBlock

logger = logging.getLogger(__name__)

#: Reply to a rejected command.
NAK = 0x00

SpiTarget = Callable[[int], int]


def loopback(value: int) -> int:
    """SPI target that returns every byte it receives."""
    return value


class EmulatedMode(Enum):
    """Protocol mode the emulated device is in."""

    TERMINAL = "terminal"
    BITBANG = "bitbang"
    SPI = "spi"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BusPirateEmulatorConfig:
    """Configuration for a Bus Pirate emulator instance.

    Args:
        banner: Text printed after a soft or binary-mode reset.
        ignore_entries: Number of bit-bang entry bytes ignored in terminal
            mode before the device answers, modelling a slow start.
        echo_terminal: Echo bytes received in terminal mode.
        response_delay: Number of reads reporting :class:`WouldBlock` each
            time a response starts, modelling UART latency.
    """

    banner: bytes = b"RESET\r\n\r\nBus Pirate v3.b\r\nFirmware v5.10\r\nHiZ>"
    ignore_entries: int = 0
    echo_terminal: bool = True
    response_delay: int = 0

    def __post_init__(self) -> None:
        if self.ignore_entries < 0:
            raise ValueError("ignore_entries must be >= 0")
        if self.response_delay < 0:
            raise ValueError("response_delay must be >= 0")


# ---------------------------------------------------------------------------
# Emulator
# ---------------------------------------------------------------------------


class BusPirateEmulator:
    """In-process Bus Pirate emulator implementing the byte transport.

    Args:
        config: Emulator configuration. Defaults to :class:`BusPirateEmulatorConfig`.
        target: SPI target exchanging bytes with the emulated bus.
    """

    def __init__(
        self,
        config: BusPirateEmulatorConfig | None = None,
        target: SpiTarget = loopback,
    ) -> None:
        self._config = config or BusPirateEmulatorConfig()
        self._target = target
        self._mode = EmulatedMode.TERMINAL
        self._output: deque[int] = deque()
        self._entries_ignored = 0
        self._collect = bytearray()
        self._collect_need = 0
        self._on_collected: Callable[[bytes], None] | None = None
        self._delay_left = 0

        self.written = bytearray()
        self.flush_count = 0
        self.cs_active = False
        self.speed: commands.Speed | None = None
        self.config_byte: int | None = None
        self.pin_inputs = commands.IO_PINS
        self.pin_levels = commands.Pin(0)

    # -- Properties ----------------------------------------------------------

    @property
    def mode(self) -> EmulatedMode:
        """Current emulated protocol mode."""
        return self._mode

    @property
    def pending_output(self) -> int:
        """Number of response bytes not yet read by the host."""
        return len(self._output)

    # -- Transport interface -------------------------------------------------

    def write_byte(self, value: int) -> None:
        """Process one byte sent by the host."""
        self.written.append(value)
        if self._on_collected is not None:
            self._collect.append(value)
            if len(self._collect) >= self._collect_need:
                self._finish_collect()
            return

        if self._mode is EmulatedMode.TERMINAL:
            self._terminal(value)
        elif self._mode is EmulatedMode.BITBANG:
            self._bitbang(value)
        else:
            self._spi(value)

    def flush(self) -> None:
        """Record a flush (no-op for an in-process transport)."""
        self.flush_count += 1

    def read_byte(self) -> int:
        """Return the next response byte.

        Raises:
            WouldBlock: If the device has nothing to send.
        """
        if not self._output or self._delay_left:
            self._delay_left = max(0, self._delay_left - 1)
            raise WouldBlock()
        return self._output.popleft()

    def open(self) -> None:
        """Open the emulator (no-op for in-process transport)."""

    def close(self) -> None:
        """Close the emulator (no-op for in-process transport)."""

    # -- Private helpers -----------------------------------------------------

    def _emit(self, data: bytes | int) -> None:
        if not self._output:
            self._delay_left = self._config.response_delay
        if isinstance(data, int):
            self._output.append(data)
        else:
            self._output.extend(data)

    def _enter(self, mode: EmulatedMode) -> None:
        logger.debug("Emulator entering %s mode", mode.value)
        self._mode = mode

    def _expect(self, count: int, handler: Callable[[bytes], None]) -> None:
        self._collect = bytearray()
        self._collect_need = count
        self._on_collected = handler
        if count == 0:
            self._finish_collect()

    def _finish_collect(self) -> None:
        handler = self._on_collected
        data = bytes(self._collect)
        self._on_collected = None
        self._collect = bytearray()
        if handler is not None:
            handler(data)

    def _pin_state(self) -> int:
        return int(self.pin_levels) & int(commands.ALL_PINS)

    # -- Terminal mode -------------------------------------------------------

    def _terminal(self, value: int) -> None:
        if value == commands.BITBANG_ENTER:
            if self._entries_ignored < self._config.ignore_entries:
                self._entries_ignored += 1
                return
            self._enter(EmulatedMode.BITBANG)
            self._emit(commands.BITBANG_MARKER)
            return
        if self._config.echo_terminal and value != commands.ESCAPE:
            self._emit(value)
        if value == commands.SOFT_RESET:
            self._emit(b"\r\n" + self._config.banner)

    # -- Bit-bang mode -------------------------------------------------------

    def _bitbang(self, value: int) -> None:
        if value == commands.BITBANG_ENTER:
            self._emit(commands.BITBANG_MARKER)
        elif value == commands.SPI_ENTER:
            self._enter(EmulatedMode.SPI)
            self._emit(commands.SPI_MARKER)
        elif value == commands.CLOSE:
            self._reset_to_terminal()
        elif (value & 0b11100000) == commands.PIN_DIRECTION:
            self.pin_inputs = commands.Pin(value & int(commands.IO_PINS))
            self._emit(self._pin_state())
        elif value & commands.CONFIGURE:
            self.pin_levels = commands.Pin(value & int(commands.ALL_PINS))
            self._emit(self._pin_state())
        else:
            logger.debug("Emulator ignoring bit-bang command 0x%02x", value)

    def _reset_to_terminal(self) -> None:
        self._emit(ACK)
        self._emit(self._config.banner)
        self._entries_ignored = 0
        self.cs_active = False
        self._enter(EmulatedMode.TERMINAL)

    # -- SPI mode ------------------------------------------------------------

    def _spi(self, value: int) -> None:
        if value == commands.BITBANG_ENTER:
            self._enter(EmulatedMode.BITBANG)
            self._emit(commands.BITBANG_MARKER)
        elif value == commands.SPI_ENTER:
            self._emit(commands.SPI_MARKER)
        elif value == commands.CLOSE:
            self._reset_to_terminal()
        elif value in (commands.CS_ACTIVE, commands.CS_INACTIVE):
            self.cs_active = value == commands.CS_ACTIVE
            self._emit(ACK)
        elif value in (commands.WRITE_THEN_READ_CS, commands.WRITE_THEN_READ_NO_CS):
            hold_cs = value == commands.WRITE_THEN_READ_CS
            self._expect(4, lambda header: self._write_then_read_header(header, hold_cs))
        elif (value & 0b11110000) == commands.TRANSFER:
            self._expect((value & 0x0F) + 1, self._simple_transfer)
        elif (value & 0b11111000) == commands.SPEED:
            self.speed = commands.Speed(value & 0b111)
            self._emit(ACK)
        elif value & commands.CONFIGURE:
            self.config_byte = value
            self._emit(ACK)
        else:
            self._emit(NAK)

    def _simple_transfer(self, data: bytes) -> None:
        self._emit(ACK)
        self._emit(bytes(self._target(b) for b in data))

    def _write_then_read_header(self, header: bytes, hold_cs: bool) -> None:
        write_len = int.from_bytes(header[0:2], "big")
        read_len = int.from_bytes(header[2:4], "big")
        limit = commands.BUFFERED_TRANSFER_MAX
        if write_len > limit or read_len > limit:
            self._emit(NAK)
            return
        self._expect(
            write_len, lambda data: self._write_then_read_data(data, read_len, hold_cs)
        )

    def _write_then_read_data(self, data: bytes, read_len: int, hold_cs: bool) -> None:
        previous_cs = self.cs_active
        if hold_cs:
            self.cs_active = True
        for b in data:
            self._target(b)
        response = bytes(self._target(0xFF) for _ in range(read_len))
        self.cs_active = previous_cs
        self._emit(ACK)
        self._emit(response)
