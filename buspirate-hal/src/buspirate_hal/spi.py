"""Blocking SPI bus adapters over a Bus Pirate.

:class:`BusPirateSpi` exposes the two blocking bus operations a device
driver needs (full-duplex ``transfer`` and write-only ``write``) in terms of
any :class:`buspirate.SpiComms`. :class:`BusPirateSpiDev` adds the
``spidev.SpiDev`` method surface, so drivers written against spidev can be
pointed at a Bus Pirate from a development workstation.

The Bus Pirate must already be in SPI mode::

    spi = BusPirate(port).init().to_spi()
    bus = BusPirateSpiDev(spi)
    bus.max_speed_hz = 1_000_000
    bus.mode = 0b01
    reply = bus.xfer2([0x10, 0x00, 0x00])
"""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

from buspirate import SPEED_HZ, BusPirateError, ClockEdge, ClockPhase, Speed, SpiConfig

if TYPE_CHECKING:
    from collections.abc import Sequence

    from buspirate import Spi, SpiComms


def speed_for_hz(hz: int) -> Speed:
    """Return the fastest Bus Pirate SPI speed not above ``hz``.

    Rates below the slowest supported speed select the slowest speed.
    """
    candidates = [speed for speed, rate in SPEED_HZ.items() if rate <= hz]
    if not candidates:
        return min(SPEED_HZ, key=SPEED_HZ.__getitem__)
    return max(candidates, key=SPEED_HZ.__getitem__)


def config_for_mode(mode: int, base: SpiConfig | None = None) -> SpiConfig:
    """Return the :class:`SpiConfig` for a standard SPI mode number (0-3).

    CPOL selects the idle clock phase. The Bus Pirate outputs data on the
    active-to-idle edge when CPHA is 0.

    Raises:
        ValueError: If ``mode`` is not 0-3.
    """
    if not 0 <= mode <= 3:
        raise ValueError(f"SPI mode must be 0-3, got {mode}")
    base = base or SpiConfig()
    cpol = (mode >> 1) & 1
    cpha = mode & 1
    return SpiConfig(
        pin_output=base.pin_output,
        clock_idle_phase=ClockPhase(cpol),
        clock_edge=ClockEdge.FALLING if cpha == 0 else ClockEdge.RISING,
        sample_time=base.sample_time,
    )


class BusPirateSpi:
    """Blocking SPI bus backed by a Bus Pirate in SPI mode.

    Args:
        bp: SPI-mode Bus Pirate (or any :class:`SpiComms`).
    """

    def __init__(self, bp: SpiComms) -> None:
        self._bp = bp

    def transfer(self, words: bytearray) -> bytearray:
        """Transfer ``words`` in place and return them."""
        self._bp.transfer(words)
        return words

    def write(self, words: Sequence[int]) -> None:
        """Transmit ``words`` (up to 4096 bytes), discarding the input."""
        self._bp.transaction(words, bytearray(), False)


class BusPirateSpiDev(BusPirateSpi):
    """``spidev.SpiDev``-compatible bus backed by a Bus Pirate.

    Setting :attr:`max_speed_hz` or :attr:`mode` reconfigures the Bus
    Pirate immediately. ``open``, ``close`` and ``lsbfirst`` are accepted
    for compatibility; the Bus Pirate only shifts MSB first.

    Args:
        spi: Bus Pirate in SPI mode.
        config: Starting SPI configuration used as the base for mode changes.
    """

    def __init__(self, spi: Spi, config: SpiConfig | None = None) -> None:
        super().__init__(spi)
        self._spi = spi
        self._config = config or SpiConfig()
        self._max_speed_hz = SPEED_HZ[Speed.SPEED_30KHZ]
        self._mode = 0
        self.lsbfirst = False
        self.closed = False

    def open(self, bus: int = 0, device: int = 0) -> None:
        """Accept a spidev ``open`` call; the Bus Pirate is already open."""
        self.closed = False

    def close(self) -> None:
        """Mark the bus closed. The Bus Pirate session stays in SPI mode."""
        self.closed = True

    @property
    def max_speed_hz(self) -> int:
        """Requested clock rate in hertz."""
        return self._max_speed_hz

    @max_speed_hz.setter
    def max_speed_hz(self, hz: int) -> None:
        self._spi.set_speed(speed_for_hz(hz))
        self._max_speed_hz = hz

    @property
    def mode(self) -> int:
        """SPI mode number (CPOL << 1 | CPHA)."""
        return self._mode

    @mode.setter
    def mode(self, mode: int) -> None:
        config = config_for_mode(mode, self._config)
        self._spi.set_config(config)
        self._config = config
        self._mode = mode

    def xfer2(self, data: Sequence[int]) -> list[int]:
        """Transfer ``data`` with chip select held and return the reply."""
        buffer = bytearray(data)
        self._spi.chip_select(True)
        try:
            self._spi.transfer(buffer)
        except BaseException:
            # Keep the transfer error if releasing chip select fails too
            with contextlib.suppress(BusPirateError):
                self._spi.chip_select(False)
            raise
        self._spi.chip_select(False)
        return list(buffer)

    def writebytes(self, data: Sequence[int]) -> None:
        """Write ``data`` with chip select held, discarding the reply."""
        self._spi.transaction(bytes(data), bytearray(), True)

    def readbytes(self, count: int) -> list[int]:
        """Clock out ``count`` zero bytes and return what was received."""
        return self.xfer2([0] * count)
