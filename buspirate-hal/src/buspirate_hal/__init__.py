"""Hardware-abstraction adapters over a Bus Pirate.

This package wraps an already-configured Bus Pirate mode object from the
``buspirate`` package and presents it through generic bus interfaces, so a
device driver can talk to its hardware from a general-purpose computer with
the Bus Pirate as an intermediary. This shortens the write/test cycle when
developing drivers.

Modules:
    spi: Blocking SPI bus and a ``spidev``-compatible adapter.

Example:
    >>> spi = BusPirate(port).init().to_spi()
    >>> bus = BusPirateSpiDev(spi)
    >>> bus.xfer2([0x9F, 0x00, 0x00, 0x00])
"""

from buspirate_hal.spi import BusPirateSpi, BusPirateSpiDev, config_for_mode, speed_for_hz

__all__ = [
    "BusPirateSpi",
    "BusPirateSpiDev",
    "config_for_mode",
    "speed_for_hz",
]
