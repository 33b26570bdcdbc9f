"""Bus Pirate binary command bytes and configuration encoders.

Every encoder in this module is a pure function: it maps a typed
configuration value to the command byte(s) the device expects, without
touching a transport. Configuration commands start from the high
"configure" bit and OR in one bit per setting.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, IntFlag

from buspirate.errors import RequestError

# Terminal-mode escape sequence
ESCAPE = 0x10
ESCAPE_REPEAT = 10
SOFT_RESET = ord("#")

# Binary mode entry and markers
BITBANG_ENTER = 0x00
BITBANG_MARKER = b"BBIO1"
SPI_ENTER = 0b00000001
SPI_MARKER = b"SPI1"
CLOSE = 0b00001111

# SPI mode commands
CS_ACTIVE = 0b00000010
CS_INACTIVE = 0b00000011
WRITE_THEN_READ_CS = 0b00000100
WRITE_THEN_READ_NO_CS = 0b00000101
TRANSFER = 0b00010000
SPEED = 0b01000000
CONFIGURE = 0b10000000

# BitBang mode commands
PIN_DIRECTION = 0b01000000

#: Maximum bytes per simple transfer command.
SIMPLE_TRANSFER_MAX = 16

#: Maximum bytes written or read by one buffered write-then-read command.
BUFFERED_TRANSFER_MAX = 4096


class Speed(IntEnum):
    """SPI clock rate, valued by its 3-bit command code."""

    SPEED_30KHZ = 0b000
    SPEED_125KHZ = 0b001
    SPEED_250KHZ = 0b010
    SPEED_1MHZ = 0b011
    SPEED_2MHZ = 0b100
    SPEED_2_6MHZ = 0b101
    SPEED_4MHZ = 0b110
    SPEED_8MHZ = 0b111


#: Mapping from speed enum values to clock rate in hertz.
SPEED_HZ: dict[Speed, int] = {
    Speed.SPEED_30KHZ: 30_000,
    Speed.SPEED_125KHZ: 125_000,
    Speed.SPEED_250KHZ: 250_000,
    Speed.SPEED_1MHZ: 1_000_000,
    Speed.SPEED_2MHZ: 2_000_000,
    Speed.SPEED_2_6MHZ: 2_600_000,
    Speed.SPEED_4MHZ: 4_000_000,
    Speed.SPEED_8MHZ: 8_000_000,
}


class PinOutput(IntEnum):
    """Output driver used while signalling "active"."""

    HIZ = 0  # Open drain, high impedance
    V3_3 = 1  # Driven to 3.3V


class ClockPhase(IntEnum):
    """Level of the SPI clock while idle."""

    LOW = 0
    HIGH = 1


class ClockEdge(IntEnum):
    """SPI clock edge on which data is output."""

    RISING = 0
    FALLING = 1


class SampleTime(IntEnum):
    """Point within a bit period at which input data is sampled."""

    MIDDLE = 0
    END = 1


@dataclass(frozen=True)
class SpiConfig:
    """SPI-specific Bus Pirate settings.

    Attributes:
        pin_output: Output driver mode.
        clock_idle_phase: Clock level while idle.
        clock_edge: Clock edge used for output.
        sample_time: Input sample point.
    """

    pin_output: PinOutput = PinOutput.HIZ
    clock_idle_phase: ClockPhase = ClockPhase.LOW
    clock_edge: ClockEdge = ClockEdge.FALLING
    sample_time: SampleTime = SampleTime.MIDDLE


#: SPI settings the device uses after power-on.
DEFAULT_SPI_CONFIG = SpiConfig()


@dataclass(frozen=True)
class PeripheralConfig:
    """Mode-agnostic peripheral settings.

    Attributes:
        power_supply: Enable the on-board power supplies.
        pull_ups: Enable the pull-up resistors.
        aux: Drive the AUX pin.
        cs: Drive the chip-select pin.
    """

    power_supply: bool = False
    pull_ups: bool = False
    aux: bool = False
    cs: bool = False


class Pin(IntFlag):
    """BitBang pin bits, shared by direction and level commands.

    Direction commands only carry the five I/O pins (AUX through CS);
    level commands also carry POWER and PULLUP.
    """

    CS = 0b0000001
    MISO = 0b0000010
    CLK = 0b0000100
    MOSI = 0b0001000
    AUX = 0b0010000
    PULLUP = 0b0100000
    POWER = 0b1000000


IO_PINS = Pin.AUX | Pin.MOSI | Pin.CLK | Pin.MISO | Pin.CS
ALL_PINS = IO_PINS | Pin.PULLUP | Pin.POWER


def encode_speed(speed: Speed) -> int:
    """Return the command byte selecting an SPI clock rate."""
    return SPEED | Speed(speed).value


def encode_spi_config(config: SpiConfig) -> int:
    """Return the command byte applying an :class:`SpiConfig`."""
    cmd = CONFIGURE
    cmd |= config.pin_output.value << 3
    cmd |= config.clock_idle_phase.value << 2
    cmd |= config.clock_edge.value << 1
    cmd |= config.sample_time.value
    return cmd


def encode_peripherals(config: PeripheralConfig) -> int:
    """Return the command byte applying a :class:`PeripheralConfig`.

    The device uses inverted polarity: a set bit disables the feature.
    """
    cmd = CONFIGURE
    cmd |= (0 if config.power_supply else 1) << 3
    cmd |= (0 if config.pull_ups else 1) << 2
    cmd |= (0 if config.aux else 1) << 1
    cmd |= 0 if config.cs else 1
    return cmd


def encode_chip_select(active: bool) -> int:
    """Return the chip-select command byte.

    ``active=True`` drives the (active-low) signal low.
    """
    return CS_ACTIVE if active else CS_INACTIVE


def encode_transfer(length: int) -> int:
    """Return the simple transfer command byte for ``length`` data bytes.

    Raises:
        RequestError: If ``length`` is not in 1..16.
    """
    if not 1 <= length <= SIMPLE_TRANSFER_MAX:
        raise RequestError(
            f"simple transfer length must be 1-{SIMPLE_TRANSFER_MAX}, got {length}"
        )
    return TRANSFER | (length - 1)


def encode_write_then_read(write_len: int, read_len: int, cs: bool) -> bytes:
    """Return the 5-byte header of a buffered write-then-read command.

    Args:
        write_len: Number of bytes to transmit.
        read_len: Number of bytes to receive.
        cs: Hold chip select active for the duration.

    Raises:
        RequestError: If either length exceeds 4096 or ``read_len`` is
            greater than ``write_len``.
    """
    if not 0 <= write_len <= BUFFERED_TRANSFER_MAX:
        raise RequestError(
            f"write length must be 0-{BUFFERED_TRANSFER_MAX}, got {write_len}"
        )
    if not 0 <= read_len <= BUFFERED_TRANSFER_MAX:
        raise RequestError(
            f"read length must be 0-{BUFFERED_TRANSFER_MAX}, got {read_len}"
        )
    if read_len > write_len:
        raise RequestError(
            f"read length {read_len} exceeds write length {write_len}"
        )
    cmd = WRITE_THEN_READ_CS if cs else WRITE_THEN_READ_NO_CS
    return bytes([cmd]) + write_len.to_bytes(2, "big") + read_len.to_bytes(2, "big")


def encode_pin_directions(inputs: Pin) -> int:
    """Return the BitBang command byte configuring pin directions.

    Args:
        inputs: Pins to configure as inputs; the rest become outputs.

    Raises:
        ValueError: If ``inputs`` names POWER or PULLUP.
    """
    if int(inputs) & ~int(IO_PINS):
        raise ValueError(f"only AUX, MOSI, CLK, MISO and CS have a direction, got {inputs!r}")
    return PIN_DIRECTION | int(inputs)


def encode_pin_levels(high: Pin) -> int:
    """Return the BitBang command byte setting output pin levels.

    Args:
        high: Pins to drive high (or features to switch on).
    """
    return CONFIGURE | (int(high) & int(ALL_PINS))
