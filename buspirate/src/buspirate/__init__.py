"""Bus Pirate binary protocol client.

This package drives a Bus Pirate through its binary protocol over any byte
transport. It includes:

- Mode objects for terminal, binary bit-bang and SPI modes, with the
  handshakes that move a session between them
- Pure command encoders for SPI speed, SPI and peripheral configuration
- Chunked SPI transfers sized to the device's fixed buffers
- A pyserial transport and an in-process device emulator
- Custom exception types for protocol and transport errors

Typical usage::

    from buspirate import BusPirate, SerialPort, Speed

    with SerialPort("/dev/ttyUSB0") as port:
        spi = BusPirate(port).init().to_spi()
        spi.set_speed(Speed.SPEED_1MHZ)
        spi.chip_select(True)
        print(spi.transfer(bytearray([0x9F, 0x00, 0x00, 0x00])).hex())
        spi.chip_select(False)
        spi.close()
"""

from buspirate.channel import ACK, Channel, MarkerMatcher
from buspirate.commands import (
    BUFFERED_TRANSFER_MAX,
    DEFAULT_SPI_CONFIG,
    SIMPLE_TRANSFER_MAX,
    SPEED_HZ,
    ClockEdge,
    ClockPhase,
    PeripheralConfig,
    Pin,
    PinOutput,
    SampleTime,
    Speed,
    SpiConfig,
    encode_chip_select,
    encode_peripherals,
    encode_speed,
    encode_spi_config,
    encode_transfer,
    encode_write_then_read,
)
from buspirate.config import PortConfig
from buspirate.emulator import BusPirateEmulator, BusPirateEmulatorConfig, EmulatedMode
from buspirate.errors import (
    BusPirateError,
    ProtocolError,
    RequestError,
    StaleModeError,
    TransportReadError,
    TransportWriteError,
)
from buspirate.serial_port import SerialPort
from buspirate.session import BitBang, BusPirate, Mode
from buspirate.spi import Spi, SpiComms
from buspirate.transport import ByteReader, ByteWriter, WouldBlock

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Modes
    "BitBang",
    "BusPirate",
    "Mode",
    "Spi",
    "SpiComms",
    # Commands
    "BUFFERED_TRANSFER_MAX",
    "DEFAULT_SPI_CONFIG",
    "SIMPLE_TRANSFER_MAX",
    "SPEED_HZ",
    "ClockEdge",
    "ClockPhase",
    "PeripheralConfig",
    "Pin",
    "PinOutput",
    "SampleTime",
    "Speed",
    "SpiConfig",
    "encode_chip_select",
    "encode_peripherals",
    "encode_speed",
    "encode_spi_config",
    "encode_transfer",
    "encode_write_then_read",
    # Channel
    "ACK",
    "Channel",
    "MarkerMatcher",
    # Transport
    "ByteReader",
    "ByteWriter",
    "SerialPort",
    "WouldBlock",
    # Configuration
    "PortConfig",
    # Emulator
    "BusPirateEmulator",
    "BusPirateEmulatorConfig",
    "EmulatedMode",
    # Errors
    "BusPirateError",
    "ProtocolError",
    "RequestError",
    "StaleModeError",
    "TransportReadError",
    "TransportWriteError",
]
