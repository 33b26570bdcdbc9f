"""Command-line interface for the Bus Pirate client.

Usage:
    # Check that a Bus Pirate answers in binary mode
    buspirate --port /dev/ttyUSB0 check

    # Read a SPI flash JEDEC ID at 1 MHz
    buspirate --port /dev/ttyUSB0 spi --speed 1mhz 9f000000

    # Same, against the built-in emulator (loopback SPI target)
    buspirate --emulate spi 9f000000

    # Use connection settings from a YAML file
    buspirate --config bench.yaml check
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from typing import Any

import yaml

from buspirate.commands import SPEED_HZ, Speed
from buspirate.config import PortConfig
from buspirate.emulator import BusPirateEmulator
from buspirate.errors import BusPirateError
from buspirate.handshake import DEFAULT_ATTEMPTS
from buspirate.serial_port import SerialPort
from buspirate.session import BusPirate

#: CLI spelling of each SPI speed, e.g. ``"2.6mhz"``.
SPEED_CHOICES: dict[str, Speed] = {
    name.removeprefix("SPEED_").replace("_", ".").lower(): speed
    for name, speed in Speed.__members__.items()
}


def setup_logging(debug: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def parse_hex_bytes(value: str) -> bytearray:
    """Parse a hex string such as ``"9f 00 00"`` or ``"9f0000"``."""
    try:
        return bytearray.fromhex(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid hex data: {value!r}") from exc


def positive_int(value: str) -> int:
    """Parse a strictly positive integer argument."""
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def open_transport(args: argparse.Namespace) -> tuple[Any, int]:
    """Open the transport selected on the command line.

    Returns:
        The open transport and the handshake attempt count to use.
    """
    if args.emulate:
        attempts = DEFAULT_ATTEMPTS if args.attempts is None else args.attempts
        return BusPirateEmulator(), attempts

    if args.config:
        config = PortConfig.from_yaml(args.config)
        if args.port:
            config = dataclasses.replace(config, port=args.port)
    elif args.port:
        config = PortConfig(port=args.port)
    else:
        raise BusPirateError("one of --port, --config or --emulate is required")

    port = SerialPort.from_config(config)
    port.open()
    attempts = config.handshake_attempts if args.attempts is None else args.attempts
    return port, attempts


def cmd_check(bp: BusPirate) -> BusPirate:
    """Enter binary mode and return to the terminal."""
    bitbang = bp.init()
    print("Bus Pirate answered BBIO1 (binary bit-bang mode, protocol version 1)")
    return bitbang.close()


def cmd_spi(bp: BusPirate, args: argparse.Namespace) -> BusPirate:
    """Run one SPI transfer and print the received bytes."""
    spi = bp.init().to_spi()
    if args.speed is not None:
        speed = SPEED_CHOICES[args.speed]
        spi.set_speed(speed)
        print(f"SPI clock: {SPEED_HZ[speed]} Hz")

    data = args.data
    if args.no_cs:
        spi.transfer(data)
    else:
        spi.chip_select(True)
        spi.transfer(data)
        spi.chip_select(False)
    print(data.hex(" "))
    return spi.close()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Bus Pirate binary protocol CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--port", "-p", help="Serial port (e.g. /dev/ttyUSB0)")
    parser.add_argument("--config", "-c", help="YAML connection config file")
    parser.add_argument(
        "--emulate", action="store_true",
        help="Talk to the built-in emulator instead of a serial port"
    )
    parser.add_argument(
        "--attempts", type=positive_int, default=None,
        help=f"Handshake attempts per mode change (default: {DEFAULT_ATTEMPTS})"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # check command
    subparsers.add_parser("check", help="Check that the device enters binary mode")

    # spi command
    spi_parser = subparsers.add_parser("spi", help="Run an SPI transfer")
    spi_parser.add_argument("data", type=parse_hex_bytes, help="Hex bytes to transmit")
    spi_parser.add_argument(
        "--speed", choices=sorted(SPEED_CHOICES),
        help="SPI clock rate (default: device setting)"
    )
    spi_parser.add_argument(
        "--no-cs", action="store_true",
        help="Do not assert chip select around the transfer"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    setup_logging(args.debug)

    try:
        transport, attempts = open_transport(args)
    except (BusPirateError, OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Error: {exc}")
        return 1

    try:
        bp = BusPirate(transport, attempts=attempts)
        if args.command == "check":
            cmd_check(bp)
        elif args.command == "spi":
            cmd_spi(bp, args)
        else:
            parser.print_help()
            return 1
    except BusPirateError as exc:
        print(f"Error: {exc}")
        return 1
    finally:
        transport.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
