"""Unit tests for the Bus Pirate command encoders."""

from __future__ import annotations

import itertools

import pytest

from buspirate.commands import (
    DEFAULT_SPI_CONFIG,
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
    encode_pin_directions,
    encode_pin_levels,
    encode_speed,
    encode_spi_config,
    encode_transfer,
    encode_write_then_read,
)
from buspirate.errors import RequestError


def _all_spi_configs() -> list[SpiConfig]:
    return [
        SpiConfig(pin_output=o, clock_idle_phase=p, clock_edge=e, sample_time=s)
        for o, p, e, s in itertools.product(PinOutput, ClockPhase, ClockEdge, SampleTime)
    ]


def _all_peripheral_configs() -> list[PeripheralConfig]:
    return [
        PeripheralConfig(power_supply=a, pull_ups=b, aux=c, cs=d)
        for a, b, c, d in itertools.product([False, True], repeat=4)
    ]


class TestSpeed:
    """Tests for SPI speed encoding."""

    def test_codes(self) -> None:
        assert encode_speed(Speed.SPEED_30KHZ) == 0b01000000
        assert encode_speed(Speed.SPEED_2_6MHZ) == 0b01000101
        assert encode_speed(Speed.SPEED_8MHZ) == 0b01000111

    def test_injective_and_in_range(self) -> None:
        codes = [encode_speed(speed) for speed in Speed]
        assert len(set(codes)) == len(Speed) == 8
        assert all(0b01000000 <= code <= 0b01000111 for code in codes)

    def test_every_speed_has_a_rate(self) -> None:
        assert set(SPEED_HZ) == set(Speed)
        assert SPEED_HZ[Speed.SPEED_1MHZ] == 1_000_000


class TestSpiConfig:
    """Tests for SPI configuration encoding."""

    def test_default_config(self) -> None:
        assert DEFAULT_SPI_CONFIG.pin_output is PinOutput.HIZ
        assert DEFAULT_SPI_CONFIG.clock_idle_phase is ClockPhase.LOW
        assert DEFAULT_SPI_CONFIG.clock_edge is ClockEdge.FALLING
        assert DEFAULT_SPI_CONFIG.sample_time is SampleTime.MIDDLE
        assert encode_spi_config(DEFAULT_SPI_CONFIG) == 0b10000010

    def test_bit_positions(self) -> None:
        config = SpiConfig(
            pin_output=PinOutput.V3_3,
            clock_idle_phase=ClockPhase.HIGH,
            clock_edge=ClockEdge.RISING,
            sample_time=SampleTime.END,
        )
        assert encode_spi_config(config) == 0b10001101

    def test_top_bit_set_and_deterministic(self) -> None:
        configs = _all_spi_configs()
        encoded = [encode_spi_config(c) for c in configs]
        assert all(code & 0x80 for code in encoded)
        assert encoded == [encode_spi_config(c) for c in configs]
        assert len(set(encoded)) == 16

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            DEFAULT_SPI_CONFIG.sample_time = SampleTime.END  # type: ignore[misc]


class TestPeripheralConfig:
    """Tests for peripheral configuration encoding."""

    def test_all_disabled_sets_all_bits(self) -> None:
        assert encode_peripherals(PeripheralConfig()) == 0b10001111

    def test_all_enabled_clears_all_bits(self) -> None:
        config = PeripheralConfig(power_supply=True, pull_ups=True, aux=True, cs=True)
        assert encode_peripherals(config) == 0b10000000

    def test_inverted_bit_positions(self) -> None:
        assert encode_peripherals(PeripheralConfig(power_supply=True)) == 0b10000111
        assert encode_peripherals(PeripheralConfig(pull_ups=True)) == 0b10001011
        assert encode_peripherals(PeripheralConfig(aux=True)) == 0b10001101
        assert encode_peripherals(PeripheralConfig(cs=True)) == 0b10001110

    def test_top_bit_set_and_distinct(self) -> None:
        encoded = [encode_peripherals(c) for c in _all_peripheral_configs()]
        assert all(code & 0x80 for code in encoded)
        assert len(set(encoded)) == 16


class TestChipSelect:
    """Tests for chip select encoding."""

    def test_active_and_inactive(self) -> None:
        assert encode_chip_select(True) == 0b00000010
        assert encode_chip_select(False) == 0b00000011


class TestTransfer:
    """Tests for simple transfer encoding."""

    def test_length_encoded_minus_one(self) -> None:
        assert encode_transfer(1) == 0b00010000
        assert encode_transfer(2) == 0b00010001
        assert encode_transfer(16) == 0b00011111

    @pytest.mark.parametrize("length", [0, 17, -1])
    def test_out_of_range_raises(self, length: int) -> None:
        with pytest.raises(RequestError):
            encode_transfer(length)


class TestWriteThenRead:
    """Tests for buffered write-then-read header encoding."""

    def test_header_with_cs(self) -> None:
        assert encode_write_then_read(0x0102, 0x0001, True) == bytes(
            [0b00000100, 0x01, 0x02, 0x00, 0x01]
        )

    def test_header_without_cs(self) -> None:
        assert encode_write_then_read(4096, 4096, False) == bytes(
            [0b00000101, 0x10, 0x00, 0x10, 0x00]
        )

    def test_write_too_long(self) -> None:
        with pytest.raises(RequestError, match="write length"):
            encode_write_then_read(4097, 0, True)

    def test_read_too_long(self) -> None:
        with pytest.raises(RequestError, match="read length"):
            encode_write_then_read(4096, 4097, True)

    def test_read_longer_than_write(self) -> None:
        with pytest.raises(RequestError, match="exceeds write length"):
            encode_write_then_read(10, 20, True)


class TestPins:
    """Tests for bit-bang pin encoding."""

    def test_directions(self) -> None:
        assert encode_pin_directions(Pin(0)) == 0b01000000
        assert encode_pin_directions(Pin.AUX | Pin.CS) == 0b01010001

    def test_direction_rejects_power(self) -> None:
        with pytest.raises(ValueError, match="direction"):
            encode_pin_directions(Pin.POWER)

    def test_levels(self) -> None:
        assert encode_pin_levels(Pin.POWER | Pin.MOSI) == 0b11001000
        assert encode_pin_levels(Pin(0)) == 0b10000000
