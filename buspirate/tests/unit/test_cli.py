"""Unit tests for the command-line interface."""

from __future__ import annotations

import argparse
from pathlib import Path
from unittest.mock import patch

import pytest

from buspirate.cli import SPEED_CHOICES, main, parse_hex_bytes, positive_int
from buspirate.commands import Speed
from buspirate.emulator import BusPirateEmulator


class TestParsing:
    """Tests for argument helpers."""

    def test_speed_choices(self) -> None:
        assert SPEED_CHOICES["30khz"] is Speed.SPEED_30KHZ
        assert SPEED_CHOICES["2.6mhz"] is Speed.SPEED_2_6MHZ
        assert SPEED_CHOICES["8mhz"] is Speed.SPEED_8MHZ
        assert len(SPEED_CHOICES) == 8

    def test_parse_hex_bytes(self) -> None:
        assert parse_hex_bytes("9f 00") == bytearray([0x9F, 0x00])
        assert parse_hex_bytes("aa55") == bytearray([0xAA, 0x55])

    def test_parse_hex_bytes_invalid(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="invalid hex"):
            parse_hex_bytes("zz")


    def test_positive_int(self) -> None:
        assert positive_int("3") == 3

    @pytest.mark.parametrize("value", ["0", "-2", "many"])
    def test_positive_int_invalid(self, value: str) -> None:
        with pytest.raises(argparse.ArgumentTypeError):
            positive_int(value)


class TestMain:
    """Tests for main()."""

    def test_no_command(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_no_transport(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["check"]) == 1
        assert "--emulate" in capsys.readouterr().out

    def test_check_emulated(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--emulate", "check"]) == 0
        assert "BBIO1" in capsys.readouterr().out

    def test_spi_emulated(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--emulate", "spi", "aa55"]) == 0
        assert "aa 55" in capsys.readouterr().out

    def test_spi_speed(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--emulate", "spi", "--speed", "1mhz", "01"]) == 0
        out = capsys.readouterr().out
        assert "SPI clock: 1000000 Hz" in out
        assert "01" in out

    def test_spi_without_chip_select(self) -> None:
        emulator = BusPirateEmulator()
        with patch("buspirate.cli.BusPirateEmulator", return_value=emulator):
            assert main(["--emulate", "spi", "--no-cs", "00"]) == 0
        assert 0x02 not in emulator.written

    def test_handshake_failure(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch("buspirate.cli.BusPirateEmulator.read_byte", side_effect=OSError("gone")):
            assert main(["--emulate", "--attempts", "2", "check"]) == 1
        assert "Error" in capsys.readouterr().out

    @pytest.mark.parametrize("value", ["0", "-1"])
    def test_attempts_must_be_positive(
        self, value: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--emulate", "--attempts", value, "check"])
        assert exc_info.value.code == 2
        assert "--attempts" in capsys.readouterr().err

    def test_missing_config(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["--config", str(tmp_path / "nope.yaml"), "check"]) == 1
        assert "Error" in capsys.readouterr().out

    def test_config_with_port_override(self, tmp_path: Path) -> None:
        path = tmp_path / "bench.yaml"
        path.write_text("port: /dev/ttyUSB0\nhandshake_attempts: 3\n", encoding="utf-8")
        with patch("buspirate.cli.SerialPort") as port_cls:
            port_cls.from_config.return_value = BusPirateEmulator()
            assert main(["--config", str(path), "--port", "COM7", "check"]) == 0
        config = port_cls.from_config.call_args.args[0]
        assert config.port == "COM7"
        assert config.handshake_attempts == 3
