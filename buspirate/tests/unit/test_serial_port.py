"""Unit tests for the pyserial transport."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import serial

from buspirate.config import PortConfig
from buspirate.errors import BusPirateError
from buspirate.serial_port import SerialPort
from buspirate.transport import WouldBlock


@pytest.fixture
def mock_serial() -> MagicMock:
    """Patch serial.Serial and return the instance it creates."""
    with patch("buspirate.serial_port.serial.Serial") as cls:
        instance = MagicMock()
        cls.return_value = instance
        instance.cls = cls
        yield instance


@pytest.mark.uses_mock
class TestLifecycle:
    """Tests for opening and closing the port."""

    def test_open_settings(self, mock_serial: MagicMock) -> None:
        port = SerialPort("/dev/ttyUSB0", read_timeout=0.2, write_timeout=2.0)
        port.open()
        assert port.is_open
        mock_serial.cls.assert_called_once_with(
            "/dev/ttyUSB0",
            115200,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
            timeout=0.2,
            write_timeout=2.0,
        )

    def test_open_twice_is_noop(self, mock_serial: MagicMock) -> None:
        port = SerialPort("COM3")
        port.open()
        port.open()
        assert mock_serial.cls.call_count == 1

    def test_open_failure(self) -> None:
        with patch(
            "buspirate.serial_port.serial.Serial",
            side_effect=serial.SerialException("no such device"),
        ):
            with pytest.raises(BusPirateError, match="no such device"):
                SerialPort("/dev/missing").open()

    def test_context_manager(self, mock_serial: MagicMock) -> None:
        with SerialPort("COM3") as port:
            assert port.is_open
        assert not port.is_open
        mock_serial.close.assert_called_once()

    def test_close_idempotent(self, mock_serial: MagicMock) -> None:
        port = SerialPort("COM3")
        port.open()
        port.close()
        port.close()
        mock_serial.close.assert_called_once()

    def test_from_config(self, mock_serial: MagicMock) -> None:
        config = PortConfig(port="/dev/ttyACM0", baudrate=9600, read_timeout=0.5)
        port = SerialPort.from_config(config)
        assert port.port == "/dev/ttyACM0"
        port.open()
        args, kwargs = mock_serial.cls.call_args
        assert args == ("/dev/ttyACM0", 9600)
        assert kwargs["timeout"] == 0.5


@pytest.mark.uses_mock
class TestTransport:
    """Tests for the byte transport methods."""

    def test_not_open(self) -> None:
        with pytest.raises(BusPirateError, match="not open"):
            SerialPort("COM3").write_byte(0x00)

    def test_writes_are_sent_on_flush(self, mock_serial: MagicMock) -> None:
        port = SerialPort("COM3")
        port.open()
        port.write_byte(0x02)
        port.write_byte(0x03)
        mock_serial.write.assert_not_called()
        port.flush()
        mock_serial.write.assert_called_once_with(b"\x02\x03")
        mock_serial.flush.assert_called_once()

    def test_read_byte(self, mock_serial: MagicMock) -> None:
        mock_serial.read.return_value = b"\x01"
        port = SerialPort("COM3")
        port.open()
        assert port.read_byte() == 0x01
        mock_serial.read.assert_called_once_with(1)

    def test_read_timeout_would_block(self, mock_serial: MagicMock) -> None:
        mock_serial.read.return_value = b""
        port = SerialPort("COM3")
        port.open()
        with pytest.raises(WouldBlock):
            port.read_byte()

    def test_read_flushes_pending_writes(self, mock_serial: MagicMock) -> None:
        mock_serial.read.return_value = b"\x01"
        port = SerialPort("COM3")
        port.open()
        port.write_byte(0x40)
        port.read_byte()
        mock_serial.write.assert_called_once_with(b"\x40")
