"""Command line entry point."""
from unittest.mock import AsyncMock, patch

import pytest
import requests
from PIL import Image

from plant_monitor.bridge import BridgeError
from plant_monitor.cli import main
from plant_monitor.schema import DEMO_MESSAGE

from conftest import BRIDGE_URL


def offline():
    return patch("plant_monitor.bridge.BridgeClient.ping",
                 new=AsyncMock(side_effect=BridgeError("bridge unreachable")))


class TestStatus:
    @offline()
    def test_bridge_override_and_demo(self, capsys):
        assert main(["--bridge", BRIDGE_URL, "status"]) == 0
        out = capsys.readouterr().out
        assert f"Bridge: {BRIDGE_URL}" in out
        assert "DEMO" in out
        assert "bridge unreachable" in out

    @offline()
    def test_metrics_from_simulator(self, capsys):
        assert main(["--bridge", BRIDGE_URL, "metrics"]) == 0
        out = capsys.readouterr().out
        assert "Soil Moisture" in out
        assert "Source: simulator" in out


class TestPredict:
    def test_missing_file(self, tmp_path, capsys):
        assert main(["predict", str(tmp_path / "nope.jpg")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_unreadable_file(self, tmp_path, capsys):
        path = tmp_path / "leaf.jpg"
        path.write_bytes(b"not an image")
        with offline():
            assert main(["--bridge", BRIDGE_URL, "predict", str(path)]) == 1
        assert "Cannot read image" in capsys.readouterr().err

    @offline()
    def test_placeholder_when_offline(self, tmp_path, capsys):
        path = tmp_path / "leaf.png"
        Image.new("RGB", (64, 64), (40, 160, 60)).save(path)
        assert main(["--bridge", BRIDGE_URL, "predict", str(path)]) == 0
        out = capsys.readouterr().out
        assert "via random" in out
        assert "placeholder" in out


class TestMotor:
    @offline()
    def test_demo_status(self, capsys):
        assert main(["--bridge", BRIDGE_URL, "motor", "status"]) == 0
        out = capsys.readouterr().out
        assert DEMO_MESSAGE in out
        assert "OFF (Demo)" in out

    @offline()
    def test_demo_command(self, capsys):
        assert main(["--bridge", BRIDGE_URL, "motor", "on"]) == 0
        assert DEMO_MESSAGE in capsys.readouterr().out

    def test_bad_action(self):
        with pytest.raises(SystemExit):
            main(["motor", "sideways"])


class TestDispatch:
    @patch("plant_monitor.weather.requests.get")
    def test_weather(self, mock_get, capsys):
        mock_get.side_effect = requests.exceptions.ConnectionError("offline")
        assert main(["weather", "--lat", "36.9", "--lon", "10.2"]) == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 24
        assert "°C" in lines[0]

    @patch("plant_monitor.api.run_server")
    def test_serve(self, mock_run):
        assert main(["serve", "--host", "127.0.0.1", "--port", "9000"]) == 0
        mock_run.assert_called_once_with("127.0.0.1", 9000)
