"""Bridge client response validation."""
import asyncio

import pytest

from plant_monitor.bridge import BridgeError


class TestMalformedBodies:
    @pytest.mark.parametrize("body", [[], None, "ok", 3])
    def test_non_object_body_rejected(self, bridge, body):
        bridge.bodies["/motor/status"] = body
        with pytest.raises(BridgeError):
            asyncio.run(bridge.client().motor_status())

    @pytest.mark.parametrize("value", [None, "512", True])
    def test_non_numeric_capture_field(self, bridge, value):
        bridge.bodies["/capture"] = {"soil_moisture": value, "temperature": 24.5, "humidity": 61}
        with pytest.raises(BridgeError):
            asyncio.run(bridge.client().capture())

    def test_missing_capture_field(self, bridge):
        bridge.bodies["/capture"] = {"soil_moisture": 512, "temperature": 24.5}
        with pytest.raises(BridgeError):
            asyncio.run(bridge.client().capture())

    def test_non_string_image(self, bridge):
        bridge.bodies["/image"] = {"image": ["aGVsbG8="]}
        with pytest.raises(BridgeError):
            asyncio.run(bridge.client().image())

    def test_list_prediction_body(self, bridge):
        bridge.bodies["/predict"] = ["Tomato_healthy"]
        with pytest.raises(BridgeError):
            asyncio.run(bridge.client().predict("aGVsbG8="))

    def test_valid_capture_passes(self, bridge):
        data = asyncio.run(bridge.client().capture())
        assert data["soil_moisture"] == 512
