"""Shared fixtures: a scriptable fake bridge and a fake ONNX session."""
import json
from types import SimpleNamespace

import httpx
import numpy as np
import pytest

from plant_monitor.bridge import BridgeClient
from plant_monitor.config import BridgeConfig

BRIDGE_URL = "http://bridge.test"

CAPTURE = {"soil_moisture": 512, "temperature": 24.5, "humidity": 61}
MOTOR_OFF = {"motor_on": False, "soil_dry": True, "soil_status": "Dry", "motor_status": "OFF"}
MOTOR_ON = {"motor_on": True, "soil_dry": True, "soil_status": "Dry", "motor_status": "ON"}


class FakeBridge:
    """
    In-memory bridge behind httpx.MockTransport.

    `up` toggles reachability; `fail` holds paths that answer HTTP 500;
    `bodies` overrides the JSON a path answers with;
    `calls` records "METHOD /path" for every request that reached it.
    """

    def __init__(self, up: bool = True):
        self.up = up
        self.fail = set()
        self.calls = []
        self.motor = dict(MOTOR_OFF)
        self.capture = dict(CAPTURE)
        self.prediction = "Tomato_Late_blight"
        self.bodies = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if not self.up:
            raise httpx.ConnectError("bridge unreachable", request=request)
        self.calls.append(f"{request.method} {path}")
        assert request.headers["bypass-tunnel-reminder"] == "true"
        if path in self.fail:
            return httpx.Response(500, json={"error": "boom"})
        if path in self.bodies:
            return httpx.Response(200, json=self.bodies[path])
        if path == "/capture":
            return httpx.Response(200, json=self.capture)
        if path == "/motor/status":
            return httpx.Response(200, json=self.motor)
        if path in ("/motor/on", "/motor/off"):
            on = path.endswith("on")
            self.motor = dict(MOTOR_ON if on else MOTOR_OFF)
            return httpx.Response(200, json={"message": f"Motor turned {'ON' if on else 'OFF'}"})
        if path == "/image":
            return httpx.Response(200, json={"image": "aGVsbG8="})
        if path == "/predict":
            body = json.loads(request.content)
            assert not body["image"].startswith("data:")
            return httpx.Response(200, json={"prediction": self.prediction})
        return httpx.Response(404)

    def client(self) -> BridgeClient:
        return BridgeClient(BridgeConfig(base_url=BRIDGE_URL), transport=httpx.MockTransport(self.handler))


class FakeSession:
    """Quacks like onnxruntime.InferenceSession."""

    def __init__(self, scores, fail: bool = False):
        self.scores = np.asarray([scores], dtype=np.float32)
        self.fail = fail
        self.feeds = []

    def get_inputs(self):
        return [SimpleNamespace(name="input_1")]

    def run(self, output_names, feeds):
        self.feeds.append(feeds)
        if self.fail:
            raise RuntimeError("kernel exploded")
        return [self.scores]


@pytest.fixture
def bridge():
    return FakeBridge(up=True)


@pytest.fixture
def dead_bridge():
    return FakeBridge(up=False)


@pytest.fixture
def missing_model(tmp_path):
    return str(tmp_path / "no_such_model.onnx")
