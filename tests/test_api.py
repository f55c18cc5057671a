"""HTTP service, driven through FastAPI's TestClient."""
from unittest.mock import patch

import httpx
import pytest
import requests
from fastapi.testclient import TestClient

from plant_monitor.api import create_app
from plant_monitor.chat import PlantChatBot
from plant_monitor.config import CLASSES, TimerConfig
from plant_monitor.controller import DashboardController


def chat_handler(request):
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "Use neem oil."}]}}]})


@pytest.fixture
def client(dead_bridge, missing_model):
    dashboard = DashboardController(dead_bridge.client(), model_path=missing_model,
                                    timers=TimerConfig(telemetry_interval_s=60, reconnect_interval_s=60,
                                                       motor_status_interval_s=60), seed=0)
    bot = PlantChatBot(api_key="k", transport=httpx.MockTransport(chat_handler))
    with TestClient(create_app(dashboard, bot)) as c:
        yield c


class TestHealth:
    def test_health_reports_demo(self, client):
        body = client.get("/").json()
        assert body["status"] == "healthy"
        assert body["mode"] == "demo"
        assert body["timestamp"].endswith("+00:00")

    def test_status_snapshot(self, client):
        body = client.get("/api/v1/status").json()
        assert body["connection"]["connected"] is False
        assert body["model_loaded"] is False
        assert body["controls_enabled"] is False


class TestMetrics:
    def test_simulated_metrics(self, client):
        body = client.get("/api/v1/metrics", params={"refresh": True}).json()
        assert body["reading"]["source"] == "simulator"
        assert [m["title"] for m in body["metrics"]] == ["Soil Moisture", "Temperature", "Humidity", "pH Level"]
        assert 200 <= body["reading"]["soilMoisture"] <= 800

    def test_reconnect_while_offline(self, client):
        body = client.post("/api/v1/reconnect").json()
        assert body["connected"] is False
        assert body["connection"]["mode"] == "demo"


class TestMotor:
    def test_demo_noop(self, client, dead_bridge):
        body = client.post("/api/v1/motor/on").json()
        assert body["demo"] is True
        assert body["ok"] is False
        assert dead_bridge.calls == []

    def test_unknown_action(self, client):
        assert client.post("/api/v1/motor/explode").status_code == 404


class TestImagesAndAnalysis:
    def test_capture_needs_sensor(self, client):
        assert client.post("/api/v1/images/capture").status_code == 400

    def test_capture_and_analyze(self, client):
        assert client.post("/api/v1/sensors/1/select").status_code == 200
        captured = client.post("/api/v1/images/capture").json()
        assert captured["demo"] is True
        assert captured["image"].startswith("data:image/jpeg;base64,")

        body = client.post("/api/v1/analyze", json={"index": 0}).json()
        assert body["label"] in CLASSES
        assert body["placeholder"] is True
        assert body["advice"]

    def test_analyze_without_image(self, client):
        assert client.post("/api/v1/analyze", json={}).status_code == 400

    def test_unknown_sensor(self, client):
        assert client.post("/api/v1/sensors/42/select").status_code == 404


class TestSupplementary:
    def test_soil_moisture_default_range(self, client):
        body = client.get("/api/v1/soil-moisture").json()
        assert len(body["data"]) == 7
        assert 30 <= body["average"] <= 70

    def test_soil_moisture_bad_range(self, client):
        r = client.get("/api/v1/soil-moisture", params={"start": "2024-03-10", "end": "2024-03-01"})
        assert r.status_code == 400

    def test_notifications(self, client):
        assert len(client.get("/api/v1/notifications", params={"count": 5}).json()["notifications"]) == 5

    @patch("plant_monitor.weather.requests.get")
    def test_weather_fallback(self, mock_get, client):
        mock_get.side_effect = requests.exceptions.ConnectionError("offline")
        body = client.get("/api/v1/weather").json()
        assert len(body["forecast"]) == 24


class TestChat:
    def test_requires_messages(self, client):
        assert client.post("/api/chat", json={}).status_code == 400
        assert client.post("/api/chat", json={"messages": []}).status_code == 400

    def test_reply(self, client):
        r = client.post("/api/chat", json={"messages": [{"role": "user", "content": "Aphids?"}]})
        assert r.status_code == 200
        assert r.json() == {"message": "Use neem oil."}
