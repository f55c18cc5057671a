"""
Dashboard controller

Single owner of one dashboard session's state: connection mode, latest
telemetry, metric cards, recent camera frames, the selected sensor/image,
the last prediction and the motor status cache.

Usage:
    async with DashboardController() as dashboard:
        await dashboard.refresh_metrics()
        dashboard.select_sensor(1)
        await dashboard.capture_image()
        prediction = await dashboard.analyze()

Background timers (telemetry refresh, reconnect probe, motor status) only run
between start() and stop().
"""

import asyncio
import logging
from collections import deque
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .bridge import BridgeClient, BridgeError
from .config import SENSORS, TIMERS, TimerConfig
from .connectivity import ConnectivityMonitor
from .inference import InferenceAdapter
from .motor import MotorGateway
from .schema import CommandResult, MetricCard, Prediction, TelemetryReading, utc_now
from .simulator import TelemetrySimulator
from .sources import SimulatedTelemetrySource, TelemetryFeed

log = logging.getLogger(__name__)


class AnalysisPending(Exception):
    """An analysis is already running for this session."""


def loading_metrics() -> List[MetricCard]:
    return [
        MetricCard("Soil Moisture", "Loading...", "Current Level"),
        MetricCard("Temperature", "Loading...", "Current Temp"),
        MetricCard("Humidity", "Loading...", "Air Moisture"),
        MetricCard("pH Level", "Loading...", "Soil pH"),
    ]


def metric_cards(reading: TelemetryReading) -> List[MetricCard]:
    return [
        MetricCard("Soil Moisture", f"{reading.soil_moisture}", "Current Level"),
        MetricCard("Temperature", f"{reading.temperature}°C", "Current Temp"),
        MetricCard("Humidity", f"{reading.humidity}%", "Air Moisture"),
        MetricCard("pH Level", reading.ph, "Soil pH"),
    ]


class DashboardController:

    def __init__(
        self,
        client: Optional[BridgeClient] = None,
        model_path: Optional[str] = None,
        timers: Optional[TimerConfig] = None,
        seed: Optional[int] = None,
    ):
        self.timers = timers or TIMERS
        self.monitor = ConnectivityMonitor(client)
        self.simulator = TelemetrySimulator(seed=seed)
        self.feed = TelemetryFeed(self.monitor, simulated=SimulatedTelemetrySource(self.simulator))
        self.motor = MotorGateway(self.monitor, self.simulator)
        self.inference = InferenceAdapter(self.monitor, model_path=model_path, seed=seed)

        self.reading: Optional[TelemetryReading] = None
        self.metrics: List[MetricCard] = loading_metrics()
        self.last_updated: Optional[datetime] = None
        self.status_message: Optional[str] = None

        self.images: deque = deque(maxlen=self.timers.image_history)
        self.selected_sensor: Optional[int] = None
        self.selected_image: Optional[str] = None
        self.prediction: Optional[Prediction] = None
        self.analyzing = False

        self._tasks: List[asyncio.Task] = []

    # ─────────────────────────────────────────────────────────────────────
    # LIFECYCLE
    # ─────────────────────────────────────────────────────────────────────

    async def start(self):
        """Load the model, probe once, take a first reading, start timers."""
        if self._tasks:
            return
        self.inference.load()
        await self.monitor.probe()
        await self.refresh_metrics()
        await self.motor.get_status()
        self._tasks = [
            asyncio.create_task(self._every(self.timers.telemetry_interval_s, self.refresh_metrics),
                                name="telemetry-refresh"),
            asyncio.create_task(self.monitor.reconnect_loop(self.timers.reconnect_interval_s),
                                name="reconnect-probe"),
            asyncio.create_task(self._every(self.timers.motor_status_interval_s, self.motor.get_status),
                                name="motor-status"),
        ]
        log.info(f"Dashboard started in {self.monitor.mode.value} mode")

    async def stop(self):
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        log.info("Dashboard timers stopped")

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def __aenter__(self) -> "DashboardController":
        await self.start()
        return self

    async def __aexit__(self, *exc):
        await self.stop()

    async def _every(self, interval: float, job: Callable[[], Awaitable[Any]]):
        while True:
            await asyncio.sleep(interval)
            try:
                await job()
            except Exception as e:
                log.error(f"Timer job {job.__name__} failed: {e}")

    # ─────────────────────────────────────────────────────────────────────
    # TELEMETRY
    # ─────────────────────────────────────────────────────────────────────

    async def refresh_metrics(self) -> TelemetryReading:
        reading = await self.feed.read()
        self.reading = reading
        self.metrics = metric_cards(reading)
        self.last_updated = utc_now()
        self.status_message = None if reading.source == "bridge" else "Demo mode: showing simulated data"
        return reading

    # ─────────────────────────────────────────────────────────────────────
    # CAMERA & ANALYSIS
    # ─────────────────────────────────────────────────────────────────────

    def select_sensor(self, sensor_id: int):
        if sensor_id not in {s["id"] for s in SENSORS}:
            raise ValueError(f"Unknown sensor: {sensor_id}")
        self.selected_sensor = sensor_id
        self.selected_image = None
        self.prediction = None
        self.images.clear()

    def select_image(self, index: int) -> str:
        if not 0 <= index < len(self.images):
            raise ValueError(f"No image at position {index}")
        self.selected_image = self.images[index]
        self.prediction = None
        return self.selected_image

    async def capture_image(self) -> str:
        if self.selected_sensor is None:
            raise ValueError("Please select a sensor first")
        image = None
        if self.monitor.is_live:
            try:
                image = await self.monitor.client.image()
            except BridgeError as e:
                self.monitor.on_fetch_error(e)
        if image is None:
            image = self.simulator.camera_image()
        self.images.append(image)
        return image

    async def analyze(self, image: Optional[str] = None) -> Prediction:
        if self.analyzing:
            raise AnalysisPending("An analysis is already in progress")
        image = image or self.selected_image
        if not image:
            raise ValueError("Please select a sensor and an image first")
        self.analyzing = True
        self.prediction = None
        try:
            self.prediction = await self.inference.predict(image)
        finally:
            self.analyzing = False
        return self.prediction

    # ─────────────────────────────────────────────────────────────────────
    # MOTOR & CONNECTION
    # ─────────────────────────────────────────────────────────────────────

    async def set_motor(self, on: bool) -> CommandResult:
        return await self.motor.set_power(on)

    async def irrigate(self) -> CommandResult:
        return await self.set_motor(True)

    async def reconnect(self) -> bool:
        ok = await self.monitor.reconnect()
        if ok:
            await self.refresh_metrics()
            await self.motor.get_status()
        return ok

    def snapshot(self) -> Dict[str, Any]:
        return {
            "connection": self.monitor.state.to_dict(),
            "metrics": [vars(m) for m in self.metrics],
            "reading": self.reading.to_dict() if self.reading else None,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "status_message": self.status_message,
            "model_loaded": self.inference.model_loaded,
            "controls_enabled": self.motor.controls_enabled,
            "selected_sensor": self.selected_sensor,
            "image_count": len(self.images),
            "prediction": self.prediction.to_dict() if self.prediction else None,
        }
