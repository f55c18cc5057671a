"""
Telemetry simulator - stands in for the bridge while in demo mode.
Also produces mock motor status, camera frames, soil moisture history and
sensor notifications.
"""

import logging
import math
import uuid
from datetime import date, datetime, timedelta
from typing import List, Optional

import numpy as np
import pandas as pd
from PIL import Image

from .config import SIMULATOR, SimulatorConfig
from .inference import encode_image
from .schema import MotorStatus, SensorNotification, TelemetryReading, utc_now

log = logging.getLogger(__name__)


class TelemetrySimulator:
    """
    Plausible, slowly varying sensor readings.

    Each field is a sinusoid tied to the wall clock plus bounded uniform
    jitter, clamped to its physical range. Only the clock carries over
    between calls.
    """

    def __init__(self, config: Optional[SimulatorConfig] = None, seed: Optional[int] = None):
        self.config = config or SIMULATOR
        self.rng = np.random.default_rng(seed)

    def _field(self, t: float, value_range: tuple, period_s: float, jitter: float, phase: float) -> float:
        lo, hi = value_range
        mid = (lo + hi) / 2
        amplitude = (hi - lo) / 4
        base = mid + amplitude * math.sin(2 * math.pi * t / period_s + phase)
        value = base + self.rng.uniform(-jitter, jitter)
        return float(np.clip(value, lo, hi))

    def generate(self, now: Optional[datetime] = None) -> TelemetryReading:
        now = now or utc_now()
        t = now.timestamp()
        c = self.config
        return TelemetryReading(
            soil_moisture=round(self._field(t, c.soil_moisture_range, c.soil_moisture_period_s,
                                            c.soil_moisture_jitter, 0.0)),
            temperature=round(self._field(t, c.temperature_range, c.temperature_period_s,
                                          c.temperature_jitter, 1.0), 1),
            humidity=round(self._field(t, c.humidity_range, c.humidity_period_s,
                                       c.humidity_jitter, 2.0), 1),
            timestamp=now,
            source="simulator",
        )

    def motor_status(self, reading: Optional[TelemetryReading] = None) -> MotorStatus:
        """Mock actuator state consistent with the simulated soil."""
        reading = reading or self.generate()
        # Capacitive sensors read higher when drier
        soil_dry = reading.soil_moisture > 600
        return MotorStatus(
            motor_on=False,
            soil_dry=soil_dry,
            soil_status="Dry" if soil_dry else "Wet",
            motor_status="OFF (Demo)",
        )

    def camera_image(self, size: tuple = (224, 224)) -> str:
        """A leaf-green noise frame encoded as a JPEG data URL."""
        h, w = size
        base = np.array([60, 140, 50], dtype=np.float32)
        noise = self.rng.normal(0, 25, size=(h, w, 3))
        pixels = np.clip(base + noise, 0, 255).astype(np.uint8)
        return encode_image(Image.fromarray(pixels, "RGB"))


# ─────────────────────────────────────────────────────────────────────────────
# SOIL MOISTURE HISTORY
# ─────────────────────────────────────────────────────────────────────────────

DEFAULT_HISTORY_START = date(2024, 1, 1)
DEFAULT_RANGE_START = date(2024, 2, 1)
DEFAULT_RANGE_DAYS = 6


def generate_soil_moisture_history(start: date = DEFAULT_HISTORY_START, days: int = 500,
                                   seed: Optional[int] = None) -> pd.DataFrame:
    """Daily soil moisture percentages between 30 and 70."""
    rng = np.random.default_rng(seed)
    dates = pd.date_range(start=start, periods=days, freq="D")
    moisture = np.round(rng.random(days) * (70 - 30) + 30).astype(int)
    return pd.DataFrame({"date": dates.strftime("%Y-%m-%d"), "moisture": moisture})


def filter_history(df: pd.DataFrame, start: date, end: date) -> pd.DataFrame:
    """Rows whose date falls in [start, end], both days inclusive."""
    dates = pd.to_datetime(df["date"]).dt.date
    mask = (dates >= start) & (dates <= end)
    return df.loc[mask, ["date", "moisture"]].reset_index(drop=True)


def default_range() -> tuple:
    return DEFAULT_RANGE_START, DEFAULT_RANGE_START + timedelta(days=DEFAULT_RANGE_DAYS)


def average_moisture(df: pd.DataFrame) -> Optional[int]:
    if df.empty:
        return None
    return int(round(df["moisture"].mean()))


# ─────────────────────────────────────────────────────────────────────────────
# SENSOR NOTIFICATIONS
# ─────────────────────────────────────────────────────────────────────────────

SENSOR_TYPES = ["temperature", "humidity", "pressure", "motion", "light", "air-quality"]

LOCATIONS = [
    {"longitude": -74.5, "latitude": 40.0, "name": "New York Area"},
    {"longitude": -74.3, "latitude": 40.1, "name": "Jersey City"},
    {"longitude": -74.7, "latitude": 39.9, "name": "Atlantic City"},
    {"longitude": -73.9, "latitude": 40.7, "name": "Manhattan"},
    {"longitude": -73.8, "latitude": 40.6, "name": "Brooklyn"},
]

MESSAGES = {
    "alert": [
        "Critical threshold exceeded",
        "Sensor malfunction detected",
        "Emergency shutdown initiated",
        "Power supply failure",
        "Connection lost",
    ],
    "warning": [
        "Approaching upper threshold",
        "Battery level low",
        "Calibration needed",
        "Intermittent connection issues",
        "Unusual reading pattern detected",
    ],
    "info": [
        "Routine maintenance completed",
        "Firmware updated successfully",
        "Normal operation resumed",
        "Sensor readings within normal range",
        "Scheduled diagnostic completed",
    ],
}

NOTIFICATION_WEIGHTS = {"alert": 0.2, "warning": 0.3, "info": 0.5}


def generate_notification(rng: Optional[np.random.Generator] = None,
                          now: Optional[datetime] = None) -> SensorNotification:
    rng = rng or np.random.default_rng()
    now = now or utc_now()

    # Weighted pick: 20% alerts, 30% warnings, 50% info
    roll = rng.random()
    cumulative = 0.0
    kind = "info"
    for name, weight in NOTIFICATION_WEIGHTS.items():
        cumulative += weight
        if roll <= cumulative:
            kind = name
            break

    sensor_type = SENSOR_TYPES[rng.integers(len(SENSOR_TYPES))]
    base = LOCATIONS[rng.integers(len(LOCATIONS))]
    templates = MESSAGES[kind]
    message_sensor = SENSOR_TYPES[rng.integers(len(SENSOR_TYPES))]

    return SensorNotification(
        id=f"notification-{int(now.timestamp() * 1000)}-{uuid.uuid4().hex[:7]}",
        sensor_id=f"{sensor_type}-{int(rng.integers(1000)):03d}",
        type=kind,
        message=f"{templates[rng.integers(len(templates))]} for {message_sensor} sensor",
        timestamp=now,
        longitude=base["longitude"] + (rng.random() - 0.5) * 0.1,
        latitude=base["latitude"] + (rng.random() - 0.5) * 0.1,
        read=False,
    )


def generate_notifications(count: int, seed: Optional[int] = None) -> List[SensorNotification]:
    """Notifications spread over the last 24h, about 30% read, newest first."""
    rng = np.random.default_rng(seed)
    now = utc_now()
    notifications = []
    for _ in range(count):
        n = generate_notification(rng, now)
        n.timestamp = now - timedelta(hours=float(rng.random() * 24))
        n.read = bool(rng.random() > 0.7)
        notifications.append(n)
    return sorted(notifications, key=lambda n: n.timestamp, reverse=True)
