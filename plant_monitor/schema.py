"""
Data model for the plant monitor.

All of these are transient, per-session values: the controller owns them and
nothing is persisted between runs.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def get_ph(soil_moisture: float) -> str:
    """
    Derive a pH-like display value from raw soil moisture.

    Linear transform: 200 -> 8.0, 400 -> 6.0. Formatted to two significant
    digits, keeping the trailing zero ("8.0", not "8").
    """
    value = 8 - ((soil_moisture - 200) / 200) * 2
    text = f"{value:#.2g}"
    if "e" in text:
        mantissa, exponent = text.split("e")
        return f"{mantissa.rstrip('.')}e{int(exponent):+d}"
    return text.rstrip(".")


class ConnectionMode(Enum):
    """Where the dashboard's data comes from."""
    LIVE = "live"                  # bridge reachable
    DEMO = "demo"                  # simulated data
    RECONNECTING = "reconnecting"  # probe in flight while in demo


@dataclass
class ConnectionState:
    mode: ConnectionMode = ConnectionMode.DEMO
    last_probe_at: Optional[datetime] = None
    last_error: Optional[str] = None

    @property
    def connected(self) -> bool:
        return self.mode is ConnectionMode.LIVE

    @property
    def demo(self) -> bool:
        return not self.connected

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connected": self.connected,
            "mode": "live" if self.connected else "demo",
            "state": self.mode.value,
            "last_probe_at": self.last_probe_at.isoformat() if self.last_probe_at else None,
            "last_error": self.last_error,
        }


@dataclass
class TelemetryReading:
    """One soil/air reading, from the bridge or the simulator."""
    soil_moisture: float
    temperature: float
    humidity: float
    timestamp: datetime = field(default_factory=utc_now)
    source: str = "bridge"

    @property
    def ph(self) -> str:
        return get_ph(self.soil_moisture)

    @classmethod
    def from_bridge(cls, payload: Dict[str, Any]) -> "TelemetryReading":
        return cls(
            soil_moisture=payload["soil_moisture"],
            temperature=payload["temperature"],
            humidity=payload["humidity"],
            source="bridge",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "soilMoisture": self.soil_moisture,
            "temperature": self.temperature,
            "humidity": self.humidity,
            "ph": self.ph,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
        }


@dataclass
class MotorStatus:
    motor_on: bool = False
    soil_dry: bool = False
    soil_status: str = "Unknown"
    motor_status: str = "Unknown"

    @classmethod
    def from_bridge(cls, payload: Dict[str, Any]) -> "MotorStatus":
        return cls(
            motor_on=bool(payload.get("motor_on", False)),
            soil_dry=bool(payload.get("soil_dry", False)),
            soil_status=str(payload.get("soil_status", "Unknown")),
            motor_status=str(payload.get("motor_status", "Unknown")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEMO_MESSAGE = "Demo mode: bridge not connected"


@dataclass
class CommandResult:
    ok: bool
    message: str
    demo: bool = False
    status: Optional[MotorStatus] = None

    @classmethod
    def demo_noop(cls, status: Optional[MotorStatus] = None) -> "CommandResult":
        return cls(ok=False, message=DEMO_MESSAGE, demo=True, status=status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "message": self.message,
            "demo": self.demo,
            "status": self.status.to_dict() if self.status else None,
        }


@dataclass(frozen=True)
class AdviceEntry:
    text: str
    irrigation_recommended: bool = False


@dataclass(frozen=True)
class Prediction:
    """Classifier output for one image; immutable once produced."""
    label: str
    source: str  # local, remote, random
    advice: AdviceEntry
    placeholder: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "source": self.source,
            "placeholder": self.placeholder,
            "advice": self.advice.text,
            "irrigationRecommended": self.advice.irrigation_recommended,
        }


@dataclass
class MetricCard:
    title: str
    value: str
    subtitle: str


@dataclass
class SensorNotification:
    id: str
    sensor_id: str
    type: str  # alert, warning, info
    message: str
    timestamp: datetime
    longitude: float
    latitude: float
    read: bool = False

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["timestamp"] = self.timestamp.isoformat()
        return d
