"""Project configuration: bridge endpoints, timers, model, and service settings."""
import os
from pathlib import Path
from dataclasses import dataclass, field

# ─────────────────────────────────────────────────────────────────────────────
# PATHS
# ─────────────────────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).parent.parent
MODELS_DIR = BASE_DIR / "models"

# ─────────────────────────────────────────────────────────────────────────────
# PLANT CLASSES
# ─────────────────────────────────────────────────────────────────────────────
# Output order of the classifier; index i of the model output is CLASSES[i]
CLASSES = [
    "Tomato_Bacterial_spot",
    "Tomato_Early_blight",
    "Tomato_Late_blight",
    "Tomato_Leaf_Mold",
    "Tomato_Septoria_leaf_spot",
    "Tomato__Target_Spot",
    "Tomato__Tomato_YellowLeaf__Curl_Virus",
    "Tomato_Spider_mites_Two_spotted_spider_mite",
    "Tomato__Tomato_mosaic_virus",
    "Tomato_healthy",
]

HEALTHY_CLASS = "Tomato_healthy"

SENSORS = [
    {"id": 1, "name": "Greenhouse Sensor 1", "location": "Section A"},
    {"id": 2, "name": "Greenhouse Sensor 2", "location": "Section B"},
    {"id": 3, "name": "Outdoor Sensor 1", "location": "Field 1"},
    {"id": 4, "name": "Outdoor Sensor 2", "location": "Field 2"},
]

# ─────────────────────────────────────────────────────────────────────────────
# DEVICE BRIDGE
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class BridgeConfig:
    base_url: str = os.getenv("PLANT_BRIDGE_URL", "https://monitor-plant.loca.lt")
    probe_path: str = "/motor/status"
    probe_timeout_s: float = 5.0
    data_timeout_s: float = 10.0
    command_timeout_s: float = 15.0
    # The tunnel in front of the bridge serves a reminder page without this header
    headers: dict = field(default_factory=lambda: {
        "Content-Type": "application/json",
        "bypass-tunnel-reminder": "true",
    })

BRIDGE = BridgeConfig()

# ─────────────────────────────────────────────────────────────────────────────
# TIMERS
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class TimerConfig:
    telemetry_interval_s: float = 10.0
    reconnect_interval_s: float = 30.0
    motor_status_interval_s: float = 30.0
    image_history: int = 3

TIMERS = TimerConfig()

# ─────────────────────────────────────────────────────────────────────────────
# MODEL CONFIG
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class ModelConfig:
    path: str = os.getenv("PLANT_MODEL_PATH", str(MODELS_DIR / "plant_disease.onnx"))
    input_size: tuple = (224, 224)  # (H, W)

MODEL = ModelConfig()

# ─────────────────────────────────────────────────────────────────────────────
# SIMULATOR
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class SimulatorConfig:
    soil_moisture_range: tuple = (200.0, 800.0)
    temperature_range: tuple = (15.0, 35.0)
    humidity_range: tuple = (30.0, 90.0)
    # Sinusoid period in seconds per field
    soil_moisture_period_s: float = 600.0
    temperature_period_s: float = 900.0
    humidity_period_s: float = 720.0
    soil_moisture_jitter: float = 25.0
    temperature_jitter: float = 0.8
    humidity_jitter: float = 2.5

SIMULATOR = SimulatorConfig()

# ─────────────────────────────────────────────────────────────────────────────
# WEATHER
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class WeatherConfig:
    url: str = "https://api.open-meteo.com/v1/forecast"
    latitude: float = 36.8914
    longitude: float = 10.1849
    hours: int = 24
    timeout_s: float = 10.0

WEATHER = WeatherConfig()

# ─────────────────────────────────────────────────────────────────────────────
# CHAT ASSISTANT
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class ChatConfig:
    api_key: str = os.getenv("GEMINI_API_KEY") or os.getenv("NEXT_GEMINI_API_KEY", "")
    model: str = "gemini-2.0-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_s: float = 30.0

CHAT = ChatConfig()

# ─────────────────────────────────────────────────────────────────────────────
# API CONFIG
# ─────────────────────────────────────────────────────────────────────────────
@dataclass
class APIConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1  # controller state lives in-process

API = APIConfig()
