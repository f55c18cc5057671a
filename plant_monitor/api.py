"""FastAPI service exposing the plant monitor dashboard."""
import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__
from .chat import GREETING, QUICK_PROMPTS, PlantChatBot
from .config import API, SENSORS
from .controller import AnalysisPending, DashboardController
from .schema import utc_now
from .simulator import (
    average_moisture, default_range, filter_history,
    generate_notifications, generate_soil_moisture_history,
)
from .weather import fetch_forecast, forecast_records, get_forecast_summary

logging.basicConfig(level=logging.INFO)
log = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# MODELS
# ─────────────────────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    version: str
    mode: str
    timestamp: str


class AnalyzeRequest(BaseModel):
    image: Optional[str] = Field(None, description="Data URL or base64 image; defaults to the selected image")
    index: Optional[int] = Field(None, ge=0, description="Position in the recent image list")


class ChatMessage(BaseModel):
    role: str = Field(..., description="user or assistant")
    content: str


class ChatRequest(BaseModel):
    messages: Optional[List[ChatMessage]] = None


# ─────────────────────────────────────────────────────────────────────────────
# APPLICATION
# ─────────────────────────────────────────────────────────────────────────────

def create_app(
    controller: Optional[DashboardController] = None,
    chatbot: Optional[PlantChatBot] = None,
) -> FastAPI:
    dashboard = controller or DashboardController()
    bot = chatbot or PlantChatBot()
    history = generate_soil_moisture_history()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await dashboard.start()
        yield
        await dashboard.stop()

    app = FastAPI(
        title="Plant Monitor API",
        description="Sensor telemetry, plant disease detection and irrigation control",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.state.dashboard = dashboard

    @app.get("/", response_model=HealthResponse)
    async def health():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "mode": "live" if dashboard.monitor.is_live else "demo",
            "timestamp": utc_now().isoformat(),
        }

    @app.get("/api/v1/status")
    async def status():
        return dashboard.snapshot()

    @app.post("/api/v1/reconnect")
    async def reconnect():
        ok = await dashboard.reconnect()
        return {"connected": ok, "connection": dashboard.monitor.state.to_dict()}

    @app.get("/api/v1/metrics")
    async def metrics(refresh: bool = False):
        if refresh or dashboard.reading is None:
            await dashboard.refresh_metrics()
        snap = dashboard.snapshot()
        return {k: snap[k] for k in ("connection", "metrics", "reading", "last_updated", "status_message")}

    @app.get("/api/v1/sensors")
    async def sensors():
        return {"sensors": SENSORS, "selected": dashboard.selected_sensor}

    @app.post("/api/v1/sensors/{sensor_id}/select")
    async def select_sensor(sensor_id: int):
        try:
            dashboard.select_sensor(sensor_id)
        except ValueError as e:
            raise HTTPException(404, str(e))
        return {"selected": sensor_id}

    @app.post("/api/v1/images/capture")
    async def capture_image():
        try:
            image = await dashboard.capture_image()
        except ValueError as e:
            raise HTTPException(400, str(e))
        return {"image": image, "count": len(dashboard.images), "demo": not dashboard.monitor.is_live}

    @app.get("/api/v1/images")
    async def list_images():
        return {"images": list(dashboard.images), "selected": dashboard.selected_image}

    @app.post("/api/v1/analyze")
    async def analyze(request: AnalyzeRequest):
        try:
            if request.index is not None:
                dashboard.select_image(request.index)
            prediction = await dashboard.analyze(request.image)
        except AnalysisPending as e:
            raise HTTPException(409, str(e))
        except ValueError as e:
            raise HTTPException(400, str(e))
        return prediction.to_dict()

    @app.get("/api/v1/motor")
    async def motor_status():
        return (await dashboard.motor.get_status()).to_dict()

    @app.post("/api/v1/motor/{action}")
    async def motor_control(action: str):
        if action not in ("on", "off"):
            raise HTTPException(404, f"Unknown motor action '{action}'")
        return (await dashboard.set_motor(action == "on")).to_dict()

    @app.get("/api/v1/weather")
    def weather(
        lat: Optional[float] = Query(None, ge=-90, le=90),
        lon: Optional[float] = Query(None, ge=-180, le=180),
    ):
        """24-hour hourly outlook."""
        df = fetch_forecast(lat, lon)
        return {"forecast": forecast_records(df), "summary": get_forecast_summary(df)}

    @app.get("/api/v1/soil-moisture")
    async def soil_moisture(start: Optional[date] = None, end: Optional[date] = None):
        default_start, default_end = default_range()
        start = start or default_start
        end = end or default_end
        if start > end:
            raise HTTPException(400, "start must not be after end")
        df = filter_history(history, start, end)
        return {"data": df.to_dict(orient="records"), "average": average_moisture(df)}

    @app.get("/api/v1/notifications")
    async def notifications(count: int = Query(10, ge=0, le=100)):
        return {"notifications": [n.to_dict() for n in generate_notifications(count)]}

    @app.get("/api/chat")
    async def chat_info():
        return {"greeting": GREETING, "quick_prompts": QUICK_PROMPTS}

    @app.post("/api/chat")
    async def chat(request: ChatRequest):
        if not request.messages:
            raise HTTPException(400, "Messages are required and must be an array")
        result = await bot.chat_async([m.model_dump() for m in request.messages])
        if not result["success"]:
            return JSONResponse({"error": "Failed to process your request", "message": result["response"]},
                                status_code=500)
        return {"message": result["response"]}

    return app


app = create_app()


# ─────────────────────────────────────────────────────────────────────────────
# RUN SERVER
# ─────────────────────────────────────────────────────────────────────────────

def run_server(host: Optional[str] = None, port: Optional[int] = None):
    """Run the API server."""
    import uvicorn
    uvicorn.run(
        "plant_monitor.api:app",
        host=host or API.host,
        port=port or API.port,
        workers=API.workers,
    )


if __name__ == "__main__":
    run_server()
