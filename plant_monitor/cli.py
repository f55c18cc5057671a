"""CLI for the plant monitor."""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from . import weather
from .bridge import BridgeClient
from .chat import PlantChatBot, format_user_message
from .config import BridgeConfig
from .controller import DashboardController
from .inference import InferenceError, decode_image, encode_image


def _print_connection(dashboard: DashboardController) -> None:
    state = dashboard.monitor.state
    label = "LIVE" if state.connected else "DEMO"
    print(f"Bridge: {dashboard.monitor.client.base_url} | Mode: {label}")
    if state.last_error:
        print(f"Last error: {state.last_error}")


async def _status(dashboard: DashboardController, args) -> int:
    await dashboard.monitor.probe()
    _print_connection(dashboard)
    return 0


async def _metrics(dashboard: DashboardController, args) -> int:
    await dashboard.monitor.probe()
    reading = await dashboard.refresh_metrics()
    _print_connection(dashboard)
    for card in dashboard.metrics:
        print(f"{card.title:<14} {card.value:>10}  ({card.subtitle})")
    print(f"Source: {reading.source} | {reading.timestamp.isoformat(timespec='seconds')}")
    return 0


async def _predict(dashboard: DashboardController, args) -> int:
    path = Path(args.image).expanduser().resolve()
    if not path.exists():
        print(f"File not found: {path}", file=sys.stderr)
        return 1
    dashboard.inference.load()
    await dashboard.monitor.probe()
    try:
        image = encode_image(decode_image(path.read_bytes()))
    except InferenceError as e:
        print(f"Cannot read image: {e}", file=sys.stderr)
        return 1
    prediction = await dashboard.inference.predict(image)
    print(f"Prediction: {prediction.label} (via {prediction.source})")
    if prediction.placeholder:
        print("Warning: no classifier available; this result is a placeholder.")
    print(f"Advice: {prediction.advice.text}")
    if prediction.advice.irrigation_recommended:
        print("Irrigation recommended.")
    return 0


async def _motor(dashboard: DashboardController, args) -> int:
    await dashboard.monitor.probe()
    if args.action == "status":
        result = await dashboard.motor.get_status()
    else:
        result = await dashboard.set_motor(args.action == "on")
    _print_connection(dashboard)
    print(result.message)
    if result.status:
        print(f"Motor: {result.status.motor_status} | Soil: {result.status.soil_status}")
    return 0


async def _chat(dashboard: DashboardController, args) -> int:
    bot = PlantChatBot()
    content = format_user_message(args.message, has_image=args.with_image)
    result = await bot.chat_async([{"role": "user", "content": content}])
    print(result["response"])
    return 0


COMMANDS = {
    "status": _status,
    "metrics": _metrics,
    "predict": _predict,
    "motor": _motor,
    "chat": _chat,
}


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Plant Monitor")
    p.add_argument("--bridge", help="Bridge base URL (overrides PLANT_BRIDGE_URL)")
    p.add_argument("--verbose", "-v", action="store_true")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Probe the bridge")
    sub.add_parser("metrics", help="Read soil/air telemetry")

    pp = sub.add_parser("predict", help="Classify a leaf image")
    pp.add_argument("image", help="Image file path")

    mp = sub.add_parser("motor", help="Irrigation motor")
    mp.add_argument("action", choices=["on", "off", "status"])

    wp = sub.add_parser("weather", help="24h weather outlook")
    wp.add_argument("--lat", type=float)
    wp.add_argument("--lon", type=float)

    cp = sub.add_parser("chat", help="Ask the plant care assistant")
    cp.add_argument("message")
    cp.add_argument("--with-image", action="store_true")

    sp = sub.add_parser("serve", help="Run the HTTP API")
    sp.add_argument("--host")
    sp.add_argument("--port", type=int)

    args = p.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    if args.command == "serve":
        from .api import run_server
        run_server(args.host, args.port)
        return 0

    if args.command == "weather":
        df = weather.fetch_forecast(args.lat, args.lon)
        for row in weather.forecast_records(df):
            print(f"{row['time']}  {row['temperature']:>3}°C  {row['humidity']:>3}%  {row['windSpeed']:>3} km/h")
        return 0

    client = BridgeClient(BridgeConfig(base_url=args.bridge)) if args.bridge else None
    dashboard = DashboardController(client)
    return asyncio.run(COMMANDS[args.command](dashboard, args))


if __name__ == "__main__":
    sys.exit(main())
