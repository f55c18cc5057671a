"""
Weather data module - Fetches Open-Meteo hourly forecasts.
Includes synthetic weather generator for when the API is unreachable.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, Optional

import numpy as np
import pandas as pd
import requests

from .config import WEATHER

log = logging.getLogger(__name__)

COLUMNS = ["temperature", "humidity", "wind_speed"]


def _value(series: list, i: int) -> int:
    v = series[i] if i < len(series) else None
    return int(round(v)) if v is not None else 0


def fetch_forecast(
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    start_date: Optional[date] = None,
    hours: Optional[int] = None,
) -> pd.DataFrame:
    """
    Fetch the hourly forecast from Open-Meteo.

    Args:
        lat: Latitude (defaults to the configured site)
        lon: Longitude
        start_date: First forecast day (defaults to today); the request covers
                    start_date and the following day
        hours: Number of hourly rows to keep

    Returns:
        DataFrame indexed by time with columns: temperature, humidity, wind_speed
        (rounded to integers). Falls back to a synthetic forecast on error.
    """
    lat = WEATHER.latitude if lat is None else lat
    lon = WEATHER.longitude if lon is None else lon
    start_date = start_date or date.today()
    hours = hours or WEATHER.hours

    params = {
        "latitude": lat,
        "longitude": lon,
        "hourly": "temperature_2m,relative_humidity_2m,wind_speed_10m",
        "start_date": start_date.isoformat(),
        "end_date": (start_date + timedelta(days=1)).isoformat(),
        "timezone": "auto",
    }

    try:
        response = requests.get(WEATHER.url, params=params, timeout=WEATHER.timeout_s)
        response.raise_for_status()
        hourly = response.json()["hourly"]

        rows = []
        for i, t in enumerate(hourly["time"]):
            rows.append({
                "time": pd.Timestamp(t),
                "temperature": _value(hourly.get("temperature_2m", []), i),
                "humidity": _value(hourly.get("relative_humidity_2m", []), i),
                "wind_speed": _value(hourly.get("wind_speed_10m", []), i),
            })

        df = pd.DataFrame(rows, columns=["time"] + COLUMNS).set_index("time")
        return df.head(hours)

    except (requests.exceptions.RequestException, KeyError, TypeError, ValueError) as e:
        log.warning(f"Open-Meteo API error: {e}. Generating synthetic forecast.")
        return generate_synthetic_forecast(lat, start_date, hours)


def generate_synthetic_forecast(lat: float, start_date: Optional[date] = None, hours: int = 24) -> pd.DataFrame:
    """Generate synthetic hourly forecast for offline use."""
    rng = np.random.default_rng(int(abs(lat) * 100) % 1000)

    start = datetime.combine(start_date or date.today(), datetime.min.time())
    times = [start + timedelta(hours=i) for i in range(hours)]
    base_temp = 25 - abs(lat) * 0.2

    data = []
    for ts in times:
        temp = base_temp + 6 * np.sin(2 * np.pi * (ts.hour - 9) / 24) + rng.normal(0, 1.0)
        humidity = np.clip(65 - (temp - base_temp) * 2 + rng.normal(0, 4), 20, 100)
        wind_speed = abs(rng.normal(12, 4))
        data.append({
            "time": pd.Timestamp(ts),
            "temperature": int(round(temp)),
            "humidity": int(round(humidity)),
            "wind_speed": int(round(wind_speed)),
        })

    return pd.DataFrame(data).set_index("time")


def get_forecast_summary(weather_df: pd.DataFrame) -> Dict[str, float]:
    """Summary statistics for the forecast window."""
    if weather_df.empty:
        return {}
    return {
        "avg_temp_c": float(weather_df["temperature"].mean()),
        "max_temp_c": float(weather_df["temperature"].max()),
        "min_temp_c": float(weather_df["temperature"].min()),
        "avg_humidity_pct": float(weather_df["humidity"].mean()),
        "avg_wind_speed_kmh": float(weather_df["wind_speed"].mean()),
    }


def forecast_records(weather_df: pd.DataFrame) -> list:
    """Rows as dicts with a 12-hour clock label, e.g. '03:00 PM'."""
    return [
        {
            "time": ts.strftime("%I:%M %p"),
            "temperature": int(row["temperature"]),
            "humidity": int(row["humidity"]),
            "windSpeed": int(row["wind_speed"]),
        }
        for ts, row in weather_df.iterrows()
    ]
