"""
Device bridge client.

Thin async wrapper over the bridge's HTTP contract:

    POST /capture        -> {soil_moisture, temperature, humidity}
    GET  /motor/status   -> {motor_on, soil_dry, soil_status, motor_status}
    POST /motor/on|off   -> {message}
    GET  /image          -> {image}
    POST /predict        -> {prediction}

Every failure (transport error, timeout, non-2xx, undecodable body) is raised
as BridgeError; callers decide how to fall back.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from .config import BRIDGE, BridgeConfig

log = logging.getLogger(__name__)


class BridgeError(Exception):
    """Bridge unreachable or returned an unusable response."""


class BridgeClient:
    """HTTP client for the sensor/actuator bridge."""

    def __init__(
        self,
        config: Optional[BridgeConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or BRIDGE
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self.config.base_url.rstrip("/")

    async def request(
        self,
        method: str,
        path: str,
        timeout: float,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Issue one request and return the decoded JSON body."""
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=timeout,
                headers=self.config.headers,
                transport=self._transport,
            ) as client:
                response = await client.request(method, url, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise BridgeError(f"{method} {path} timed out after {timeout:.0f}s") from e
        except httpx.HTTPStatusError as e:
            raise BridgeError(f"{method} {path} returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise BridgeError(f"{method} {path} failed: {e}") from e
        except ValueError as e:
            raise BridgeError(f"{method} {path} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise BridgeError(f"{method} {path} returned {type(data).__name__}, expected an object")
        return data

    async def ping(self) -> None:
        """Lightweight reachability check; raises BridgeError on failure."""
        await self.request("GET", self.config.probe_path, self.config.probe_timeout_s)

    async def capture(self) -> Dict[str, Any]:
        data = await self.request("POST", "/capture", self.config.data_timeout_s)
        for key in ("soil_moisture", "temperature", "humidity"):
            value = data.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise BridgeError(f"/capture field '{key}' is not numeric: {value!r}")
        return data

    async def motor_status(self) -> Dict[str, Any]:
        return await self.request("GET", "/motor/status", self.config.data_timeout_s)

    async def motor(self, action: str) -> Dict[str, Any]:
        if action not in ("on", "off"):
            raise ValueError(f"Unknown motor action: {action}")
        return await self.request("POST", f"/motor/{action}", self.config.command_timeout_s)

    async def image(self) -> str:
        """Fetch the latest camera frame as a data URL."""
        data = await self.request("GET", "/image", self.config.data_timeout_s)
        image = data.get("image")
        if not isinstance(image, str) or not image:
            raise BridgeError("/image response missing 'image'")
        if image.startswith("data:"):
            return image
        return f"data:image/jpeg;base64,{image}"

    async def predict(self, image_b64: str) -> str:
        data = await self.request(
            "POST", "/predict", self.config.command_timeout_s, payload={"image": image_b64}
        )
        label = data.get("prediction") or data.get("class")
        if not isinstance(label, str):
            raise BridgeError("/predict response missing 'prediction'")
        return label
