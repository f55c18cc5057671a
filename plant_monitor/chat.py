"""
Gemini chat assistant for plant care questions.

Usage:
    from plant_monitor.chat import PlantChatBot
    bot = PlantChatBot(api_key="your_key")
    result = await bot.chat_async([{"role": "user", "content": "Why are my leaves yellow?"}])
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from .config import CHAT, ChatConfig

log = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant specialized in plant monitoring and care. "
    "Provide accurate advice about plant health, watering schedules, pest control, "
    "nutrient deficiencies, and general plant care. Be concise but thorough in your responses. "
    "If a user shares a plant image, acknowledge that you've seen it and provide relevant advice "
    "based on what might be visible in such an image."
)

GREETING = "Hello! I'm your plant monitoring assistant. How can I help with your plants today?"
ERROR_REPLY = "Sorry, I encountered an error. Please try again later."
IMAGE_PREFIX = "[Image of plant uploaded] "

QUICK_PROMPTS = [
    "My plant leaves are turning yellow",
    "Best watering schedule for tomatoes",
    "How to test soil pH",
    "Optimal lighting for indoor plants",
]

# Gemini only knows "user" and "model"
ROLE_MAP = {"user": "user", "assistant": "model", "model": "model"}


def format_user_message(text: str, has_image: bool = False) -> str:
    return f"{IMAGE_PREFIX}{text}" if has_image else text


class PlantChatBot:
    """Stateless Gemini client; the caller owns the conversation history."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[ChatConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or CHAT
        self.api_key = api_key or self.config.api_key
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self.config.base_url}/models/{self.config.model}:generateContent"

    def _build_contents(self, messages: List[Dict[str, str]]) -> List[Dict]:
        """System instruction first, then the conversation in order."""
        contents = [{"role": "user", "parts": [{"text": SYSTEM_PROMPT}]}]
        for msg in messages:
            contents.append({
                "role": ROLE_MAP.get(msg.get("role", "user"), "user"),
                "parts": [{"text": msg.get("content", "")}],
            })
        return contents

    def _failure(self, error: str) -> Dict[str, Any]:
        return {"success": False, "error": error, "response": ERROR_REPLY}

    async def chat_async(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        """Send the conversation and return the model's reply."""
        if not self.api_key:
            return self._failure("Gemini API key not configured. Set GEMINI_API_KEY environment variable.")

        payload = {"contents": self._build_contents(messages)}

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout_s, transport=self._transport) as client:
                response = await client.post(
                    self.url,
                    params={"key": self.api_key},
                    headers={"Content-Type": "application/json"},
                    json=payload,
                )
                response.raise_for_status()
                data = response.json()

            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(p.get("text", "") for p in parts)

            return {"success": True, "response": text, "error": None}

        except httpx.HTTPStatusError as e:
            log.error(f"Gemini API error: {e.response.status_code} - {e.response.text}")
            return self._failure(f"API error: {e.response.status_code}")
        except (httpx.HTTPError, KeyError, IndexError, ValueError) as e:
            log.error(f"Gemini chat error: {e}")
            return self._failure(str(e))
