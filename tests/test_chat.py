"""Gemini chat client."""
import asyncio
import json

import httpx

from plant_monitor.chat import (
    ERROR_REPLY, IMAGE_PREFIX, SYSTEM_PROMPT, PlantChatBot, format_user_message,
)


def gemini_transport(sent: list, status: int = 200, text: str = "Water at the base.") -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        if status != 200:
            return httpx.Response(status, json={"error": {"message": "quota"}})
        return httpx.Response(200, json={
            "candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]
        })
    return httpx.MockTransport(handler)


HISTORY = [
    {"role": "assistant", "content": "Hello!"},
    {"role": "user", "content": "How often should I water tomatoes?"},
]


class TestChat:
    def test_success(self):
        sent = []
        bot = PlantChatBot(api_key="k", transport=gemini_transport(sent))
        result = asyncio.run(bot.chat_async(HISTORY))

        assert result["success"]
        assert result["response"] == "Water at the base."
        request = sent[0]
        assert request.url.path.endswith("/models/gemini-2.0-flash:generateContent")
        assert request.url.params["key"] == "k"

    def test_system_prompt_first_and_roles_mapped(self):
        sent = []
        bot = PlantChatBot(api_key="k", transport=gemini_transport(sent))
        asyncio.run(bot.chat_async(HISTORY))

        contents = json.loads(sent[0].content)["contents"]
        assert contents[0] == {"role": "user", "parts": [{"text": SYSTEM_PROMPT}]}
        assert [c["role"] for c in contents[1:]] == ["model", "user"]
        assert contents[2]["parts"][0]["text"] == "How often should I water tomatoes?"

    def test_http_error(self):
        sent = []
        bot = PlantChatBot(api_key="k", transport=gemini_transport(sent, status=429))
        result = asyncio.run(bot.chat_async(HISTORY))
        assert not result["success"]
        assert result["response"] == ERROR_REPLY
        assert "429" in result["error"]

    def test_missing_key_makes_no_request(self):
        sent = []
        bot = PlantChatBot(api_key="", transport=gemini_transport(sent))
        bot.api_key = ""
        result = asyncio.run(bot.chat_async(HISTORY))
        assert not result["success"]
        assert sent == []


class TestFormatting:
    def test_image_prefix(self):
        assert format_user_message("spots?", has_image=True) == f"{IMAGE_PREFIX}spots?"
        assert format_user_message("spots?") == "spots?"
