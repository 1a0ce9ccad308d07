"""Tests for the prompt refiner and the refine endpoint."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from promptea.core.refiner import REFINE_MODES, PromptRefiner
from promptea.errors import UpstreamError
from promptea.gateways.openai import ChatGateway
from tests.conftest import FakeChatGateway

BASE = "https://api.openai.com/v1"


class TestPromptRefiner:
    @pytest.mark.asyncio
    async def test_sends_mode_prompt_and_user_prompt(self):
        chat = FakeChatGateway(["You are a senior Python reviewer..."])
        refined = await PromptRefiner(chat).refine("review my code", "mastermind")

        assert refined == "You are a senior Python reviewer..."
        (call,) = chat.calls
        assert call["messages"] == [
            {"role": "system", "content": REFINE_MODES["mastermind"]},
            {"role": "user", "content": "User Prompt:\nreview my code"},
        ]
        assert call["model"] == "gpt-4o"
        assert call["temperature"] == 0.7
        assert call["max_tokens"] == 3000

    @pytest.mark.asyncio
    async def test_defaults_to_primer(self):
        chat = FakeChatGateway(["ok"])
        await PromptRefiner(chat).refine("summarise this")
        assert chat.calls[0]["messages"][0]["content"].startswith(
            "You are Promptea - Primer Mode."
        )

    def test_four_modes(self):
        assert list(REFINE_MODES) == ["primer", "mastermind", "amplifier", "json"]
        assert "Return ONLY valid JSON" in REFINE_MODES["json"]

    @pytest.mark.asyncio
    async def test_unknown_mode(self):
        chat = FakeChatGateway(["ok"])
        with pytest.raises(ValueError, match="Unknown refine mode: turbo"):
            await PromptRefiner(chat).refine("summarise this", "turbo")
        assert chat.calls == []

    @pytest.mark.asyncio
    async def test_blank_prompt(self):
        chat = FakeChatGateway(["ok"])
        with pytest.raises(ValueError, match="blank"):
            await PromptRefiner(chat).refine("   ")
        assert chat.calls == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_model_overrides_gateway_default(self):
        route = respx.post(f"{BASE}/chat/completions").mock(
            return_value=httpx.Response(
                200, json={"choices": [{"message": {"content": "Refined prompt"}}]}
            )
        )
        async with httpx.AsyncClient() as http:
            chat = ChatGateway("sk-test", http, model="gpt-4")
            refined = await PromptRefiner(chat, model="gpt-4o").refine("draft", "json")

        assert refined == "Refined prompt"
        body = json.loads(route.calls.last.request.content)
        assert body["model"] == "gpt-4o"
        assert body["temperature"] == 0.7
        assert body["max_tokens"] == 3000


class TestRefineAPI:
    def test_refine(self, client, chat):
        chat.replies.append("A clearer prompt.")
        resp = client.post("/api/refine", json={"prompt": "write a poem", "mode": "amplifier"})
        assert resp.status_code == 200
        assert resp.json() == {"refined": "A clearer prompt."}
        assert chat.calls[0]["messages"][0]["content"] == REFINE_MODES["amplifier"]

    def test_mode_defaults_to_primer(self, client, chat):
        chat.replies.append("ok")
        resp = client.post("/api/refine", json={"prompt": "write a poem"})
        assert resp.status_code == 200
        assert chat.calls[0]["messages"][0]["content"] == REFINE_MODES["primer"]

    def test_unknown_mode_is_422(self, client, chat):
        resp = client.post("/api/refine", json={"prompt": "write a poem", "mode": "turbo"})
        assert resp.status_code == 422
        assert chat.calls == []

    def test_blank_prompt_is_422(self, client, chat):
        resp = client.post("/api/refine", json={"prompt": "  "})
        assert resp.status_code == 422
        assert "blank" in resp.json()["error"]

    def test_upstream_failure(self, client, chat, app):
        from promptea.core.refiner import get_refiner

        class FailingChat(FakeChatGateway):
            async def complete(self, messages, **kwargs):
                raise UpstreamError("OpenAI API error: model overloaded", status_code=503)

        app.dependency_overrides[get_refiner] = lambda: PromptRefiner(FailingChat())
        resp = client.post("/api/refine", json={"prompt": "write a poem"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "OpenAI API error: model overloaded"}
