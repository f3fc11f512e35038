"""Tests for the Gemini writing assistant."""

import json
import os
from unittest.mock import patch

import httpx
import pytest

from pictonote.assist import AssistError, GeminiAssistant, create_assistant
from pictonote.assist.prompts import (
    EMPTY_ENTRY_MESSAGE,
    GENERAL_PROMPT,
    NO_ENTRIES_MESSAGE,
    PROMPT_KINDS,
    prompt_for_kind,
)
from pictonote.config.models import AssistConfig


def _gemini_body(text, prompt_tokens=7, output_tokens=11):
    return {
        "candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}],
        "usageMetadata": {"promptTokenCount": prompt_tokens, "candidatesTokenCount": output_tokens},
        "modelVersion": "gemini-1.5-flash-002",
    }


def _assistant(handler, **config):
    return GeminiAssistant(AssistConfig(**config), "test-key", transport=httpx.MockTransport(handler))


class TestPrompts:
    def test_known_kinds(self):
        for kind, prompt in PROMPT_KINDS.items():
            assert prompt_for_kind(kind) == prompt

    def test_kind_is_case_insensitive(self):
        assert prompt_for_kind("Gratitude") == PROMPT_KINDS["gratitude"]

    def test_unknown_kind_falls_back_to_general(self):
        assert prompt_for_kind("whatever") == GENERAL_PROMPT


class TestGenerate:
    @pytest.mark.asyncio
    async def test_posts_generate_content(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_gemini_body("  A prompt.  "))

        assistant = _assistant(handler, max_output_tokens=64)

        response = await assistant.generate("Say something")

        assert seen["url"].path == "/v1beta/models/gemini-1.5-flash:generateContent"
        assert seen["url"].params["key"] == "test-key"
        assert seen["body"]["contents"] == [{"parts": [{"text": "Say something"}]}]
        assert seen["body"]["generationConfig"] == {"maxOutputTokens": 64}
        assert response.text == "A prompt."
        assert response.usage.prompt_tokens == 7
        assert response.usage.output_tokens == 11
        assert response.model == "gemini-1.5-flash-002"

    @pytest.mark.asyncio
    async def test_rate_limit_is_retryable(self):
        assistant = _assistant(lambda r: httpx.Response(429, json={"error": "slow down"}))

        with pytest.raises(AssistError) as exc_info:
            await assistant.generate("x")

        assert exc_info.value.retryable
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_bad_request_not_retryable(self):
        assistant = _assistant(lambda r: httpx.Response(400, json={"error": "bad"}))

        with pytest.raises(AssistError) as exc_info:
            await assistant.generate("x")

        assert not exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_network_error_is_retryable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(AssistError) as exc_info:
            await _assistant(handler).generate("x")

        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_empty_candidates_raise(self):
        assistant = _assistant(lambda r: httpx.Response(200, json={"candidates": []}))

        with pytest.raises(AssistError, match="No text content"):
            await assistant.generate("x")


class TestOperations:
    @pytest.mark.asyncio
    async def test_suggest_prompt_uses_kind_template(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content)["contents"][0]["parts"][0]["text"])
            return httpx.Response(200, json=_gemini_body("Write about a door."))

        text = await _assistant(handler).suggest_prompt("creative")

        assert text == "Write about a door."
        assert seen == [PROMPT_KINDS["creative"]]

    @pytest.mark.asyncio
    async def test_reflect_embeds_entry(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content)["contents"][0]["parts"][0]["text"])
            return httpx.Response(200, json=_gemini_body("You sound calm."))

        text = await _assistant(handler).reflect("Walked by the sea.")

        assert text == "You sound calm."
        assert "Walked by the sea." in seen[0]

    @pytest.mark.asyncio
    async def test_reflect_blank_entry_skips_call(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert await _assistant(handler).reflect("   ") == EMPTY_ENTRY_MESSAGE

    @pytest.mark.asyncio
    async def test_weekly_summary_blank_skips_call(self):
        def handler(request):
            raise AssertionError("no request expected")

        assert await _assistant(handler).weekly_summary("") == NO_ENTRIES_MESSAGE

    @pytest.mark.asyncio
    async def test_weekly_summary_embeds_entries(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content)["contents"][0]["parts"][0]["text"])
            return httpx.Response(200, json=_gemini_body("A busy week."))

        entries = "--- Entry from 2025-06-01 ---\nHi"
        assert await _assistant(handler).weekly_summary(entries) == "A busy week."
        assert entries in seen[0]


class TestCreateAssistant:
    @patch.dict(os.environ, {"GEMINI_API_KEY": "gem-key"}, clear=True)
    def test_reads_key_from_env(self):
        assistant = create_assistant(AssistConfig())
        assert isinstance(assistant, GeminiAssistant)

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_key_raises(self):
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            create_assistant(AssistConfig())

    @patch.dict(os.environ, {"MY_KEY": "k"}, clear=True)
    def test_custom_env_var(self):
        assert isinstance(create_assistant(AssistConfig(api_key_env="MY_KEY")), GeminiAssistant)
