"""Gemini REST adapter for the writing assistant."""

from __future__ import annotations

import logging

import httpx

from pictonote.assist.models import AssistError, AssistResponse, TokenUsage
from pictonote.assist.prompts import (
    EMPTY_ENTRY_MESSAGE,
    NO_ENTRIES_MESSAGE,
    REFLECTION_TEMPLATE,
    WEEKLY_SUMMARY_TEMPLATE,
    prompt_for_kind,
)
from pictonote.config.models import AssistConfig

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {429, 500, 503}


class GeminiAssistant:
    """Calls ``models/<model>:generateContent`` via httpx."""

    def __init__(
        self,
        config: AssistConfig,
        api_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._api_key = api_key
        self._base_url = config.base_url.rstrip("/")
        self._transport = transport

    async def generate(self, prompt: str, operation: str = "generate") -> AssistResponse:
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"maxOutputTokens": self.config.max_output_tokens},
        }
        url = f"{self._base_url}/models/{self.config.model}:generateContent"
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.post(
                    url,
                    params={"key": self._api_key},
                    json=payload,
                    timeout=self.config.timeout,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("%s: HTTP %d: %s", operation, e.response.status_code, e.response.text)
            raise AssistError(
                operation, e, retryable=e.response.status_code in _RETRYABLE_STATUS
            ) from e
        except httpx.HTTPError as e:
            raise AssistError(operation, e, retryable=True) from e

        text = _first_text(data)
        if not text:
            logger.debug("%s: full response %s", operation, data)
            raise AssistError(operation, ValueError("No text content in Gemini response"))
        usage = data.get("usageMetadata") or {}
        return AssistResponse(
            text=text.strip(),
            usage=TokenUsage(
                prompt_tokens=usage.get("promptTokenCount") or 0,
                output_tokens=usage.get("candidatesTokenCount") or 0,
            ),
            model=data.get("modelVersion") or self.config.model,
        )

    async def suggest_prompt(self, kind: str = "general") -> str:
        """A journal prompt of the given kind (reflective, creative, goal, gratitude)."""
        response = await self.generate(prompt_for_kind(kind), operation=f"prompt[{kind}]")
        return response.text

    async def reflect(self, entry_text: str) -> str:
        if not entry_text.strip():
            return EMPTY_ENTRY_MESSAGE
        response = await self.generate(
            REFLECTION_TEMPLATE.format(entry=entry_text), operation="reflection"
        )
        return response.text

    async def weekly_summary(self, entries_text: str) -> str:
        if not entries_text.strip():
            return NO_ENTRIES_MESSAGE
        response = await self.generate(
            WEEKLY_SUMMARY_TEMPLATE.format(entries=entries_text), operation="weekly_summary"
        )
        return response.text


def _first_text(data: dict) -> str | None:
    for candidate in data.get("candidates") or []:
        for part in (candidate.get("content") or {}).get("parts") or []:
            if part.get("text"):
                return part["text"]
    return None
