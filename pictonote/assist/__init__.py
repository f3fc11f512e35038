"""AI writing assistant: journal prompts, reflections and weekly summaries."""

import os

from pictonote.assist.gemini import GeminiAssistant
from pictonote.assist.models import AssistError, AssistResponse, TokenUsage
from pictonote.config.models import AssistConfig


def create_assistant(config: AssistConfig) -> GeminiAssistant:
    """Build a GeminiAssistant, resolving the API key from ``config.api_key_env``."""
    api_key = os.environ.get(config.api_key_env)
    if not api_key:
        raise ValueError(
            f"Missing API key: set environment variable {config.api_key_env!r}"
        )
    return GeminiAssistant(config, api_key)


__all__ = [
    "AssistError",
    "AssistResponse",
    "GeminiAssistant",
    "TokenUsage",
    "create_assistant",
]
