"""Pydantic models for the writing assistant."""

from __future__ import annotations

from pydantic import BaseModel


class AssistError(Exception):
    """Wraps Gemini API failures with the operation that triggered them."""

    def __init__(self, operation: str, cause: Exception, retryable: bool = False) -> None:
        self.operation = operation
        self.retryable = retryable
        super().__init__(f"gemini {operation} failed: {cause}")
        self.__cause__ = cause


class TokenUsage(BaseModel):
    prompt_tokens: int = 0
    output_tokens: int = 0


class AssistResponse(BaseModel):
    text: str
    usage: TokenUsage
    model: str
