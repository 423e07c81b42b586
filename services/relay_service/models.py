"""Request and envelope models for the relay and its upstream API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, StrictStr, field_validator


class IncomingRequest(BaseModel):
    question: StrictStr

    @field_validator("question")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("question is empty")
        return value


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class UpstreamRequest(BaseModel):
    model: str
    messages: list[ChatMessage]
    temperature: float = Field(default=0.5, ge=0.0, le=2.0)
    top_p: float = Field(default=1.0, ge=0.0, le=1.0)
    max_tokens: int = Field(default=1024, ge=1)


class ChoiceMessage(BaseModel):
    content: StrictStr


class Choice(BaseModel):
    message: ChoiceMessage


class UpstreamEnvelope(BaseModel):
    # Only choices[0] is validated as a Choice; the rest are never read.
    choices: list[Any] = Field(min_length=1)


class AnswerResponse(BaseModel):
    answer: str


class ErrorResponse(BaseModel):
    error: str
