"""Pydantic schema models for chat-completions request and response payloads."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatCompletionRequest(BaseModel):
    """Wire body posted to the chat-completions endpoint."""

    model: str
    messages: list[ChatMessage]
    max_tokens: int
    temperature: float
    n: int
    top_p: float
    stop: list[str] | None


class ChoiceMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: str


class Choice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: ChoiceMessage


class ChatCompletionResponse(BaseModel):
    """Subset of the provider response read by the client.

    A missing or null `choices` field means the provider returned no completions.
    """

    model_config = ConfigDict(extra="ignore")

    choices: list[Choice] | None = None

    def contents(self) -> list[str]:
        """Return message content of every choice in provider order."""

        return [choice.message.content for choice in self.choices or []]
