"""Data schemas exchanged with external services."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict


Role = Literal["user", "assistant"]


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True, frozen=True)
class ChatMessage:
    """Conversation message."""

    role: Role
    content: str
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_now)


@dataclass(slots=True)
class ChatRequestOptions:
    """Fixed sampling parameters sent with every chat completion."""

    model: str
    system_prompt: str
    temperature: float = 0.2
    top_p: float = 0.9
    max_tokens: int = 1000
    frequency_penalty: float = 1
    presence_penalty: float = 0

    def to_payload(self, user_content: str) -> dict[str, Any]:
        """Build the request body: system instruction plus the newest user turn only."""
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": user_content},
            ],
            "temperature": self.temperature,
            "top_p": self.top_p,
            "max_tokens": self.max_tokens,
            "return_images": False,
            "return_related_questions": False,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
        }


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore")


class CompletionMessage(_Lenient):
    role: Optional[str] = None
    content: Optional[str] = None


class CompletionChoice(_Lenient):
    index: Optional[int] = None
    message: Optional[CompletionMessage] = None


class ChatCompletionResponse(_Lenient):
    """Subset of the chat completion response the assistant relies on."""

    id: Optional[str] = None
    model: Optional[str] = None
    choices: list[CompletionChoice] = []

    @property
    def content(self) -> Optional[str]:
        """Assistant text at ``choices[0].message.content`` when present."""
        if not self.choices:
            return None
        message = self.choices[0].message
        if message is None or not message.content:
            return None
        return message.content


class ImageUrls(_Lenient):
    full: str
    regular: Optional[str] = None


class BackgroundImageResponse(_Lenient):
    """Random photo payload; only the full-size URL is used."""

    id: Optional[str] = None
    urls: ImageUrls


@dataclass(slots=True)
class TranscriptEvent:
    """Single best transcript delivered by a speech recognizer."""

    text: str
    final: bool = True
    confidence: Optional[float] = None
