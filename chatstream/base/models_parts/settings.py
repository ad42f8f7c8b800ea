"""
Immutable request settings.

`Settings` is the value a session hands to the streaming client. A request
captures the instance it was started with, so edits made while a response is
streaming only affect the next request.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping

from ...config.defaults import (
    DEFAULT_BASE_URL,
    DEFAULT_EFFORT,
    DEFAULT_MODEL,
    DEFAULT_SYSTEM_PROMPT,
    EFFORT_SAMPLING_PARAMS,
    REASONING_MODELS,
)


class ChatModel(str, Enum):
    """Supported completion models."""

    GPT_5 = "gpt-5"
    GPT_5_MINI = "gpt-5-mini"
    GPT_4 = "gpt-4"
    GPT_4_TURBO = "gpt-4-turbo-preview"
    GPT_35_TURBO = "gpt-3.5-turbo"

    @property
    def supports_reasoning_effort(self) -> bool:
        return self.value in REASONING_MODELS

    @classmethod
    def parse(cls, value: "str | ChatModel") -> "ChatModel":
        """Return the member for ``value`` (case-insensitive) or raise ``ValueError``."""
        if isinstance(value, cls):
            return value
        needle = str(value).strip().lower()
        for member in cls:
            if member.value == needle:
                return member
        known = ", ".join(m.value for m in cls)
        raise ValueError(f"unknown model '{value}' (known: {known})")


class Effort(str, Enum):
    """Reasoning effort levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: "str | Effort") -> "Effort":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"unknown effort '{value}' (expected low, medium or high)") from None


@dataclass(frozen=True)
class Settings:
    """Per-request settings.

    Attributes:
        api_key: Opaque bearer token (hidden from ``repr``).
        model: Target model.
        effort: Reasoning effort; sent as ``reasoning_effort`` to reasoning
            models and as sampling parameters to older ones.
        base_url: API root; the client posts to ``<base_url>/chat/completions``.
        system_prompt: System message injected once per session.
    """

    api_key: str = field(default="", repr=False)
    model: ChatModel = ChatModel(DEFAULT_MODEL)
    effort: Effort = Effort(DEFAULT_EFFORT)
    base_url: str = DEFAULT_BASE_URL
    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    def __post_init__(self) -> None:
        object.__setattr__(self, "model", ChatModel.parse(self.model))
        object.__setattr__(self, "effort", Effort.parse(self.effort))

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "Settings":
        """Build settings from a ``get_chat_config`` mapping."""
        return cls(
            api_key=str(cfg.get("api_key") or ""),
            model=cfg.get("model") or DEFAULT_MODEL,
            effort=cfg.get("effort") or DEFAULT_EFFORT,
            base_url=str(cfg.get("base_url") or DEFAULT_BASE_URL),
            system_prompt=str(cfg.get("system_prompt") or ""),
        )

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def with_changes(self, **changes: Any) -> "Settings":
        """Return a copy with ``changes`` applied (validated)."""
        return replace(self, **changes)

    def effort_params(self) -> Dict[str, Any]:
        """Return the request fields that express the effort level."""
        if self.model.supports_reasoning_effort:
            return {"reasoning_effort": self.effort.value}
        return dict(EFFORT_SAMPLING_PARAMS[self.effort.value])


__all__ = ["ChatModel", "Effort", "Settings"]
