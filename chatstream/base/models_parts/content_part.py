"""
Structured content part model for user messages.

A message with attached images is sent as an ordered list of parts: one text
part followed by image parts. ``ContentPart`` captures that shape in a
transport-neutral way; ``to_wire`` produces the chat-completions form.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal

ContentPartKind = Literal["text", "image"]


@dataclass(frozen=True)
class ContentPart:
    """A single piece of structured message content.

    Attributes:
        kind: ``"text"`` or ``"image"``.
        value: The text, or the image URL (``https://`` or ``data:`` URL).
    """

    kind: ContentPartKind
    value: str

    @classmethod
    def text(cls, value: str) -> "ContentPart":
        return cls(kind="text", value=value)

    @classmethod
    def image(cls, url: str) -> "ContentPart":
        return cls(kind="image", value=url)

    def to_dict(self) -> Dict[str, Any]:
        """Return the storage form ``{"kind": ..., "value": ...}``."""
        return {"kind": self.kind, "value": self.value}

    def to_wire(self) -> Dict[str, Any]:
        """Return the chat-completions form of this part."""
        if self.kind == "image":
            return {"type": "image_url", "image_url": {"url": self.value}}
        return {"type": "text", "text": self.value}


__all__ = ["ContentPart", "ContentPartKind"]
