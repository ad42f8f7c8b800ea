"""
Message DTO used by the transcript, the streaming client and the store.

Defines the frozen `Message` dataclass and the `Role` literal. Content is
either plain text or a tuple of `ContentPart` objects; lists passed in are
frozen into tuples so a message cannot change after it joins a transcript.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Sequence, Tuple, Union

from .content_part import ContentPart

Role = Literal["system", "user", "assistant"]

MessageContent = Union[str, Tuple[ContentPart, ...]]


@dataclass(frozen=True)
class Message:
    """A chat message.

    Attributes:
        role: The role of the message author.
        content: Plain text, or an ordered tuple of content parts when the
            message carries images.
    """

    role: Role
    content: MessageContent

    def __post_init__(self) -> None:
        if not isinstance(self.content, str):
            object.__setattr__(self, "content", tuple(self.content))

    @classmethod
    def user(cls, text: str, images: Sequence[str] = ()) -> "Message":
        """Build a user message; images turn it into a parts message."""
        if not images:
            return cls(role="user", content=text)
        parts: List[ContentPart] = []
        if text:
            parts.append(ContentPart.text(text))
        parts.extend(ContentPart.image(url) for url in images)
        return cls(role="user", content=tuple(parts))

    def is_structured(self) -> bool:
        """Return True if the content is a sequence of parts."""
        return not isinstance(self.content, str)

    def text_or_joined(self) -> str:
        """Return a flattened text view; image parts render as ``[image]``."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(p.value if p.kind == "text" else "[image]" for p in self.content)

    def preview_text(self) -> str:
        """Return the first text part, or ``"Image"`` for image-only content."""
        if isinstance(self.content, str):
            return self.content
        for p in self.content:
            if p.kind == "text" and p.value:
                return p.value
        return "Image"

    def image_urls(self) -> Tuple[str, ...]:
        if not self.is_structured():
            return ()
        return tuple(p.value for p in self.content if p.kind == "image")

    def to_dict(self) -> Dict[str, Any]:
        """Return the storage form used by the chat store."""
        if not self.is_structured():
            return {"role": self.role, "content": self.content}
        return {"role": self.role, "content": [p.to_dict() for p in self.content]}

    def to_wire(self) -> Dict[str, Any]:
        """Return the chat-completions request form."""
        if not self.is_structured():
            return {"role": self.role, "content": self.content}
        return {"role": self.role, "content": [p.to_wire() for p in self.content]}


__all__ = ["Message", "MessageContent", "Role"]
