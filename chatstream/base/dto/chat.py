"""
Pydantic DTOs and validators for user turns and persisted transcripts.

Purpose
-------
Validate data at the two edges where it enters the core: text and images
typed by the user (``UserTurnDTO``) and transcripts read back from storage
(``MessageDTO`` / ``parse_transcript``). Both raise
``pydantic.ValidationError`` (a ``ValueError`` subclass) on bad input.

External dependencies: Pydantic only. No I/O.
"""

from __future__ import annotations

from typing import Any, List, Literal, Sequence, Tuple, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator, model_validator

from ..models import ContentPart, Message

Role = Literal["system", "user", "assistant"]


class ContentPartDTO(BaseModel):
    """A stored content part (``{"kind": "text"|"image", "value": str}``)."""

    kind: Literal["text", "image"]
    value: str

    @model_validator(mode="after")
    def _image_needs_url(self) -> "ContentPartDTO":
        if self.kind == "image" and not self.value.strip():
            raise ValueError("image part must carry a non-empty URL")
        return self


class MessageDTO(BaseModel):
    """A stored chat message.

    Rules:
        - ``content`` is a string or a non-empty list of parts.
        - ``user`` messages must carry visible content (non-empty text or at
          least one part).
    """

    role: Role
    content: Union[str, List[ContentPartDTO]]

    @model_validator(mode="after")
    def _validate_content(self) -> "MessageDTO":
        content = self.content
        if isinstance(content, str):
            if self.role == "user" and not content.strip():
                raise ValueError("user message content must be non-empty")
            return self
        if not content:
            raise ValueError("content parts must be a non-empty list")
        return self

    def to_message(self) -> Message:
        if isinstance(self.content, str):
            return Message(role=self.role, content=self.content)
        return Message(
            role=self.role,
            content=tuple(ContentPart(kind=p.kind, value=p.value) for p in self.content),
        )


class UserTurnDTO(BaseModel):
    """Text and images typed by the user for one turn.

    At least one of ``text`` / ``images`` must be non-empty. Text is stripped;
    blank image entries are rejected.
    """

    text: str = ""
    images: List[str] = Field(default_factory=list)

    @field_validator("text", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("images")
    @classmethod
    def _images_non_blank(cls, value: List[str]) -> List[str]:
        cleaned = [v.strip() for v in value]
        if any(not v for v in cleaned):
            raise ValueError("image URLs must be non-empty")
        return cleaned

    @model_validator(mode="after")
    def _something_to_send(self) -> "UserTurnDTO":
        if not self.text and not self.images:
            raise ValueError("a message needs text or at least one image")
        return self

    def to_message(self) -> Message:
        return Message.user(self.text, self.images)


_TRANSCRIPT_ADAPTER = TypeAdapter(List[MessageDTO])


def parse_transcript(data: Union[str, bytes, Sequence[Any]]) -> Tuple[Message, ...]:
    """Validate a stored transcript (JSON text or decoded list) into messages."""
    if isinstance(data, (str, bytes)):
        dtos = _TRANSCRIPT_ADAPTER.validate_json(data)
    else:
        dtos = _TRANSCRIPT_ADAPTER.validate_python(list(data))
    return tuple(d.to_message() for d in dtos)


def build_user_message(text: str = "", images: Sequence[str] = ()) -> Message:
    """Validate a user turn and return the message to append."""
    return UserTurnDTO(text=text or "", images=list(images)).to_message()


__all__ = [
    "ContentPartDTO",
    "MessageDTO",
    "UserTurnDTO",
    "parse_transcript",
    "build_user_message",
]
