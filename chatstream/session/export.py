"""Transcript export helpers (Markdown and JSON)."""

from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional, Sequence

from ..base.models import Message, Settings


def to_markdown(messages: Sequence[Message], settings: Settings, now: Optional[datetime] = None) -> str:
    """Render a transcript as Markdown.

    Layout: title, date/model/effort lines, the system prompt in a fenced
    block (when present), a rule, then ``## User`` / ``## Assistant``
    sections. Image parts are written as ``[image]``.
    """
    stamp = (now or datetime.now().astimezone()).strftime("%Y-%m-%d %H:%M:%S")
    out: List[str] = ["# Chat Export", ""]
    out.append(f"Date: {stamp}")
    out.append(f"Model: {settings.model.value}")
    out.append(f"Reasoning Effort: {settings.effort.value}")
    system = next((m for m in messages if m.role == "system"), None)
    prompt = system.text_or_joined() if system is not None else settings.system_prompt
    if prompt:
        out.extend(["", "System Prompt:", "", "```", prompt, "```"])
    out.extend(["", "---", ""])
    for m in messages:
        if m.role == "user":
            out.extend(["## User", m.text_or_joined(), ""])
        elif m.role == "assistant":
            out.extend(["## Assistant", m.text_or_joined(), ""])
    return "\n".join(out)


def to_json(messages: Sequence[Message]) -> str:
    """Return the transcript in request (wire) form, pretty-printed."""
    return json.dumps([m.to_wire() for m in messages], ensure_ascii=False, indent=2)


__all__ = ["to_markdown", "to_json"]
