from __future__ import annotations

import re

_SEPARATOR_WORD = re.compile(r"[-_]\w")
_NOTE_REF = re.compile(r"\[(\d+)\]")
_CONTROL_CHARS = re.compile(r"[\u0001-\u0008\u000B\u000C\u000E-\u001F\u007F-\u009F]")


def capitalize_tag(name: str) -> str:
    """Normalize a tag name: trim, upper-case the first letter and letters after '-' or '_'.

    >>> capitalize_tag("to-do")
    'To-Do'
    """
    stripped = (name or "").strip()
    if not stripped:
        return ""
    stripped = _SEPARATOR_WORD.sub(lambda m: m.group(0).upper(), stripped)
    return stripped[0].upper() + stripped[1:]


def linkify_summary(summary: str) -> str:
    """Turn bare `[123]` note references into markdown links to the note."""
    return _NOTE_REF.sub(lambda m: f"[[{m.group(1)}](/note/{m.group(1)})]", summary or "")


def sanitize_text(text: str | None) -> str:
    """Strip null bytes and control characters that PostgreSQL rejects.

    Newlines and tabs are preserved.
    """
    if not text:
        return ""
    cleaned = text.replace("\u0000", "").replace("\\u0000", "")
    return _CONTROL_CHARS.sub("", cleaned)
