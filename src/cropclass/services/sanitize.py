# src/cropclass/services/sanitize.py
from __future__ import annotations

import re
from typing import Optional

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)
_JS_URL_RE = re.compile(r"javascript:", re.IGNORECASE)

_FILENAME_BAD_RE = re.compile(r"[^a-zA-Z0-9._-]")
_MULTI_UNDERSCORE_RE = re.compile(r"_{2,}")

_INJECTION_PATTERNS = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"<script",
    r"javascript:",
    r"on\w+\s*=",
    r"eval\s*\(",
    r"expression\s*\(",
    r"vbscript:",
    r"data:text/html",
))


def sanitize_text(value: str, max_length: Optional[int] = None, *, trim: bool = True) -> str:
    """Quita bloques <script>, handlers on*= y esquemas javascript:."""
    cleaned = _SCRIPT_RE.sub("", value)
    cleaned = _EVENT_HANDLER_RE.sub("", cleaned)
    cleaned = _JS_URL_RE.sub("", cleaned)
    if max_length is not None:
        cleaned = cleaned[:max_length]
    return cleaned.strip() if trim else cleaned


def sanitize_filename(name: str, max_length: int = 255) -> str:
    cleaned = _FILENAME_BAD_RE.sub("_", name)
    cleaned = _MULTI_UNDERSCORE_RE.sub("_", cleaned)
    cleaned = cleaned.strip("_")
    return cleaned[:max_length]


def detect_injection(value: str) -> bool:
    return any(p.search(value) for p in _INJECTION_PATTERNS)
