"""Identity and ordering keys inferred from ``<order> - <identity>.<ext>`` names."""

from __future__ import annotations

import os
import re
from typing import Final

VIDEO_EXTS: Final = (".mp4", ".avi", ".mov", ".mkv", ".wmv", ".ts")

_EXT_ALT = "|".join(e.lstrip(".") for e in VIDEO_EXTS)
_IDENTITY_RE = re.compile(rf"[- ]([^-]+)\.(?:{_EXT_ALT})$", re.IGNORECASE)
_ORDER_RE = re.compile(rf"^(.+?)(?:\s*-\s*[^-]+\.(?:{_EXT_ALT}))$", re.IGNORECASE)
_DISPLAY_IDENTITY_RE = re.compile(r"- ([^-]+)$")
_INVALID_PATH_CHARS = re.compile(r'[<>:"/\\|?*]')
_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def is_video_file(name: str) -> bool:
    return os.path.splitext(name)[1].lower() in VIDEO_EXTS


def extract_identity(filename: str) -> str:
    """Return the identity token preceding the extension, or ``""``."""

    m = _IDENTITY_RE.search(filename)
    return m.group(1).strip() if m else ""


def extract_order_key(filename: str) -> str:
    """Return the ordering prefix before the identity token, or ``""``."""

    m = _ORDER_RE.match(filename)
    return m.group(1).strip() if m else ""


def sanitize_name(name: str, limit: int = 30) -> str:
    """Filesystem-safe short name built from a display name (a file stem).

    The identity after the last ``"- "`` is used when present; otherwise the
    whole name is sanitized.
    """

    m = _DISPLAY_IDENTITY_RE.search(name)
    text = m.group(1) if m else name
    text = _INVALID_PATH_CHARS.sub("_", text.strip())
    text = re.sub(r"\s+", "_", text)
    text = _UNSAFE_CHARS.sub("", text)
    return text[:limit]
