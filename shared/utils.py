from __future__ import annotations
from typing import Any, Iterable
from urllib.parse import quote

# ========================================
#           PRESENTATION HELPERS
# ========================================
"""
Helpers that derive client-side facts from protocol data. Nothing here is
ever transmitted: avatars are computed from display names and the GIF
decision is made purely by inspecting the message text.
"""

AVATAR_URL_TEMPLATE = "https://avatars.dicebear.com/api/adventurer-neutral/{name}.svg"

_GIF_SUFFIX = ".gif"


def avatar_url(name: str, template: str = AVATAR_URL_TEMPLATE) -> str:
    """
    Deterministic avatar URL for a display name.

    The name is percent-encoded so names with spaces or slashes still
    produce a single path segment.
    """
    return template.format(name=quote(name, safe=""))


def is_gif_payload(text: str) -> bool:
    """
    True when a message should be rendered as an image rather than text.

    Case-insensitive suffix match, e.g. "https://host/cat.GIF" -> True.
    """
    return text.lower().endswith(_GIF_SUFFIX)


def is_str_list(value: Any) -> bool:
    """returns True for a list whose items are all strings (empty list included)"""
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def is_optional_str(value: Any) -> bool:
    return value is None or isinstance(value, str)


def join_names(names: Iterable[str]) -> str:
    """Comma-separated roster line, "(nobody)" when empty"""
    joined = ", ".join(names)
    return joined or "(nobody)"
