"""Text helpers for URLs and display."""

from __future__ import annotations

import re

_NON_WORD_RE = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATOR_RE = re.compile(r"[\s_-]+")
_EDGE_HYPHEN_RE = re.compile(r"^-+|-+$")


def slugify(text: str) -> str:
    """Convert ``text`` to a URL-friendly slug."""

    slug = text.lower().strip()
    slug = _NON_WORD_RE.sub("", slug)
    slug = _SEPARATOR_RE.sub("-", slug)
    return _EDGE_HYPHEN_RE.sub("", slug)


def deslugify(slug: str) -> str:
    """Turn a slug back into title-cased words."""

    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))


def format_phone_number(phone: str) -> str:
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return phone
