"""Very small slug helper for display names and URL segments."""

from __future__ import annotations

import re

_NON_ALNUM = re.compile(r"[^a-z\d]+")


def slugify(text: str) -> str:
    """Lowercase ``text`` and collapse everything outside ``[a-z0-9]`` to ``-``."""

    if not text:
        raise ValueError("empty string not permitted")
    slug = _NON_ALNUM.sub("-", text.lower()).strip("-")
    if not slug:
        raise ValueError("after removing special characters, slug is empty")
    return slug


__all__ = ["slugify"]
