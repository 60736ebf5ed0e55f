"""Heading anchor slugs compatible with GitHub's Markdown renderer."""

from __future__ import annotations

import re
from typing import Iterable

_STRIP_RE = re.compile(r"[^\w\- ]", re.UNICODE)
_EMPTY_SLUG = "property"


class Slugger:
    """Generates unique anchor slugs for the headings of one document."""

    def __init__(self) -> None:
        self._occurrences: dict[str, int] = {}

    def slug(self, value: str) -> str:
        base = _STRIP_RE.sub("", value.lower()).replace(" ", "-")
        if not base.strip("-"):
            base = _EMPTY_SLUG
        slug = base
        while slug in self._occurrences:
            self._occurrences[base] += 1
            slug = f"{base}-{self._occurrences[base]}"
        self._occurrences[slug] = 0
        return slug


def slugify(names: Iterable[str]) -> dict[str, str]:
    """Assign a unique slug to every name in *names*.

    Names are processed in sorted order so collision suffixes do not depend
    on the input order.
    """
    slugger = Slugger()
    return {name: slugger.slug(name) for name in sorted(set(names))}
