"""Identifier sanitization and collision resolution for table and field names."""

import re
from typing import Set

# Every character outside this class is replaced, one underscore per character
_UNSAFE_CHAR_RE = re.compile(r"[^A-Za-z0-9_]")

# Columns managed by the record store itself
RESERVED_NAMES = frozenset({"id", "created_at", "updated_at"})


def sanitize(raw: str) -> str:
    """Return *raw* with every character outside ``[A-Za-z0-9_]`` mapped to ``_``.

    The mapping is per character, so the result has the same length as the
    input and applying it twice changes nothing.
    """
    return _UNSAFE_CHAR_RE.sub("_", raw or "")


def unique_name(base: str, used: Set[str]) -> str:
    """Return a sanitized variant of *base* that is not yet in *used*.

    The first occurrence keeps the sanitized base unchanged; later ones get
    ``_1``, ``_2``, … appended.  The chosen name is added to *used*.
    """
    name = sanitize(base)
    counter = 1
    while name in used:
        name = sanitize(f"{base}_{counter}")
        counter += 1
    used.add(name)
    return name


def is_reserved(name: str) -> bool:
    return name.lower() in RESERVED_NAMES


def is_identifier(name: str) -> bool:
    """Return True when *name* is a non-empty, already-sanitized identifier."""
    return bool(name) and sanitize(name) == name
