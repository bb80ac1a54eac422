"""Typed reads from and writes into DOM elements, keyed by :class:`FieldType`."""

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from bs4 import BeautifulSoup, Tag

from app.models.schema import FieldType
from app.services.assets import resolve_asset_path

_LEADING_INT_RE = re.compile(r"^[+-]?\d+")
_TRUTHY = {"true", "yes", "on"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def empty_value(field_type: Union[FieldType, str]) -> Any:
    """Return the value a field of *field_type* takes when its element is missing."""
    field_type = FieldType.coerce(field_type)
    if field_type in (FieldType.NUMBER, FieldType.BOOLEAN):
        return 0
    if field_type is FieldType.DATE:
        return _now_iso()
    return ""


def parse_number(text: str) -> int:
    match = _LEADING_INT_RE.match(text.strip())
    return int(match.group(0)) if match else 0


def parse_boolean(text: str) -> int:
    return 1 if text.strip().lower() in _TRUTHY else 0


def extract_value(element: Optional[Tag], field_type: Union[FieldType, str]) -> Any:
    """Read the value of *field_type* from *element*.

    A ``None`` element is a resolution miss and yields the type's empty value.
    """
    field_type = FieldType.coerce(field_type)
    if element is None:
        return empty_value(field_type)

    if field_type is FieldType.RICH_TEXT:
        return element.decode_contents().strip()
    if field_type is FieldType.IMAGE:
        return str(element.get("src") or element.get("href") or "")

    text = element.get_text().strip()
    if field_type is FieldType.NUMBER:
        return parse_number(text)
    if field_type is FieldType.BOOLEAN:
        return parse_boolean(text)
    if field_type is FieldType.DATE:
        return text or _now_iso()
    return text


def write_value(
    element: Tag,
    field_type: Union[FieldType, str],
    value: Any,
    asset_root: Optional[Path] = None,
) -> None:
    """Write *value* into *element*; the inverse of :func:`extract_value`.

    ``None`` leaves the element untouched so the template's own markup shows.
    """
    if value is None:
        return
    field_type = FieldType.coerce(field_type)

    if field_type is FieldType.IMAGE:
        element["src"] = resolve_asset_path(str(value), asset_root)
    elif field_type is FieldType.RICH_TEXT:
        fragment = BeautifulSoup(str(value), "html.parser")
        element.clear()
        for child in list(fragment.contents):
            element.append(child)
    else:
        element.string = str(value)
