"""Template re-materialization: inject stored records back into the original document.

Rendering is a pure transform ``(document, schema, records) -> html``.  The
input tree is copied before it is touched, so the same inputs always produce
the same output and the caller's document is never modified.

* **Singletons** overwrite their fields in place.
* **Collections** clone one item of the original markup per record.  The
  item is found by resolving the first field's selector and widening it to
  the collection item that selector starts with, or else to the nearest item
  container (see :func:`app.services.selector.find_collection_item`); every
  sibling with the same structural signature is replaced by the clones.

Members without records in *records* are left exactly as the template has
them.  A collection mapped to an empty list loses its items.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from bs4 import BeautifulSoup, Tag

from app.models.schema import Collection, Schema, Singleton
from app.services.assets import inject_base_href, rewrite_asset_links
from app.services.cleaner import parse_html
from app.services.fields import write_value
from app.services.selector import (
    ContainerPredicate,
    element_signature,
    find_collection_item,
    is_item_container,
    resolve_first,
)

logger = logging.getLogger(__name__)

RecordSet = Union[Sequence[Mapping[str, Any]], Mapping[str, Any]]
RecordMap = Mapping[str, RecordSet]


def _prepare(document: Union[BeautifulSoup, str]) -> BeautifulSoup:
    if isinstance(document, str):
        return parse_html(document)
    return copy.copy(document)


def _singleton_record(rows: RecordSet) -> Optional[Mapping[str, Any]]:
    if isinstance(rows, Mapping):
        return rows
    return rows[0] if rows else None


def render_singleton(
    soup: BeautifulSoup,
    singleton: Singleton,
    record: Mapping[str, Any],
    asset_root: Optional[Path] = None,
) -> None:
    for field in singleton.fields:
        value = record.get(field.name)
        if value is None:
            continue
        element = resolve_first(soup, field.selector)
        if element is None:
            logger.debug(
                "Selector not found for %s.%s: %s", singleton.name, field.name, field.selector
            )
            continue
        write_value(element, field.type, value, asset_root)


def render_collection(
    soup: BeautifulSoup,
    collection: Collection,
    rows: Sequence[Mapping[str, Any]],
    asset_root: Optional[Path] = None,
    container_predicate: ContainerPredicate = is_item_container,
) -> None:
    if not collection.fields:
        return
    first_selector = collection.fields[0].selector
    representative = resolve_first(soup, first_selector)
    if representative is None:
        logger.debug("No template item for %s (selector %s)", collection.name, first_selector)
        return

    item = (
        find_collection_item(representative, first_selector, container_predicate)
        or representative
    )
    parent = item.parent
    if parent is None:
        return

    signature = element_signature(item)
    template = copy.copy(item)
    siblings = [
        child for child in parent.find_all(True, recursive=False)
        if element_signature(child) == signature
    ]
    position = parent.index(siblings[0])
    for sibling in siblings:
        sibling.extract()

    for offset, record in enumerate(rows):
        clone = copy.copy(template)
        for field in collection.fields:
            value = record.get(field.name)
            if value is None:
                continue
            target = resolve_first(soup, field.selector, scope=clone)
            if target is not None:
                write_value(target, field.type, value, asset_root)
        parent.insert(position + offset, clone)

    logger.debug(
        "Rendered %d item(s) of %s into <%s>", len(rows), collection.name, parent.name
    )


def render_tree(
    document: Union[BeautifulSoup, str],
    schema: Schema,
    records: RecordMap,
    asset_root: Optional[Path] = None,
    container_predicate: ContainerPredicate = is_item_container,
) -> BeautifulSoup:
    """Return a new tree with *records* injected into a copy of *document*."""
    soup = _prepare(document)

    for singleton in schema.singletons:
        record = _singleton_record(records.get(singleton.name) or [])
        if record is None:
            logger.debug("No data found for singleton %s", singleton.name)
            continue
        render_singleton(soup, singleton, record, asset_root)

    for collection in schema.collections:
        if collection.name not in records:
            logger.debug("No record set supplied for collection %s", collection.name)
            continue
        rows = records[collection.name]
        if isinstance(rows, Mapping):
            rows = [rows]
        render_collection(soup, collection, rows, asset_root, container_predicate)

    return soup


def render(
    document: Union[BeautifulSoup, str],
    schema: Schema,
    records: RecordMap,
    asset_root: Optional[Path] = None,
    container_predicate: ContainerPredicate = is_item_container,
) -> str:
    """Render *records* into *document* and return the serialized HTML."""
    return str(render_tree(document, schema, records, asset_root, container_predicate))


def render_preview(
    document: Union[BeautifulSoup, str],
    schema: Schema,
    records: RecordMap,
    asset_root: Optional[Path] = None,
    base_dir: str = "",
    base_href: str = "/uploads/",
) -> str:
    """Render for live preview: fix flattened asset paths and add ``<base href>``."""
    soup = render_tree(document, schema, records, asset_root)
    rewrite_asset_links(soup, asset_root, base_dir)
    inject_base_href(soup, base_href)
    return str(soup)


def render_export(
    document: Union[BeautifulSoup, str],
    schema: Schema,
    records: RecordMap,
    asset_root: Optional[Path] = None,
) -> str:
    """Render a standalone document with no server-specific rewrites."""
    return render(document, schema, records, asset_root)
