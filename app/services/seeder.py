"""Seeding: extract record values from a document into the record store."""

import logging
import sqlite3
from typing import Any, Dict, List, Optional, Tuple, Union

from bs4 import BeautifulSoup, Tag

from app.models.analyze import SeedReport
from app.models.schema import Collection, Schema, SchemaField, Singleton
from app.services.fields import extract_value
from app.services.selector import (
    ContainerPredicate,
    find_collection_item,
    is_item_container,
    resolve,
    resolve_first,
)
from app.services.store import RecordStore

logger = logging.getLogger(__name__)

# Failures of a single write that must not abort the whole pass
_STORE_ERRORS = (sqlite3.Error, ValueError, LookupError)


def create_tables(store: RecordStore, schema: Schema) -> None:
    for collection in schema.collections:
        store.create_table(collection.name, collection.fields)
    for singleton in schema.singletons:
        store.create_table(singleton.name, singleton.fields, singleton=True)


def _located_items(
    soup: BeautifulSoup,
    collection: Collection,
    container_predicate: ContainerPredicate,
) -> List[Tuple[Tag, bool]]:
    if not collection.fields:
        return []
    selector = collection.fields[0].selector
    items: List[Tuple[Tag, bool]] = []
    seen: set = set()
    for match in resolve(soup, selector):
        container = find_collection_item(match, selector, container_predicate)
        item = container or match
        if id(item) not in seen:
            seen.add(id(item))
            items.append((item, container is not None))
    return items


def collection_items(
    soup: BeautifulSoup,
    collection: Collection,
    container_predicate: ContainerPredicate = is_item_container,
) -> List[Tag]:
    """Return one element per collection item, in document order.

    Items are found through the first field's selector and widened to their
    item container when one is recognised.
    """
    return [item for item, _ in _located_items(soup, collection, container_predicate)]


def _locate(
    soup: BeautifulSoup, field: SchemaField, item: Tag, index: int, contained: bool
) -> Optional[Tag]:
    element = resolve_first(soup, field.selector, scope=item)
    if element is not None or contained:
        return element
    # The item container was not recognised: pair fields by position instead
    matches = resolve(soup, field.selector)
    return matches[index] if index < len(matches) else None


def extract_collection(
    soup: BeautifulSoup,
    collection: Collection,
    container_predicate: ContainerPredicate = is_item_container,
) -> List[Dict[str, Any]]:
    records = []
    for index, (item, contained) in enumerate(_located_items(soup, collection, container_predicate)):
        records.append(
            {
                field.name: extract_value(
                    _locate(soup, field, item, index, contained), field.type
                )
                for field in collection.fields
            }
        )
    return records


def extract_singleton(soup: BeautifulSoup, singleton: Singleton) -> Dict[str, Any]:
    return {
        field.name: extract_value(resolve_first(soup, field.selector), field.type)
        for field in singleton.fields
    }


def seed(
    store: RecordStore,
    schema: Schema,
    document: Union[BeautifulSoup, str],
    container_predicate: ContainerPredicate = is_item_container,
) -> SeedReport:
    """Extract every collection and singleton of *schema* from *document* into *store*.

    Tables must already exist (see :func:`create_tables`).  A record the
    store rejects is logged and counted, and seeding carries on.
    """
    soup = BeautifulSoup(document, "lxml") if isinstance(document, str) else document
    report = SeedReport()

    for collection in schema.collections:
        for index, record in enumerate(extract_collection(soup, collection, container_predicate)):
            try:
                store.insert(collection.name, record)
            except _STORE_ERRORS as exc:
                logger.warning("Error seeding %s row %d: %s", collection.name, index + 1, exc)
                report.failed += 1
                report.errors.append(f"{collection.name}[{index}]: {exc}")
                continue
            report.inserted += 1
            logger.debug("Seeded %s row %d", collection.name, index + 1)

    for singleton in schema.singletons:
        try:
            store.replace(singleton.name, extract_singleton(soup, singleton))
        except _STORE_ERRORS as exc:
            logger.warning("Error seeding singleton %s: %s", singleton.name, exc)
            report.failed += 1
            report.errors.append(f"{singleton.name}: {exc}")
            continue
        report.inserted += 1
        logger.debug("Seeded singleton %s", singleton.name)

    logger.info("Seeding finished: %d inserted, %d failed", report.inserted, report.failed)
    return report
