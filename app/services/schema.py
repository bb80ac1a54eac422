"""Schema assembly: turns detector candidates into the canonical schema document."""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Set

from pydantic import ValidationError

from app.models.schema import Collection, Schema, SchemaDocument, SchemaField, Singleton
from app.services.detector import Candidate, FieldCandidate
from app.services.errors import SchemaUnavailableError
from app.services.naming import is_reserved, sanitize, unique_name

logger = logging.getLogger(__name__)


def _assemble_fields(owner: str, fields: Iterable[FieldCandidate]) -> List[SchemaField]:
    used: Set[str] = set()
    assembled: List[SchemaField] = []
    for candidate in fields:
        if is_reserved(sanitize(candidate.name)):
            logger.debug("Dropping reserved field %s.%s", owner, candidate.name)
            continue
        assembled.append(
            SchemaField(
                name=unique_name(candidate.name, used),
                type=candidate.type,
                selector=candidate.selector,
            )
        )
    return assembled


def assemble_schema(candidates: Iterable[Candidate]) -> Schema:
    """Build a :class:`Schema` from *candidates*, preserving their order.

    Member names are sanitized and made unique across collections and
    singletons together; later duplicates get a numeric suffix.  Fields
    named after store-managed columns are dropped, and a member left without
    fields is dropped before it claims a name.
    """
    used: Set[str] = set()
    schema = Schema()
    for candidate in candidates:
        fields = _assemble_fields(candidate.base_name, candidate.fields)
        if not fields:
            continue
        name = unique_name(candidate.base_name, used)
        if candidate.kind == "collection":
            schema.collections.append(Collection(name=name, fields=fields))
        else:
            schema.singletons.append(Singleton(name=name, fields=fields))
    return schema


def save_schema(path: Path, schema: Schema) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    document = SchemaDocument(schema=schema)
    path.write_text(
        json.dumps(document.to_json_dict(), ensure_ascii=False, indent=2), encoding="utf-8"
    )


def load_schema(path: Path) -> Schema:
    """Read the schema document at *path*.

    Raises:
        SchemaUnavailableError: if the file is missing, is not JSON, or does
            not have the ``{"schema": {...}}`` shape.
    """
    if not path.is_file():
        raise SchemaUnavailableError(f"No schema mapping found at {path.name}.")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return SchemaDocument.model_validate(raw).schema_
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
        raise SchemaUnavailableError(f"Schema mapping {path.name} is malformed: {exc}") from exc
