"""Canonical content schema: collections and singletons of typed, selector-addressed fields."""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator


class FieldType(str, Enum):
    TEXT = "text"
    RICH_TEXT = "rich_text"
    IMAGE = "image"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"

    @classmethod
    def coerce(cls, value: Any) -> "FieldType":
        """Map *value* to a member, treating anything unrecognised as ``text``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.TEXT


class SchemaField(BaseModel):
    name: str
    type: FieldType = FieldType.TEXT
    selector: str
    required: bool = False
    """Informational only; missing values are never rejected."""

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> FieldType:
        return FieldType.coerce(value)


class Collection(BaseModel):
    """A repeating structural pattern backed by many records."""

    name: str
    fields: List[SchemaField] = Field(default_factory=list)


class Singleton(BaseModel):
    """A unique content region backed by exactly one record."""

    name: str
    fields: List[SchemaField] = Field(default_factory=list)


class Schema(BaseModel):
    collections: List[Collection] = Field(default_factory=list)
    singletons: List[Singleton] = Field(default_factory=list)


class SchemaDocument(BaseModel):
    """JSON envelope ``{"schema": {...}}`` shared by analysis, seeding and rendering."""

    schema_: Schema = Field(alias="schema")

    model_config = {"populate_by_name": True}

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
