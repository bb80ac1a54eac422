from typing import List

from pydantic import BaseModel, Field

from app.models.database import TableInfo
from app.models.schema import Schema


class AnalyzeRequest(BaseModel):
    filename: str = Field(
        min_length=1,
        description="Name of an HTML file in the content directory (e.g. `index.html`).",
        examples=["index.html"],
    )


class SeedReport(BaseModel):
    """Outcome of one seeding pass; failed records do not stop the pass."""

    inserted: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)


class AnalyzeResponse(BaseModel):
    doc_id: str
    schema_: Schema = Field(alias="schema")
    tables: List[TableInfo]
    seed: SeedReport

    model_config = {"populate_by_name": True}
