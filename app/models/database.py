from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ColumnInfo(BaseModel):
    name: str
    type: str
    nullable: bool
    default: Optional[str] = None


class TableInfo(BaseModel):
    name: str
    columns: List[ColumnInfo]


class RecordsResponse(BaseModel):
    doc_id: str
    tables: List[TableInfo]
    data: Dict[str, List[Dict[str, Any]]]


class RecordMutationResponse(BaseModel):
    message: str
    id: Optional[int] = None
    changes: int = 0
