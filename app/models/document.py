from typing import List

from pydantic import BaseModel


class DocumentStatus(BaseModel):
    name: str
    doc_id: str
    has_store: bool


class DocumentListResponse(BaseModel):
    files: List[DocumentStatus]


class AssetInfo(BaseModel):
    path: str
    """Reference as written in the rendered document."""
    resolved: str
    """Reference after flattened-upload fallback."""
    exists: bool


class AssetListResponse(BaseModel):
    doc_id: str
    assets: List[AssetInfo]
