"""Document endpoints: analysis, stored records, preview and export."""

import logging
import sqlite3
from functools import lru_cache
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import HTMLResponse, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import get_settings
from app.models.analyze import AnalyzeRequest, AnalyzeResponse
from app.models.database import RecordMutationResponse, RecordsResponse
from app.models.document import AssetListResponse, DocumentListResponse
from app.models.schema import SchemaDocument
from app.services.errors import (
    DocumentNotFoundError,
    InvalidDocumentError,
    SchemaUnavailableError,
    UnknownTableError,
)
from app.services.workspace import Workspace

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter(prefix="/documents", tags=["Documents"])

_PREVIEW_UNAVAILABLE_HTML = """
<h1>Preview Unavailable</h1>
<p>Missing Schema Mapping. Please re-analyze this file from the Dashboard.</p>
<a href="/">Back to Dashboard</a>
"""


@lru_cache()
def get_workspace() -> Workspace:
    return Workspace(get_settings())


def _not_found(exc: LookupError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


def _schema_unavailable(doc_id: str, exc: SchemaUnavailableError) -> HTTPException:
    logger.warning("Schema unavailable for %s – %s", doc_id, exc)
    return HTTPException(
        status_code=409,
        detail=f"Schema unavailable for '{doc_id}'. Please re-analyze the document. ({exc})",
    )


@router.get("", response_model=DocumentListResponse, summary="List documents and their analysis status")
async def list_documents(workspace: Workspace = Depends(get_workspace)) -> DocumentListResponse:
    return DocumentListResponse(files=workspace.list_documents())


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Infer a content schema and seed the record store",
    description=(
        "Detects repeating collections and unique singletons in the named HTML "
        "document, creates one table per schema member and seeds it with the "
        "content currently in the page.  Re-analysing replaces the previous "
        "schema and records."
    ),
)
@limiter.limit("10/minute")
async def analyze_document(
    request: Request,
    body: AnalyzeRequest,
    workspace: Workspace = Depends(get_workspace),
) -> AnalyzeResponse:
    logger.info("Analyze request received", extra={"document": body.filename})
    try:
        doc_id, schema, tables, report = workspace.analyze(body.filename)
    except DocumentNotFoundError as exc:
        raise _not_found(exc)
    except InvalidDocumentError as exc:
        logger.warning("Invalid document %s – %s", body.filename, exc)
        raise HTTPException(status_code=400, detail=str(exc))

    return AnalyzeResponse(doc_id=doc_id, schema=schema, tables=tables, seed=report)


@router.get("/{doc_id}/schema", summary="Get the canonical schema document")
async def get_schema(doc_id: str, workspace: Workspace = Depends(get_workspace)) -> Dict[str, Any]:
    try:
        schema = workspace.schema(doc_id)
    except SchemaUnavailableError as exc:
        raise _schema_unavailable(doc_id, exc)
    return SchemaDocument(schema=schema).to_json_dict()


@router.get("/{doc_id}/records", response_model=RecordsResponse, summary="Get all stored records")
async def get_records(doc_id: str, workspace: Workspace = Depends(get_workspace)) -> RecordsResponse:
    try:
        store = workspace.store(doc_id)
    except DocumentNotFoundError as exc:
        raise _not_found(exc)

    tables = store.describe()
    data = {table.name: store.select_all(table.name) for table in tables}
    return RecordsResponse(doc_id=doc_id, tables=tables, data=data)


@router.post(
    "/{doc_id}/records/{table}",
    response_model=RecordMutationResponse,
    summary="Add a record to a collection",
)
async def add_record(
    doc_id: str,
    table: str,
    values: Dict[str, Any] = Body(...),
    workspace: Workspace = Depends(get_workspace),
) -> RecordMutationResponse:
    try:
        record_id = workspace.store(doc_id).insert(table, values)
    except DocumentNotFoundError as exc:
        raise _not_found(exc)
    except (UnknownTableError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid table name: {table} ({exc})")
    except sqlite3.Error as exc:
        logger.error("Insert into %s/%s failed: %s", doc_id, table, exc)
        raise HTTPException(status_code=400, detail=f"Insert failed: {exc}")

    return RecordMutationResponse(message="Record added successfully", id=record_id, changes=1)


@router.put(
    "/{doc_id}/records/{table}/{record_id}",
    response_model=RecordMutationResponse,
    summary="Update a stored record",
)
async def update_record(
    doc_id: str,
    table: str,
    record_id: int,
    values: Dict[str, Any] = Body(...),
    workspace: Workspace = Depends(get_workspace),
) -> RecordMutationResponse:
    try:
        changes = workspace.store(doc_id).update(table, record_id, values)
    except DocumentNotFoundError as exc:
        raise _not_found(exc)
    except (UnknownTableError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid table name: {table} ({exc})")
    except sqlite3.Error as exc:
        logger.error("Update of %s/%s id=%d failed: %s", doc_id, table, record_id, exc)
        raise HTTPException(status_code=400, detail=f"Update failed: {exc}")

    logger.info("UPDATE %s id=%d: %d change(s)", table, record_id, changes)
    message = "Record updated successfully" if changes else "No matching record or valid fields to update"
    return RecordMutationResponse(message=message, id=record_id, changes=changes)


@router.delete(
    "/{doc_id}/records/{table}/{record_id}",
    response_model=RecordMutationResponse,
    summary="Delete a stored record",
)
async def delete_record(
    doc_id: str,
    table: str,
    record_id: int,
    workspace: Workspace = Depends(get_workspace),
) -> RecordMutationResponse:
    try:
        changes = workspace.store(doc_id).delete(table, record_id)
    except DocumentNotFoundError as exc:
        raise _not_found(exc)
    except (UnknownTableError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Invalid table name: {table} ({exc})")

    return RecordMutationResponse(message="Record deleted successfully", id=record_id, changes=changes)


@router.get("/{doc_id}/preview", response_class=HTMLResponse, summary="Render a live preview")
async def preview_document(doc_id: str, workspace: Workspace = Depends(get_workspace)) -> HTMLResponse:
    try:
        html = workspace.preview(doc_id)
    except DocumentNotFoundError as exc:
        raise _not_found(exc)
    except SchemaUnavailableError as exc:
        logger.warning("Preview unavailable for %s – %s", doc_id, exc)
        return HTMLResponse(_PREVIEW_UNAVAILABLE_HTML, status_code=409)
    return HTMLResponse(html)


@router.get("/{doc_id}/export", summary="Download the rendered document")
async def export_document(doc_id: str, workspace: Workspace = Depends(get_workspace)) -> Response:
    try:
        html = workspace.export(doc_id)
    except DocumentNotFoundError as exc:
        raise _not_found(exc)
    except SchemaUnavailableError as exc:
        raise _schema_unavailable(doc_id, exc)

    return Response(
        content=html,
        media_type="text/html",
        headers={"Content-Disposition": f'attachment; filename="{doc_id}.html"'},
    )


@router.get("/{doc_id}/assets", response_model=AssetListResponse, summary="List referenced local assets")
async def list_assets(doc_id: str, workspace: Workspace = Depends(get_workspace)) -> AssetListResponse:
    try:
        assets = workspace.assets(doc_id)
    except DocumentNotFoundError as exc:
        raise _not_found(exc)
    except SchemaUnavailableError as exc:
        raise _schema_unavailable(doc_id, exc)
    return AssetListResponse(doc_id=doc_id, assets=assets)


@router.delete("/{doc_id}", summary="Delete a document with its schema and records")
async def delete_document(doc_id: str, workspace: Workspace = Depends(get_workspace)) -> Dict[str, str]:
    if not workspace.delete(doc_id):
        raise HTTPException(status_code=404, detail=f"File not found: {doc_id}")
    return {"message": "File and associated data deleted"}
