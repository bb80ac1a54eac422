"""Per-document orchestration over the content and database directories.

A document is an HTML file in the content directory, addressed by its
``doc_id`` (the file name without extension).  Analysis writes two
artefacts next to it: ``<doc_id>-schema.json`` in the content directory and
``<doc_id>.db`` in the database directory.
"""

import logging
import re
from pathlib import Path, PurePosixPath
from typing import List, Optional, Tuple

from app.config import Settings
from app.models.analyze import SeedReport
from app.models.database import TableInfo
from app.models.document import AssetInfo, DocumentStatus
from app.models.schema import Schema
from app.services.assets import collect_local_assets, resolve_asset_path
from app.services.cache import TTLCache
from app.services.cleaner import clean_html, parse_html
from app.services.detector import detect_candidates
from app.services.errors import DocumentNotFoundError
from app.services.renderer import RecordMap, render_export, render_preview
from app.services.schema import assemble_schema, load_schema, save_schema
from app.services.seeder import create_tables, seed
from app.services.store import SQLiteRecordStore

logger = logging.getLogger(__name__)

_HTML_SUFFIX_RE = re.compile(r"\.html?$", re.IGNORECASE)

# Build artefacts of front-end bundlers that are not pages
_IGNORED_DOCUMENTS = {"tslib.html", "common.html", "styles.html"}


def doc_id_for(filename: str) -> str:
    return _HTML_SUFFIX_RE.sub("", PurePosixPath(filename.replace("\\", "/")).name)


def _is_document(path: Path) -> bool:
    return (
        path.is_file()
        and bool(_HTML_SUFFIX_RE.search(path.name))
        and not path.name.startswith("._")
        and path.name not in _IGNORED_DOCUMENTS
    )


class Workspace:
    def __init__(self, settings: Settings) -> None:
        self.content_dir = Path(settings.content_dir)
        self.database_dir = Path(settings.database_dir)
        self.preview_base_href = settings.preview_base_href
        self._schemas: TTLCache[Schema] = TTLCache(
            ttl=settings.schema_cache_ttl, max_entries=settings.schema_cache_size
        )

    # -- paths ----------------------------------------------------------------

    def schema_path(self, doc_id: str) -> Path:
        return self.content_dir / f"{doc_id}-schema.json"

    def database_path(self, doc_id: str) -> Path:
        return self.database_dir / f"{doc_id}.db"

    def find_document(self, name: str) -> Path:
        """Locate an HTML document by file name or doc id, searching subdirectories.

        Raises:
            DocumentNotFoundError: if no matching file exists.
        """
        basename = PurePosixPath(name.replace("\\", "/")).name
        candidates = [basename] if _HTML_SUFFIX_RE.search(basename) else [
            f"{basename}.html",
            f"{basename}.htm",
        ]
        for candidate in candidates:
            direct = self.content_dir / candidate
            if _is_document(direct):
                return direct
        if self.content_dir.is_dir():
            for path in sorted(self.content_dir.rglob("*")):
                if path.name in candidates and _is_document(path):
                    return path
        raise DocumentNotFoundError(f"File not found: {name}")

    def base_dir(self, html_path: Path) -> str:
        """Return the document's directory relative to the content root, as a POSIX path."""
        relative = html_path.parent.relative_to(self.content_dir)
        return "" if str(relative) == "." else relative.as_posix()

    def store(self, doc_id: str) -> SQLiteRecordStore:
        path = self.database_path(doc_id)
        if not path.is_file():
            raise DocumentNotFoundError(f"Database not found for {doc_id}")
        return SQLiteRecordStore(path)

    # -- listing --------------------------------------------------------------

    def list_documents(self) -> List[DocumentStatus]:
        if not self.content_dir.is_dir():
            return []
        documents = []
        for path in sorted(self.content_dir.rglob("*")):
            if not _is_document(path):
                continue
            doc_id = doc_id_for(path.name)
            documents.append(
                DocumentStatus(
                    name=path.relative_to(self.content_dir).as_posix(),
                    doc_id=doc_id,
                    has_store=self.database_path(doc_id).is_file(),
                )
            )
        return documents

    # -- analysis -------------------------------------------------------------

    def analyze(self, filename: str) -> Tuple[str, Schema, List[TableInfo], SeedReport]:
        """Infer the schema of *filename*, rebuild its store and seed it.

        Re-analysing a document replaces its previous store and schema.
        """
        html_path = self.find_document(filename)
        doc_id = doc_id_for(html_path.name)
        raw_html = html_path.read_text(encoding="utf-8", errors="replace")

        schema = assemble_schema(detect_candidates(clean_html(raw_html)))

        db_path = self.database_path(doc_id)
        if db_path.exists():
            db_path.unlink()
        store = SQLiteRecordStore(db_path)
        create_tables(store, schema)
        report = seed(store, schema, parse_html(raw_html))

        save_schema(self.schema_path(doc_id), schema)
        self._schemas.invalidate(doc_id)
        logger.info(
            "Analyzed %s: %d collection(s), %d singleton(s)",
            html_path.name,
            len(schema.collections),
            len(schema.singletons),
        )
        return doc_id, schema, store.describe(), report

    def schema(self, doc_id: str) -> Schema:
        """Return the stored schema of *doc_id*.

        Raises:
            SchemaUnavailableError: if the schema is missing or malformed.
        """
        return self._schemas.get_or_load(doc_id, lambda: load_schema(self.schema_path(doc_id)))

    # -- rendering ------------------------------------------------------------

    def fetch_records(self, doc_id: str, schema: Schema) -> RecordMap:
        """Read the record set of every schema member that has a table."""
        path = self.database_path(doc_id)
        if not path.is_file():
            return {}
        store = SQLiteRecordStore(path)
        tables = set(store.tables())
        records = {}
        for collection in schema.collections:
            if collection.name in tables:
                records[collection.name] = store.select_all(collection.name)
        for singleton in schema.singletons:
            if singleton.name in tables:
                row = store.select_one(singleton.name)
                records[singleton.name] = [row] if row is not None else []
        return records

    def _render_inputs(self, doc_id: str) -> Tuple[Path, str, Schema, RecordMap]:
        html_path = self.find_document(doc_id)
        schema = self.schema(doc_id)
        raw_html = html_path.read_text(encoding="utf-8", errors="replace")
        return html_path, raw_html, schema, self.fetch_records(doc_id, schema)

    def preview(self, doc_id: str) -> str:
        html_path, raw_html, schema, records = self._render_inputs(doc_id)
        base_dir = self.base_dir(html_path)
        base_href = self.preview_base_href.rstrip("/") + "/"
        if base_dir:
            base_href += base_dir + "/"
        return render_preview(
            raw_html,
            schema,
            records,
            asset_root=self.content_dir,
            base_dir=base_dir,
            base_href=base_href,
        )

    def export(self, doc_id: str) -> str:
        _html_path, raw_html, schema, records = self._render_inputs(doc_id)
        return render_export(raw_html, schema, records, asset_root=self.content_dir)

    def assets(self, doc_id: str) -> List[AssetInfo]:
        """List the local assets the rendered document references and whether each resolves."""
        html_path = self.find_document(doc_id)
        base_dir = self.base_dir(html_path)
        soup = parse_html(self.export(doc_id))
        infos = []
        for ref in collect_local_assets(soup):
            resolved = resolve_asset_path(ref, self.content_dir, base_dir)
            exists = (self.content_dir / base_dir / resolved).is_file() or (
                self.content_dir / resolved
            ).is_file()
            infos.append(AssetInfo(path=ref, resolved=resolved, exists=exists))
        return infos

    # -- removal --------------------------------------------------------------

    def delete(self, doc_id: str) -> bool:
        """Remove the document and its schema and store; returns False if nothing existed."""
        removed = False
        try:
            html_path: Optional[Path] = self.find_document(doc_id)
        except DocumentNotFoundError:
            html_path = None
        for path in (html_path, self.schema_path(doc_id), self.database_path(doc_id)):
            if path is not None and path.exists():
                path.unlink()
                removed = True
        self._schemas.invalidate(doc_id)
        return removed
