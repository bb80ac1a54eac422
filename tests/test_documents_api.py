"""Tests for the /documents endpoints.

Each test gets its own content and database directories under ``tmp_path``;
the workspace dependency is overridden so nothing touches the real
``uploads/`` or ``databases/`` folders.
"""

import pytest
from bs4 import BeautifulSoup
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import app
from app.routers.documents import get_workspace
from app.services.workspace import Workspace

client = TestClient(app)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    """Clear the slowapi in-memory counter before every test."""
    app.state.limiter._storage.reset()
    yield


@pytest.fixture
def uploads(tmp_path, landing_page):
    content_dir = tmp_path / "uploads"
    content_dir.mkdir()
    (content_dir / "index.html").write_text(landing_page, encoding="utf-8")
    # Flattened upload: css/site.css ended up at the root
    (content_dir / "site.css").write_text("body {}", encoding="utf-8")

    workspace = Workspace(Settings(content_dir=content_dir, database_dir=tmp_path / "databases"))
    app.dependency_overrides[get_workspace] = lambda: workspace
    yield content_dir
    app.dependency_overrides.pop(get_workspace, None)


@pytest.fixture
def analyzed(uploads):
    resp = client.post("/documents/analyze", json={"filename": "index.html"})
    assert resp.status_code == 200
    return resp.json()


def _preview_names():
    resp = client.get("/documents/index/preview")
    assert resp.status_code == 200
    soup = BeautifulSoup(resp.text, "lxml")
    return [h3.get_text() for h3 in soup.select("div.testimonial h3.name")]


# ---------------------------------------------------------------------------
# Listing and analysis
# ---------------------------------------------------------------------------

class TestAnalyze:
    def test_list_before_analysis(self, uploads):
        resp = client.get("/documents")
        assert resp.status_code == 200
        assert resp.json() == {"files": [{"name": "index.html", "doc_id": "index", "has_store": False}]}

    def test_analyze_response(self, analyzed):
        assert analyzed["doc_id"] == "index"
        assert [c["name"] for c in analyzed["schema"]["collections"]] == ["testimonial_list"]
        assert [s["name"] for s in analyzed["schema"]["singletons"]] == ["header_0", "hero", "footer_2"]
        assert [t["name"] for t in analyzed["tables"]] == ["testimonial_list", "header_0", "hero", "footer_2"]
        assert analyzed["seed"] == {"inserted": 6, "failed": 0, "errors": []}

    def test_analyze_writes_artefacts(self, uploads, analyzed):
        assert (uploads / "index-schema.json").is_file()
        assert client.get("/documents").json()["files"][0]["has_store"] is True

    def test_reanalyze_replaces_records(self, analyzed):
        client.post("/documents/index/records/testimonial_list", json={"title": "Extra"})
        resp = client.post("/documents/analyze", json={"filename": "index"})
        assert resp.status_code == 200
        rows = client.get("/documents/index/records").json()["data"]["testimonial_list"]
        assert [r["title"] for r in rows] == ["Ana", "Ben", "Cleo"]

    def test_analyze_missing_file(self, uploads):
        resp = client.post("/documents/analyze", json={"filename": "missing.html"})
        assert resp.status_code == 404

    def test_analyze_empty_document(self, uploads):
        (uploads / "empty.html").write_text("", encoding="utf-8")
        resp = client.post("/documents/analyze", json={"filename": "empty.html"})
        assert resp.status_code == 400

    def test_analyze_requires_filename(self, uploads):
        resp = client.post("/documents/analyze", json={"filename": ""})
        assert resp.status_code == 422

    def test_schema_document(self, analyzed):
        resp = client.get("/documents/index/schema")
        assert resp.status_code == 200
        assert resp.json()["schema"] == analyzed["schema"]

    def test_schema_unavailable(self, uploads):
        resp = client.get("/documents/index/schema")
        assert resp.status_code == 409


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class TestRecords:
    def test_get_records(self, analyzed):
        resp = client.get("/documents/index/records")
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert [r["title"] for r in data["testimonial_list"]] == ["Ana", "Ben", "Cleo"]
        assert data["hero"][0]["id"] == 1

    def test_records_without_store(self, uploads):
        assert client.get("/documents/index/records").status_code == 404

    def test_update_then_preview(self, analyzed):
        resp = client.put("/documents/index/records/testimonial_list/2", json={"title": "Benjamin"})
        assert resp.status_code == 200
        assert resp.json()["changes"] == 1
        assert _preview_names() == ["Ana", "Benjamin", "Cleo"]

    def test_update_unknown_row(self, analyzed):
        resp = client.put("/documents/index/records/testimonial_list/99", json={"title": "Nobody"})
        assert resp.status_code == 200
        assert resp.json()["changes"] == 0

    def test_add_and_delete(self, analyzed):
        resp = client.post(
            "/documents/index/records/testimonial_list",
            json={"title": "Dana", "description": "Quick and friendly."},
        )
        assert resp.status_code == 200
        assert resp.json()["id"] == 4

        resp = client.delete("/documents/index/records/testimonial_list/1")
        assert resp.status_code == 200
        assert resp.json()["changes"] == 1
        assert _preview_names() == ["Ben", "Cleo", "Dana"]

    @pytest.mark.parametrize("table", ["missing", "bad-name"])
    def test_invalid_table(self, analyzed, table):
        resp = client.put(f"/documents/index/records/{table}/1", json={"title": "x"})
        assert resp.status_code == 400


# ---------------------------------------------------------------------------
# Preview, export, assets, deletion
# ---------------------------------------------------------------------------

class TestOutputs:
    def test_preview_without_schema(self, uploads):
        resp = client.get("/documents/index/preview")
        assert resp.status_code == 409
        assert "Preview Unavailable" in resp.text

    def test_preview_unknown_document(self, uploads):
        assert client.get("/documents/nope/preview").status_code == 404

    def test_preview_adds_base_and_fixes_assets(self, analyzed):
        resp = client.get("/documents/index/preview")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        soup = BeautifulSoup(resp.text, "lxml")
        assert soup.head.base["href"] == "/uploads/"
        assert soup.head.link["href"] == "site.css"

    def test_export_is_an_attachment(self, analyzed):
        resp = client.get("/documents/index/export")
        assert resp.status_code == 200
        assert resp.headers["content-disposition"] == 'attachment; filename="index.html"'
        soup = BeautifulSoup(resp.text, "lxml")
        assert soup.find("base") is None
        assert soup.select_one("#hero h2.headline").get_text() == "Build faster websites"

    def test_assets(self, analyzed):
        resp = client.get("/documents/index/assets")
        assert resp.status_code == 200
        assets = {a["path"]: a for a in resp.json()["assets"]}
        assert assets["css/site.css"]["resolved"] == "site.css"
        assert assets["css/site.css"]["exists"] is True
        assert assets["js/app.js"]["exists"] is False

    def test_delete_document(self, uploads, analyzed):
        resp = client.delete("/documents/index")
        assert resp.status_code == 200
        assert not (uploads / "index.html").exists()
        assert not (uploads / "index-schema.json").exists()
        assert client.get("/documents").json() == {"files": []}
        assert client.delete("/documents/index").status_code == 404


def test_root():
    assert client.get("/").json() == {"message": "Hello from Contently"}
