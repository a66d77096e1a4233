"""Unit tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from ooxml_builders import PNG_BYTES
from tech_support import __version__
from tech_support.api import main as api_main
from tech_support.config import APISettings, ExtractionSettings, Settings, StorageSettings


@pytest.fixture
def make_client(tmp_path):
    clients = []

    def factory(**api_options):
        settings = Settings(
            storage=StorageSettings(data_dir=tmp_path / "data", images_dir=tmp_path / "images"),
            api=APISettings(**api_options),
            extraction=ExtractionSettings(image_scope="all_slides"),
        )
        client = TestClient(api_main.create_app(settings), raise_server_exceptions=False)
        client.__enter__()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()


def upload(client, name, data):
    return client.post(
        "/api/tech-support/upload",
        files={"file": (name, data, "application/octet-stream")},
    )


class TestUpload:
    """Tests for POST /api/tech-support/upload."""

    def test_presentation_upload(self, client, three_slide_pptx):
        response = upload(client, "manual.pptx", three_slide_pptx)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["fileName"].startswith("data_")
        assert body["imageCount"] == 2
        assert body["warningCount"] == 0
        assert body["data"]["title"] == "manual"
        assert [s["slideNumber"] for s in body["data"]["slides"]] == [1, 2, 3]

    def test_spreadsheet_upload(self, client, two_sheet_xlsx):
        response = upload(client, "parts.xlsx", two_sheet_xlsx)

        assert response.status_code == 200
        assert [s["name"] for s in response.json()["data"]["sheets"]] == ["Inspection", "Parts"]

    def test_consecutive_uploads_get_distinct_names(self, client, three_slide_pptx):
        first = upload(client, "a.pptx", three_slide_pptx).json()
        second = upload(client, "b.pptx", three_slide_pptx).json()

        assert first["fileName"] != second["fileName"]
        first_images = {i["fileName"] for i in first["data"]["slides"][0]["images"]}
        second_images = {i["fileName"] for i in second["data"]["slides"][0]["images"]}
        assert first_images.isdisjoint(second_images)

    def test_unsupported_extension_is_415(self, client):
        response = upload(client, "legacy.xls", b"anything")

        assert response.status_code == 415
        assert response.json()["status_code"] == 415

    def test_corrupt_document_is_422(self, client):
        response = upload(client, "broken.pptx", b"definitely not a zip")

        assert response.status_code == 422
        assert "zip" in response.json()["error"]

    def test_oversized_upload_is_413(self, make_client, three_slide_pptx):
        client = make_client(max_upload_bytes=16)

        response = upload(client, "manual.pptx", three_slide_pptx)

        assert response.status_code == 413

    def test_unexpected_failure_is_500(self, client, monkeypatch, three_slide_pptx):
        def explode(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(api_main, "extract_document", explode)

        response = upload(client, "manual.pptx", three_slide_pptx)

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "status_code": 500}


class TestStoredResults:
    """Tests for listing and fetching stored results."""

    def test_files_data_and_images(self, client, three_slide_pptx):
        uploaded = upload(client, "manual.pptx", three_slide_pptx).json()

        files = client.get("/api/tech-support/files").json()["files"]
        assert [f["name"] for f in files] == [uploaded["fileName"]]
        assert set(files[0]) == {"name", "size", "modified"}

        data = client.get(f"/api/tech-support/data/{uploaded['fileName']}")
        assert data.status_code == 200
        assert data.json()["title"] == "manual"

        latest = client.get("/api/tech-support/data/data_latest.json")
        assert latest.json() == data.json()

        image_name = uploaded["data"]["slides"][0]["images"][0]["fileName"]
        image = client.get(f"/api/tech-support/images/{image_name}")
        assert image.status_code == 200
        assert image.content == PNG_BYTES

    def test_unknown_files_are_404(self, client):
        assert client.get("/api/tech-support/data/data_1.json").status_code == 404
        assert client.get("/api/tech-support/images/image_1_1.png").status_code == 404
        assert client.get("/api/tech-support/data/data_1.json").json()["status_code"] == 404


class TestSearchData:
    """Tests for the search feed."""

    def test_search_feed_lists_uploaded_content(self, client, three_slide_pptx):
        upload(client, "manual.pptx", three_slide_pptx)

        response = client.get("/api/tech-support/search-data")

        assert response.status_code == 200
        items = response.json()
        assert set(items[0]) == {"title", "description", "content", "type", "source"}
        assert [i["content"] for i in items if i["type"] == "text"] == [
            "Engine start procedure",
            "Brake test",
            "Check coolant",
        ]
        image_sources = [i["source"] for i in items if i["type"] == "image"]
        assert len(image_sources) == 2
        assert client.get(image_sources[0]).content == PNG_BYTES

    def test_search_feed_on_empty_store(self, client):
        response = client.get("/api/tech-support/search-data")

        assert response.status_code == 200
        assert response.json() == []


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client):
        body = client.get("/api/v1/health").json()

        assert body["status"] == "healthy"
        assert body["version"] == __version__
        assert body["services"]["storage"]["stored_results"] == 0
