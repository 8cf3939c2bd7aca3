"""
Unit tests for DocUploaderClient.

The client is pointed at the application through FastAPI's TestClient, which
is an ``httpx.Client``.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from docuploader.client import (
    DEFAULT_TIMEOUT,
    ApiError,
    DocUploaderClient,
    UploadProgress,
)
from docuploader.exceptions import InvalidContainerNameError


@pytest.fixture
def api(app):
    return DocUploaderClient(http_client=TestClient(app), chunk_size=256)


class TestUploadProgress:
    """Test progress event values."""

    def test_percentage(self):
        assert UploadProgress(0, 200).percentage == 0
        assert UploadProgress(50, 200).percentage == 25
        assert UploadProgress(200, 200).percentage == 100

    def test_percentage_empty_body(self):
        assert UploadProgress(0, 0).percentage == 100


class TestClientConstruction:
    """Test client lifecycle."""

    def test_default_client(self):
        """Test the default client uses the base URL and 5-minute timeout."""
        client = DocUploaderClient("http://localhost:5000")

        assert str(client._http.base_url).startswith("http://localhost:5000")
        assert client._http.timeout.read == DEFAULT_TIMEOUT == 300.0
        client.close()
        assert client._http.is_closed

    def test_injected_client_not_closed(self, app):
        """Test an injected client is left open."""
        http_client = TestClient(app)

        with DocUploaderClient(http_client=http_client):
            pass

        assert not http_client.is_closed


class TestContainers:
    """Test container calls."""

    def test_health(self, api):
        assert api.health().status == "OK"

    def test_create_and_list(self, api):
        """Test creating and listing containers."""
        result = api.create_container("test-docs")

        assert result.message == "Container created successfully"
        assert [c.name for c in api.list_containers()] == ["test-docs"]

    def test_create_invalid_name_not_sent(self, api, storage):
        """Test an invalid name is rejected before any request."""
        with pytest.raises(InvalidContainerNameError) as exc_info:
            api.create_container("AB")

        assert exc_info.value.message == "Container name must be between 3 and 63 characters"

    def test_create_duplicate(self, api):
        """Test a duplicate create surfaces as ApiError 409."""
        api.create_container("test-docs")

        with pytest.raises(ApiError) as exc_info:
            api.create_container("test-docs")

        assert exc_info.value.status_code == 409
        assert exc_info.value.code == "ContainerAlreadyExists"
        assert exc_info.value.message == "Container already exists"


class TestFiles:
    """Test file calls."""

    def test_upload_reports_progress(self, api):
        """Test progress events are monotonic and end at the total."""
        events = []

        result = api.upload_file(
            "test-docs", "report.pdf", b"x" * 2000, "application/pdf", on_progress=events.append
        )

        assert result.original_name == "report.pdf"
        assert result.size == 2000
        assert len(events) > 1
        sent = [e.bytes_sent for e in events]
        assert sent == sorted(sent)
        assert len({e.total_bytes for e in events}) == 1
        assert events[-1].bytes_sent == events[-1].total_bytes
        assert events[-1].percentage == 100
        # The multipart body is larger than the file itself
        assert events[-1].total_bytes > 2000

    def test_upload_without_callback(self, api):
        """Test uploads work without a progress callback."""
        result = api.upload_file("test-docs", "notes.txt", b"hello", "text/plain")

        assert result.container == "test-docs"

    def test_upload_rejected(self, api):
        """Test a rejected upload surfaces as ApiError 400."""
        with pytest.raises(ApiError) as exc_info:
            api.upload_file("test-docs", "app.zip", b"PK", "application/zip")

        assert exc_info.value.status_code == 400
        assert exc_info.value.code == "UnsupportedFileType"

    def test_round_trip(self, api, tmp_path):
        """Test upload, list, download and delete."""
        uploaded = api.upload_file("test-docs", "q3 report.pdf", b"%PDF-1.7" * 75, "application/pdf")

        files = api.list_files("test-docs")
        assert [f.original_name for f in files] == ["q3 report.pdf"]
        assert files[0].size == 600

        destination = tmp_path / "copy.pdf"
        assert api.download_file("test-docs", uploaded.filename, destination) == 600
        assert destination.read_bytes() == b"%PDF-1.7" * 75

        assert api.delete_file("test-docs", uploaded.filename).message == "File deleted successfully"
        assert api.list_files("test-docs") == []

    def test_list_missing_container(self, api):
        """Test listing a missing container surfaces as ApiError 404."""
        with pytest.raises(ApiError) as exc_info:
            api.list_files("missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.code == "ContainerNotFound"

    def test_download_missing(self, api, tmp_path):
        """Test a missing download raises and writes nothing."""
        api.create_container("test-docs")
        destination = tmp_path / "nope.pdf"

        with pytest.raises(ApiError) as exc_info:
            api.download_file("test-docs", "nope.pdf", destination)

        assert exc_info.value.status_code == 404
        assert not destination.exists()

    def test_delete_missing(self, api):
        """Test deleting a missing blob surfaces as ApiError 404."""
        api.create_container("test-docs")

        with pytest.raises(ApiError) as exc_info:
            api.delete_file("test-docs", "nope.pdf")

        assert exc_info.value.code == "BlobNotFound"

    def test_download_interrupted_removes_partial_file(self, tmp_path):
        """Test a transport failure mid-download leaves no partial file behind."""
        def dropped_body():
            yield b"%PDF-1.7"
            raise httpx.ReadError("connection reset")

        def handler(request):
            return httpx.Response(200, content=dropped_body(), headers={"content-type": "application/pdf"})

        http_client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://testserver")
        destination = tmp_path / "report.pdf"

        with DocUploaderClient(http_client=http_client) as api:
            with pytest.raises(httpx.ReadError):
                api.download_file("test-docs", "id-report.pdf", destination)

        assert not destination.exists()
