"""Tests for API functionality."""

import tempfile
from pathlib import Path

import pytest

try:
    from fastapi.testclient import TestClient

    from sknotes.api.app import create_app, generate_token
    FASTAPI_AVAILABLE = True
except ImportError:
    FASTAPI_AVAILABLE = False
    TestClient = None  # type: ignore

from sknotes.core.model import EmbeddedFile, create_image, create_paragraph
from sknotes.runtime import build_runtime

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def runtime():
    """Create a runtime with a test library."""
    with tempfile.TemporaryDirectory() as tmpdir:
        library_path = Path(tmpdir) / "library"
        rt = build_runtime(library_path=library_path)
        yield rt


def _add_note(runtime) -> str:
    note_file = runtime.session.new_note("Test Note")
    document = note_file.document
    document.append(create_paragraph("Content here."))
    document.append(create_image("pic.png", "A picture"))
    document.append(create_image("gone.png"))
    document.add_file(EmbeddedFile("pic.png", PNG, "image/png"))
    runtime.session.save(note_file)
    return note_file.path.relative_to(runtime.library.base_path).as_posix()


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_health_endpoint(runtime):
    """Test /health endpoint."""
    from sknotes import __version__

    app = create_app(runtime, token=None)
    client = TestClient(app)

    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == __version__


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_auth_required(runtime):
    """Test that endpoints require authentication when token is set."""
    token = generate_token()
    app = create_app(runtime, token=token)
    client = TestClient(app)

    # Without token should get 401
    response = client.get("/health")
    assert response.status_code == 401

    response = client.get("/health", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401

    # With token should work
    response = client.get("/health", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_library_endpoint(runtime):
    """Test /library lists notes and collections."""
    path = _add_note(runtime)
    runtime.session.new_collection("topics")

    client = TestClient(create_app(runtime))
    response = client.get("/library")
    assert response.status_code == 200
    data = response.json()
    assert {"path": path, "type": "file"} in data
    assert {"path": "topics", "type": "collection"} in data


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_get_note(runtime):
    """Test /notes endpoint."""
    path = _add_note(runtime)
    client = TestClient(create_app(runtime))

    response = client.get("/notes", params={"path": path})
    assert response.status_code == 200
    data = response.json()
    assert data["path"] == path
    assert data["head"]["title"] == "Test Note"
    assert [b["kind"] for b in data["body"]] == ["p", "img", "img"]
    assert data["body"][0]["content"] == "Content here."
    assert data["body"][1]["missing"] is False
    assert data["body"][2]["missing"] is True
    assert data["files"] == [{"filename": "pic.png", "media_type": "image/png", "size": len(PNG)}]


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_get_note_not_found(runtime):
    """Test /notes with nonexistent or out-of-library paths."""
    client = TestClient(create_app(runtime))

    assert client.get("/notes", params={"path": "nonexistent.sk"}).status_code == 404
    assert client.get("/notes", params={"path": "../outside.sk"}).status_code == 400


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_get_note_corrupt(runtime):
    """Unreadable notes are reported as unprocessable."""
    (runtime.library.base_path / "bad.sk").write_bytes(b"PK\x03\x04 truncated")
    client = TestClient(create_app(runtime))

    assert client.get("/notes", params={"path": "bad.sk"}).status_code == 422


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_skml_endpoint(runtime):
    """Test /notes/skml returns the note text."""
    path = _add_note(runtime)
    client = TestClient(create_app(runtime))

    response = client.get("/notes/skml", params={"path": path})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert response.text.startswith("<skml>")
    assert "<title>Test Note</title>" in response.text


@pytest.mark.skipif(not FASTAPI_AVAILABLE, reason="fastapi not installed")
def test_file_endpoint(runtime):
    """Test /notes/files/{filename} returns embedded bytes."""
    path = _add_note(runtime)
    client = TestClient(create_app(runtime))

    response = client.get("/notes/files/pic.png", params={"path": path})
    assert response.status_code == 200
    assert response.content == PNG
    assert response.headers["content-type"] == "image/png"

    response = client.get("/notes/files/gone.png", params={"path": path})
    assert response.status_code == 404
