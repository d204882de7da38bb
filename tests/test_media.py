"""Tests for content-based media type detection."""

import pytest

pytest.importorskip("magic")

from sknotes.adapters.media import DEFAULT_MEDIA_TYPE, embed_bytes, embed_path, sniff_media_type  # noqa: E402

PNG = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"


def test_sniff_from_content():
    """Media types come from the bytes, not from a name."""
    assert sniff_media_type(PNG) == "image/png"
    assert sniff_media_type(b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n") == "application/pdf"


def test_empty_data_is_octet_stream():
    """Nothing to sniff means the generic binary type."""
    assert sniff_media_type(b"") == DEFAULT_MEDIA_TYPE


def test_embed_ignores_extension(tmp_path):
    """A PNG named .txt is still embedded as image/png."""
    path = tmp_path / "misnamed.txt"
    path.write_bytes(PNG)

    embedded = embed_path(path)
    assert embedded.filename == "misnamed.txt"
    assert embedded.media_type == "image/png"
    assert embedded.data == PNG

    assert embed_bytes("x.bin", PNG).media_type == "image/png"
