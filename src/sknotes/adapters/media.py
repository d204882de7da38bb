"""Content-based media type detection for embedded files."""

from pathlib import Path

from ..core.model import EmbeddedFile

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def sniff_media_type(data: bytes) -> str:
    """
    Media type of `data` from its leading bytes (libmagic), never from a file
    extension.
    """
    import magic

    if not data:
        return DEFAULT_MEDIA_TYPE
    return magic.from_buffer(data[:8192], mime=True) or DEFAULT_MEDIA_TYPE


def embed_bytes(filename: str, data: bytes) -> EmbeddedFile:
    return EmbeddedFile(filename=filename, data=data, media_type=sniff_media_type(data))


def embed_path(path: Path) -> EmbeddedFile:
    return embed_bytes(path.name, path.read_bytes())
