"""
Note archives: one zip container holding the SKML text and every embedded file.

Layout:
    note.skml          UTF-8 SKML text (head + body), always the first entry
    <filename> ...     one entry per embedded file, comment = media type

Files that are not zip containers are read as plain legacy XML text.
New and resaved documents are always written as archives.
"""

import io
import logging
import zipfile
import zlib

from ..core.document import TEXT_ENTRY, Document
from ..core.model import EmbeddedFile
from ..errors import CorruptArchive, DuplicateFilename, InvalidFilename
from .media import sniff_media_type
from .xml_codec import LEGACY, SKML

log = logging.getLogger(__name__)

# Local file header and empty-archive end record
_ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06")

# Fixed entry time keeps packing an unchanged document byte-identical
_EPOCH = (1980, 1, 1, 0, 0, 0)


def is_archive(data: bytes) -> bool:
    return data[:4] in _ZIP_SIGNATURES


def pack(document: Document) -> bytes:
    """Serialize `document` to SKML and bundle it with its embedded files."""
    text = SKML.encode(document)
    buf = io.BytesIO()

    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(_entry(TEXT_ENTRY), text.encode("utf-8"))

        for filename, embedded in document.files.items():
            info = _entry(filename)
            info.comment = embedded.media_type.encode("utf-8")
            zf.writestr(info, embedded.data)

    log.debug("Packed %d block(s), %d file(s)", len(document), len(document.files))
    return buf.getvalue()


def unpack(data: bytes) -> Document:
    """
    Rebuild a document from archive bytes.

    Raises CorruptArchive when the container or its text entry cannot be
    read; SKML errors surface as InvalidDocument. Image blocks pointing at
    files that are not in the archive are left as they are.
    """
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise CorruptArchive(f"Not a note archive: {e}") from e

    with zf:
        try:
            raw = zf.read(TEXT_ENTRY)
        except KeyError:
            raise CorruptArchive(f"Archive has no '{TEXT_ENTRY}' entry") from None
        except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, OSError, EOFError) as e:
            raise CorruptArchive(f"Cannot read '{TEXT_ENTRY}': {e}") from e

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptArchive(f"'{TEXT_ENTRY}' is not UTF-8 text") from e

        document = SKML.decode(text)

        for info in zf.infolist():
            if info.filename == TEXT_ENTRY or info.is_dir():
                continue
            try:
                payload = zf.read(info)
            except (zipfile.BadZipFile, zlib.error, OSError, EOFError) as e:
                raise CorruptArchive(f"Cannot read embedded file '{info.filename}': {e}") from e
            media_type = info.comment.decode("utf-8", errors="replace") or sniff_media_type(payload)
            try:
                document.add_file(EmbeddedFile(info.filename, payload, media_type))
            except (DuplicateFilename, InvalidFilename) as e:
                raise CorruptArchive(f"Bad embedded file entry: {e}") from e

    dangling = document.dangling_images()
    if dangling:
        log.info("Image block(s) %s reference files missing from the archive", dangling)
    return document


def load_document(data: bytes) -> Document:
    """Decode persisted bytes: archives via SKML, anything else as legacy XML text."""
    if is_archive(data):
        return unpack(data)

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CorruptArchive("Neither a note archive nor UTF-8 legacy text") from e
    return LEGACY.decode(text)


def dump_document(document: Document) -> bytes:
    return pack(document)


def _entry(name: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(name, date_time=_EPOCH)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    return info
