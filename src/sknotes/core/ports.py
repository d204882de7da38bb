from pathlib import Path
from typing import Protocol

from .document import Document


class Codec(Protocol):
    """
    Text serialization of a document's head and body.
    Embedded files are not part of the text; the archive carries them.
    """

    name: str

    def encode(self, document: Document) -> str:
        pass

    def decode(self, text: str) -> Document:
        pass


class PersistenceBridge(Protocol):
    """
    Host-provided file access and path prompts.
    Any failure surfaces as BridgeIOError; a dismissed prompt returns None.
    """

    def read_binary(self, path: Path) -> bytes:
        pass

    def write_binary(self, path: Path, data: bytes) -> None:
        pass

    def choose_save_path(self) -> Path | None:
        pass

    def choose_open_path(self) -> Path | None:
        pass


class IdGenerator(Protocol):
    def new_id(self) -> str:
        pass
