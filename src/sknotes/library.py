"""Library index: notes and collections under a root directory."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .core.utils import available_name, join_extension
from .errors import AlreadyExists, InvalidFilename

log = logging.getLogger(__name__)


class LibraryItemType(str, Enum):
    FILE = "file"
    COLLECTION = "collection"


@dataclass(frozen=True)
class LibraryItem:
    """A note file or a collection (directory) inside the library."""

    path: Path
    type: LibraryItemType

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_collection(self) -> bool:
        return self.type is LibraryItemType.COLLECTION


def should_skip(path: Path) -> bool:
    name = path.name

    # Hidden files, including in-flight atomic-write temp files
    if name.startswith("."):
        return True

    # Temp/backup files
    if name.endswith("~") or name.endswith(".tmp") or name.endswith(".swp"):
        return True

    return False


class Library:
    """
    In-memory listing of a library root. The listing is a cache of the
    filesystem: `refresh()` rebuilds it from scratch and must be called after
    anything creates, renames or deletes entries.
    """

    def __init__(self, base_path: Path, extension: str = "sk"):
        self.base_path = Path(base_path).resolve()
        self.extension = extension.lstrip(".")
        self.items: list[LibraryItem] = []

    def initialize(self) -> None:
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.refresh()

    def refresh(self) -> list[LibraryItem]:
        """Rescan the root recursively and replace the item list."""
        items: list[LibraryItem] = []
        if self.base_path.exists():
            self._scan(self.base_path, items)
        items.sort(key=lambda item: item.path)
        self.items = items
        log.debug("Library %s: %d item(s)", self.base_path, len(items))
        return items

    def _scan(self, directory: Path, out: list[LibraryItem]) -> None:
        for entry in directory.iterdir():
            if should_skip(entry):
                continue
            if entry.is_symlink() and entry.is_dir():
                log.debug("Not following symlinked directory %s", entry)
                continue
            if entry.is_dir():
                out.append(LibraryItem(entry, LibraryItemType.COLLECTION))
                self._scan(entry, out)
            elif entry.is_file() and entry.suffix == f".{self.extension}":
                out.append(LibraryItem(entry, LibraryItemType.FILE))

    def is_note_path(self, path: Path) -> bool:
        return not should_skip(path) and path.suffix == f".{self.extension}"

    # Lookup

    def find(self, path: Path) -> LibraryItem | None:
        path = Path(path)
        for item in self.items:
            if item.path == path:
                return item
        return None

    def files(self) -> list[LibraryItem]:
        return [item for item in self.items if item.type is LibraryItemType.FILE]

    def collections(self) -> list[LibraryItem]:
        return [item for item in self.items if item.type is LibraryItemType.COLLECTION]

    # Naming

    def available_name(
        self, directory: Path | None, base_name: str, extension: str | None = None
    ) -> str:
        """
        First free name among `base_name`, `base_name_2`, `base_name_3`, ...
        in `directory` (the library root when None). The directory is read
        once, so the answer is deterministic for that snapshot.
        """
        directory = Path(directory) if directory is not None else self.base_path
        existing = {p.name for p in directory.iterdir()} if directory.exists() else set()
        return available_name(existing, base_name, extension)

    def note_path(self, name: str, directory: Path | None = None) -> Path:
        directory = Path(directory) if directory is not None else self.base_path
        return directory / join_extension(name, self.extension)

    # Mutation

    def create_collection(self, name: str, parent: Path | None = None) -> Path:
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise InvalidFilename(f"Invalid collection name: {name!r}")
        parent = Path(parent).resolve() if parent is not None else self.base_path
        if parent != self.base_path and self.base_path not in parent.parents:
            raise InvalidFilename(f"Collection parent is outside the library: {parent}")
        path = parent / name
        if path.exists():
            raise AlreadyExists(f"Library entry already exists: {path}")
        try:
            path.mkdir()
        except FileExistsError:
            raise AlreadyExists(f"Library entry already exists: {path}") from None
        log.info("Created collection %s", path)
        return path
