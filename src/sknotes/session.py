"""Editing session: which note files are open, which one is active, open/save/close."""

import logging
from pathlib import Path

from .adapters.archive import dump_document, load_document
from .adapters.idgen import Base32Id
from .core.document import Document, NoteFile
from .core.head import Head
from .core.ports import IdGenerator, PersistenceBridge
from .errors import BridgeIOError, SaveCancelled
from .library import Library

log = logging.getLogger(__name__)


class Session:
    """
    Open-document bookkeeping above the library index.

    Every open goes through `find_by_path` first so a path is never loaded
    into two NoteFile instances at once.
    """

    def __init__(
        self,
        library: Library,
        bridge: PersistenceBridge,
        idgen: IdGenerator | None = None,
        default_title: str = "untitled",
    ):
        self.library = library
        self.bridge = bridge
        self.idgen = idgen or Base32Id()
        self.default_title = default_title
        self.open_documents: dict[str, NoteFile] = {}
        self.active: NoteFile | None = None

    # Lookup

    def find_by_path(self, path: Path) -> NoteFile | None:
        path = Path(path).resolve()
        for note_file in self.open_documents.values():
            if note_file.path is not None and note_file.path.resolve() == path:
                return note_file
        return None

    def find_by_id(self, session_id: str) -> NoteFile | None:
        return self.open_documents.get(session_id)

    def activate(self, note_file: NoteFile) -> NoteFile:
        if note_file.id not in self.open_documents:
            self.open_documents[note_file.id] = note_file
        self.active = note_file
        return note_file

    # Open

    def open(self, path: Path) -> NoteFile:
        """Return the open NoteFile for `path`, reading it from storage only if needed."""
        path = Path(path).resolve()
        note_file = self.find_by_path(path)
        if note_file is None:
            document = load_document(self.bridge.read_binary(path))
            note_file = NoteFile(path, document)
            log.debug("Opened %s as %s", path, note_file.id)
        return self.activate(note_file)

    def open_via_dialog(self) -> NoteFile:
        path = self.bridge.choose_open_path()
        if path is None:
            raise BridgeIOError("No file chosen")
        return self.open(path)

    # Create

    def new_document(self, title: str | None = None) -> NoteFile:
        """In-memory note with no path; the first save asks for one."""
        note_file = NoteFile(None, Document(Head.create(title or self.default_title)))
        return self.activate(note_file)

    def new_note(
        self,
        title: str | None = None,
        description: str | None = None,
        image_url: str | None = None,
        collection: Path | None = None,
    ) -> NoteFile:
        """Create, save and open a note with a fresh collision-free file name."""
        directory = Path(collection) if collection is not None else self.library.base_path
        name = self.library.available_name(directory, self.idgen.new_id(), self.library.extension)

        head = Head.create(title or self.default_title)
        if description is not None:
            head["description"] = description
        if image_url is not None:
            head["imageURL"] = image_url

        note_file = NoteFile(self.library.note_path(name, directory), Document(head))
        self.save(note_file)
        self.library.refresh()
        return self.activate(note_file)

    def new_collection(self, name: str = "untitled_collection", parent: Path | None = None) -> Path:
        directory = Path(parent) if parent is not None else self.library.base_path
        name = self.library.available_name(directory, name)
        path = self.library.create_collection(name, directory)
        self.library.refresh()
        return path

    # Save

    def save(self, note_file: NoteFile) -> Path:
        """
        Write `note_file` as an archive. Asks the bridge for a path on first
        save; if the prompt is dismissed, raises SaveCancelled and leaves the
        NoteFile exactly as it was.
        """
        path = note_file.path
        if path is None:
            path = self.bridge.choose_save_path()
            if path is None:
                raise SaveCancelled("Save cancelled")

        path = Path(path).resolve()
        self.bridge.write_binary(path, dump_document(note_file.document))
        note_file.path = path
        log.info("Saved %s", note_file.path)
        return note_file.path

    def save_active(self) -> Path:
        if self.active is None:
            raise BridgeIOError("No active document")
        return self.save(self.active)

    # Close

    def close(self, session_id: str) -> NoteFile | None:
        """
        Forget an open document. The document opened just before it becomes
        active; returns the new active document (None when nothing is open).
        """
        ids = list(self.open_documents)
        if session_id not in self.open_documents:
            return self.active

        position = ids.index(session_id)
        del self.open_documents[session_id]

        if self.active is not None and self.active.id == session_id:
            remaining = list(self.open_documents.values())
            if not remaining:
                self.active = None
            else:
                self.active = remaining[max(position - 1, 0)]
        return self.active
