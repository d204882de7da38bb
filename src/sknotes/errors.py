"""Error types raised by the note model, codecs and storage layers."""


class SkError(Exception):
    """Base class for all sknotes errors."""


class OutOfRange(SkError, IndexError):
    """Index does not address a valid slot of the body or of a list's items."""

    def __init__(self, index: int, length: int, what: str = "body"):
        super().__init__(f"Index {index} out of range for {what} of length {length}")
        self.index = index
        self.length = length


class NotAList(SkError, TypeError):
    """A list-item operation was applied to a block that is not a list."""

    def __init__(self, index: int, kind: str):
        super().__init__(f"Block {index} is '{kind}', not a list")
        self.index = index
        self.kind = kind


class DuplicateFilename(SkError, ValueError):
    """An embedded file with the same name is already registered."""

    def __init__(self, filename: str):
        super().__init__(f"Embedded file already exists: {filename}")
        self.filename = filename


class InvalidDocument(SkError, ValueError):
    """Serialized text could not be turned into a document (or vice versa)."""


class CorruptArchive(SkError):
    """Container bytes are not a readable note archive."""


class BridgeIOError(SkError, OSError):
    """Reading, writing or choosing a path through the persistence bridge failed."""


class SaveCancelled(BridgeIOError):
    """The user dismissed the save-path prompt."""


class AlreadyExists(SkError, FileExistsError):
    """A library entry with that name already exists."""


class InvalidFilename(SkError, ValueError):
    """A name that cannot be stored in a note archive or the library."""


class DuplicateId(SkError, ValueError):
    """A block or list item with the same id is already in the document."""

    def __init__(self, block_id: str):
        super().__init__(f"Id already present in document: {block_id}")
        self.block_id = block_id
