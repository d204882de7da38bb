from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from ..errors import DuplicateFilename, DuplicateId, InvalidFilename, NotAList, OutOfRange
from .head import Head
from .model import Block, BlockKind, EmbeddedFile, ListItem

# Name of the SKML text entry inside a note archive
TEXT_ENTRY = "note.skml"


class Document:
    """
    A note: metadata head, ordered body of blocks and embedded files.

    Position in `body` is the only block address. The methods below are the
    only sanctioned way to change the body or a list's items; every call
    validates its indices and changes the length of exactly one sequence by
    exactly one element.
    """

    def __init__(
        self,
        head: Head | None = None,
        body: Iterable[Block] | None = None,
        files: Iterable[EmbeddedFile] | None = None,
    ):
        self.head = head if head is not None else Head()
        self._body: list[Block] = []
        for block in body or []:
            self.append(block)
        self._files: dict[str, EmbeddedFile] = {}
        for f in files or []:
            self.add_file(f)

    @property
    def body(self) -> tuple[Block, ...]:
        return tuple(self._body)

    @property
    def files(self) -> Mapping[str, EmbeddedFile]:
        return MappingProxyType(self._files)

    def __len__(self) -> int:
        return len(self._body)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Document):
            return NotImplemented
        return (
            self.head == other.head
            and self._body == other._body
            and self._files == other._files
        )

    def __repr__(self) -> str:
        return f"Document(head={self.head!r}, blocks={len(self._body)}, files={list(self._files)})"

    # Body

    def block(self, index: int) -> Block:
        self._check_occupied(index, len(self._body))
        return self._body[index]

    def insert(self, index: int, block: Block) -> None:
        """Insert before the block currently at `index`; `index == len` appends."""
        if not 0 <= index <= len(self._body):
            raise OutOfRange(index, len(self._body))
        taken = self._ids()
        for new_id in (block.id, *(i.id for i in block.items or [])):
            if new_id in taken:
                raise DuplicateId(new_id)
            taken.add(new_id)
        self._body.insert(index, block)

    def append(self, block: Block) -> None:
        self.insert(len(self._body), block)

    def remove(self, index: int) -> Block:
        self._check_occupied(index, len(self._body))
        return self._body.pop(index)

    # List items

    def list_item(self, list_index: int, item_index: int) -> ListItem:
        items = self._list_items(list_index)
        self._check_occupied(item_index, len(items), what=f"items of block {list_index}")
        return items[item_index]

    def insert_list_item(self, list_index: int, item_index: int, item: ListItem) -> None:
        items = self._list_items(list_index)
        if not 0 <= item_index <= len(items):
            raise OutOfRange(item_index, len(items), what=f"items of block {list_index}")
        if item.id in self._ids():
            raise DuplicateId(item.id)
        items.insert(item_index, item)
        self._body[list_index].touch()

    def remove_list_item(self, list_index: int, item_index: int) -> ListItem:
        items = self._list_items(list_index)
        self._check_occupied(item_index, len(items), what=f"items of block {list_index}")
        removed = items.pop(item_index)
        self._body[list_index].touch()
        return removed

    # Head

    def set_property(self, key: str, value: Any) -> None:
        self.head[key] = value

    # Embedded files

    def add_file(self, embedded_file: EmbeddedFile) -> None:
        filename = embedded_file.filename
        if not filename or filename.endswith("/") or filename.startswith("/"):
            raise InvalidFilename(f"Cannot embed a file named {filename!r}")
        if filename in self._files or filename == TEXT_ENTRY:
            raise DuplicateFilename(filename)
        self._files[filename] = embedded_file

    def get_file(self, filename: str) -> EmbeddedFile | None:
        return self._files.get(filename)

    def image_file(self, index: int) -> EmbeddedFile | None:
        """Resolve the resource of the image block at `index`; None when dangling."""
        block = self.block(index)
        if block.kind is not BlockKind.IMAGE or block.filename is None:
            return None
        return self._files.get(block.filename)

    def dangling_images(self) -> list[int]:
        """Indices of image blocks whose file is not embedded."""
        return [
            i
            for i, b in enumerate(self._body)
            if b.kind is BlockKind.IMAGE and b.filename not in self._files
        ]

    # Helpers

    def _ids(self) -> set[str]:
        """Ids of every block and list item in the body."""
        ids = set()
        for block in self._body:
            ids.add(block.id)
            ids.update(item.id for item in block.items or [])
        return ids

    def _list_items(self, list_index: int) -> list[ListItem]:
        block = self.block(list_index)
        if not block.kind.is_list or block.items is None:
            raise NotAList(list_index, block.kind.tag)
        return block.items

    @staticmethod
    def _check_occupied(index: int, length: int, what: str = "body") -> None:
        if not 0 <= index < length:
            raise OutOfRange(index, length, what=what)


@dataclass
class NoteFile:
    """Unit of persistence: a document plus the path it is saved at (None until first save)."""

    path: Path | None
    document: Document
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def title(self) -> str | None:
        return self.document.head.title
