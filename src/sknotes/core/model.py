from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum

from .utils import now_ms

DEFAULT_LANGUAGE = "plaintext"


class BlockKind(str, Enum):
    """Block variants; the value doubles as the XML tag name."""

    PARAGRAPH = "p"
    HEADER1 = "h1"
    HEADER2 = "h2"
    HEADER3 = "h3"
    HEADER4 = "h4"
    HEADER5 = "h5"
    HEADER6 = "h6"
    HORIZONTAL_RULE = "hr"
    BLOCKQUOTE = "blockquote"
    CODE = "code"
    MATH = "math"
    ORDERED_LIST = "ol"
    UNORDERED_LIST = "ul"
    IMAGE = "img"

    @property
    def tag(self) -> str:
        return self.value

    @property
    def is_list(self) -> bool:
        return self in (BlockKind.ORDERED_LIST, BlockKind.UNORDERED_LIST)

    @property
    def is_header(self) -> bool:
        return self in HEADERS

    @property
    def level(self) -> int | None:
        """Header level 1-6, None for every other kind."""
        return int(self.value[1]) if self.is_header else None

    @classmethod
    def header(cls, level: int) -> BlockKind:
        if not 1 <= level <= 6:
            raise ValueError(f"Header level must be 1-6, got {level}")
        return cls(f"h{level}")


HEADERS = (
    BlockKind.HEADER1,
    BlockKind.HEADER2,
    BlockKind.HEADER3,
    BlockKind.HEADER4,
    BlockKind.HEADER5,
    BlockKind.HEADER6,
)

# Kinds without a text payload of their own
NO_CONTENT = (BlockKind.HORIZONTAL_RULE, BlockKind.ORDERED_LIST, BlockKind.UNORDERED_LIST)

_WRITE_ONCE = ("id", "created")


def _new_id() -> str:
    return uuid.uuid4().hex


class _Stamped:
    """Shared lifecycle for blocks and list items: write-once id/created, monotonic modified."""

    created: int | None
    modified: int | None

    def __setattr__(self, name: str, value: object) -> None:
        if name in _WRITE_ONCE and getattr(self, name, None) is not None:
            raise AttributeError(f"'{name}' is assigned once and cannot be changed")
        if name == "modified" and value is not None:
            created = getattr(self, "created", None)
            if created is not None and value < created:  # type: ignore[operator]
                raise ValueError(f"modified ({value}) is earlier than created ({created})")
        object.__setattr__(self, name, value)

    def _stamp(self) -> None:
        if self.created is None:
            now = now_ms()
            self.created = now if self.modified is None else min(now, self.modified)
        if self.modified is None:
            self.modified = self.created

    def touch(self) -> None:
        """Record a content change."""
        self.modified = max(now_ms(), self.created, self.modified)


@dataclass
class ListItem(_Stamped):
    content: str = ""
    created: int | None = None  # stamped in __post_init__
    modified: int | None = None
    id: str = field(default_factory=_new_id, compare=False)

    def __post_init__(self) -> None:
        self._stamp()

    def edit(self, content: str) -> None:
        self.content = content
        self.touch()


@dataclass
class Block(_Stamped):
    kind: BlockKind
    content: str = ""
    created: int | None = None  # stamped in __post_init__
    modified: int | None = None
    language: str | None = None  # code only
    items: list[ListItem] | None = None  # ol/ul only
    filename: str | None = None  # img only, soft reference into Document.files
    id: str = field(default_factory=_new_id, compare=False)

    def __post_init__(self) -> None:
        self.kind = BlockKind(self.kind)
        if self.kind is BlockKind.CODE and self.language is None:
            self.language = DEFAULT_LANGUAGE
        if self.kind.is_list:
            if self.items is None:
                self.items = []
        elif self.items is not None:
            raise ValueError(f"Only list blocks carry items, not '{self.kind.tag}'")
        if self.kind in NO_CONTENT and self.content:
            raise ValueError(f"'{self.kind.tag}' blocks have no text content")
        if self.kind is BlockKind.IMAGE and not self.filename:
            raise ValueError("Image blocks need a filename")
        self._stamp()

    def edit(self, content: str) -> None:
        if self.kind in NO_CONTENT:
            raise ValueError(f"'{self.kind.tag}' blocks have no text content")
        self.content = content
        self.touch()

    def set_language(self, language: str) -> None:
        if self.kind is not BlockKind.CODE:
            raise ValueError("Only code blocks have a language")
        self.language = language
        self.touch()


@dataclass(frozen=True)
class EmbeddedFile:
    """Binary resource owned by a document, referenced by image blocks via filename."""

    filename: str
    data: bytes = field(repr=False)
    media_type: str = "application/octet-stream"


def create_paragraph(content: str = "", created: int | None = None, modified: int | None = None) -> Block:
    return Block(BlockKind.PARAGRAPH, content, created, modified)


def create_header(
    level: int, content: str = "", created: int | None = None, modified: int | None = None
) -> Block:
    return Block(BlockKind.header(level), content, created, modified)


def create_horizontal_rule(created: int | None = None, modified: int | None = None) -> Block:
    return Block(BlockKind.HORIZONTAL_RULE, "", created, modified)


def create_blockquote(content: str = "", created: int | None = None, modified: int | None = None) -> Block:
    return Block(BlockKind.BLOCKQUOTE, content, created, modified)


def create_code(
    content: str = "",
    language: str | None = None,
    created: int | None = None,
    modified: int | None = None,
) -> Block:
    return Block(BlockKind.CODE, content, created, modified, language=language)


def create_math(content: str = "", created: int | None = None, modified: int | None = None) -> Block:
    return Block(BlockKind.MATH, content, created, modified)


def create_list_item(content: str = "", created: int | None = None, modified: int | None = None) -> ListItem:
    return ListItem(content, created, modified)


def create_ordered_list(
    items: list[ListItem] | None = None, created: int | None = None, modified: int | None = None
) -> Block:
    return Block(BlockKind.ORDERED_LIST, "", created, modified, items=list(items or []))


def create_unordered_list(
    items: list[ListItem] | None = None, created: int | None = None, modified: int | None = None
) -> Block:
    return Block(BlockKind.UNORDERED_LIST, "", created, modified, items=list(items or []))


def create_image(
    filename: str, content: str = "", created: int | None = None, modified: int | None = None
) -> Block:
    return Block(BlockKind.IMAGE, content, created, modified, filename=filename)
