"""Note model: blocks, head metadata and the index-addressed document."""

from .document import Document, NoteFile
from .head import Head
from .model import (
    DEFAULT_LANGUAGE,
    Block,
    BlockKind,
    EmbeddedFile,
    ListItem,
    create_blockquote,
    create_code,
    create_header,
    create_horizontal_rule,
    create_image,
    create_list_item,
    create_math,
    create_ordered_list,
    create_paragraph,
    create_unordered_list,
)

__all__ = [
    "DEFAULT_LANGUAGE",
    "Block",
    "BlockKind",
    "Document",
    "EmbeddedFile",
    "Head",
    "ListItem",
    "NoteFile",
    "create_blockquote",
    "create_code",
    "create_header",
    "create_horizontal_rule",
    "create_image",
    "create_list_item",
    "create_math",
    "create_ordered_list",
    "create_paragraph",
    "create_unordered_list",
]
