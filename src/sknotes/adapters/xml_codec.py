"""XML codecs for note text: the legacy <xml> schema and the SKML schema."""

import logging
import re

from lxml import etree

from ..core.document import Document
from ..core.head import Head
from ..core.model import HEADERS, Block, BlockKind, ListItem
from ..core.ports import Codec
from ..core.utils import now_ms
from ..errors import InvalidDocument

log = logging.getLogger(__name__)

_INT = re.compile(r"-?[0-9]+")

# Notes are untrusted input: no entity expansion or network access
_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, load_dtd=False)

LEGACY_KINDS = frozenset(
    (
        BlockKind.PARAGRAPH,
        *HEADERS,
        BlockKind.HORIZONTAL_RULE,
        BlockKind.BLOCKQUOTE,
        BlockKind.CODE,
        BlockKind.MATH,
    )
)

SKML_KINDS = LEGACY_KINDS | {
    BlockKind.ORDERED_LIST,
    BlockKind.UNORDERED_LIST,
    BlockKind.IMAGE,
}


class XmlCodec(Codec):
    """
    Shared encode/decode for both schemas:

        <root><head><key>value</key>...</head><body>block...</body></root>

    Subclasses pick the root tag, the block kinds they can represent and the
    head keys that decode as integers. Kinds outside `block_kinds` are
    dropped on encode and unknown tags are skipped on decode.
    """

    name = ""
    root_tag = ""
    block_kinds: frozenset[BlockKind] = LEGACY_KINDS
    int_head_keys: frozenset[str] = frozenset()

    # Encoding

    def encode(self, document: Document) -> str:
        root = etree.Element(self.root_tag)
        head = etree.SubElement(root, "head")

        for key, value in document.head.items():
            try:
                meta = etree.SubElement(head, key)
                meta.text = str(value)
            except ValueError as e:
                raise InvalidDocument(f"Cannot encode head entry {key!r}: {e}") from e

        body = etree.SubElement(root, "body")

        for block in document.body:
            if block.kind not in self.block_kinds:
                # No representation in this schema
                log.debug("%s codec drops '%s' block %s", self.name, block.kind.tag, block.id)
                continue
            body.append(self._encode_block(block))

        return etree.tostring(root, encoding="unicode")

    def _encode_block(self, block: Block) -> etree._Element:
        element = etree.Element(block.kind.tag)
        _set_timestamps(element, block.created, block.modified)

        try:
            if block.kind is BlockKind.CODE:
                element.set("language", block.language or "")
            if block.kind is BlockKind.IMAGE:
                element.set("filename", block.filename or "")

            if block.kind.is_list:
                for item in block.items or []:
                    li = etree.SubElement(element, "li")
                    _set_timestamps(li, item.created, item.modified)
                    li.text = item.content
            elif block.kind is not BlockKind.HORIZONTAL_RULE:
                element.text = block.content
        except ValueError as e:
            raise InvalidDocument(f"Cannot encode '{block.kind.tag}' block {block.id}: {e}") from e

        return element

    # Decoding

    def decode(self, text: str) -> Document:
        try:
            root = etree.fromstring(text.encode("utf-8"), parser=_PARSER)
        except etree.XMLSyntaxError as e:
            raise InvalidDocument(f"Malformed {self.name} document: {e}") from e

        if root.tag != self.root_tag:
            raise InvalidDocument(
                f"Expected <{self.root_tag}> root for {self.name}, got <{root.tag}>"
            )

        head_el = root.find("head")
        body_el = root.find("body")
        if head_el is None or body_el is None:
            raise InvalidDocument(f"{self.name} document needs both <head> and <body>")

        head = Head()
        for child in _elements(head_el):
            value: str | int = _text(child)
            if child.tag in self.int_head_keys:
                value = _head_int(value)
            head[child.tag] = value

        body: list[Block] = []
        for child in _elements(body_el):
            kind = self._kind_for(child.tag)
            if kind is None:
                log.debug("%s codec skips unknown element <%s>", self.name, child.tag)
                continue
            body.append(self._decode_block(kind, child))

        return Document(head, body)

    def _kind_for(self, tag: str) -> BlockKind | None:
        try:
            kind = BlockKind(tag)
        except ValueError:
            return None
        return kind if kind in self.block_kinds else None

    def _decode_block(self, kind: BlockKind, element: etree._Element) -> Block:
        created, modified = _timestamps(element)

        if kind.is_list:
            items = []
            for li in _elements(element):
                if li.tag != "li":
                    continue
                item_created, item_modified = _timestamps(li)
                items.append(ListItem(_text(li), item_created, item_modified))
            return Block(kind, "", created, modified, items=items)

        if kind is BlockKind.IMAGE:
            filename = element.get("filename")
            if not filename:
                raise InvalidDocument("<img> element without a filename")
            return Block(kind, _text(element), created, modified, filename=filename)

        if kind is BlockKind.CODE:
            return Block(kind, _text(element), created, modified, language=element.get("language"))

        if kind is BlockKind.HORIZONTAL_RULE:
            return Block(kind, "", created, modified)

        return Block(kind, _text(element), created, modified)


class LegacyXmlCodec(XmlCodec):
    """Original schema: no lists, no images, every head value a string."""

    name = "legacy"
    root_tag = "xml"
    block_kinds = LEGACY_KINDS


class SkmlCodec(XmlCodec):
    """Revised schema with ol/ul lists and images; head created/modified are integers."""

    name = "skml"
    root_tag = "skml"
    block_kinds = SKML_KINDS
    int_head_keys = frozenset(("created", "modified"))


LEGACY = LegacyXmlCodec()
SKML = SkmlCodec()

CODECS: dict[str, XmlCodec] = {codec.name: codec for codec in (LEGACY, SKML)}


def get_codec(name: str) -> XmlCodec:
    try:
        return CODECS[name]
    except KeyError:
        raise ValueError(f"Unknown codec '{name}' (expected one of: {', '.join(CODECS)})") from None


def _elements(parent: etree._Element):
    """Element children only; comments and processing instructions are skipped."""
    for child in parent:
        if isinstance(child.tag, str):
            yield child


def _text(element: etree._Element) -> str:
    return "".join(element.itertext())


def _set_timestamps(element: etree._Element, created: int | None, modified: int | None) -> None:
    element.set("created", str(created))
    element.set("modified", str(modified))


def _parse_int(raw: str, name: str, where: str) -> int:
    value = raw.strip()
    if not _INT.fullmatch(value):
        raise InvalidDocument(f"Invalid integer {raw!r} for '{name}' in <{where}>")
    try:
        return int(value)
    except ValueError as e:
        # Over the interpreter's integer string length limit
        raise InvalidDocument(f"Integer too long for '{name}' in <{where}>") from e


def _head_int(raw: str) -> str | int:
    """Head timestamps that are not plain integers stay as text."""
    try:
        return _parse_int(raw, "", "head")
    except InvalidDocument:
        return raw


def _timestamps(element: etree._Element) -> tuple[int, int]:
    """
    Parse created/modified attributes.

    Absent values fall back to now; an absent `created` never lands after a
    present `modified`. Malformed or inverted values reject the document.
    """
    raw_created = element.get("created")
    raw_modified = element.get("modified")
    created = _parse_int(raw_created, "created", element.tag) if raw_created is not None else None
    modified = _parse_int(raw_modified, "modified", element.tag) if raw_modified is not None else None

    if created is None or modified is None:
        now = now_ms()
        if created is None:
            created = now if modified is None else min(now, modified)
        if modified is None:
            modified = max(now, created)

    if modified < created:
        raise InvalidDocument(
            f"<{element.tag}> modified ({modified}) is earlier than created ({created})"
        )
    return created, modified
