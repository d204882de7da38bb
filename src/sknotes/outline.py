"""Plain views of a document for terminals and JSON consumers."""

from typing import Any

from .core.document import Document
from .core.model import Block, BlockKind


def block_to_dict(index: int, block: Block) -> dict[str, Any]:
    result: dict[str, Any] = {
        "index": index,
        "kind": block.kind.tag,
        "created": block.created,
        "modified": block.modified,
    }
    if block.kind.is_list:
        result["items"] = [
            {"index": i, "content": item.content, "created": item.created, "modified": item.modified}
            for i, item in enumerate(block.items or [])
        ]
    elif block.kind is not BlockKind.HORIZONTAL_RULE:
        result["content"] = block.content
    if block.kind is BlockKind.CODE:
        result["language"] = block.language
    if block.kind is BlockKind.IMAGE:
        result["filename"] = block.filename
    return result


def document_to_dict(document: Document) -> dict[str, Any]:
    dangling = set(document.dangling_images())
    blocks = []
    for i, block in enumerate(document.body):
        entry = block_to_dict(i, block)
        if block.kind is BlockKind.IMAGE:
            entry["missing"] = i in dangling
        blocks.append(entry)

    return {
        "head": dict(document.head),
        "body": blocks,
        "files": [
            {"filename": f.filename, "media_type": f.media_type, "size": len(f.data)}
            for f in document.files.values()
        ],
    }


def format_outline(document: Document) -> str:
    """
    One line per block: index, tag and a short preview.

        0  h1         Title
        1  p          First paragraph
        2  ol         [2 items]
    """
    lines = []
    for i, block in enumerate(document.body):
        if block.kind.is_list:
            items = block.items or []
            preview = f"[{len(items)} item{'s' if len(items) != 1 else ''}]"
            lines.append(f"{i:<3}{block.kind.tag:<11}{preview}")
            for j, item in enumerate(items):
                marker = f"{j + 1}." if block.kind is BlockKind.ORDERED_LIST else "-"
                lines.append(f"{'':<14}{marker} {_first_line(item.content)}")
            continue

        if block.kind is BlockKind.HORIZONTAL_RULE:
            preview = "---"
        elif block.kind is BlockKind.IMAGE:
            preview = f"[{block.filename}] {_first_line(block.content)}".rstrip()
        elif block.kind is BlockKind.CODE:
            preview = f"({block.language}) {_first_line(block.content)}".rstrip()
        else:
            preview = _first_line(block.content)
        lines.append(f"{i:<3}{block.kind.tag:<11}{preview}")

    return "\n".join(lines)


def _first_line(text: str, width: int = 60) -> str:
    line = text.splitlines()[0] if text else ""
    return line if len(line) <= width else line[: width - 3] + "..."
