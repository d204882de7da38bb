"""CLI for sknotes - structured block notes stored as SKML archives."""

import argparse
import dataclasses
import json
import logging
import platform
import sys
from pathlib import Path
from typing import Any

from . import __version__
from .adapters.archive import dump_document, load_document
from .adapters.media import embed_path
from .adapters.xml_codec import get_codec
from .core.document import NoteFile
from .core.model import Block, BlockKind, create_image, create_list_item
from .core.utils import now_ms
from .errors import SkError
from .outline import document_to_dict, format_outline
from .runtime import build_runtime

BLOCK_KINDS = [kind.tag for kind in BlockKind if kind is not BlockKind.IMAGE]


def _resolve(rt: Any, ref: str) -> Path:
    """Map a CLI note reference to a path: as given, else relative to the library root."""
    path = Path(ref).expanduser()
    if path.is_absolute() or path.exists():
        return path

    candidate = rt.library.base_path / ref
    if not candidate.exists() and candidate.suffix != f".{rt.library.extension}":
        with_ext = candidate.with_name(f"{candidate.name}.{rt.library.extension}")
        if with_ext.exists():
            return with_ext
    return candidate


def _open(rt: Any, ref: str) -> NoteFile:
    return rt.session.open(_resolve(rt, ref))


def _save(rt: Any, note_file: NoteFile) -> None:
    head = note_file.document.head
    if "modified" in head:
        head["modified"] = now_ms()
    rt.session.save(note_file)


def _relative(rt: Any, path: Path) -> str:
    try:
        return str(path.relative_to(rt.library.base_path))
    except ValueError:
        return str(path)


def cmd_new(args: argparse.Namespace, rt: Any) -> int:
    """Create a new note in the library."""
    collection = _resolve(rt, args.collection) if args.collection else None
    note_file = rt.session.new_note(
        title=args.title,
        description=args.description,
        image_url=args.image_url,
        collection=collection,
    )

    if not args.quiet:
        print(_relative(rt, note_file.path))
    return 0


def cmd_ls(args: argparse.Namespace, rt: Any) -> int:
    """List notes and collections."""
    items = rt.library.refresh()

    rows = []
    for item in items:
        row: dict[str, Any] = {"path": _relative(rt, item.path), "type": item.type.value}
        if args.with_titles and not item.is_collection:
            try:
                document = load_document(rt.bridge.read_binary(item.path))
                row["title"] = document.head.get_str("title", "")
            except SkError as e:
                print(f"Warning: {row['path']}: {e}", file=sys.stderr)
                row["title"] = None
        rows.append(row)

    if args.json:
        print(json.dumps(rows, ensure_ascii=False))
        return 0

    for row in rows:
        prefix = "d" if row["type"] == "collection" else "-"
        if "title" in row:
            print(f"{prefix} {row['path']}\t{row['title'] or ''}")
        else:
            print(f"{prefix} {row['path']}")
    return 0


def cmd_show(args: argparse.Namespace, rt: Any) -> int:
    """Print a note as an outline, JSON or serialized text."""
    note_file = _open(rt, args.ref)
    document = note_file.document

    fmt = "json" if args.json else args.format
    if fmt == "json":
        print(json.dumps(document_to_dict(document), indent=2, ensure_ascii=False))
    elif fmt in ("skml", "legacy"):
        print(get_codec(fmt).encode(document))
    else:
        title = document.head.get_str("title")
        if title:
            print(f"# {title}")
        outline = format_outline(document)
        if outline:
            print(outline)
    return 0


def cmd_add(args: argparse.Namespace, rt: Any) -> int:
    """Insert a block."""
    note_file = _open(rt, args.ref)
    document = note_file.document

    kind = BlockKind(args.kind)
    if kind.is_list:
        block = Block(kind, items=[create_list_item(text) for text in args.item])
    elif kind is BlockKind.HORIZONTAL_RULE:
        block = Block(kind)
    elif kind is BlockKind.CODE:
        block = Block(kind, args.text or "", language=args.language or rt.config.notes.code_language)
    else:
        block = Block(kind, args.text or "")

    index = len(document) if args.index is None else args.index
    document.insert(index, block)
    _save(rt, note_file)

    if not args.quiet:
        print(f"Inserted {kind.tag} at {index}")
    return 0


def cmd_edit(args: argparse.Namespace, rt: Any) -> int:
    """Replace the text of a block or list item."""
    note_file = _open(rt, args.ref)
    block = note_file.document.block(args.index)

    if args.item is not None:
        note_file.document.list_item(args.index, args.item).edit(args.text or "")
        block.touch()
    elif args.language is not None:
        block.set_language(args.language)
        if args.text is not None:
            block.edit(args.text)
    else:
        block.edit(args.text or "")

    _save(rt, note_file)
    return 0


def cmd_rm(args: argparse.Namespace, rt: Any) -> int:
    """Remove a block."""
    note_file = _open(rt, args.ref)
    removed = note_file.document.remove(args.index)
    _save(rt, note_file)

    if not args.quiet:
        print(f"Removed {removed.kind.tag} at {args.index}")
    return 0


def cmd_item_add(args: argparse.Namespace, rt: Any) -> int:
    """Insert an item into a list block."""
    note_file = _open(rt, args.ref)
    document = note_file.document
    block = document.block(args.list_index)

    at = len(block.items or []) if args.at is None else args.at
    document.insert_list_item(args.list_index, at, create_list_item(args.text))
    _save(rt, note_file)
    return 0


def cmd_item_rm(args: argparse.Namespace, rt: Any) -> int:
    """Remove an item from a list block."""
    note_file = _open(rt, args.ref)
    note_file.document.remove_list_item(args.list_index, args.item_index)
    _save(rt, note_file)
    return 0


def cmd_attach(args: argparse.Namespace, rt: Any) -> int:
    """Embed a file and insert an image block that shows it."""
    note_file = _open(rt, args.ref)
    document = note_file.document

    embedded = embed_path(Path(args.file))
    if args.name:
        embedded = dataclasses.replace(embedded, filename=args.name)
    document.add_file(embedded)

    index = len(document) if args.index is None else args.index
    document.insert(index, create_image(embedded.filename, args.caption or ""))
    _save(rt, note_file)

    if not args.quiet:
        print(f"Attached {embedded.filename} ({embedded.media_type}) at {index}")
    return 0


def cmd_files(args: argparse.Namespace, rt: Any) -> int:
    """List embedded files."""
    note_file = _open(rt, args.ref)
    files = list(note_file.document.files.values())

    if args.json:
        print(json.dumps(document_to_dict(note_file.document)["files"]))
        return 0

    for f in files:
        print(f"{f.filename}\t{f.media_type}\t{len(f.data)}")
    return 0


def cmd_extract(args: argparse.Namespace, rt: Any) -> int:
    """Write an embedded file to disk."""
    note_file = _open(rt, args.ref)
    embedded = note_file.document.get_file(args.filename)
    if embedded is None:
        print(f"No embedded file named {args.filename}", file=sys.stderr)
        return 1

    out = Path(args.out) if args.out else Path(args.filename)
    rt.bridge.write_binary(out, embedded.data)
    if not args.quiet:
        print(out)
    return 0


def cmd_meta_get(args: argparse.Namespace, rt: Any) -> int:
    """Get head values from a note."""
    head = _open(rt, args.ref).document.head

    if args.keys:
        for key in args.keys:
            if key in head:
                value = head[key]
                if args.json:
                    print(json.dumps({key: value}, ensure_ascii=False))
                else:
                    print(f"{key}={value}")
            elif not args.quiet:
                print(f"Key '{key}' not found", file=sys.stderr)
    else:
        if args.json:
            print(json.dumps(dict(head), ensure_ascii=False))
        else:
            for key, value in head.items():
                print(f"{key}={value}")

    return 0


def cmd_meta_set(args: argparse.Namespace, rt: Any) -> int:
    """Set head values in a note."""
    note_file = _open(rt, args.ref)

    for kv in args.pairs:
        if "=" not in kv:
            print(f"Invalid format: {kv}. Expected key=value", file=sys.stderr)
            return 1
        key, _, value = kv.partition("=")
        note_file.document.set_property(key.strip(), value.strip())

    _save(rt, note_file)

    if not args.quiet:
        print(f"Updated head for {args.ref}")
    return 0


def cmd_meta_show(args: argparse.Namespace, rt: Any) -> int:
    """Pretty-print the head of a note."""
    import yaml

    head = _open(rt, args.ref).document.head
    if head:
        print(yaml.dump(dict(head), sort_keys=False, allow_unicode=True), end="")
    else:
        print("# No metadata")
    return 0


def cmd_collection_new(args: argparse.Namespace, rt: Any) -> int:
    """Create a collection with a free name."""
    parent = _resolve(rt, args.parent) if args.parent else None
    path = rt.session.new_collection(args.name, parent=parent)
    if not args.quiet:
        print(_relative(rt, path))
    return 0


def cmd_convert(args: argparse.Namespace, rt: Any) -> int:
    """Rewrite a note (legacy text or archive) as an SKML archive."""
    note_file = _open(rt, args.ref)
    if args.out:
        out = Path(args.out)
        rt.bridge.write_binary(out, dump_document(note_file.document))
    else:
        out = rt.session.save(note_file)

    if not args.quiet:
        print(f"Wrote {out}")
    return 0


def cmd_watch(args: argparse.Namespace, rt: Any) -> int:
    """Watch the library and keep the index fresh."""
    from .watch import watch_library

    return watch_library(
        rt.library,
        debounce_ms=args.debounce_ms,
        quiet=args.quiet,
        json_output=args.json,
    )


def cmd_serve(args: argparse.Namespace, rt: Any) -> int:
    """Start local JSON API server."""
    try:
        import uvicorn

        from .api.app import create_app, generate_token
    except ImportError as e:
        print(
            "Error: API dependencies not installed. "
            "Install with: pip install sknotes[api]",
            file=sys.stderr,
        )
        print(f"Details: {e}", file=sys.stderr)
        return 1

    token_arg = args.token
    if token_arg == "auto":
        token = generate_token()
        print(f"Generated bearer token: {token}")
        print(f"Use in requests: Authorization: Bearer {token}")
    elif token_arg == "none":
        print("Warning: Running without authentication. Only use in trusted environments.")
        token = None
    else:
        token = token_arg

    app = create_app(rt, token=token, enable_cors=args.cors)

    host = args.host or rt.config.api.host
    port = args.port or rt.config.api.port

    print(f"Starting server on http://{host}:{port}")
    uvicorn.run(app, host=host, port=port, log_level="info")
    return 0


def _version() -> str:
    return (
        f"sknotes {__version__} "
        f"(python {platform.python_version()}, platform {platform.system().lower()})"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sk", description="sknotes CLI")
    parser.add_argument("--version", action="version", version=_version())
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config file (default: search cwd/sk.toml, library/sk.toml)",
    )
    parser.add_argument(
        "--library",
        type=Path,
        default=None,
        help="Path to library directory (overrides config)",
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Minimize output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    parser.add_argument("--json", action="store_true", help="Machine-readable output")

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # new command
    parser_new = subparsers.add_parser("new", help="Create a new note")
    parser_new.add_argument("--title", help="Note title")
    parser_new.add_argument("--description", help="Note description")
    parser_new.add_argument("--image-url", dest="image_url", help="Cover image URL")
    parser_new.add_argument("--collection", help="Collection to create the note in")

    # ls command
    parser_ls = subparsers.add_parser("ls", help="List notes and collections")
    parser_ls.add_argument(
        "--with-titles", dest="with_titles", action="store_true",
        help="Also print each note's title (tab-separated)",
    )

    # show command
    parser_show = subparsers.add_parser("show", help="Print a note")
    parser_show.add_argument("ref", help="Note path (absolute or relative to the library)")
    parser_show.add_argument(
        "--format", choices=["outline", "json", "skml", "legacy"], default="outline",
        help="Output format (default: outline)",
    )

    # add command
    parser_add = subparsers.add_parser("add", help="Insert a block")
    parser_add.add_argument("ref", help="Note path")
    parser_add.add_argument("kind", choices=BLOCK_KINDS, help="Block kind (tag name)")
    parser_add.add_argument("text", nargs="?", help="Block text")
    parser_add.add_argument("--index", type=int, help="Insert before this index (default: append)")
    parser_add.add_argument("--language", help="Language for code blocks")
    parser_add.add_argument(
        "--item", action="append", default=[], help="List item text (repeatable, ol/ul only)"
    )

    # edit command
    parser_edit = subparsers.add_parser("edit", help="Replace the text of a block or list item")
    parser_edit.add_argument("ref", help="Note path")
    parser_edit.add_argument("index", type=int, help="Block index")
    parser_edit.add_argument("text", nargs="?", help="New text")
    parser_edit.add_argument("--item", type=int, help="List item index")
    parser_edit.add_argument("--language", help="New language (code blocks)")

    # rm command
    parser_rm = subparsers.add_parser("rm", help="Remove a block")
    parser_rm.add_argument("ref", help="Note path")
    parser_rm.add_argument("index", type=int, help="Block index")

    # item command
    parser_item = subparsers.add_parser("item", help="Edit list items")
    item_sub = parser_item.add_subparsers(dest="item_cmd", required=True)

    parser_item_add = item_sub.add_parser("add", help="Insert a list item")
    parser_item_add.add_argument("ref", help="Note path")
    parser_item_add.add_argument("list_index", type=int, help="Index of the list block")
    parser_item_add.add_argument("text", help="Item text")
    parser_item_add.add_argument("--at", type=int, help="Insert before this item (default: append)")

    parser_item_rm = item_sub.add_parser("rm", help="Remove a list item")
    parser_item_rm.add_argument("ref", help="Note path")
    parser_item_rm.add_argument("list_index", type=int, help="Index of the list block")
    parser_item_rm.add_argument("item_index", type=int, help="Index of the item")

    # attach command
    parser_attach = subparsers.add_parser("attach", help="Embed a file as an image block")
    parser_attach.add_argument("ref", help="Note path")
    parser_attach.add_argument("file", help="File to embed")
    parser_attach.add_argument("--index", type=int, help="Insert before this index (default: append)")
    parser_attach.add_argument("--caption", help="Image caption")
    parser_attach.add_argument("--name", help="Embed under this filename")

    # files command
    parser_files = subparsers.add_parser("files", help="List embedded files")
    parser_files.add_argument("ref", help="Note path")

    # extract command
    parser_extract = subparsers.add_parser("extract", help="Write an embedded file to disk")
    parser_extract.add_argument("ref", help="Note path")
    parser_extract.add_argument("filename", help="Embedded filename")
    parser_extract.add_argument("--out", help="Output path (default: ./<filename>)")

    # meta command
    parser_meta = subparsers.add_parser("meta", help="Manage note head")
    meta_sub = parser_meta.add_subparsers(dest="meta_cmd", required=True)

    parser_meta_get = meta_sub.add_parser("get", help="Get head values")
    parser_meta_get.add_argument("ref", help="Note path")
    parser_meta_get.add_argument("--keys", nargs="+", help="Specific keys to retrieve")

    parser_meta_set = meta_sub.add_parser("set", help="Set head values")
    parser_meta_set.add_argument("ref", help="Note path")
    parser_meta_set.add_argument("pairs", nargs="+", help="key=value pairs")

    parser_meta_show = meta_sub.add_parser("show", help="Pretty-print the head")
    parser_meta_show.add_argument("ref", help="Note path")

    # collection command
    parser_collection = subparsers.add_parser("collection", help="Manage collections")
    collection_sub = parser_collection.add_subparsers(dest="collection_cmd", required=True)

    parser_collection_new = collection_sub.add_parser("new", help="Create a collection")
    parser_collection_new.add_argument(
        "name", nargs="?", default="untitled_collection",
        help="Collection name (default: untitled_collection)",
    )
    parser_collection_new.add_argument("--parent", help="Parent collection")

    # convert command
    parser_convert = subparsers.add_parser("convert", help="Rewrite a note as an SKML archive")
    parser_convert.add_argument("ref", help="Note path")
    parser_convert.add_argument("--out", help="Write to this path instead of in place")

    # watch command
    parser_watch = subparsers.add_parser("watch", help="Watch the library for changes")
    parser_watch.add_argument(
        "--debounce-ms", dest="debounce_ms", type=int, default=150,
        help="Debounce window in milliseconds (default: 150)",
    )

    # serve command
    parser_serve = subparsers.add_parser("serve", help="Start local JSON API server")
    parser_serve.add_argument("--host", default=None, help="Host to bind to (default: config)")
    parser_serve.add_argument("--port", type=int, default=None, help="Port to bind to (default: config)")
    parser_serve.add_argument(
        "--token", default="auto", help="Bearer token (auto|<string>|none, default: auto)"
    )
    parser_serve.add_argument("--cors", action="store_true", help="Enable CORS (default: false)")

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    handlers = {
        "new": cmd_new,
        "ls": cmd_ls,
        "show": cmd_show,
        "add": cmd_add,
        "edit": cmd_edit,
        "rm": cmd_rm,
        "attach": cmd_attach,
        "files": cmd_files,
        "extract": cmd_extract,
        "convert": cmd_convert,
        "watch": cmd_watch,
        "serve": cmd_serve,
    }

    if args.cmd == "meta":
        handler = {
            "get": cmd_meta_get,
            "set": cmd_meta_set,
            "show": cmd_meta_show,
        }.get(args.meta_cmd)
    elif args.cmd == "item":
        handler = {
            "add": cmd_item_add,
            "rm": cmd_item_rm,
        }.get(args.item_cmd)
    elif args.cmd == "collection":
        handler = {
            "new": cmd_collection_new,
        }.get(args.collection_cmd)
    else:
        handler = handlers.get(args.cmd)

    if handler is None:
        print(f"Unknown command: {args.cmd}", file=sys.stderr)
        sys.exit(1)

    try:
        rt = build_runtime(library_path=args.library, config_path=args.config)
        exit_code = handler(args, rt)
    except (SkError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
