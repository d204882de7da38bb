"""Watch mode for sknotes - file watcher that keeps the library index fresh."""

import json
import signal
import sys
import time
from pathlib import Path
from typing import Any, Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .library import Library, should_skip


class DebounceHandler(FileSystemEventHandler):
    """File system event handler with debouncing."""

    def __init__(
        self,
        library: Library,
        on_batch: Callable[[set[Path], set[Path]], None],
        debounce_ms: int = 150,
    ):
        super().__init__()
        self.library = library
        self.on_batch = on_batch
        self.debounce_ms = debounce_ms

        # Pending changes by path
        self.changed: set[Path] = set()
        self.deleted: set[Path] = set()
        self.last_event_time = 0.0

    def _should_skip(self, path: Path, is_directory: bool) -> bool:
        """Only note files and collections matter; temp and hidden files never do."""
        if should_skip(path):
            return True
        if is_directory:
            return False
        return not self.library.is_note_path(path)

    def _record(self, bucket: set[Path], raw_path: Any, is_directory: bool) -> None:
        path = Path(str(raw_path))
        if self._should_skip(path, is_directory):
            return
        bucket.add(path)
        self.last_event_time = time.time()

    def on_created(self, event: FileSystemEvent) -> None:
        self._record(self.changed, event.src_path, event.is_directory)

    def on_modified(self, event: FileSystemEvent) -> None:
        # Directory mtime changes are implied by the child events
        if event.is_directory:
            return
        self._record(self.changed, event.src_path, False)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._record(self.deleted, event.src_path, event.is_directory)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._record(self.deleted, event.src_path, event.is_directory)
        self._record(self.changed, getattr(event, "dest_path", event.src_path), event.is_directory)

    def check_and_flush(self) -> None:
        """Flush once the debounce window has elapsed since the last event."""
        if not (self.changed or self.deleted):
            return

        elapsed = (time.time() - self.last_event_time) * 1000
        if elapsed >= self.debounce_ms:
            self.flush()

    def flush(self) -> None:
        """Hand the accumulated paths to the batch callback."""
        if not (self.changed or self.deleted):
            return

        changed = set(self.changed)
        deleted = set(self.deleted) - changed

        self.changed.clear()
        self.deleted.clear()

        if self.on_batch:
            self.on_batch(changed, deleted)


def watch_library(
    library: Library,
    debounce_ms: int = 150,
    quiet: bool = False,
    json_output: bool = False,
) -> int:
    """
    Watch the library root and refresh the index after each burst of changes.

    Args:
        library: Library to keep fresh
        debounce_ms: Debounce window in milliseconds
        quiet: Suppress output
        json_output: Output JSON events instead of human-readable

    Returns:
        Exit code
    """
    if not library.base_path.exists():
        print(f"Error: Library not found: {library.base_path}", file=sys.stderr)
        return 1

    library.refresh()
    running = True

    def handle_batch(changed: set[Path], deleted: set[Path]) -> None:
        start_time = time.time()
        try:
            items = library.refresh()
        except OSError as e:
            if json_output:
                print(json.dumps({"type": "error", "message": str(e)}), flush=True)
            else:
                print(f"Error: {e}", file=sys.stderr, flush=True)
            return

        duration_ms = int((time.time() - start_time) * 1000)
        if json_output:
            event = {
                "type": "batch",
                "changed": sorted(str(p) for p in changed),
                "deleted": sorted(str(p) for p in deleted),
                "items": len(items),
                "duration_ms": duration_ms,
            }
            print(json.dumps(event), flush=True)
        elif not quiet:
            print(
                f"Refreshed: ~{len(changed)} -{len(deleted)} -> {len(items)} items ({duration_ms}ms)",
                flush=True,
            )

    def signal_handler(signum: int, frame: Any) -> None:
        nonlocal running
        running = False
        if not quiet and not json_output:
            print("\nShutting down...", flush=True)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    handler = DebounceHandler(library, handle_batch, debounce_ms)
    observer = Observer()
    observer.schedule(handler, str(library.base_path), recursive=True)

    if not quiet and not json_output:
        print(f"Watching {library.base_path} (debounce: {debounce_ms}ms)", flush=True)
        print("Press Ctrl+C to stop", flush=True)

    observer.start()

    try:
        while running:
            time.sleep(0.1)
            handler.check_and_flush()
    finally:
        handler.flush()
        observer.stop()
        observer.join()

    if not quiet and not json_output:
        print("Watch stopped", flush=True)

    return 0
