from pathlib import Path
from typing import Callable

from strif import atomic_output_file

from ..core.ports import PersistenceBridge
from ..errors import BridgeIOError

PathPrompt = Callable[[], Path | None]


def _no_prompt() -> Path | None:
    return None


class FsBridge(PersistenceBridge):
    """
    Local filesystem bridge. Writes go to a sibling temp file that replaces
    the target in one step, so a failed save never leaves a half-written note.
    Path prompts are injected by the host; the defaults behave like a
    dismissed dialog.
    """

    def __init__(
        self,
        choose_save_path: PathPrompt = _no_prompt,
        choose_open_path: PathPrompt = _no_prompt,
    ):
        self._choose_save_path = choose_save_path
        self._choose_open_path = choose_open_path

    def read_binary(self, path: Path) -> bytes:
        try:
            return Path(path).read_bytes()
        except OSError as e:
            raise BridgeIOError(f"Cannot read {path}: {e}") from e

    def write_binary(self, path: Path, data: bytes) -> None:
        try:
            with atomic_output_file(Path(path), make_parents=True) as temp_output:
                with open(temp_output, "wb") as f:
                    f.write(data)
        except OSError as e:
            raise BridgeIOError(f"Cannot write {path}: {e}") from e

    def choose_save_path(self) -> Path | None:
        return self._choose_save_path()

    def choose_open_path(self) -> Path | None:
        return self._choose_open_path()
