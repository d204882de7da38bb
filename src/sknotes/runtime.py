"""Runtime wiring helper for CLI applications."""

from dataclasses import dataclass
from pathlib import Path

from .adapters.fs_bridge import FsBridge
from .adapters.idgen import Base32Id
from .config import SkConfig, load_config
from .library import Library
from .session import Session


@dataclass
class Runtime:
    """Container for all wired components."""
    library: Library
    session: Session
    bridge: FsBridge
    config: SkConfig


def build_runtime(
    library_path: Path | None = None,
    config_path: Path | None = None,
) -> Runtime:
    """Build and wire all components for a library."""
    config = load_config(config_path=config_path, library_path=library_path)

    # CLI args win over config values
    if library_path is None:
        library_path = config.library.root

    library = Library(library_path, extension=config.library.extension)
    library.initialize()

    bridge = FsBridge()
    session = Session(
        library,
        bridge,
        idgen=Base32Id(),
        default_title=config.notes.default_title,
    )

    return Runtime(
        library=library,
        session=session,
        bridge=bridge,
        config=config,
    )
