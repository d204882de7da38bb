"""Configuration loader for sk.toml."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore


@dataclass
class LibraryConfig:
    """Library location and note file extension."""
    root: Path
    extension: str = "sk"


@dataclass
class NotesConfig:
    """Defaults for newly created content."""
    default_title: str = "untitled"
    code_language: str = "plaintext"


@dataclass
class ApiConfig:
    """Local JSON API settings."""
    host: str = "127.0.0.1"
    port: int = 8765


@dataclass
class SkConfig:
    """Complete sknotes configuration."""
    library: LibraryConfig
    notes: NotesConfig = field(default_factory=NotesConfig)
    api: ApiConfig = field(default_factory=ApiConfig)


def load_config(config_path: Path | None = None, library_path: Path | None = None) -> SkConfig:
    """
    Load configuration from sk.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/sk.toml
    3. library_path/sk.toml

    Args:
        config_path: Explicit path to config file
        library_path: Library root path for fallback search

    Returns:
        SkConfig with resolved settings
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / "sk.toml")
    if library_path:
        search_paths.append(library_path / "sk.toml")

    for path in search_paths:
        if path.exists():
            with open(path, "rb") as f:
                toml_data = tomllib.load(f)
            break

    library_data = toml_data.get("library", {})
    library_config = LibraryConfig(
        root=Path(library_data.get("root", library_path or Path("./library"))).expanduser(),
        extension=str(library_data.get("extension", "sk")).lstrip("."),
    )

    notes_data = toml_data.get("notes", {})
    notes_config = NotesConfig(
        default_title=notes_data.get("default_title", "untitled"),
        code_language=notes_data.get("code_language", "plaintext"),
    )

    api_data = toml_data.get("api", {})
    api_config = ApiConfig(
        host=api_data.get("host", "127.0.0.1"),
        port=int(api_data.get("port", 8765)),
    )

    return SkConfig(
        library=library_config,
        notes=notes_config,
        api=api_config,
    )
