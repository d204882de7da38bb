"""Tests for configuration loading."""

import tempfile
from pathlib import Path

from sknotes.config import load_config


def test_load_config_defaults():
    """Test loading config with defaults when no file exists."""
    config = load_config()

    # Should use defaults
    assert config.library.root == Path("./library")
    assert config.library.extension == "sk"
    assert config.notes.default_title == "untitled"
    assert config.notes.code_language == "plaintext"
    assert config.api.port == 8765


def test_load_config_from_file():
    """Test loading config from a file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        config_path = Path(tmpdir) / "sk.toml"
        config_path.write_text("""
[library]
root = "my-notes"
extension = ".skn"

[notes]
default_title = "Neu"
code_language = "python"

[api]
host = "0.0.0.0"
port = 9000
""")

        config = load_config(config_path=config_path)

        assert config.library.root == Path("my-notes")
        assert config.library.extension == "skn"
        assert config.notes.default_title == "Neu"
        assert config.notes.code_language == "python"
        assert config.api.host == "0.0.0.0"
        assert config.api.port == 9000


def test_load_config_search_cwd():
    """Test config search in current working directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        import os
        orig_cwd = os.getcwd()
        try:
            os.chdir(tmpdir)
            config_path = Path(tmpdir) / "sk.toml"
            config_path.write_text("""
[notes]
default_title = "from cwd"
""")

            config = load_config()
            assert config.notes.default_title == "from cwd"
        finally:
            os.chdir(orig_cwd)


def test_load_config_search_library():
    """Test config search in library directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        library_path = Path(tmpdir) / "library"
        library_path.mkdir()
        config_path = library_path / "sk.toml"
        config_path.write_text("""
[notes]
default_title = "from library"
""")

        config = load_config(library_path=library_path)
        assert config.notes.default_title == "from library"
        assert config.library.root == library_path
