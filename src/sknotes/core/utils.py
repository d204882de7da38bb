"""Utility functions for sknotes."""

import time
from collections.abc import Collection


def now_ms() -> int:
    """Current wall-clock time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


def join_extension(name: str, extension: str | None) -> str:
    """
    Append an extension to a base name.

    Examples:
        >>> join_extension("notes", "sk")
        'notes.sk'
        >>> join_extension("untitled_collection", None)
        'untitled_collection'
    """
    if not extension:
        return name
    return f"{name}.{extension.lstrip('.')}"


def available_name(
    existing: Collection[str],
    base_name: str,
    extension: str | None = None,
) -> str:
    """
    Pick a name that does not collide with any entry in `existing`.

    Tries `base_name`, then `base_name_2`, `base_name_3`, ... and returns
    the first candidate whose joined file name is free. The returned value
    is the bare name, without the extension.

    Examples:
        >>> available_name({"a"}, "a")
        'a_2'
        >>> available_name({"a", "a_2"}, "a")
        'a_3'
        >>> available_name({"a.sk"}, "a", "sk")
        'a_2'
    """
    if join_extension(base_name, extension) not in existing:
        return base_name

    i = 2
    while join_extension(f"{base_name}_{i}", extension) in existing:
        i += 1

    return f"{base_name}_{i}"
