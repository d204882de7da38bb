"""Tests for naming helpers."""

from sknotes.adapters.idgen import Base32Id, uuid_to_base32
from sknotes.core.utils import available_name, join_extension


def test_join_extension():
    """Extensions are joined with one dot."""
    assert join_extension("a", "sk") == "a.sk"
    assert join_extension("a", ".sk") == "a.sk"
    assert join_extension("a", None) == "a"
    assert join_extension("a", "") == "a"


def test_available_name_counts_up_suffixes():
    """The first free name among base, base_2, base_3, ... wins."""
    assert available_name(set(), "a") == "a"
    assert available_name({"a"}, "a") == "a_2"
    assert available_name({"a", "a_2"}, "a") == "a_3"
    assert available_name({"a", "a_3"}, "a") == "a_2"


def test_available_name_with_extension():
    """Collisions are checked against the joined file name."""
    existing = {"n.sk", "n_2.sk", "n_3"}

    assert available_name(existing, "n", "sk") == "n_3"
    assert available_name(existing, "n") == "n"


def test_base32_ids():
    """Generated ids are lowercase unpadded base32 of a 128-bit uuid."""
    import uuid

    value = uuid.UUID("00000000-0000-0000-0000-000000000000")
    assert uuid_to_base32(value) == "a" * 26

    first, second = Base32Id().new_id(), Base32Id().new_id()
    assert first != second
    assert len(first) == 26
    assert first == first.lower()
    assert "=" not in first
