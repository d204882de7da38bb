"""Tests for the SKML codec."""

import sys

import pytest

from sknotes.adapters.xml_codec import SKML, get_codec
from sknotes.core.document import Document
from sknotes.core.head import Head
from sknotes.core.model import (
    BlockKind,
    create_code,
    create_header,
    create_horizontal_rule,
    create_image,
    create_list_item,
    create_ordered_list,
    create_paragraph,
    create_unordered_list,
)
from sknotes.errors import InvalidDocument


def test_encode_minimal_document():
    """A one-paragraph document encodes to the expected elements."""
    doc = Document(
        Head({"title": "untitled"}),
        [create_paragraph("hello", created=1000, modified=1000)],
    )
    text = SKML.encode(doc)

    assert text.startswith("<skml>")
    assert text.count('<p created="1000" modified="1000">hello</p>') == 1
    assert "<title>untitled</title>" in text


def test_round_trip_full_document():
    """Every SKML block kind survives encode then decode."""
    doc = Document(
        Head({"title": "Trip", "created": 100, "modified": 200}),
        [
            create_header(2, "Packing", created=1, modified=2),
            create_paragraph("Bring <snacks> & water", created=3, modified=3),
            create_horizontal_rule(created=4, modified=4),
            create_code("x = 1", "python", created=5, modified=6),
            create_ordered_list(
                [create_list_item("one", created=7, modified=7), create_list_item("two", created=8, modified=9)],
                created=7,
                modified=9,
            ),
            create_unordered_list(created=10, modified=10),
            create_image("map.png", "The route", created=11, modified=11),
        ],
    )

    decoded = SKML.decode(SKML.encode(doc))

    assert decoded == doc
    assert decoded.body[3].language == "python"
    assert [i.content for i in decoded.body[4].items] == ["one", "two"]
    assert decoded.body[4].items[1].modified == 9
    assert decoded.body[6].filename == "map.png"


def test_head_timestamps_decode_as_integers():
    """created and modified in the head are integers; other keys stay strings."""
    text = (
        "<skml><head><title>t</title><created>12</created><modified>34</modified>"
        "<description>56</description></head><body/></skml>"
    )
    doc = SKML.decode(text)

    assert doc.head["created"] == 12
    assert doc.head["modified"] == 34
    assert doc.head["description"] == "56"


def test_unknown_elements_are_skipped():
    """An unknown tag between two known blocks yields exactly those two blocks."""
    text = (
        "<skml><head><title>t</title></head><body>"
        '<p created="1" modified="1">a</p>'
        '<video created="1" modified="1">?</video>'
        "<!-- a comment -->"
        '<h1 created="2" modified="2">b</h1>'
        "</body></skml>"
    )
    doc = SKML.decode(text)

    assert [b.kind for b in doc.body] == [BlockKind.PARAGRAPH, BlockKind.HEADER1]
    assert [b.content for b in doc.body] == ["a", "b"]


def test_malformed_timestamp_rejected():
    """Timestamps must be plain integers."""
    text = '<skml><head/><body><p created="12abc" modified="20">x</p></body></skml>'
    with pytest.raises(InvalidDocument):
        SKML.decode(text)


def test_inverted_timestamps_rejected():
    """modified earlier than created is not a valid block."""
    text = '<skml><head/><body><p created="20" modified="10">x</p></body></skml>'
    with pytest.raises(InvalidDocument):
        SKML.decode(text)


def test_missing_timestamps_are_stamped():
    """Absent timestamps fall back to the current time without inverting."""
    text = '<skml><head/><body><p>x</p><p modified="5">y</p></body></skml>'
    doc = SKML.decode(text)

    first, second = doc.body
    assert first.created == first.modified
    assert second.modified == 5
    assert second.created <= 5


def test_missing_head_or_body_rejected():
    """Both sections are required."""
    with pytest.raises(InvalidDocument):
        SKML.decode("<skml><head/></skml>")
    with pytest.raises(InvalidDocument):
        SKML.decode("<skml><body/></skml>")


def test_malformed_xml_rejected():
    """Unparseable text is an invalid document."""
    with pytest.raises(InvalidDocument):
        SKML.decode("<skml><head></skml>")


def test_image_without_filename_rejected():
    """An img element has to name its file."""
    text = '<skml><head/><body><img created="1" modified="1">caption</img></body></skml>'
    with pytest.raises(InvalidDocument):
        SKML.decode(text)


def test_code_without_language_gets_default():
    """A code block with no language attribute decodes as plaintext."""
    text = '<skml><head/><body><code created="1" modified="1">raw</code></body></skml>'
    doc = SKML.decode(text)

    assert doc.body[0].language == "plaintext"


def test_encode_is_deterministic():
    """Encoding the same document twice gives the same text."""
    doc = Document(
        Head({"title": "same"}),
        [create_paragraph("a", created=1, modified=1), create_code("b", created=2, modified=2)],
    )

    assert SKML.encode(doc) == SKML.encode(doc)


def test_get_codec():
    """Codecs are looked up by name."""
    assert get_codec("skml") is SKML
    with pytest.raises(ValueError):
        get_codec("markdown")


def test_non_integer_head_timestamps_stay_text():
    """A free-form head created/modified value survives save and load."""
    doc = Document(Head({"title": "t"}))
    doc.set_property("created", "yesterday")
    doc.set_property("modified", " 42 ")

    decoded = SKML.decode(SKML.encode(doc))

    assert decoded.head["created"] == "yesterday"
    assert decoded.head["modified"] == 42


def test_oversized_timestamp_rejected():
    """A timestamp too long to parse is an invalid document, not a crash."""
    digits = "9" * 5000
    text = f'<skml><head/><body><p created="{digits}" modified="1">x</p></body></skml>'

    with pytest.raises(InvalidDocument):
        SKML.decode(text)


@pytest.mark.skipif(
    not hasattr(sys, "get_int_max_str_digits"), reason="no integer string length limit"
)
def test_oversized_head_timestamp_stays_text():
    """Head values follow the lenient path even when too long for int()."""
    digits = "1" * 5000
    doc = SKML.decode(f"<skml><head><created>{digits}</created></head><body/></skml>")

    assert doc.head["created"] == digits


def test_wrong_root_rejected():
    """SKML text must be rooted at <skml>."""
    with pytest.raises(InvalidDocument):
        SKML.decode("<xml><head/><body/></xml>")
