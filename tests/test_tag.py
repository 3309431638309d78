"""Unit tests for the tag grammar."""

import pytest

from tagfmt.errors import InvalidTag, TagError, UnclosedBracket, UnclosedQuote
from tagfmt.models import Entry
from tagfmt.tag import lookup, normalize, parse, serialize


# --- Tests ---


def test_parse_entries_in_order():
    """Test parse keeps keys, raw values and first-seen order."""
    entries = parse('json:"name,omitempty" yaml:"name"')
    assert entries == [
        Entry(key="json", value="name,omitempty", index=0),
        Entry(key="yaml", value="name", index=1),
    ]


@pytest.mark.parametrize(
    "raw",
    [
        'json:"name"',
        'json:"name,omitempty" yaml:"name" xml:"-"',
        'binding:"required,oneof=[a b]"',
        'json:"a\\"b"',
        'gorm:"column:id;primaryKey" json:"id,string"',
        'json:""',
    ],
)
def test_round_trip(raw):
    """Test serialize(parse(t)) == t for well-formed tags."""
    assert serialize(parse(raw)) == raw


def test_empty_tag():
    """Test empty and blank tags parse to no entries."""
    assert parse("") == []
    assert parse("   ") == []
    assert serialize([]) == ""


def test_normalize_whitespace():
    """Test runs of spaces collapse to a single separator."""
    assert normalize('  json:"a"   yaml:"b" ') == 'json:"a" yaml:"b"'


def test_escaped_quote_stays_in_value():
    """Test backslash-escaped quotes do not end a value."""
    entries = parse('json:"a\\"b" yaml:"c"')
    assert entries[0].value == 'a\\"b'
    assert entries[1].key == "yaml"


def test_unclosed_quote():
    """Test a missing closing quote reports the end of the literal."""
    with pytest.raises(UnclosedQuote) as info:
        parse('json:"name')
    assert info.value.offset == 10


def test_unclosed_bracket():
    """Test an opening bracket without its close inside a value."""
    with pytest.raises(UnclosedBracket) as info:
        parse('v:"[a,b"')
    assert info.value.offset == 7
    assert info.value.depth == 1


@pytest.mark.parametrize(
    "raw",
    [
        "json",
        "json:name",
        'json:"a"yaml:"b"',
        ':"x"',
        'json :"x"',
    ],
)
def test_invalid_tag(raw):
    """Test structural violations raise InvalidTag."""
    with pytest.raises(InvalidTag):
        parse(raw)


def test_errors_share_base_class():
    """Test every grammar error is a TagError carrying a code."""
    for exc_type in (UnclosedQuote, InvalidTag):
        assert issubclass(exc_type, TagError)
    assert issubclass(UnclosedBracket, TagError)
    assert UnclosedQuote.code == "TAG_UNCLOSED_QUOTE"


def test_lookup_returns_first_occurrence():
    """Test duplicate keys resolve to the first entry."""
    entries = parse('json:"a" json:"b"')
    assert lookup(entries, "json").value == "a"
    assert lookup(entries, "yaml") is None


def test_entry_name_part():
    """Test the name part of a value stops at the first comma."""
    assert Entry(key="json", value="id,omitempty", index=0).name() == "id"
    assert Entry(key="json", value=",omitempty", index=0).name() == ""
