"""Integration tests for pass orchestration."""

import pytest

from tagfmt.align import TagAlign
from tagfmt.config import Options
from tagfmt.doctor import TagDoctor
from tagfmt.errors import ConfigError, SourceError
from tagfmt.fill import TagFill
from tagfmt.pipeline import build_passes, format_source
from tagfmt.sorting import TagSort
from tagfmt.source import parse_source

SOURCE = """package model

type Public struct {
	ID   int    `yaml:"id" json:"id"`
	Name string `yaml:"name" json:"name"`
}

type Internal struct {
	Secret string `yaml:"secret" json:"secret"`
}
"""


# --- Tests ---


def test_default_passes():
    """Test doctor and align run by default."""
    passes = build_passes(parse_source(SOURCE), Options().compile())
    assert [type(p) for p in passes] == [TagDoctor, TagAlign]


def test_all_passes_in_order():
    """Test the full pass order."""
    settings = Options(fill="xml=lower(_val)", sort=True).compile()
    passes = build_passes(parse_source(SOURCE), settings)
    assert [type(p) for p in passes] == [TagDoctor, TagFill, TagSort, TagAlign]


def test_no_align_drops_align_pass():
    """Test --no-align removes the align pass."""
    passes = build_passes(parse_source(SOURCE), Options(align=False).compile())
    assert [type(p) for p in passes] == [TagDoctor]


def test_struct_exclusion():
    """Test fields of an excluded struct are left untouched."""
    settings = Options(sort=True, sort_order="json", inverse_struct_pattern="^Internal$").compile()
    result = format_source(SOURCE, settings, "model.go")
    assert '\tID   int    `json:"id" yaml:"id"`\n' in result.text
    assert '\tName string `json:"name" yaml:"name"`\n' in result.text
    assert '\tSecret string `yaml:"secret" json:"secret"`\n' in result.text
    assert result.changed


def test_sort_sees_filled_keys():
    """Test each pass works on the previous pass's output."""
    src = 'type T struct {\n\tUserID int `json:"uid"`\n}\n'
    settings = Options(fill="yaml=snake(_val)", sort=True, sort_order="yaml|json", align=False).compile()
    result = format_source(src, settings)
    assert result.text == 'type T struct {\n\tUserID int `yaml:"user_id" json:"uid"`\n}\n'


def test_sort_sees_repaired_tag():
    """Test a repaired tag is sorted in the same run."""
    src = 'type T struct {\n\tA int `yaml:"a" json:"b`\n}\n'
    settings = Options(sort=True, sort_weight="json=1", align=False).compile()
    result = format_source(src, settings)
    assert result.text == 'type T struct {\n\tA int `json:"b" yaml:"a"`\n}\n'
    assert [d.code for d in result.diagnostics] == ["TAG_UNCLOSED_QUOTE"]


def test_unchanged_input():
    """Test formatted input reports no change."""
    result = format_source(SOURCE, Options().compile())
    assert result.text == SOURCE
    assert not result.changed
    assert result.diagnostics == []


def test_no_structs():
    """Test files without structs pass through."""
    src = "package main\n\nfunc main() {}\n"
    result = format_source(src, Options(fill="json=lower(_val)").compile())
    assert result.text == src
    assert not result.changed


@pytest.mark.parametrize(
    "options",
    [
        {"pattern": "("},
        {"inverse_struct_pattern": "[a-"},
        {"fill": "json=shout(_val)"},
        {"sort": True, "sort_weight": "json=high"},
        {"tab_width": 0},
    ],
)
def test_config_errors_before_parsing(options):
    """Test bad settings fail at compile time."""
    with pytest.raises(ConfigError):
        Options(**options).compile()


def test_source_error_propagates():
    """Test malformed Go input is not formatted."""
    with pytest.raises(SourceError):
        format_source("type T struct {\n\tA int `json:\"a\"`\n", Options().compile())


def test_doctor_keeps_escaped_utf8():
    """Test normalizing an interpreted-string tag keeps escaped UTF-8 text."""
    src = 'type T struct {\n\tA int "yaml:\\"a\\"   json:\\"\\xc3\\xa9\\""\n}\n'
    result = format_source(src, Options(align=False).compile())
    assert result.text == 'type T struct {\n\tA int "yaml:\\"a\\" json:\\"é\\""\n}\n'
