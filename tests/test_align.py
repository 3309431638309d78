"""Unit tests for tag alignment."""

from tagfmt.align import display_width, iter_blocks
from tagfmt.config import Options
from tagfmt.pipeline import format_source
from tagfmt.source import parse_source


def align(body, **options):
    src = "type T struct {\n" + body + "}\n"
    out = format_source(src, Options(**options).compile()).text
    return out[len("type T struct {\n") : -len("}\n")]


# --- Tests ---


def test_display_width_expands_tabs():
    """Test tabs advance to the next tab stop."""
    assert display_width("\tab", 8) == 10
    assert display_width("a\tb", 4) == 5
    assert display_width("abc") == 3


def test_pads_to_longest_declaration():
    """Test tags in a block start one column past the longest declaration."""
    body = '\tName string `json:"name"`\n\tAge int `json:"age"`\n'
    assert align(body) == '\tName string `json:"name"`\n\tAge int     `json:"age"`\n'


def test_alignment_is_idempotent():
    """Test aligned input comes back unchanged."""
    body = '\tName string `json:"name"`\n\tAge int     `json:"age"`\n'
    assert align(body) == body


def test_shrinks_oversized_gaps():
    """Test gaps wider than needed are reduced."""
    body = '\tName string       `json:"name"`\n\tAge  int          `json:"age"`\n'
    assert align(body) == '\tName string `json:"name"`\n\tAge  int    `json:"age"`\n'


def test_blank_line_breaks_block():
    """Test a blank line starts a new alignment block."""
    body = '\tName string `json:"name"`\n\n\tAge int `json:"age"`\n'
    assert align(body) == body


def test_comment_line_breaks_block():
    """Test a comment line starts a new alignment block."""
    body = '\tName string `json:"name"`\n\t// age in years\n\tAge int `json:"age"`\n'
    assert align(body) == body


def test_untagged_field_is_not_padded():
    """Test untagged fields stay in the block but neither count nor change."""
    body = '\tName string `json:"name"`\n\tAgeLonger int\n\tID int `json:"id"`\n'
    assert align(body) == '\tName string `json:"name"`\n\tAgeLonger int\n\tID int      `json:"id"`\n'


def test_excluded_field_keeps_gap_but_counts():
    """Test an unselected field still sets the block's column."""
    body = '\tA int `json:"a"`\n\tLongName string   `json:"x"`\n'
    expected = '\tA int           `json:"a"`\n\tLongName string   `json:"x"`\n'
    assert align(body, inverse_pattern="LongName") == expected


def test_multi_line_field_breaks_block():
    """Test a field spanning lines separates the fields around it."""
    body = (
        '\tA int `json:"a"`\n'
        "\tInner struct {\n"
        '\t\tX int `json:"x"`\n'
        '\t} `json:"inner"`\n'
        '\tLongName int `json:"l"`\n'
    )
    assert align(body) == body


def test_nested_struct_aligned_separately():
    """Test fields of a nested struct form their own blocks."""
    body = (
        '\tOuter int `json:"o"`\n'
        '\tN     struct {\n'
        '\t\tLongerName int `json:"l"`\n'
        '\t\tX int `json:"x"`\n'
        "\t}\n"
    )
    expected = (
        '\tOuter int `json:"o"`\n'
        '\tN     struct {\n'
        '\t\tLongerName int `json:"l"`\n'
        '\t\tX int          `json:"x"`\n'
        "\t}\n"
    )
    assert align(body) == expected


def test_gap_with_comment_is_left_alone():
    """Test a comment between the type and the tag is preserved."""
    body = '\tA int /* c */ `json:"a"`\n\tBB int `json:"b"`\n'
    assert align(body) == body


def test_align_disabled():
    """Test alignment can be turned off."""
    body = '\tName string `json:"name"`\n\tAge int `json:"age"`\n'
    assert align(body, align=False) == body


def test_fill_then_align():
    """Test newly created tags are aligned with their neighbours."""
    body = "\tID   int\n\tName string\n"
    expected = '\tID   int    `json:"id"`\n\tName string `json:"name"`\n'
    assert align(body, fill="json=lower(_val)") == expected


def test_iter_blocks_groups_consecutive_lines():
    """Test block boundaries on a parsed file."""
    source = parse_source("type T struct {\n\tA int\n\tB int\n\n\tC int\n}\n")
    blocks = [[item.name for item in block] for block in iter_blocks(source.fields)]
    assert blocks == [["A", "B"], ["C"]]
