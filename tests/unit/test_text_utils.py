from mathdoc.converter.text_utils import (
    collapse_blank_lines,
    ends_with_space_or_opener,
    escape_html,
    normalize_newlines,
    preserve_edge_spaces,
    starts_with_space_or_closer,
    strip_code_fences,
)


def test_escape_keeps_quotes():
    assert escape_html('a < b & "c"') == 'a &lt; b &amp; "c"'


def test_edge_spaces_become_nbsp():
    assert preserve_edge_spaces(" Cho ") == "&#160;Cho&#160;"
    assert preserve_edge_spaces("Cho") == "Cho"
    assert preserve_edge_spaces("") == ""


def test_newlines_and_blank_lines():
    assert normalize_newlines("a\r\nb") == "a\nb"
    assert collapse_blank_lines("a\n\n\n\nb") == "a\n\nb"
    assert collapse_blank_lines("a\n\n\nb", keep=1) == "a\nb"


def test_code_fences():
    # Models sometimes wrap code in a fenced block.
    assert strip_code_fences("```latex\n\\draw;\n```") == "\\draw;"
    assert strip_code_fences("```\n\\draw;\n```") == "\\draw;"
    assert strip_code_fences("\\draw;") == "\\draw;"


def test_math_spacing_neighbours():
    assert ends_with_space_or_opener("Cho (")
    assert not ends_with_space_or_opener("Cho")
    assert starts_with_space_or_closer(", ta có")
    assert not starts_with_space_or_closer("ta có")
