import pytest

from mathdoc.converter.pipeline import export_filename
from mathdoc.converter.styles import STYLES, get_style, style_names
from mathdoc.errors import UnknownStyleError


def test_default_and_aliases():
    assert get_style(None).name == "standard"
    assert get_style("notes").name == "cornell-notes"
    assert get_style(" Two_Column ").name == "two-column"
    profile = get_style("draft")
    assert get_style(profile) is profile


def test_unknown_style():
    with pytest.raises(UnknownStyleError) as exc:
        get_style("glossy")
    assert "glossy" in str(exc.value)


def test_monochrome_profiles_force_black_headings():
    for name in ("minimal", "draft"):
        p = get_style(name)
        assert p.heading_color_primary == "#000000"
        assert p.table_header_bg == "#ffffff"
    assert get_style("standard").heading_color_primary == "#2E74B5"


def test_large_print_and_landscape():
    lp = get_style("large-print")
    assert lp.font_size == "16pt"
    assert "Arial" in lp.forced_font_family
    assert get_style("landscape").orientation == "landscape"
    assert all(p.orientation == "portrait" for p in STYLES.values() if p.name != "landscape")


def test_export_filename_suffixes():
    assert export_filename("de_thi", "standard") == "de_thi.docx"
    assert export_filename("de_thi", "minimal") == "de_thi_print.docx"
    assert export_filename("de_thi", "flashcards") == "de_thi_cards.docx"
    assert export_filename("de_thi.docx", "worksheet") == "de_thi_worksheet.docx"
    assert export_filename("", "draft") == "Document_draft.docx"


def test_style_names_cover_all_profiles():
    assert style_names() == list(STYLES)
    assert len(style_names()) == 9
