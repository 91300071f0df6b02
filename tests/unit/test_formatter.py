import pytest

from mathdoc.converter import formatter
from mathdoc.converter.formatter import (
    ANSWER_BLANK,
    DIAGRAM_ERROR_MARKER,
    FORMULA_ERROR_MARKER,
    WRITING_LINES,
    format_plain_text,
    render_diagram,
    render_document,
    render_segments,
)
from mathdoc.converter.models import DiagramImage, diagram_segment, math_segment, text_segment
from mathdoc.converter.pipeline import render_export
from mathdoc.converter.segmenter import parse_content
from mathdoc.errors import FormulaRenderError

TIKZ = "\\begin{tikzpicture}\\draw (0,0) -- (1,1);\\end{tikzpicture}"


def test_text_is_escaped():
    out = format_plain_text("a < b & c")
    assert "a &lt; b &amp; c" in out
    assert out.startswith('<span class="text-run"')


def test_newlines_and_edge_spaces():
    out = format_plain_text(" x\ny ")
    assert "&#160;x<br/>y&#160;" in out


def test_inline_math_gets_nbsp_against_tight_text():
    body, errors = render_segments(parse_content("Ta có$x$là"))
    assert not errors
    assert "</span>&#160;<math" in body
    assert "</math>&#160;<span" in body


def test_inline_math_no_nbsp_next_to_space_or_punctuation():
    body, _ = render_segments(parse_content("Ta có $x$, là"))
    assert "</span><math" in body
    assert "</math><span" in body


def test_minimal_and_standard_differ_only_in_template():
    segs = parse_content("PHẦN A: Trắc nghiệm\nCâu 1: Tính $x^2$.\n$$y=1$$\nĐÁP ÁN\n1A")
    body_std, _ = render_segments(segs, style="standard")
    body_min, _ = render_segments(segs, style="minimal")
    assert body_std == body_min

    html_std = render_document(segs, style="standard").html
    html_min = render_document(segs, style="minimal").html
    assert html_std != html_min
    assert "color: #2E74B5" in html_std
    assert "h1 { font-size: 1.4em; color: #000000" in html_min


def test_part_heading_is_uppercased():
    out = format_plain_text("PHẦN A: Trắc nghiệm")
    assert "PHẦN A: <span" in out
    assert "TRẮC NGHIỆM</span></h3>" in out


def test_answer_key_heading_breaks_page():
    out = format_plain_text("Câu 1. abc\nĐÁP ÁN\n1A 2B")
    assert "page-break-before: always" in out
    assert "ĐÁP ÁN</h2>" in out


def test_answer_lines_do_not_break_page():
    assert "page-break-before" not in format_plain_text("Đáp án: B")
    assert "page-break-before" not in format_plain_text("**Đáp án ngắn:** 5")


def test_option_markers_bold_and_spaced():
    out = format_plain_text("A. 1 B. 2")
    assert "1" + "&nbsp;" * 5 in out
    assert """font-family: 'Times New Roman';">A.</span>""" in out
    assert """font-family: 'Times New Roman';">B.</span>""" in out


def test_bold_and_question_marker():
    out = format_plain_text("Câu 3: **chú ý**")
    assert '<span style="color: #0284c7; font-weight: bold;">Câu 3:</span>' in out
    assert "<b>chú ý</b>" in out


def test_worksheet_adds_writing_lines_after_long_question():
    question = "Câu 1: Cho hàm số bậc hai, hãy tìm tọa độ đỉnh và trục đối xứng của parabol."
    body, _ = render_segments([text_segment(question)], style="worksheet")
    assert WRITING_LINES in body

    body, _ = render_segments([text_segment("Câu 1: ngắn")], style="worksheet")
    assert WRITING_LINES not in body

    key = "HƯỚNG DẪN CHẤM\nCâu 1: đỉnh I(1; 2), trục đối xứng x = 1, parabol quay lên trên."
    body, _ = render_segments([text_segment(key)], style="worksheet")
    assert WRITING_LINES not in body


def test_worksheet_answer_blank_after_display_math():
    body, _ = render_segments([math_segment("x=1", display=True, delimiter="$$")], style="worksheet")
    assert body.endswith(ANSWER_BLANK)
    body, _ = render_segments([math_segment("x=1", display=True, delimiter="$$")], style="standard")
    assert ANSWER_BLANK not in body


def test_flashcards_wrap_text_and_display_segments():
    segs = parse_content("Câu 1: abc\n$$x$$")
    body, _ = render_segments(segs, style="flashcards")
    assert body.count('<div class="flashcard">') == 2


def test_rich_text_passes_through():
    body, _ = render_segments([text_segment("<p><b>x</b> & y</p>")], is_rich_text=True)
    assert body == "<p><b>x</b> & y</p>"


def test_diagram_sized_to_quarter_of_raster():
    img = DiagramImage(data_uri="data:image/png;base64,AAA", width=800, height=402)
    out = render_diagram(img)
    assert 'width="200" height="101"' in out
    assert 'src="data:image/png;base64,AAA"' in out


def test_diagram_fallback_width_keeps_aspect():
    img = DiagramImage(data_uri="data:image/png;base64,AAA", width=1, height=2)
    assert 'width="200" height="400"' in render_diagram(img)


def test_missing_diagram_is_a_marker_not_a_failure():
    segs = [text_segment("Hình: "), diagram_segment(TIKZ), text_segment(" hết")]
    result = render_document(segs, images={})
    assert DIAGRAM_ERROR_MARKER in result.html
    assert "hết" in result.html
    assert not result.ok
    assert [(e.index, e.kind) for e in result.errors] == [(1, "diagram")]


def test_diagram_from_image_map():
    img = DiagramImage(data_uri="data:image/png;base64,AAA", width=400, height=400)
    result = render_document([diagram_segment(TIKZ)], images={TIKZ: img})
    assert result.ok
    assert 'width="100" height="100"' in result.body


def test_captioned_display_diagram_renders_no_empty_formula():
    img = DiagramImage(data_uri="data:image/png;base64,AAA", width=400, height=400)
    result = render_export(f"$$ Hình 1: {TIKZ} $$", images={TIKZ: img})
    assert result.ok
    assert "<math" not in result.body
    assert '<p style="text-align: center;">Hình 1:</p>' in result.body
    assert 'width="100" height="100"' in result.body


def test_formula_failure_degrades_one_segment(monkeypatch):
    def boom(latex, display=False, output="mathml"):
        raise FormulaRenderError("bad formula")

    monkeypatch.setattr(formatter, "render_formula", boom)
    result = render_document(parse_content("Trước $\\frac{1}$ sau"))
    assert FORMULA_ERROR_MARKER in result.body
    assert "sau" in result.body
    assert result.errors[0].kind == "math"
    assert result.errors[0].message == "bad formula"


def test_display_math_is_centered_mathml():
    body, _ = render_segments([math_segment("a^2+b^2=c^2", display=True, delimiter="$$")])
    assert body.startswith('<p class="equation"')
    assert "<math" in body
    assert "annotation" not in body


def test_document_template_and_attribution():
    result = render_export("Câu 1: $x$", style="large-print")
    assert '<div class="Section1">' in result.html
    assert formatter.ATTRIBUTION in result.html
    assert "font-size: 16pt" in result.html
    assert "font-family: Arial, sans-serif !important" in result.html


def test_unknown_style_raises():
    with pytest.raises(KeyError):
        render_segments([text_segment("x")], style="nope")
