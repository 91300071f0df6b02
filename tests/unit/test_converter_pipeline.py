import io
from pathlib import Path

from docx import Document
from docx.enum.section import WD_ORIENT

from mathdoc.config import Settings
from mathdoc.converter.formatter import DIAGRAM_ERROR_MARKER
from mathdoc.converter.models import DiagramImage
from mathdoc.converter.pipeline import MathDocExporter, render_export

TIKZ = "\\begin{tikzpicture}\\draw (0,0) -- (1,1);\\end{tikzpicture}"

SOURCE = (
    "\\begin{ex}\nCâu 1: Cho hình vẽ.\n" + TIKZ + "\n"
    "\\choice{\\True $1$}{$2$}{$3$}{$4$}\n\\loigiai\n$$x = 1$$\n\\end{ex}"
)


def _settings(tmp_path: Path) -> Settings:
    return Settings(
        api_key=None,
        base_url="http://localhost",
        model_fast="fast",
        model_pro="pro",
        chat_model="pro",
        kroki_url="http://kroki.local",
        bank_db_path=tmp_path / "bank.sqlite3",
        fetch_workers=2,
        timeout_s=None,
        locale="vi",
    )


def test_render_fetches_each_diagram_once(tmp_path):
    requested = []

    def fake_fetch(codes):
        requested.append(list(codes))
        return {c: DiagramImage(data_uri="data:image/png;base64,AA", width=800, height=800) for c in codes}

    exporter = MathDocExporter(_settings(tmp_path), fetch_images=fake_fetch)
    result = exporter.render(SOURCE + "\n" + TIKZ, "standard")
    assert requested == [[TIKZ]]
    assert result.ok
    assert result.body.count('width="200" height="200"') == 2
    assert "**Lời giải.**" not in result.body
    assert "<b>Lời giải.</b>" in result.body


def test_render_without_fetch_marks_diagrams(tmp_path):
    def fail_fetch(codes):
        raise AssertionError("must not fetch")

    exporter = MathDocExporter(_settings(tmp_path), fetch_images=fail_fetch)
    result = exporter.render(SOURCE, "minimal", fetch=False)
    assert DIAGRAM_ERROR_MARKER in result.html
    assert [e.kind for e in result.errors] == ["diagram"]


def test_export_writes_docx(tmp_path):
    exporter = MathDocExporter(_settings(tmp_path), fetch_images=lambda codes: {})
    out = exporter.export(SOURCE, "landscape", tmp_path / "out" / "de.docx")
    assert out == tmp_path / "out" / "de.docx"
    doc = Document(io.BytesIO(out.read_bytes()))
    assert doc.sections[0].orientation == WD_ORIENT.LANDSCAPE


def test_export_into_directory_uses_style_suffix(tmp_path):
    exporter = MathDocExporter(_settings(tmp_path), fetch_images=lambda codes: {})
    out = exporter.export("Câu 1: $x$", "flashcards", tmp_path)
    assert out.name == "Document_cards.docx"
    assert out.exists()


def test_rich_text_is_not_normalized():
    html = "<p>\\choice{a}{b}{c}{d}</p>"
    result = render_export(html, is_rich_text=True)
    assert html in result.body


def test_render_export_locale():
    result = render_export("\\shortans{7}", locale="en")
    assert "<b>Short answer:</b> 7" in result.body
