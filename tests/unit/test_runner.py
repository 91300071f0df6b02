import io

from docx import Document

from mathdoc.bank_store import BankStore
from mathdoc.converter.runner import main

SOURCE = (
    "Câu 1: $1+1$\n\\choice{\\True 2}{3}{4}{5}\n"
    "Câu 2: $2+2$\n\\shortans{4}\n"
)


def _source(tmp_path, text=SOURCE, name="de.tex"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


def test_styles_lists_every_profile(capsys):
    assert main(["styles"]) == 0
    out = capsys.readouterr().out
    for name in ("standard", "minimal", "landscape", "worksheet", "flashcards", "two-column"):
        assert name in out


def test_split_prints_blocks(tmp_path, capsys):
    assert main(["split", str(_source(tmp_path))]) == 0
    out = capsys.readouterr().out
    assert "----- 1/2 -----" in out
    assert "----- 2/2 -----" in out


def test_export_without_fetch(tmp_path, capsys):
    out = tmp_path / "de.docx"
    assert main(["export", str(_source(tmp_path)), "-o", str(out), "--no-fetch"]) == 0
    assert "Saved to" in capsys.readouterr().out
    doc = Document(io.BytesIO(out.read_bytes()))
    assert len(doc.sections) == 1


def test_export_html(tmp_path):
    out = tmp_path / "de.html"
    assert main(["export", str(_source(tmp_path)), "-o", str(out), "--html", "--style", "two-column"]) == 0
    html = out.read_text(encoding="utf-8")
    assert "<!DOCTYPE html>" in html
    assert "Câu 2" in html


def test_unknown_style_fails(tmp_path, capsys):
    assert main(["export", str(_source(tmp_path)), "--style", "poster", "--no-fetch"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_missing_source_fails(tmp_path, capsys):
    assert main(["split", str(tmp_path / "missing.tex")]) == 1
    assert "Error:" in capsys.readouterr().err


def test_normalize_to_file(tmp_path):
    out = tmp_path / "plain.txt"
    assert main(["normalize", str(_source(tmp_path)), "-o", str(out), "--locale", "en"]) == 0
    text = out.read_text(encoding="utf-8")
    assert "\\shortans" not in text
    assert "Short answer" in text


def test_bank_tree_and_save(tmp_path, capsys):
    db = tmp_path / "bank.sqlite3"
    assert main(["bank", "--db", str(db), "tree"]) == 0
    out = capsys.readouterr().out
    assert "Toán Lớp 10 [grade_10]" in out
    assert "  Chương I: Mệnh đề và Tập hợp [g10_c1]" in out

    src = _source(tmp_path)
    assert main(["bank", "--db", str(db), "save", str(src), "--lesson", "g10_c1_l1", "--split"]) == 0
    assert "Saved 2 question(s)" in capsys.readouterr().out
    assert len(BankStore(db).load().find("g10_c1_l1").questions) == 2

    assert main(["bank", "--db", str(db), "save", str(src), "--lesson", "nope"]) == 1
