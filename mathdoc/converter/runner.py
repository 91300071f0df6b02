from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from ..bank_store import BankStore
from ..config import load_settings
from ..errors import MathDocError
from ..importers import IMAGE_MIME_TYPES, pdf_to_images, pdf_to_text, read_image, read_source
from ..runtime_state import AI_GATE
from .normalizer import normalize_exam_macros
from .pipeline import MathDocExporter, export_filename
from .splitter import split_questions
from .styles import STYLES, get_style

logger = logging.getLogger(__name__)


def _write_or_print(text: str, out: Optional[str]) -> None:
    if out:
        Path(out).write_text(text, encoding="utf-8")
        print(f"Saved to {out}")
    else:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")


def _make_ai(settings):
    from ..llm import MathDocAI

    return MathDocAI(settings)


def cmd_export(args) -> int:
    settings = load_settings()
    src = read_source(Path(args.src))
    profile = get_style(args.style)
    rich = src.is_rich_text or args.rich
    exporter = MathDocExporter(settings)

    if args.html:
        result = exporter.render(src.text, profile, rich, fetch=not args.no_fetch)
        out = Path(args.output or f"{src.stem}{profile.filename_suffix}.html")
        out.write_text(result.html, encoding="utf-8")
    else:
        out = Path(args.output or export_filename(src.stem, profile))
        exporter.export(src.text, profile, out, rich, fetch=not args.no_fetch)
    print(f"Saved to {out}")
    return 0


def cmd_split(args) -> int:
    src = read_source(Path(args.src))
    result = split_questions(src.text)
    if not result.structured:
        print("No question markers found; the whole document is one block.", file=sys.stderr)
    for i, block in enumerate(result.blocks, start=1):
        print(f"----- {i}/{len(result)} -----")
        print(block)
    return 0


def cmd_normalize(args) -> int:
    settings = load_settings()
    src = read_source(Path(args.src))
    _write_or_print(normalize_exam_macros(src.text, locale=args.locale or settings.locale), args.output)
    return 0


def cmd_ocr(args) -> int:
    path = Path(args.file)
    ext = path.suffix.lower()
    if ext == ".pdf" and args.legacy:
        _write_or_print(pdf_to_text(path), args.output)
        return 0

    if ext == ".pdf":
        images = pdf_to_images(path, max_pages=args.max_pages)
    elif ext in IMAGE_MIME_TYPES:
        images = [read_image(path)]
    else:
        raise MathDocError(f"OCR needs a PDF or an image, got {path.name}")

    ai = _make_ai(load_settings())
    with AI_GATE.hold("ocr"):
        logger.info("transcribing %d page image(s)", len(images))
        text = ai.transcribe_images(images)
    _write_or_print(text, args.output)
    return 0


def cmd_transform(args) -> int:
    src = read_source(Path(args.src))
    ai = _make_ai(load_settings())
    with AI_GATE.hold(f"transform:{args.mode}"):
        text = ai.transform_content(src.text, args.mode)
    _write_or_print(text, args.output)
    return 0


def cmd_worksheet(args) -> int:
    ai = _make_ai(load_settings())
    with AI_GATE.hold("worksheet"):
        text = ai.create_worksheet(args.grade, args.lesson, args.level, include_answer_key=args.answer_key)
    _write_or_print(text, args.output)
    return 0


def cmd_bank(args) -> int:
    settings = load_settings()
    store = BankStore(Path(args.db) if args.db else settings.bank_db_path)
    bank = store.load()

    if args.bank_cmd == "save":
        src = read_source(Path(args.src))
        blocks = split_questions(src.text).blocks if args.split else [src.text]
        if bank.find(args.lesson) is None:
            raise MathDocError(f"no bank node with id {args.lesson!r}")
        n = bank.save_questions(args.lesson, blocks)
        store.save(bank)
        print(f"Saved {n} question(s) to {' / '.join(bank.path(args.lesson))}")
        return 0

    for node in bank.walk():
        depth = len(bank.path(node.id)) - 1
        counts = f" ({len(node.questions)} q, {len(node.figures)} fig)" if node.kind == "lesson" else ""
        print(f"{'  ' * depth}{node.title} [{node.id}]{counts}")
    return 0


def cmd_styles(args) -> int:
    for p in STYLES.values():
        suffix = p.filename_suffix or "-"
        print(f"{p.name:<14} {p.label:<18} {suffix}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mathdoc", description="Vietnamese math LaTeX/TikZ to Word converter")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("export", help="Export a .tex/.txt/.docx source to Word")
    p.add_argument("src")
    p.add_argument("--output", "-o", help="Output file (default: <stem><style suffix>.docx)")
    p.add_argument("--style", "-s", default="standard", help="Export style (see `mathdoc styles`)")
    p.add_argument("--html", action="store_true", help="Write the intermediate HTML instead of .docx")
    p.add_argument("--rich", action="store_true", help="Treat the source as HTML rich text")
    p.add_argument("--no-fetch", action="store_true", help="Do not fetch diagram images")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("split", help="Split a source into question blocks")
    p.add_argument("src")
    p.set_defaults(func=cmd_split)

    p = sub.add_parser("normalize", help="Rewrite exam-package macros to plain text")
    p.add_argument("src")
    p.add_argument("--output", "-o")
    p.add_argument("--locale", choices=["vi", "en"])
    p.set_defaults(func=cmd_normalize)

    p = sub.add_parser("ocr", help="Transcribe a PDF or image to LaTeX text with the AI model")
    p.add_argument("file")
    p.add_argument("--output", "-o")
    p.add_argument("--max-pages", type=int, default=5)
    p.add_argument("--legacy", action="store_true", help="Plain text extraction for PDFs, no AI")
    p.set_defaults(func=cmd_ocr)

    p = sub.add_parser("transform", help="Solve, translate, format or explain (Polya) a source with AI")
    p.add_argument("src")
    p.add_argument("--mode", "-m", default="SOLVE", type=str.upper, choices=["SOLVE", "TRANSLATE", "FORMAT", "POLYA"])
    p.add_argument("--output", "-o")
    p.set_defaults(func=cmd_transform)

    p = sub.add_parser("worksheet", help="Generate a differentiated worksheet with AI")
    p.add_argument("--grade", required=True)
    p.add_argument("--lesson", required=True)
    p.add_argument("--level", default="average", choices=["weak", "average", "good", "assessment"])
    p.add_argument("--answer-key", action="store_true")
    p.add_argument("--output", "-o")
    p.set_defaults(func=cmd_worksheet)

    p = sub.add_parser("bank", help="Question bank")
    p.add_argument("--db", help="Bank database (default: MATHDOC_BANK_DB)")
    bank_sub = p.add_subparsers(dest="bank_cmd", required=True)
    bank_sub.add_parser("tree", help="Show the curriculum tree")
    b = bank_sub.add_parser("save", help="Save a source into a lesson")
    b.add_argument("src")
    b.add_argument("--lesson", required=True, help="Lesson id (see `mathdoc bank tree`)")
    b.add_argument("--split", action="store_true", help="One question per detected block")
    p.set_defaults(func=cmd_bank)

    p = sub.add_parser("styles", help="List export styles")
    p.set_defaults(func=cmd_styles)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except (MathDocError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
