"""
File importers: turn uploaded files into editor text or OCR payloads.

PDF pages are rasterized with PyMuPDF for the vision model (or text-extracted
in the legacy path); .docx bodies become simple HTML for rich-text mode.
"""
from __future__ import annotations

import base64
import html
import logging
from dataclasses import dataclass
from pathlib import Path

import fitz  # PyMuPDF
from docx import Document

from .errors import UnsupportedFileError

logger = logging.getLogger(__name__)

IMAGE_MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}
TEXT_EXTENSIONS = (".tex", ".txt", ".md")

OCR_MAX_PAGES = 5
OCR_DPI = 108  # 1.5x of the 72dpi page space
OCR_JPEG_QUALITY = 80


@dataclass
class ImportedSource:
    text: str
    is_rich_text: bool = False
    stem: str = "document"


def pdf_to_images(path: Path, max_pages: int = OCR_MAX_PAGES, dpi: int = OCR_DPI) -> list[dict]:
    """First `max_pages` pages as base64 JPEG payloads for the OCR model."""
    images: list[dict] = []
    zoom = float(dpi) / 72.0
    with fitz.open(str(path)) as doc:
        n = min(len(doc), max(1, int(max_pages)))
        for i in range(n):
            pix = doc[i].get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
            data = pix.tobytes("jpeg", jpg_quality=OCR_JPEG_QUALITY)
            images.append({"mime_type": "image/jpeg", "data": base64.b64encode(data).decode("ascii")})
        if len(doc) > n:
            logger.info("OCR limited to the first %d of %d pages", n, len(doc))
    return images


def pdf_to_text(path: Path) -> str:
    """Legacy extraction: words of each page joined by spaces, one section per page."""
    out: list[str] = []
    with fitz.open(str(path)) as doc:
        for i, page in enumerate(doc, start=1):
            words = [w[4] for w in page.get_text("words")]
            out.append(f"## Page {i}\n\n{' '.join(words)}\n\n")
    return "".join(out)


def read_image(path: Path) -> dict:
    p = Path(path)
    mime = IMAGE_MIME_TYPES.get(p.suffix.lower())
    if mime is None:
        raise UnsupportedFileError(f"not a supported image: {p.name}")
    return {"mime_type": mime, "data": base64.b64encode(p.read_bytes()).decode("ascii")}


def _runs_html(paragraph) -> str:
    parts: list[str] = []
    for run in paragraph.runs:
        s = html.escape(run.text or "", quote=False)
        if not s:
            continue
        if run.bold:
            s = f"<b>{s}</b>"
        if run.italic:
            s = f"<i>{s}</i>"
        if run.underline:
            s = f"<u>{s}</u>"
        parts.append(s)
    return "".join(parts)


def docx_to_html(path: Path) -> str:
    """Body paragraphs and tables of a .docx as plain HTML for rich-text mode."""
    doc = Document(str(path))
    out: list[str] = []
    for block in doc.iter_inner_content():
        if hasattr(block, "runs"):
            style = (block.style.name if block.style is not None else "") or ""
            inner = _runs_html(block)
            if style.startswith("Heading") and style[-1:].isdigit():
                level = min(int(style[-1]), 6)
                out.append(f"<h{level}>{inner}</h{level}>")
            else:
                out.append(f"<p>{inner}</p>")
        else:
            rows = []
            for row in block.rows:
                cells = "".join(f"<td>{html.escape(c.text, quote=False)}</td>" for c in row.cells)
                rows.append(f"<tr>{cells}</tr>")
            out.append(f"<table>{''.join(rows)}</table>")
    return "\n".join(out)


def _read_legacy_doc(path: Path) -> ImportedSource:
    # Some .doc files are really .docx or plain/XML text; binary Word 97 is not readable.
    try:
        return ImportedSource(text=docx_to_html(path), is_rich_text=True, stem=path.stem)
    except Exception as e:  # noqa: BLE001
        logger.debug("%s is not a zipped Word document: %s", path.name, e)
    text = path.read_bytes().decode("utf-8", errors="replace")
    if text[:1] == "\ufffd" or "\x00" in text:
        raise UnsupportedFileError(
            f"{path.name} is a legacy Word 97-2003 file; open it in Word and save it as .docx first"
        )
    return ImportedSource(text=text, stem=path.stem)


def read_source(path: Path) -> ImportedSource:
    """Load a text-bearing file (.tex/.txt/.md, .docx, .doc) into editor content."""
    p = Path(path)
    ext = p.suffix.lower()
    if ext in TEXT_EXTENSIONS:
        return ImportedSource(text=p.read_text(encoding="utf-8", errors="replace"), stem=p.stem)
    if ext == ".docx":
        return ImportedSource(text=docx_to_html(p), is_rich_text=True, stem=p.stem)
    if ext == ".doc":
        return _read_legacy_doc(p)
    raise UnsupportedFileError(f"unsupported file format: {p.name}")
