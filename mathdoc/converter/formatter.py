"""
Segment -> HTML rendering for the Word export.

Each segment is turned into an HTML fragment; the fragments are joined and
wrapped in a page template built from the active style profile. The result is
handed to `packaging.package_docx`.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from ..errors import FormulaRenderError
from .math_render import render_formula
from .models import DiagramImage, Segment
from .styles import StyleProfile, get_style
from .text_utils import (
    NBSP_ENTITY,
    ends_with_space_or_opener,
    escape_html,
    preserve_edge_spaces,
    starts_with_space_or_closer,
)

logger = logging.getLogger(__name__)

ATTRIBUTION = "Biên soạn bởi MathDoc AI"

DIAGRAM_ERROR_MARKER = "[TikZ Image Error - Check Internet or Syntax]"
FORMULA_ERROR_MARKER = "[LaTeX Error]"

# Rasters are captured at 4x for print sharpness.
DIAGRAM_SCALE = 4
DIAGRAM_FALLBACK_WIDTH = 200

WRITING_LINES = (
    '<div style="margin-top: 10pt; margin-bottom: 20pt; color: #999;">'
    '<p style="border-bottom: 1px dotted #999; line-height: 24pt;">&nbsp;</p>'
    '<p style="border-bottom: 1px dotted #999; line-height: 24pt;">&nbsp;</p>'
    '<p style="border-bottom: 1px dotted #999; line-height: 24pt;">&nbsp;</p>'
    "</div>"
)
ANSWER_BLANK = '<p style="margin-bottom: 30pt;">&nbsp;</p>'

_PART_HEADING_RE = re.compile(
    r"\n?^(?:\*\*)?((?:PHẦN|(?-i:PART))\s+[A-E])(?:\s*:)?(.*?)(?:\*\*)?[ \t]*$\n?",
    re.IGNORECASE | re.MULTILINE,
)
# Answer-key headings are matched in capitals only, so that answer lines such
# as "Đáp án: B" or "**Đáp án ngắn:** 5" do not trigger a page break.
_ANSWER_KEY_WORDS = r"HƯỚNG DẪN CHẤM|PHẦN PHỤ LỤC|ĐÁP ÁN|ANSWER KEY|GRADING GUIDE|APPENDIX"
_ANSWER_KEY_SEARCH_RE = re.compile(r"(?:" + _ANSWER_KEY_WORDS + r")")
_ANSWER_KEY_HEADING_RE = re.compile(
    r"(?:^|\n)(?:\*\*)?(" + _ANSWER_KEY_WORDS + r")(.*?)(?:\*\*)?(?:\n|\Z)"
)
_GOAL_LABEL_RE = re.compile(r"(^|\n)(MỤC TIÊU|NĂNG LỰC|TARGET|OBJECTIVES?)(:)", re.IGNORECASE)
_QUESTION_MARKER_RE = re.compile(r"(^|\n)(Câu|Bài|Question|Problem)\s+([\dIVX]+[.:]?)", re.IGNORECASE)
_SUB_ITEM_RE = re.compile(r"(^|\n)([a-z]\))(\s)")
_OPTION_GAP_RE = re.compile(r"([^\n])\s+([B-D]\.)")
_OPTION_MARKER_RE = re.compile(r"(^|[\s\u00a0]|&nbsp;|\n)([A-D]\.)(\s)")
_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")
_HEADING_HASH_RE = re.compile(r"^#{1,6}\s+", re.MULTILINE)
_STEP_KEYWORD_RE = re.compile(
    r"(^|\n)(Bước \d+[:.]|Nhận xét[:.]|Mở rộng[:.]|Lời giải[:.]|Đánh giá[:.]"
    r"|Step \d+[:.]|Note[:.]|Extension[:.]|Solution[:.]|Assessment[:.])",
    re.IGNORECASE,
)

# Substring checks used by the worksheet decoration (case-sensitive on purpose:
# answer-key headings are written in capitals).
_ANSWER_KEY_MARKERS = ("HƯỚNG DẪN CHẤM", "ĐÁP ÁN", "ANSWER KEY")
_QUESTION_WORDS = ("Câu", "Bài", "Question", "Problem")
WORKSHEET_MIN_QUESTION_LEN = 50


@dataclass(frozen=True)
class SegmentError:
    index: int
    kind: str
    message: str


@dataclass
class RenderResult:
    html: str
    body: str
    style: StyleProfile
    errors: list[SegmentError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _error_marker(text: str) -> str:
    return f'<p style="color: red; font-weight: bold;">{text}</p>'


def _js_round(x: float) -> int:
    # Half-up, like the browser exporter this output is compared against.
    return int(x + 0.5) if x >= 0 else -int(-x + 0.5)


def _part_heading(m: re.Match) -> str:
    title = m.group(1).upper()
    desc = m.group(2).strip().upper()
    return (
        '<h3 style="color: #c0504d; border-bottom: 2px solid #c0504d; padding-bottom: 4pt; '
        'margin-top: 18pt; margin-bottom: 12pt; font-size: 14pt;">'
        f'{title}: <span style="color: #000000; font-weight: normal;">{desc}</span></h3>'
    )


def _answer_key_heading(m: re.Match) -> str:
    return (
        '<div style="page-break-before: always; clear: both;"></div>'
        '<h2 style="color: #1F4D78; text-align: center; border: 2px solid #1F4D78; '
        f'padding: 10px; margin-top: 20px;">{m.group(1)}{m.group(2)}</h2>'
    )


def format_plain_text(content: str) -> str:
    """Escape a plain-text segment and apply the presentation rewrites."""
    s = escape_html(content)

    s = _PART_HEADING_RE.sub(_part_heading, s)
    if _ANSWER_KEY_SEARCH_RE.search(s):
        s = _ANSWER_KEY_HEADING_RE.sub(_answer_key_heading, s)
    s = _GOAL_LABEL_RE.sub(
        r'\1<span style="color: #4f81bd; font-weight: bold; text-transform: uppercase;">\2\3</span>', s
    )
    s = _QUESTION_MARKER_RE.sub(r'\1<span style="color: #0284c7; font-weight: bold;">\2 \3</span>', s)
    s = _SUB_ITEM_RE.sub(r'\1<span style="color: #0369a1; font-weight: bold;">\2</span>\3', s)

    s = _OPTION_GAP_RE.sub(r"\1" + "&nbsp;" * 5 + r"\2", s)
    s = _OPTION_MARKER_RE.sub(
        r"""\1<span style="font-weight: bold; font-family: 'Times New Roman';">\2</span>\3""", s
    )

    s = _BOLD_RE.sub(r"<b>\1</b>", s)
    s = _HEADING_HASH_RE.sub("", s)
    s = s.replace("`", "")
    s = _STEP_KEYWORD_RE.sub(r'\1<span style="color: #b91c1c; font-weight: bold;">\2</span>', s)

    s = preserve_edge_spaces(s)
    return f"<span class=\"text-run\" style=\"font-family: 'Times New Roman';\">{s.replace(chr(10), '<br/>')}</span>"


def is_answer_key_text(content: str) -> bool:
    return any(marker in content for marker in _ANSWER_KEY_MARKERS)


def needs_writing_lines(content: str) -> bool:
    if is_answer_key_text(content):
        return False
    if len(content) <= WORKSHEET_MIN_QUESTION_LEN:
        return False
    return any(word in content for word in _QUESTION_WORDS)


def render_diagram(image: Optional[DiagramImage]) -> str:
    if image is None:
        return _error_marker(DIAGRAM_ERROR_MARKER)
    width = _js_round(image.width / DIAGRAM_SCALE)
    height = _js_round(image.height / DIAGRAM_SCALE)
    if width <= 0 or height <= 0:
        width = DIAGRAM_FALLBACK_WIDTH
        if image.width > 0 and image.height > 0:
            height = _js_round(DIAGRAM_FALLBACK_WIDTH * image.height / image.width)
        else:
            height = DIAGRAM_FALLBACK_WIDTH
    return (
        '<p style="text-align: center; margin: 12pt 0;">'
        f'<img src="{image.data_uri}" width="{width}" height="{height}" /></p>'
    )


def render_diagram_caption(text: str) -> str:
    s = (text or "").strip()
    if not s:
        return ""
    return f'<p style="text-align: center;">{escape_html(s)}</p>'


def _inline_spacing(segments: Sequence[Segment], index: int) -> tuple[str, str]:
    """Non-breaking spaces that keep an inline formula from fusing with its neighbours."""
    prefix = suffix = ""
    if index > 0:
        prev = segments[index - 1]
        if prev.kind == "text" and not ends_with_space_or_opener(prev.content):
            prefix = NBSP_ENTITY
    if index + 1 < len(segments):
        nxt = segments[index + 1]
        if nxt.kind == "text" and not starts_with_space_or_closer(nxt.content):
            suffix = NBSP_ENTITY
    return prefix, suffix


def render_segments(
    segments: Sequence[Segment],
    *,
    is_rich_text: bool = False,
    style: str | StyleProfile = "standard",
    images: Optional[Mapping[str, DiagramImage]] = None,
) -> tuple[str, list[SegmentError]]:
    """Render the body fragments. Per-segment failures become visible markers."""
    profile = get_style(style)
    images = images or {}
    worksheet = profile.name == "worksheet"
    flashcards = profile.name == "flashcards"

    parts: list[str] = []
    errors: list[SegmentError] = []

    for i, seg in enumerate(segments):
        if seg.kind == "text":
            if is_rich_text:
                out = seg.content
            else:
                out = format_plain_text(seg.content)
                if worksheet and needs_writing_lines(seg.content):
                    out += WRITING_LINES

        elif seg.kind == "diagram":
            image = images.get(seg.content)
            out = (
                render_diagram_caption(seg.text_before)
                + render_diagram(image)
                + render_diagram_caption(seg.text_after)
            )
            if image is None:
                errors.append(SegmentError(i, "diagram", "no image for diagram"))
                logger.warning("segment %d: diagram image missing", i)

        else:
            try:
                math = render_formula(seg.content, display=seg.display_mode, output="mathml")
            except FormulaRenderError as e:
                errors.append(SegmentError(i, "math", str(e)))
                logger.warning("segment %d: formula failed: %s", i, e)
                out = f'<span style="color: red; font-weight: bold;">{FORMULA_ERROR_MARKER}</span>'
            else:
                if seg.display_mode:
                    out = f'<p class="equation" style="text-align: center; margin: 12pt 0;">{math}</p>'
                    if worksheet:
                        out += ANSWER_BLANK
                else:
                    prefix, suffix = _inline_spacing(segments, i)
                    out = f"{prefix}{math}{suffix}"

        if flashcards and ((seg.kind == "text" and out.strip()) or seg.is_block):
            out = f'<div class="flashcard">{out}</div>'
        parts.append(out)

    return "".join(parts), errors


def build_document_html(body: str, style: str | StyleProfile = "standard") -> str:
    p = get_style(style)
    return f"""<!DOCTYPE html>
<html lang="vi">
<head>
<meta charset="UTF-8">
<title>Export</title>
<style>
@page {{ margin: {p.page_margin}; size: {p.orientation}; }}
body {{
    font-family: {p.font_family};
    font-size: {p.font_size};
    line-height: {p.line_height};
    color: #000000;
}}
body, p, div, span, h1, h2, h3, h4, h5, h6, table, td, th, li {{
    font-family: {p.forced_font_family} !important;
}}
h1 {{ font-size: 1.4em; color: {p.heading_color_primary}; font-weight: bold; margin-top: 18pt; margin-bottom: 6pt; }}
h2 {{ font-size: 1.2em; color: {p.heading_color_primary}; font-weight: bold; margin-top: 12pt; margin-bottom: 6pt; }}
h3 {{ font-size: 1.1em; color: {p.heading_color_secondary}; font-weight: bold; margin-top: 12pt; margin-bottom: 6pt; }}
.text-run {{ white-space: pre-wrap; }}
p.equation {{ margin: 12pt 0; text-align: center; }}
table {{ border-collapse: collapse; width: 100%; margin: 12pt 0; border: 1px solid black; }}
td, th {{ border: 1px solid black; padding: 6px 8px; vertical-align: top; }}
th {{ background-color: {p.table_header_bg}; font-weight: bold; }}
{p.extra_css}
</style>
</head>
<body>
<div class="Section1">
{body}
<br/><hr/>
<p style="text-align: center; color: #2E74B5; font-size: 10pt; font-weight: bold; margin-top: 20pt;">{ATTRIBUTION}</p>
</div>
</body>
</html>
"""


def render_document(
    segments: Sequence[Segment],
    *,
    is_rich_text: bool = False,
    style: str | StyleProfile = "standard",
    images: Optional[Mapping[str, DiagramImage]] = None,
) -> RenderResult:
    profile = get_style(style)
    body, errors = render_segments(segments, is_rich_text=is_rich_text, style=profile, images=images)
    return RenderResult(html=build_document_html(body, profile), body=body, style=profile, errors=errors)
