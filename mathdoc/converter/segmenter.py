from __future__ import annotations

import re
from typing import Iterable

from .models import Segment, diagram_segment, math_segment, text_segment
from .normalizer import normalize_exam_macros

_MATH_ENVS = r"(?:equation|align|gather|flalign|alignat|multline|cases)\*?"

TIKZ_PATTERN = r"\\begin\s*\{tikzpicture\}[\s\S]*?\\end\s*\{tikzpicture\}"

# Alternatives are tried in this order at every position.
_SEGMENT_RE = re.compile(
    r"(?P<tikz>" + TIKZ_PATTERN + r")"
    r"|(?P<env>\\begin\s*\{" + _MATH_ENVS + r"\}[\s\S]*?\\end\s*\{" + _MATH_ENVS + r"\})"
    r"|(?P<ddollar>\$\$[\s\S]*?\$\$)"
    r"|(?P<bracket>\\\[[\s\S]*?\\\])"
    r"|(?P<paren>\\\([\s\S]*?\\\))"
    r"|(?P<dollar>(?<!\\)\$[^$]*?\$)"
)
_TIKZ_BEGIN_RE = re.compile(r"\\begin\s*\{tikzpicture\}")
_TIKZ_FULL_RE = re.compile(TIKZ_PATTERN)

_SPAN_DELIMITERS = {
    "ddollar": ("$$", "$$"),
    "bracket": ("\\[", "\\]"),
    "paren": ("\\(", "\\)"),
    "dollar": ("$", "$"),
}


def _pictures_in(text: str, m: re.Match) -> list[re.Match]:
    """
    Complete tikzpictures that start inside a math match.

    An unclosed `\\begin{tikzpicture}` is not a picture and stays part of the
    formula. A picture may run past the end of the match.
    """
    found: list[re.Match] = []
    pos, end = m.start(), m.end()
    while pos < end:
        b = _TIKZ_BEGIN_RE.search(text, pos, end)
        if b is None:
            break
        t = _TIKZ_FULL_RE.match(text, b.start())
        if t is None:
            pos = b.end()
            continue
        found.append(t)
        pos = t.end()
    return found


def _span_diagrams(text: str, m: re.Match, pictures: list[re.Match]) -> list[Segment]:
    """One diagram segment per picture; the span's delimiters and body text ride along."""
    opener, closer = _SPAN_DELIMITERS[m.lastgroup]
    body_end = m.end() - len(closer)
    cursor = m.start() + len(opener)
    out: list[Segment] = []
    for i, t in enumerate(pictures):
        last = i == len(pictures) - 1
        out.append(
            Segment(
                kind="diagram",
                content=t.group(0),
                display_mode=True,
                delimiter=opener if i == 0 else "",  # type: ignore[arg-type]
                text_before=text[cursor:t.start()],
                text_after=text[t.end():body_end] if last else "",
                closing=closer if last else "",  # type: ignore[arg-type]
            )
        )
        cursor = t.end()
    return out


def _classify(m: re.Match) -> Segment:
    full = m.group(0)
    kind = m.lastgroup
    if kind == "tikz":
        return diagram_segment(full)
    if kind == "env":
        # align/equation/cases... are display material; the renderer needs the wrapper.
        return math_segment(full, display=True)
    if kind in ("ddollar", "bracket"):
        delim = "$$" if kind == "ddollar" else "\\["
        return math_segment(full[2:-2], display=True, delimiter=delim)
    if kind == "paren":
        return math_segment(full[2:-2], display=False, delimiter="\\(")
    return math_segment(full[1:-1], display=False, delimiter="$")


def segment_text(text: str) -> list[Segment]:
    """
    Partition already-normalized text into text / math / diagram segments.

    The partition is lossless: `reconstruct(segment_text(t)) == t`.
    """
    text = text or ""
    segments: list[Segment] = []
    pos = 0
    n = len(text)
    while pos < n:
        m = _SEGMENT_RE.search(text, pos)
        if m is None:
            break
        pictures = _pictures_in(text, m) if m.lastgroup != "tikz" else []
        if pictures and m.lastgroup in _SPAN_DELIMITERS and pictures[-1].end() <= m.end():
            # Pictures wrapped in a math span: the whole span becomes diagram segments.
            if m.start() > pos:
                segments.append(text_segment(text[pos:m.start()]))
            segments.extend(_span_diagrams(text, m, pictures))
            pos = m.end()
            continue
        if pictures:
            # Diagrams win: only look for math that ends before the picture starts.
            barrier = pictures[0].start()
            m = _SEGMENT_RE.search(text, pos, barrier)
            if m is None:
                if barrier > pos:
                    segments.append(text_segment(text[pos:barrier]))
                pos = barrier
                continue
        if m.start() > pos:
            segments.append(text_segment(text[pos:m.start()]))
        segments.append(_classify(m))
        pos = m.end()

    if pos < n or not segments:
        segments.append(text_segment(text[pos:]))
    return segments


def parse_content(raw: str, *, normalize: bool = True, locale: str = "vi") -> list[Segment]:
    """Normalize exam macros (unless told not to), then segment."""
    text = normalize_exam_macros(raw, locale=locale) if normalize else (raw or "")
    return segment_text(text)


def reconstruct(segments: Iterable[Segment]) -> str:
    return "".join(s.to_source() for s in segments)


def diagram_sources(segments: Iterable[Segment]) -> list[str]:
    """Distinct diagram payloads in document order."""
    seen: dict[str, None] = {}
    for s in segments:
        if s.kind == "diagram":
            seen.setdefault(s.content, None)
    return list(seen)
