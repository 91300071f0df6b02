from __future__ import annotations

import html
import re

NBSP_ENTITY = "&#160;"

_FENCE_OPEN_RE = re.compile(r"^```(?:latex|tex|tikz)?\s*", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"```\s*$")


def normalize_newlines(s: str) -> str:
    if not s:
        return ""
    return s.replace("\r\n", "\n")


def escape_html(s: str) -> str:
    # Only & < > : quotes stay literal inside text runs.
    return html.escape(s or "", quote=False)


def preserve_edge_spaces(s: str) -> str:
    """Keep one leading/trailing literal space alive through HTML whitespace collapsing."""
    if not s:
        return ""
    if s.startswith(" "):
        s = NBSP_ENTITY + s[1:]
    if s.endswith(" "):
        s = s[:-1] + NBSP_ENTITY
    return s


def collapse_blank_lines(s: str, keep: int = 2) -> str:
    if not s:
        return ""
    return re.sub(r"\n{%d,}" % (keep + 1), "\n" * keep, s)


def strip_code_fences(s: str) -> str:
    """Drop a ```latex ... ``` wrapper the model sometimes adds around raw code."""
    s = (s or "").strip()
    s = _FENCE_OPEN_RE.sub("", s)
    s = _FENCE_CLOSE_RE.sub("", s)
    return s.strip()


def ends_with_space_or_opener(s: str) -> bool:
    return bool(s) and re.search(r"[\s\u00a0(\[{]$", s) is not None


def starts_with_space_or_closer(s: str) -> bool:
    return bool(s) and re.match(r"[\s\u00a0.,;!?:)\]}]", s) is not None
