"""
Exam-macro normalization.

Rewrites the authoring macros of the Vietnamese `ex_test` LaTeX package
(`\\begin{ex}`, `\\choice`, `\\choiceTF`, `\\shortans`, `\\loigiai`, ...) into
plain text the segmenter can partition safely. Formulas inside macro arguments
are left untouched.

Malformed invocations (wrong argument count, braces nested deeper than one
level) simply do not match and are kept as literal text.
"""
from __future__ import annotations

import re

LABELS: dict[str, dict[str, str]] = {
    "vi": {"short_answer": "Đáp án ngắn:", "solution": "Lời giải."},
    "en": {"short_answer": "Short answer:", "solution": "Solution."},
}

# One brace-balanced argument, tolerating a single nesting level: {a{b}c}
_ARG = r"\{((?:[^{}]|\{[^{}]*\})*)\}"
_SP = r"\s*"

_EX_BEGIN_RE = re.compile(r"\\begin\s*\{ex\}%?", re.IGNORECASE)
_EX_END_RE = re.compile(r"\\end\s*\{ex\}", re.IGNORECASE)
_SOLUTION_FILE_RE = re.compile(r"\\(?:Open|Close)solutionfile.*", re.IGNORECASE)
_SETCOUNTER_RE = re.compile(r"\\setcounter.*", re.IGNORECASE)
_NOINDENT_RE = re.compile(r"\\noindent", re.IGNORECASE)
_TRUE_RE = re.compile(r"\\True\s*")
_CHOICE_RE = re.compile(r"\\choice" + _SP + _ARG + _SP + _ARG + _SP + _ARG + _SP + _ARG)
_CHOICE_TF_RE = re.compile(r"\\choiceTF" + _SP + _ARG + _SP + _ARG + _SP + _ARG + _SP + _ARG)
_SHORTANS_RE = re.compile(r"\\shortans" + _SP + _ARG)
_SOLUTION_RE = re.compile(r"\\textit\s*\{Lời giải\.\}|\\loigiai", re.IGNORECASE)


def _labels(locale: str) -> dict[str, str]:
    return LABELS.get((locale or "vi").lower(), LABELS["vi"])


def strip_exam_environments(text: str) -> str:
    text = _EX_BEGIN_RE.sub("\n", text)
    return _EX_END_RE.sub("\n", text)


def strip_tool_directives(text: str) -> str:
    text = _SOLUTION_FILE_RE.sub("", text)
    text = _SETCOUNTER_RE.sub("", text)
    return _NOINDENT_RE.sub("", text)


def strip_correct_marks(text: str) -> str:
    return _TRUE_RE.sub("", text)


def rewrite_choice(text: str) -> str:
    return _CHOICE_RE.sub(
        lambda m: "\nA. {}    B. {}    C. {}    D. {}\n".format(*m.groups()),
        text,
    )


def rewrite_choice_tf(text: str) -> str:
    return _CHOICE_TF_RE.sub(
        lambda m: "\na) {}\nb) {}\nc) {}\nd) {}\n".format(*m.groups()),
        text,
    )


def rewrite_short_answer(text: str, locale: str = "vi") -> str:
    label = _labels(locale)["short_answer"]
    return _SHORTANS_RE.sub(lambda m: f"\n\n**{label}** {m.group(1)}\n", text)


def rewrite_solution_heading(text: str, locale: str = "vi") -> str:
    label = _labels(locale)["solution"]
    return _SOLUTION_RE.sub(lambda _m: f"\n\n**{label}**", text)


def normalize_exam_macros(text: str, locale: str = "vi") -> str:
    """Apply every rewrite rule, in order, to the whole text."""
    if not text:
        return ""
    out = strip_exam_environments(text)
    out = strip_tool_directives(out)
    out = strip_correct_marks(out)
    out = rewrite_choice(out)
    out = rewrite_choice_tf(out)
    out = rewrite_short_answer(out, locale)
    out = rewrite_solution_heading(out, locale)
    return out
