from __future__ import annotations

import html
import re

import latex2mathml.converter

from ..errors import FormulaRenderError

_MATH_ELEMENT_RE = re.compile(r"<math[\s\S]*?</math>")
_ANNOTATION_RE = re.compile(r"<annotation\b[^>]*>[\s\S]*?</annotation>")


def render_formula(latex: str, display: bool = False, output: str = "mathml") -> str:
    """
    Convert one formula to markup.

    output="mathml" gives the bare <math> element for document export, without
    any TeX-source annotation. output="html" gives a preview span that carries
    the source in a data-tex attribute so it can be copied back out.
    """
    if output not in ("mathml", "html"):
        raise ValueError(f"unsupported formula output {output!r}")
    try:
        mathml = latex2mathml.converter.convert(latex or "", display="block" if display else "inline")
    except Exception as e:  # noqa: BLE001
        raise FormulaRenderError(f"{type(e).__name__}: {e}") from e

    m = _MATH_ELEMENT_RE.search(mathml or "")
    if not m:
        raise FormulaRenderError("converter returned no <math> element")
    math = _ANNOTATION_RE.sub("", m.group(0))
    if output == "mathml":
        return math

    cls = "math-preview math-display" if display else "math-preview"
    tex = html.escape(latex or "", quote=True)
    return f'<span class="{cls}" data-tex="{tex}">{math}</span>'
