"""
Question-block splitting for partial saves into the question bank.

A block starts at an exam item environment (`\\begin{ex}`) or at a line that
begins with a numbered question marker such as `Câu 1:`, `Bài IV.`,
`Question 2.` or `Problem 3:`, and runs up to the next start marker.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from .text_utils import normalize_newlines

_QUESTION_START_RE = re.compile(
    r"\\begin\s*\{ex\}"
    r"|(?:\n|^)(?:Câu|Bài|Question|Problem)\s+[\dIVX]+[.:]",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class SplitResult:
    blocks: list[str] = field(default_factory=list)
    # False when no marker was found and `blocks` holds the whole input.
    structured: bool = True

    def __len__(self) -> int:
        return len(self.blocks)


def question_start_indices(text: str) -> list[int]:
    indices: list[int] = []
    for m in _QUESTION_START_RE.finditer(text):
        idx = m.start()
        if text[idx] == "\n":
            idx += 1
        indices.append(idx)
    return indices


def split_questions(text: str) -> SplitResult:
    """
    Split a document into question blocks.

    When no marker is found the caller gets the input back untouched (not
    newline-normalized, not macro-normalized) as a single unstructured block,
    and should offer a whole-document save instead of a per-question picker.
    """
    raw = text or ""
    normalized = normalize_newlines(raw)
    indices = question_start_indices(normalized)
    if not indices:
        return SplitResult(blocks=[raw], structured=False)

    blocks: list[str] = []
    for i, start in enumerate(indices):
        end = indices[i + 1] if i + 1 < len(indices) else len(normalized)
        chunk = normalized[start:end].strip()
        if chunk:
            blocks.append(chunk)
    return SplitResult(blocks=blocks, structured=True)
