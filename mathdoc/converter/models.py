from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SegmentKind = Literal["text", "math", "diagram"]

# Source delimiters that are stripped from math content; environments keep theirs.
_CLOSERS = {"$": "$", "$$": "$$", "\\(": "\\)", "\\[": "\\]"}


class Segment(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: SegmentKind
    content: str
    display_mode: bool = False
    delimiter: Literal["", "$", "$$", "\\(", "\\["] = ""
    # Diagrams found inside a math span keep the rest of that span: the body
    # text around the picture and, on the last picture, the closing delimiter.
    text_before: str = ""
    text_after: str = ""
    closing: Literal["", "$", "$$", "\\)", "\\]"] = ""

    @property
    def is_text(self) -> bool:
        return self.kind == "text"

    @property
    def is_block(self) -> bool:
        """Occupies its own centered line in the output."""
        return self.kind != "text" and self.display_mode

    def to_source(self) -> str:
        if self.kind == "diagram":
            return self.delimiter + self.text_before + self.content + self.text_after + self.closing
        if not self.delimiter:
            return self.content
        return self.delimiter + self.content + _CLOSERS[self.delimiter]


class DiagramImage(BaseModel):
    """PNG raster of a TikZ picture, captured at 4x scale."""

    model_config = ConfigDict(frozen=True)

    data_uri: str
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)


def text_segment(content: str) -> Segment:
    return Segment(kind="text", content=content)


def math_segment(content: str, display: bool = False, delimiter: str = "") -> Segment:
    return Segment(kind="math", content=content, display_mode=display, delimiter=delimiter)  # type: ignore[arg-type]


def diagram_segment(content: str) -> Segment:
    return Segment(kind="diagram", content=content, display_mode=True)
