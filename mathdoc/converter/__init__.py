from .runner import main
from .pipeline import MathDocExporter, export_filename, render_export
from .segmenter import parse_content, segment_text, reconstruct
from .splitter import split_questions, SplitResult
from .normalizer import normalize_exam_macros
from .formatter import render_document, render_segments, RenderResult, SegmentError
from .models import Segment, DiagramImage
from .styles import StyleProfile, get_style

__all__ = [
    "MathDocExporter",
    "export_filename",
    "render_export",
    "parse_content",
    "segment_text",
    "reconstruct",
    "split_questions",
    "SplitResult",
    "normalize_exam_macros",
    "render_document",
    "render_segments",
    "RenderResult",
    "SegmentError",
    "Segment",
    "DiagramImage",
    "StyleProfile",
    "get_style",
    "main",
]
