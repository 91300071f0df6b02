from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Mapping, Optional

from ..config import Settings, load_settings
from .formatter import RenderResult, render_document
from .models import DiagramImage
from .packaging import package_docx
from .segmenter import diagram_sources, parse_content
from .styles import StyleProfile, get_style
from .tikz import fetch_diagram_images

logger = logging.getLogger(__name__)


def export_filename(stem: str, style: str | StyleProfile = "standard") -> str:
    """`<stem><suffix>.docx`, e.g. `de_thi_print.docx` for the minimal style."""
    profile = get_style(style)
    stem = (stem or "").strip() or "Document"
    if stem.lower().endswith(".docx"):
        stem = stem[:-5]
    return f"{stem}{profile.filename_suffix}.docx"


def render_export(
    raw: str,
    style: str | StyleProfile = "standard",
    images: Optional[Mapping[str, DiagramImage]] = None,
    is_rich_text: bool = False,
    *,
    locale: str = "vi",
) -> RenderResult:
    """Normalize, segment and render without touching the network."""
    # Rich-text input is already HTML; macro rewriting would corrupt it.
    segments = parse_content(raw, normalize=not is_rich_text, locale=locale)
    return render_document(segments, is_rich_text=is_rich_text, style=style, images=images)


class MathDocExporter:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        session=None,
        fetch_images: Optional[Callable[[list[str]], dict[str, DiagramImage]]] = None,
    ):
        self.settings = settings or load_settings()
        self.session = session
        self._fetch_images = fetch_images

    def fetch_images(self, codes: list[str]) -> dict[str, DiagramImage]:
        if self._fetch_images is not None:
            return self._fetch_images(codes)
        return fetch_diagram_images(
            codes,
            base_url=self.settings.kroki_url,
            max_workers=self.settings.fetch_workers,
            session=self.session,
        )

    def render(
        self,
        raw_text: str,
        style: str | StyleProfile = "standard",
        is_rich_text: bool = False,
        *,
        fetch: bool = True,
    ) -> RenderResult:
        profile = get_style(style)
        segments = parse_content(raw_text, normalize=not is_rich_text, locale=self.settings.locale)

        codes = diagram_sources(segments)
        images: dict[str, DiagramImage] = {}
        if codes and fetch:
            logger.info("fetching %d diagram(s)", len(codes))
            images = self.fetch_images(codes)

        result = render_document(segments, is_rich_text=is_rich_text, style=profile, images=images)
        if result.errors:
            logger.warning("rendered with %d degraded segment(s)", len(result.errors))
        return result

    def export(
        self,
        raw_text: str,
        style: str | StyleProfile = "standard",
        out_path: str | Path | None = None,
        is_rich_text: bool = False,
        *,
        fetch: bool = True,
    ) -> Path:
        profile = get_style(style)
        result = self.render(raw_text, profile, is_rich_text, fetch=fetch)
        data = package_docx(result.html, orientation=profile.orientation)

        out = Path(out_path) if out_path else Path(export_filename("Document", profile))
        if out.is_dir():
            out = out / export_filename("Document", profile)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(data)
        logger.info("exported %s (%s, %d bytes)", out, profile.name, len(data))
        return out
