from __future__ import annotations

from dataclasses import dataclass

from ..errors import UnknownStyleError

SERIF_FONT = "'Times New Roman', serif"
SANS_FONT = "Arial, sans-serif"


@dataclass(frozen=True)
class StyleProfile:
    name: str
    label: str
    page_margin: str = "1in"
    orientation: str = "portrait"
    font_size: str = "13pt"  # usual size for Vietnamese school documents
    font_family: str = SERIF_FONT
    line_height: str = "1.3"
    extra_css: str = ""
    filename_suffix: str = ""
    monochrome: bool = False
    force_sans: bool = False

    @property
    def heading_color_primary(self) -> str:
        return "#000000" if self.monochrome else "#2E74B5"

    @property
    def heading_color_secondary(self) -> str:
        return "#000000" if self.monochrome else "#1F4D78"

    @property
    def table_header_bg(self) -> str:
        return "#ffffff" if self.monochrome else "#f2f2f2"

    @property
    def forced_font_family(self) -> str:
        return SANS_FONT if self.force_sans else SERIF_FONT


STYLES: dict[str, StyleProfile] = {
    p.name: p
    for p in (
        StyleProfile("standard", "Standard"),
        StyleProfile("minimal", "Minimal print", page_margin="0.5in", line_height="1.2",
                     filename_suffix="_print", monochrome=True),
        StyleProfile("worksheet", "Worksheet", filename_suffix="_worksheet"),
        StyleProfile("cornell-notes", "Cornell notes", page_margin="1in 1in 1in 2.5in",
                     filename_suffix="_notes"),
        StyleProfile("two-column", "Two-column exam", page_margin="0.5in",
                     extra_css=".Section1 { column-count: 2; column-gap: 36pt; }",
                     filename_suffix="_exam"),
        StyleProfile("landscape", "Landscape", orientation="landscape", filename_suffix="_wide"),
        StyleProfile("large-print", "Large print", font_size="16pt", font_family=SANS_FONT,
                     line_height="1.6", filename_suffix="_access", force_sans=True),
        StyleProfile("draft", "Draft", page_margin="1.5in", line_height="2.0",
                     filename_suffix="_draft", monochrome=True),
        StyleProfile("flashcards", "Flashcards",
                     extra_css=(
                         ".flashcard { border: 2px solid #000; padding: 15pt; margin: 15pt 0; "
                         "page-break-inside: avoid; background-color: #ffffff; }"
                     ),
                     filename_suffix="_cards"),
    )
}

_ALIASES = {"notes": "cornell-notes", "two_column": "two-column", "large_print": "large-print"}


def get_style(name: str | StyleProfile | None) -> StyleProfile:
    if isinstance(name, StyleProfile):
        return name
    key = (name or "standard").strip().lower()
    key = _ALIASES.get(key, key)
    try:
        return STYLES[key]
    except KeyError:
        raise UnknownStyleError(f"unknown export style {name!r}; choose one of {', '.join(STYLES)}") from None


def style_names() -> list[str]:
    return list(STYLES)
