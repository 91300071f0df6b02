"""
TikZ rasterization through a Kroki server.

The diagram source is wrapped in a standalone document when needed, deflated,
base64url-encoded and placed in the request path; Kroki answers with SVG (live
preview) or PNG (Word export).
"""
from __future__ import annotations

import base64
import logging
import struct
import zlib
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Iterable, Optional

import requests

from ..config import KROKI_BASE_URL
from ..errors import DiagramFetchError
from .models import DiagramImage

logger = logging.getLogger(__name__)

TIKZ_LIBRARIES = (
    "arrows,arrows.meta,calc,patterns,positioning,shapes.geometric,"
    "decorations.markings,decorations.pathmorphing,intersections,through,backgrounds"
)
# Text must scale with the drawing, hence `transform shape`.
PRINT_SCALE_STYLE = r"\tikzset{every picture/.append style={scale=4, transform shape}}"

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def wrap_standalone(code: str, print_scale: bool = False) -> str:
    """Wrap a bare tikzpicture in a minimal standalone document with the usual libraries."""
    if "\\documentclass" in code:
        return code
    extras = PRINT_SCALE_STYLE if print_scale else ""
    return (
        "\\documentclass[tikz,border=2pt]{standalone}\n"
        "\\usepackage[utf8]{inputenc}\n"
        "\\usepackage{amsmath,amsfonts,amssymb}\n"
        "\\usepackage{pgfplots}\n"
        "\\pgfplotsset{compat=newest}\n"
        f"\\usetikzlibrary{{{TIKZ_LIBRARIES}}}\n"
        f"{extras}\n"
        "\\begin{document}\n"
        f"{code}\n"
        "\\end{document}"
    )


def encode_source(source: str) -> str:
    # zlib stream (what Kroki decodes), level 9, URL-safe alphabet with padding kept.
    compressed = zlib.compress(source.encode("utf-8"), 9)
    return base64.urlsafe_b64encode(compressed).decode("ascii")


def tikz_image_url(code: str, fmt: str = "svg", base_url: str = KROKI_BASE_URL) -> str:
    if fmt not in ("svg", "png"):
        raise ValueError(f"unsupported diagram format {fmt!r}")
    source = wrap_standalone(code, print_scale=(fmt == "png"))
    return f"{base_url.rstrip('/')}/tikz/{fmt}/{encode_source(source)}"


def png_size(data: bytes) -> tuple[int, int]:
    """(width, height) from the IHDR chunk."""
    if len(data) < 24 or not data.startswith(_PNG_SIGNATURE) or data[12:16] != b"IHDR":
        raise DiagramFetchError("response is not a PNG image")
    width, height = struct.unpack(">II", data[16:24])
    return int(width), int(height)


def fetch_diagram(
    code: str,
    *,
    base_url: str = KROKI_BASE_URL,
    session: Any = None,
    timeout: Optional[float] = None,
) -> DiagramImage:
    """Fetch the print-quality PNG for one diagram."""
    http = session or requests
    url = tikz_image_url(code, "png", base_url)
    try:
        resp = http.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise DiagramFetchError(f"diagram service unreachable: {e}") from e
    if resp.status_code != 200:
        detail = (getattr(resp, "text", "") or "").strip()[:200]
        raise DiagramFetchError(f"diagram service returned HTTP {resp.status_code}: {detail}")

    data = resp.content or b""
    width, height = png_size(data)
    if width <= 0:
        raise DiagramFetchError("diagram image has no width")
    b64 = base64.b64encode(data).decode("ascii")
    return DiagramImage(data_uri=f"data:image/png;base64,{b64}", width=width, height=height)


def fetch_diagram_images(
    codes: Iterable[str],
    *,
    base_url: str = KROKI_BASE_URL,
    max_workers: int = 8,
    session: Any = None,
    timeout: Optional[float] = None,
    fetcher: Optional[Callable[[str], DiagramImage]] = None,
) -> dict[str, DiagramImage]:
    """
    Fetch every diagram of one export concurrently and wait for the whole batch.

    A failed fetch is logged and left out of the map; the renderer then shows
    an error marker for that diagram only.
    """
    jobs = list(dict.fromkeys(codes))
    if not jobs:
        return {}
    if fetcher is None:
        def fetcher(code: str) -> DiagramImage:
            return fetch_diagram(code, base_url=base_url, session=session, timeout=timeout)

    out: dict[str, DiagramImage] = {}
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(jobs)))) as executor:
        fut_to_code = {executor.submit(fetcher, code): code for code in jobs}
        for fut in as_completed(fut_to_code):
            code = fut_to_code[fut]
            try:
                out[code] = fut.result()
            except Exception as e:  # noqa: BLE001
                logger.warning("diagram fetch failed (%d chars of TikZ): %s", len(code), e)
    return out
