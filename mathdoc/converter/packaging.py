"""
Wrap the rendered HTML document in a .docx package.

The HTML is embedded as an alternative-format chunk (altChunk) in MHT form:
a multipart/related message whose first part is the HTML and whose other
parts are the images, pulled out of their `data:` URIs and referenced by
Content-Location. Word converts the chunk on open, including MathML to native
equations. Page orientation and margins are set on the package's section so
they survive the import.
"""
from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from email.charset import QP, Charset
from email.mime.image import MIMEImage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from docx import Document
from docx.enum.section import WD_ORIENT
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.opc.packuri import PackURI
from docx.opc.part import Part
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Twips

from ..errors import PackagingError

logger = logging.getLogger(__name__)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
DEFAULT_MARGIN_TWIPS = 720  # 0.5in

_CHUNK_PARTNAME = "/word/afchunk.mht"
_CHUNK_CONTENT_TYPE = "message/rfc822"
_LOCATION_ROOT = "file:///C:/fake/"

_DATA_URI_RE = re.compile(r'src="data:image/([\w.+-]+);base64,([^"]*)"')


def build_mht(html: str) -> bytes:
    """
    MHT message for `html`: each distinct `data:image/...;base64` source
    becomes its own image part and the tag points at its Content-Location.
    """
    images: dict[str, tuple[str, str, str]] = {}

    def extract(m: re.Match) -> str:
        key = m.group(0)
        if key not in images:
            subtype = m.group(1).lower()
            ext = "jpg" if subtype == "jpeg" else subtype.split("+")[0]
            images[key] = (f"{_LOCATION_ROOT}image{len(images)}.{ext}", m.group(1), m.group(2))
        return f'src="{images[key][0]}"'

    body = _DATA_URI_RE.sub(extract, html)

    msg = MIMEMultipart("related", type="text/html")
    charset = Charset("utf-8")
    charset.body_encoding = QP
    page = MIMEText(body, "html", charset)
    page["Content-Location"] = f"{_LOCATION_ROOT}document.html"
    msg.attach(page)

    for location, subtype, data in images.values():
        try:
            raw = base64.b64decode(data, validate=True)
        except binascii.Error as e:
            raise PackagingError(f"image {location} has invalid base64 data: {e}") from e
        part = MIMEImage(raw, _subtype=subtype)
        part["Content-Location"] = location
        msg.attach(part)

    return msg.as_bytes()


def package_docx(html: str, orientation: str = "portrait", margins_twips: int = DEFAULT_MARGIN_TWIPS) -> bytes:
    if orientation not in ("portrait", "landscape"):
        raise PackagingError(f"unknown page orientation {orientation!r}")
    try:
        chunk_bytes = build_mht(html)
        doc = Document()

        section = doc.sections[0]
        if orientation == "landscape":
            width, height = section.page_width, section.page_height
            section.orientation = WD_ORIENT.LANDSCAPE
            section.page_width, section.page_height = max(width, height), min(width, height)
        margin = Twips(margins_twips)
        section.top_margin = section.bottom_margin = margin
        section.left_margin = section.right_margin = margin

        part = Part(PackURI(_CHUNK_PARTNAME), _CHUNK_CONTENT_TYPE, chunk_bytes, doc.part.package)
        r_id = doc.part.relate_to(part, RT.A_F_CHUNK)

        chunk = OxmlElement("w:altChunk")
        chunk.set(qn("r:id"), r_id)
        body = doc.element.body
        sect_pr = body.find(qn("w:sectPr"))
        if sect_pr is not None:
            sect_pr.addprevious(chunk)
        else:
            body.append(chunk)

        buf = io.BytesIO()
        doc.save(buf)
    except PackagingError:
        raise
    except Exception as e:  # noqa: BLE001
        raise PackagingError(f"could not build .docx: {e}") from e

    data = buf.getvalue()
    logger.info("packaged .docx: %d bytes (html %d chars, %s)", len(data), len(html), orientation)
    return data
