from __future__ import annotations

import logging
import mimetypes

from bs4 import BeautifulSoup, ParserRejectedMarkup

LOGGER = logging.getLogger(__name__)

# mimetypes prefers these for text/html on some platforms.
_HTML_ALIASES = {".htm", ".hxa"}


def _attr_text(val: object) -> str:
    if isinstance(val, list):
        if not val:
            return ""
        return str(val[0])
    return str(val or "")


def extract_links(body: bytes | str) -> list[str]:
    """Return the raw href of every anchor in an HTML document.

    Markup the parser refuses outright yields no links.
    """
    try:
        soup = BeautifulSoup(body, "html.parser")
    except ParserRejectedMarkup as e:
        LOGGER.debug("Parser rejected markup: %s", e)
        return []
    out: list[str] = []
    for a in soup.select("a[href]"):
        href = _attr_text(a.get("href")).strip()
        if href:
            out.append(href)
    return out


def extension_for_content_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    ct = content_type.split(";", 1)[0].strip().lower()
    if not ct:
        return None
    ext = mimetypes.guess_extension(ct, strict=False)
    if not ext:
        return None
    if ext in _HTML_ALIASES:
        return ".html"
    return ext
