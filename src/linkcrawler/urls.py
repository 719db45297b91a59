from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from urllib.parse import urlparse, urlunparse

LOGGER = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def encode_url(url: str) -> str:
    """Filesystem-safe identifier for a URL (standard base32, padded)."""
    return base64.b32encode(url.encode("utf-8")).decode("ascii")


def _clean_path(path: str) -> str:
    segments: list[str] = []
    for seg in path.split("/"):
        if seg in ("", "."):
            continue
        if seg == "..":
            if segments:
                segments.pop()
            continue
        segments.append(seg)
    if not segments:
        return ""
    return "/" + "/".join(segments)


def canonicalize_url(raw_url: str) -> str | None:
    """Canonicalize a URL for frontier membership checks.

    - Defaults a missing scheme to http; only http(s) is accepted.
    - Lowercases scheme + hostname, drops default and empty ports.
    - Strips fragments.
    - Resolves dot segments, collapses duplicate and trailing slashes.

    Returns None when the input cannot be turned into a usable URL.
    """

    text = (raw_url or "").strip()
    if not text:
        return None
    if "://" not in text:
        text = "http://" + text

    try:
        parsed = urlparse(text)
        port = parsed.port
    except ValueError:
        return None

    scheme = parsed.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        return None

    host = (parsed.hostname or "").rstrip(".")
    if not host:
        return None
    if ":" in host:
        host = f"[{host}]"

    netloc = host
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{host}:{port}"
    userinfo = parsed.netloc.rpartition("@")[0]
    if userinfo:
        netloc = f"{userinfo}@{netloc}"

    return urlunparse(
        (scheme, netloc, _clean_path(parsed.path), parsed.params, parsed.query, "")
    )


@dataclass(frozen=True)
class LinkFilter:
    """Turns discovered hrefs into in-scope canonical URLs.

    Scope is a plain substring test against ``base_url``, not origin
    matching: anything that contains the base URL passes.
    """

    base_url: str
    exclude_keywords: tuple[str, ...] = ()
    include_keywords: tuple[str, ...] = ()

    def _absolute(self, link: str) -> str | None:
        if link.startswith("//"):
            scheme = urlparse(self.base_url).scheme or "http"
            return f"{scheme}:{link}"
        try:
            has_scheme = bool(urlparse(link).scheme)
        except ValueError:
            return None
        if has_scheme:
            return link
        return self.base_url.rstrip("/") + "/" + link.lstrip("/")

    def accept(self, link: str) -> str | None:
        # Query strings are never part of a frontier key.
        link = link.split("?", 1)[0].strip()

        absolute = self._absolute(link)
        if absolute is None:
            LOGGER.debug("Skipping %r: unparseable", link)
            return None
        if self.base_url not in absolute:
            LOGGER.debug("Skipping %s because it has a different base URL", absolute)
            return None

        normalized = canonicalize_url(absolute)
        if not normalized:
            LOGGER.debug("Skipping %s: could not normalize", absolute)
            return None

        for keyword in self.exclude_keywords:
            if keyword in normalized:
                LOGGER.debug("Skipping %s because it contains %s", normalized, keyword)
                return None

        if self.include_keywords and not any(
            keyword in normalized for keyword in self.include_keywords
        ):
            LOGGER.debug("Skipping %s: no include keyword", normalized)
            return None

        return normalized
