# padwatch/link_logic.py
"""
Link extraction and resolution for pad content.

Pads are markdown. We render them to HTML with Python-Markdown and collect
<a href=...> elements with BeautifulSoup, which gives us inline links,
reference links and autolinks while ignoring code spans, code blocks and
images. Raw HTML in a pad is rendered as text, so a literal <a> tag is not a
link. Targets are resolved against the pad's own URL, so relative links
between pads on the same server work, and are then put into canonical form
so that every spelling of a pad URL maps to the same Link.
"""
from __future__ import annotations

import logging
from typing import Iterable, List
from urllib.parse import quote, urljoin, urlparse, urlsplit, urlunsplit

import markdown
from bs4 import BeautifulSoup, Tag
from markdown.extensions import Extension

from padwatch.errors import ExtractionError
from padwatch.models import Link, Pad

log = logging.getLogger(__name__)

ALLOWED_SCHEMES = {"http", "https"}

DEFAULT_PORTS = {"http": 80, "https": 443}

# RFC 3986 path characters plus "%" so existing escapes are kept as-is
PATH_SAFE = "/%:@!$&'()*+,;=-._~"


def _scheme(u: str) -> str:
    try:
        return urlparse(u).scheme.lower()
    except ValueError:
        return ""


def is_fetchable_url(u: str) -> bool:
    """Return True iff URL uses a scheme we can actually fetch (http/https)."""
    return _scheme(u) in ALLOWED_SCHEMES


class NoRawHtmlExtension(Extension):
    """Render raw HTML blocks and inline tags as escaped text."""

    def extendMarkdown(self, md):
        md.preprocessors.deregister("html_block", strict=False)
        md.inlinePatterns.deregister("html", strict=False)


# NoRawHtmlExtension must come last so it also undoes md_in_html from "extra"
MARKDOWN_EXTENSIONS = ["extra", "sane_lists", NoRawHtmlExtension()]


def render_markdown(content: str) -> BeautifulSoup:
    html = markdown.markdown(content, extensions=MARKDOWN_EXTENSIONS)
    return BeautifulSoup(html, "html.parser")


def extract_href_elements(soup: BeautifulSoup) -> List[Tag]:
    """Return all <a> elements that carry an href."""
    return list(soup.find_all("a", href=True))


def normalize_url(url: str) -> str:
    """
    Canonical form of an absolute URL, without fragment.

    - lowercase scheme and host
    - drop the scheme's default port
    - percent-encode path and query (existing escapes are kept)
    - an empty http(s) path becomes "/"

    URLs without a host (mailto:, tel:, ...) only lose their fragment.
    Raises ValueError for an unparsable host or port.
    """
    p = urlsplit(url)
    scheme = p.scheme.lower()
    if not p.netloc:
        return urlunsplit((scheme, p.netloc, p.path, p.query, ""))

    host = p.hostname or ""
    if ":" in host:
        host = f"[{host}]"  # IPv6 literal
    userinfo, _, _ = p.netloc.rpartition("@")
    netloc = f"{userinfo}@{host}" if userinfo else host
    port = p.port
    if port is not None and port != DEFAULT_PORTS.get(scheme):
        netloc = f"{netloc}:{port}"

    path = quote(p.path, safe=PATH_SAFE)
    if not path and scheme in ALLOWED_SCHEMES:
        path = "/"
    query = quote(p.query, safe=PATH_SAFE + "?")
    return urlunsplit((scheme, netloc, path, query, ""))


def resolve_href(base_url: str, href: str) -> str:
    """
    Resolve `href` against `base_url` and normalize the result.

    Raises ExtractionError if the target cannot be parsed as a URL.
    """
    try:
        return normalize_url(urljoin(base_url, href.strip()))
    except ValueError as e:
        raise ExtractionError(f"Cannot resolve link {href!r} against {base_url}: {e}") from e


def extract_links(pad: Pad) -> List[str]:
    """
    Return the absolute URL of every outbound link in the pad content.

    Order follows the document; duplicates are kept.
    """
    base_url = pad.link.to_url()
    soup = render_markdown(pad.content)

    out: List[str] = []
    for el in extract_href_elements(soup):
        href = el.get("href")
        if not href:
            continue
        out.append(resolve_href(base_url, str(href)))
    return out


def resolve_links(urls: Iterable[str], servers: Iterable[str]) -> List[Link]:
    """
    Map URLs to Links on the allowed servers.

    URLs that do not point at an allowed server are not an error, they are
    simply not pads we watch.
    """
    servers = list(servers)
    links: List[Link] = []
    for url in urls:
        if not is_fetchable_url(url):
            log.debug("Skipping non-fetchable URL (scheme not http/https): %s", url)
            continue
        link = Link.from_url(servers, url)
        if link is None:
            log.debug("Ignoring link outside watched servers: %s", url)
            continue
        links.append(link)
    return links
