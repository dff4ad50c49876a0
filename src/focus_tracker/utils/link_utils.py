"""Classify and title research links attached to sessions."""

import re
import uuid
from urllib.parse import urlparse

from focus_tracker.types.sessions import LinkRef, LinkType

_WINDOWS_PATH = re.compile(r"^[A-Za-z]:\\")
_DOI = re.compile(r"(?:doi:|doi\.org/)(.+)")
_ARXIV = re.compile(r"arxiv\.org/(?:abs|pdf)/([^/?\s]+)")
_GITHUB = re.compile(r"github\.com/([^/\s?]+)/([^/\s?]+)(?:/([^?\s]+))?")


def detect_link_type(url: str) -> LinkType:
    if not url:
        return LinkType.URL
    if url.startswith("doi:") or "doi.org" in url:
        return LinkType.DOI
    if "arxiv.org" in url:
        return LinkType.ARXIV
    if "github.com" in url:
        return LinkType.GITHUB
    if "overleaf.com" in url:
        return LinkType.OVERLEAF
    if "zotero.org" in url or url.startswith("zotero://"):
        return LinkType.ZOTERO
    if url.startswith("file://") or url.startswith("/") or _WINDOWS_PATH.match(url):
        return LinkType.LOCAL
    return LinkType.URL


def get_link_title(link: str) -> str:
    """Short display title for a link, e.g. ``doi:10.1/x`` or ``owner/repo``."""
    if not link:
        return ""

    if link.startswith("doi:") or "doi.org" in link:
        match = _DOI.search(link)
        if match:
            return f"doi:{match.group(1)}"

    if "arxiv.org" in link:
        match = _ARXIV.search(link)
        if match:
            return f"arXiv:{match.group(1)}"

    if "overleaf.com" in link:
        return "Overleaf Project" if "/project/" in link else "Overleaf"

    if "github.com" in link:
        match = _GITHUB.search(link)
        if match:
            owner, repo, path = match.groups()
            if path:
                return f"{owner}/{repo}/{path.split('/')[0]}"
            return f"{owner}/{repo}"

    parsed = urlparse(link if link.startswith("http") else f"https://{link}")
    hostname = (parsed.hostname or "").removeprefix("www.")
    if not hostname or " " in link:
        return link if len(link) <= 50 else f"{link[:47]}..."

    path = parsed.path.rstrip("/")
    if path:
        return f"{hostname}/{path.split('/')[1]}"
    return hostname


def parse_link(url: str, added_at: int, link_id: str | None = None) -> LinkRef:
    url = url.strip()
    return LinkRef(
        id=link_id or str(uuid.uuid4()),
        type=detect_link_type(url),
        url=url,
        added_at=added_at,
        title=get_link_title(url),
    )


def get_link_ref_title(link: LinkRef) -> str:
    return link.title or get_link_title(link.url)
