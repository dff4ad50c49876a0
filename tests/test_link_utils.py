"""Tests for focus_tracker.utils.link_utils."""

import pytest

from focus_tracker.types import LinkRef, LinkType
from focus_tracker.utils.link_utils import (
    detect_link_type,
    get_link_ref_title,
    get_link_title,
    parse_link,
)


@pytest.mark.parametrize("url,expected", [
    ("doi:10.1000/182", LinkType.DOI),
    ("https://doi.org/10.1000/182", LinkType.DOI),
    ("https://arxiv.org/abs/2101.00001", LinkType.ARXIV),
    ("https://github.com/owner/repo", LinkType.GITHUB),
    ("https://www.overleaf.com/project/abc", LinkType.OVERLEAF),
    ("zotero://select/items/ABC", LinkType.ZOTERO),
    ("/home/me/paper.pdf", LinkType.LOCAL),
    ("C:\\papers\\x.pdf", LinkType.LOCAL),
    ("file:///tmp/x", LinkType.LOCAL),
    ("https://example.com", LinkType.URL),
    ("", LinkType.URL),
])
def test_detect_link_type(url, expected):
    assert detect_link_type(url) is expected


@pytest.mark.parametrize("url,expected", [
    ("https://doi.org/10.1000/182", "doi:10.1000/182"),
    ("https://arxiv.org/pdf/2101.00001", "arXiv:2101.00001"),
    ("https://www.overleaf.com/project/abc", "Overleaf Project"),
    ("https://github.com/owner/repo", "owner/repo"),
    ("https://github.com/owner/repo/issues/4", "owner/repo/issues"),
    ("https://www.example.com/docs/page", "example.com/docs"),
    ("example.com", "example.com"),
    ("", ""),
])
def test_get_link_title(url, expected):
    assert get_link_title(url) == expected


def test_long_unparseable_text_truncated():
    text = "not a url " * 10
    title = get_link_title(text)
    assert len(title) == 50
    assert title.endswith("...")


def test_parse_link():
    link = parse_link("  https://arxiv.org/abs/2101.00001 ", added_at=123)
    assert link.url == "https://arxiv.org/abs/2101.00001"
    assert link.type is LinkType.ARXIV
    assert link.title == "arXiv:2101.00001"
    assert link.added_at == 123
    assert link.id


def test_parse_link_explicit_id():
    assert parse_link("https://x.org", added_at=0, link_id="fixed").id == "fixed"


def test_link_ref_title_prefers_stored_title():
    link = LinkRef(id="1", type=LinkType.URL, url="https://example.com/a", added_at=0, title="Mine")
    assert get_link_ref_title(link) == "Mine"
    link.title = ""
    assert get_link_ref_title(link) == "example.com/a"
