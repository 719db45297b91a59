"""Tests for linkcrawler.urls."""

from __future__ import annotations

import base64
import re

import pytest

from linkcrawler.urls import LinkFilter, canonicalize_url, encode_url

BASE = "http://example.com"


class TestEncodeUrl:
    def test_is_filesystem_safe(self):
        encoded = encode_url("http://example.com/a?b=c&d=e#f")
        assert re.fullmatch(r"[A-Z2-7=]+", encoded)

    def test_is_reversible(self):
        url = "https://example.com/päge"
        assert base64.b32decode(encode_url(url)).decode("utf-8") == url

    def test_distinct_urls_get_distinct_ids(self):
        assert encode_url("http://example.com/a") != encode_url("http://example.com/b")


class TestCanonicalizeUrl:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("HTTP://Example.COM:80/a/./b/../c//d/", "http://example.com/a/c/d"),
            ("https://example.com:443/", "https://example.com"),
            ("http://example.com:8080/x#frag", "http://example.com:8080/x"),
            ("example.com/x", "http://example.com/x"),
            ("  http://example.com/about  ", "http://example.com/about"),
            ("http://example.com/a?b=1", "http://example.com/a?b=1"),
            ("http://example.com/", "http://example.com"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert canonicalize_url(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        ["", "   ", "ftp://example.com/x", "http://", "http://example.com:notaport/"],
    )
    def test_rejects(self, raw):
        assert canonicalize_url(raw) is None


class TestLinkFilterScope:
    def test_relative_link_with_query_is_accepted(self):
        assert LinkFilter(BASE).accept("/about?x=1") == "http://example.com/about"

    def test_other_host_is_rejected(self):
        assert LinkFilter(BASE).accept("http://other.com/page") is None

    def test_relative_link_without_slash(self):
        assert LinkFilter(BASE).accept("about") == "http://example.com/about"

    def test_base_with_trailing_slash(self):
        lf = LinkFilter("http://example.com/")
        assert lf.accept("/about") == "http://example.com/about"

    def test_fragment_only_link_resolves_to_base(self):
        assert LinkFilter(BASE).accept("#top") == "http://example.com"

    def test_protocol_relative_links(self):
        lf = LinkFilter(BASE)
        assert lf.accept("//example.com/x") == "http://example.com/x"
        assert lf.accept("//other.com/x") is None

    def test_non_http_schemes_are_rejected(self):
        lf = LinkFilter(BASE)
        assert lf.accept("mailto:someone@example.org") is None
        assert lf.accept("javascript:void(0)") is None

    def test_scope_is_substring_containment(self):
        # Any URL containing the base passes, even on another host.
        lf = LinkFilter(BASE)
        assert lf.accept("http://example.com.mirror.org/x") == (
            "http://example.com.mirror.org/x"
        )


class TestLinkFilterKeywords:
    def test_exclude_keyword(self):
        lf = LinkFilter(BASE, exclude_keywords=("/admin",))
        assert lf.accept("http://example.com/admin/x") is None
        assert lf.accept("http://example.com/about") == "http://example.com/about"

    def test_include_keyword(self):
        lf = LinkFilter(BASE, include_keywords=("/blog",))
        assert lf.accept("http://example.com/about") is None
        assert lf.accept("http://example.com/blog/1") == "http://example.com/blog/1"

    def test_exclude_wins_over_include(self):
        lf = LinkFilter(
            BASE, exclude_keywords=("draft",), include_keywords=("/blog",)
        )
        assert lf.accept("/blog/draft-1") is None

    def test_keywords_match_canonical_form(self):
        lf = LinkFilter(BASE, exclude_keywords=("http://example.com/a/c",))
        assert lf.accept("/a/b/../c") is None
