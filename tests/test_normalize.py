"""
Brief: Tests for navguard.rules.normalize pattern and URL normalization.

Inputs:
  - None

Outputs:
  - None
"""

import pytest

from navguard.rules.normalize import (
    AnyNonEmpty,
    Exact,
    NoPath,
    PatternError,
    PrefixWildcard,
    RootOnly,
    Segmented,
    is_internal_url,
    normalize_pattern,
    normalize_url,
    parse_path_spec,
    url_scheme,
)


def test_normalize_pattern_lowercases_and_splits_protocol():
    """
    Brief: Protocol, wildcard flag, base domain and path are separated.

    Inputs:
      - pattern: "  HTTPS://*.Example.COM/News/*  "

    Outputs:
      - None: Asserts every NormalizedPattern field
    """
    p = normalize_pattern("  HTTPS://*.Example.COM/News/*  ")
    assert p.protocol == "https"
    assert p.subdomain_wildcard is True
    assert p.base_domain == "example.com"
    assert p.path_spec == PrefixWildcard(prefix="/news")
    assert p.labels == ("example", "com")


def test_normalize_pattern_without_protocol_or_path():
    """
    Brief: A bare domain has no protocol and no path constraint.

    Inputs:
      - pattern: "reddit.com"

    Outputs:
      - None: Asserts protocol None and NoPath
    """
    p = normalize_pattern("reddit.com")
    assert p.protocol is None
    assert p.subdomain_wildcard is False
    assert p.path_spec == NoPath()


def test_normalize_pattern_star_protocol_means_web():
    """
    Brief: "*://" is treated the same as no protocol.

    Inputs:
      - pattern: "*://example.com/"

    Outputs:
      - None: Asserts protocol None and RootOnly path
    """
    p = normalize_pattern("*://example.com/")
    assert p.protocol is None
    assert p.path_spec == RootOnly()


def test_normalize_pattern_port_and_query():
    """
    Brief: Ports are split off the host and query markers are remembered.

    Inputs:
      - patterns with ":8080" and "?q=1"

    Outputs:
      - None: Asserts port and keeps_query
    """
    p = normalize_pattern("localhost:8080/app")
    assert (p.base_domain, p.port) == ("localhost", 8080)
    assert p.path_spec == Exact(path="/app")

    q = normalize_pattern("example.com/search?q=1")
    assert q.keeps_query is True
    assert q.keeps_fragment is False
    assert q.path_spec == Exact(path="/search?q=1")


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "exa mple.com",
        "foo*bar.com",
        "*.",
        "example.com:99999",
        "example.com:port",
        "[::1",
        "1http://example.com",
        None,
        42,
    ],
)
def test_normalize_pattern_rejects_malformed(raw):
    """
    Brief: Malformed patterns raise PatternError.

    Inputs:
      - raw: invalid pattern value

    Outputs:
      - None: Asserts PatternError
    """
    with pytest.raises(PatternError):
        normalize_pattern(raw)


def test_parse_path_spec_variants():
    """
    Brief: Each path shape maps to its PathSpec variant.

    Inputs:
      - None

    Outputs:
      - None: Asserts classification of representative paths
    """
    assert parse_path_spec("") == NoPath()
    assert parse_path_spec("/") == RootOnly()
    assert parse_path_spec("/*") == AnyNonEmpty()
    assert parse_path_spec("/blog/") == Exact(path="/blog")
    assert parse_path_spec("/blog//") == Exact(path="/blog/")
    assert parse_path_spec("/blog/*") == PrefixWildcard(prefix="/blog")

    seg = parse_path_spec("/a/*/d")
    assert isinstance(seg, Segmented)
    assert [s.kind for s in seg.segments] == ["literal", "any", "literal"]
    assert seg.open_tail is False

    tail = parse_path_spec("/a/*/c/*")
    assert [s.kind for s in tail.segments] == ["literal", "any", "literal"]
    assert tail.open_tail is True

    partial = parse_path_spec("/img/pro*-large")
    assert partial.segments[1].kind == "partial"
    assert partial.segments[1].parts == ("pro", "-large")

    absorb = parse_path_spec("/a/**/d")
    assert absorb.segments[1].kind == "absorb"


def test_parse_path_spec_star_spans_segments_only_between_literals():
    """
    Brief: star_spans_segments upgrades a lone '*' between two literals.

    Inputs:
      - star_spans_segments: True

    Outputs:
      - None: Asserts absorb only for the enclosed star
    """
    spans = parse_path_spec("/a/*/d", star_spans_segments=True)
    assert [s.kind for s in spans.segments] == ["literal", "absorb", "literal"]

    leading = parse_path_spec("/*/d", star_spans_segments=True)
    assert [s.kind for s in leading.segments] == ["any", "literal"]


def test_normalize_url_absolute_and_bare():
    """
    Brief: URLs are parsed into protocol, host, path, query and fragment.

    Inputs:
      - absolute and bare URLs

    Outputs:
      - None: Asserts parsed fields and root path default
    """
    u = normalize_url("HTTPS://www.Reddit.com/r/news?sort=new#top")
    assert u.protocol == "https"
    assert u.host == "www.reddit.com"
    assert u.path == "/r/news"
    assert u.query == "sort=new"
    assert u.fragment == "top"
    assert u.match_path() == "/r/news"
    assert u.match_path(with_query=True) == "/r/news?sort=new"
    assert u.match_path(with_query=True, with_fragment=True) == "/r/news?sort=new#top"

    bare = normalize_url("example.com")
    assert bare.protocol is None
    assert bare.host == "example.com"
    assert bare.path == "/"
    assert bare.opaque is False


def test_normalize_url_ports():
    """
    Brief: Explicit and default ports are exposed via effective_port.

    Inputs:
      - URLs with and without ports

    Outputs:
      - None: Asserts effective_port values
    """
    assert normalize_url("http://localhost:8080/").effective_port == 8080
    assert normalize_url("https://example.com/").effective_port == 443
    assert normalize_url("http://example.com/").effective_port == 80
    assert normalize_url("example.com").effective_port is None


@pytest.mark.parametrize(
    "raw", ["", "not a url", "http://", "http://[broken/", None, 17]
)
def test_normalize_url_never_raises(raw):
    """
    Brief: Unparsable URLs degrade to an opaque value.

    Inputs:
      - raw: malformed URL value

    Outputs:
      - None: Asserts opaque flag and empty path
    """
    u = normalize_url(raw)
    assert u.opaque is True
    assert u.path == ""


def test_internal_url_detection():
    """
    Brief: Browser-internal schemes are recognized; host:port is not a scheme.

    Inputs:
      - None

    Outputs:
      - None: Asserts is_internal_url and url_scheme results
    """
    assert is_internal_url("chrome://newtab/")
    assert is_internal_url("about:blank")
    assert is_internal_url("moz-extension://abc/popup.html")
    assert is_internal_url("FILE:///etc/hosts")
    assert not is_internal_url("https://example.com/")
    assert not is_internal_url("localhost:8080/app")
    assert not is_internal_url("example.com")
    assert url_scheme("https://x") == "https"
    assert url_scheme("://x") is None
