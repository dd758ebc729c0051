"""Tests for gitprism.request_parser."""

from __future__ import annotations

import pytest

from gitprism.models import DetailLevel
from gitprism.request_parser import (
    ParseError,
    normalize_target,
    parse_address,
    parse_structured,
)


def test_ingest_route_minimal_repo_param() -> None:
    descriptor = parse_address("/ingest?repo=owner/repo")

    assert descriptor.owner == "owner"
    assert descriptor.repo == "repo"
    assert descriptor.detail is DetailLevel.FULL
    assert descriptor.bypass_cache is False
    assert descriptor.ref is None
    assert descriptor.path is None


def test_ingest_route_all_params() -> None:
    descriptor = parse_address(
        "https://gitprism.dev/ingest?repo=acme/myrepo&ref=main&path=src/components&detail=summary"
    )

    assert descriptor.repo_name == "acme/myrepo"
    assert descriptor.ref == "main"
    assert descriptor.path == "src/components"
    assert descriptor.detail is DetailLevel.SUMMARY


def test_ingest_route_no_cache_flag() -> None:
    assert parse_address("/ingest?repo=a/b&no-cache=true").bypass_cache is True
    assert parse_address("/ingest?repo=a/b&no-cache=false").bypass_cache is False


@pytest.mark.parametrize("level", ["summary", "structure", "file-list", "full"])
def test_every_detail_token_is_accepted(level: str) -> None:
    assert parse_address(f"/ingest?repo=a/b&detail={level}").detail.value == level


@pytest.mark.parametrize(
    "address",
    [
        "/ingest",
        "/ingest?repo=justowner",
        "/ingest?repo=/repo",
        "/ingest?repo=owner/",
        "/ingest?repo=%20%20/repo",
    ],
)
def test_ingest_route_rejects_bad_repo(address: str) -> None:
    with pytest.raises(ParseError):
        parse_address(address)


def test_invalid_detail_names_valid_levels() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_address("/ingest?repo=a/b&detail=invalid")

    message = str(excinfo.value)
    for level in DetailLevel.tokens():
        assert level in message


def test_github_url_without_tree_marker() -> None:
    descriptor = parse_address("/https://github.com/owner/repo")

    assert descriptor.owner == "owner"
    assert descriptor.repo == "repo"
    assert descriptor.ref is None
    assert descriptor.path is None
    assert descriptor.detail is DetailLevel.FULL


def test_github_url_with_branch_and_subpath() -> None:
    descriptor = parse_address("/https://github.com/owner/repo/tree/main/src/components")

    assert descriptor.ref == "main"
    assert descriptor.path == "src/components"


def test_github_url_with_branch_only() -> None:
    descriptor = parse_address("/https://github.com/owner/repo/tree/abc123def456")

    assert descriptor.ref == "abc123def456"
    assert descriptor.path is None


def test_github_url_segments_without_tree_are_ignored() -> None:
    descriptor = parse_address("/https://github.com/owner/repo/blob/main/README.md")

    assert descriptor.ref is None
    assert descriptor.path is None


def test_github_url_accepts_detail_query() -> None:
    descriptor = parse_address("https://gitprism.dev/https://github.com/owner/repo?detail=structure")

    assert descriptor.detail is DetailLevel.STRUCTURE


def test_bare_detail_flag_is_recognised() -> None:
    descriptor = parse_address("/https://github.com/owner/repo?no-cache=true&file-list")

    assert descriptor.detail is DetailLevel.FILE_LIST
    assert descriptor.bypass_cache is True


def test_explicit_detail_beats_bare_flag() -> None:
    descriptor = parse_address("/ingest?repo=a/b&summary&detail=structure")

    assert descriptor.detail is DetailLevel.STRUCTURE


@pytest.mark.parametrize(
    "address",
    ["/https://github.com/", "/https://github.com/owner", "/https://github.com//repo"],
)
def test_github_url_rejects_missing_segments(address: str) -> None:
    with pytest.raises(ParseError):
        parse_address(address)


def test_unknown_route_describes_both_shapes() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_address("/somewhere/else")

    message = str(excinfo.value)
    assert "/ingest?repo=owner/repo" in message
    assert "https://github.com/owner/repo" in message


def test_parse_structured_trims_and_blanks() -> None:
    descriptor = parse_structured(" acme / widgets ", ref="", path="/src/", detail="file-list")

    assert descriptor.owner == "acme"
    assert descriptor.repo == "widgets"
    assert descriptor.ref is None
    assert descriptor.path == "src"
    assert descriptor.detail is DetailLevel.FILE_LIST


def test_normalize_target_shorthand_and_detail_override() -> None:
    descriptor = normalize_target("acme/widgets/tree/dev/lib", detail="summary")

    assert descriptor.repo_name == "acme/widgets"
    assert descriptor.ref == "dev"
    assert descriptor.path == "lib"
    assert descriptor.detail is DetailLevel.SUMMARY


def test_normalize_target_strips_git_suffix() -> None:
    assert normalize_target("https://github.com/acme/widgets.git").repo == "widgets"
