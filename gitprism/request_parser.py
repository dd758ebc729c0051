"""Parsing of incoming ingest addresses into request descriptors."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, unquote, urlsplit

from .models import DetailLevel, RequestDescriptor

INGEST_ROUTE = "/ingest"

_GITHUB_PREFIXES = (
    "https://github.com/",
    "http://github.com/",
    "github.com/",
)
_TRUE_VALUES = {"true", "1", "yes"}


class ParseError(ValueError):
    """Raised when an address matches neither accepted request shape."""


def parse_detail(raw: Optional[str]) -> DetailLevel:
    """Return the detail level for ``raw``, defaulting to the richest level."""
    if raw is None or not raw.strip():
        return DetailLevel.FULL
    token = raw.strip()
    try:
        return DetailLevel(token)
    except ValueError:
        valid = ", ".join(DetailLevel.tokens())
        raise ParseError(f'Invalid detail level "{token}". Must be one of: {valid}.') from None


def parse_owner_repo(raw: str) -> Tuple[str, str]:
    parts = raw.strip().split("/")
    if len(parts) < 2:
        raise ParseError(f'Could not parse repo "{raw}". Expected format: owner/repo')
    owner = parts[0].strip()
    repo = _strip_git_suffix(parts[1].strip())
    if not owner:
        raise ParseError("Repository owner must not be empty.")
    if not repo:
        raise ParseError("Repository name must not be empty.")
    return owner, repo


def parse_structured(
    repo: Optional[str],
    *,
    ref: Optional[str] = None,
    path: Optional[str] = None,
    detail: Optional[str | DetailLevel] = None,
    no_cache: bool = False,
) -> RequestDescriptor:
    """Build a descriptor from explicit ``owner/repo``, ref, path and detail values."""
    if not repo or not repo.strip():
        raise ParseError('Missing required "repo" parameter. Expected format: ?repo=owner/repo')
    owner, name = parse_owner_repo(repo)
    level = detail if isinstance(detail, DetailLevel) else parse_detail(detail)
    return RequestDescriptor(
        owner=owner,
        repo=name,
        ref=_blank_to_none(ref),
        path=_normalize_subpath(path),
        detail=level,
        bypass_cache=no_cache,
    )


def parse_address(address: str) -> RequestDescriptor:
    """Parse a request URL (or its path and query) in either accepted shape.

    Supported shapes::

        /ingest?repo=owner/repo&ref=...&path=...&detail=...&no-cache=true
        /https://github.com/owner/repo[/tree/ref[/subpath...]][?detail=...]

    A full request URL carrying either shape is accepted, as is a bare
    ``https://github.com/...`` address.
    """
    raw = address.strip()
    if _github_remainder(raw) is not None:
        # Bare GitHub URL without a service host in front of it.
        target, _, query = raw.partition("?")
        return _parse_github_form(target, _parse_query(query))

    split = urlsplit(raw)
    path = unquote(split.path)
    params = _parse_query(split.query)

    if path == INGEST_ROUTE:
        return parse_structured(
            _first(params, "repo"),
            ref=_first(params, "ref"),
            path=_first(params, "path"),
            detail=_detail_from_params(params),
            no_cache=_first(params, "no-cache", "").strip().lower() in _TRUE_VALUES,
        )

    embedded = path[1:] if path.startswith("/") else path
    if _github_remainder(embedded) is not None:
        return _parse_github_form(embedded, params)

    raise ParseError(
        "Request did not match any supported route. "
        "Use /ingest?repo=owner/repo or /https://github.com/owner/repo"
    )


def normalize_target(target: str, *, detail: Optional[str | DetailLevel] = None) -> RequestDescriptor:
    """Turn ``owner/repo[/tree/ref[/sub]]`` or a GitHub URL into a descriptor."""
    raw = target.strip()
    if _github_remainder(raw) is None and "://" not in raw and raw.count("/") >= 1:
        raw = f"https://github.com/{raw.lstrip('/')}"
    descriptor = parse_address(raw)
    if detail is None:
        return descriptor
    level = detail if isinstance(detail, DetailLevel) else parse_detail(detail)
    return RequestDescriptor(
        owner=descriptor.owner,
        repo=descriptor.repo,
        ref=descriptor.ref,
        path=descriptor.path,
        detail=level,
        bypass_cache=descriptor.bypass_cache,
    )


def _parse_github_form(url: str, params: Sequence[Tuple[str, str]]) -> RequestDescriptor:
    remainder = _github_remainder(url) or ""
    segments = remainder.strip("/").split("/")
    if len(segments) < 2 or not segments[0].strip() or not segments[1].strip():
        raise ParseError(
            "Could not parse GitHub URL. Expected format: https://github.com/owner/repo"
        )

    owner = segments[0].strip()
    repo = _strip_git_suffix(segments[1].strip())
    if not repo:
        raise ParseError("Repository name must not be empty.")

    ref: Optional[str] = None
    subpath: Optional[str] = None
    if len(segments) >= 4 and segments[2] == "tree":
        ref = _blank_to_none(segments[3])
        if len(segments) > 4:
            subpath = _normalize_subpath("/".join(segments[4:]))

    return RequestDescriptor(
        owner=owner,
        repo=repo,
        ref=ref,
        path=subpath,
        detail=parse_detail(_detail_from_params(params)),
        bypass_cache=_first(params, "no-cache", "").strip().lower() in _TRUE_VALUES,
    )


def _detail_from_params(params: Sequence[Tuple[str, str]]) -> Optional[str]:
    explicit = _first(params, "detail")
    if explicit is not None:
        return explicit
    tokens = set(DetailLevel.tokens())
    for key, value in params:
        if key in tokens and not value:
            return key
    return None


def _parse_query(query: str) -> List[Tuple[str, str]]:
    return parse_qsl(query, keep_blank_values=True)


def _first(params: Sequence[Tuple[str, str]], key: str, default: Optional[str] = None) -> Optional[str]:
    for name, value in params:
        if name == key:
            return value
    return default


def _github_remainder(url: str) -> Optional[str]:
    lowered = url.lower()
    for prefix in _GITHUB_PREFIXES:
        if lowered.startswith(prefix):
            return url[len(prefix):]
    return None


def _strip_git_suffix(name: str) -> str:
    return name[: -len(".git")] if name.endswith(".git") else name


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _normalize_subpath(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip().strip("/") or None


__all__ = [
    "INGEST_ROUTE",
    "ParseError",
    "normalize_target",
    "parse_address",
    "parse_detail",
    "parse_owner_repo",
    "parse_structured",
]
