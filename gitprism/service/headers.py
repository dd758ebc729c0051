"""Response header construction for ingest responses."""

from __future__ import annotations

from typing import Dict

from ..models import IngestResult

MARKDOWN_MEDIA_TYPE = "text/markdown; charset=utf-8"


def build_response_headers(
    result: IngestResult,
    *,
    rate_limit_remaining: str = "",
    rate_limit_reset: str = "",
) -> Dict[str, str]:
    """Return the metadata headers describing an ingest result."""
    headers = {
        "X-Repo": result.repo_name,
        "X-Ref": result.ref,
        "X-File-Count": str(result.file_count),
        "X-Total-Size": str(result.total_size),
        "X-Truncated": "true" if result.truncated else "false",
    }
    if rate_limit_remaining:
        headers["X-RateLimit-Remaining"] = rate_limit_remaining
    if rate_limit_reset:
        headers["X-RateLimit-Reset"] = rate_limit_reset
    return headers


__all__ = ["MARKDOWN_MEDIA_TYPE", "build_response_headers"]
