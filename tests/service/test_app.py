"""Tests for the FastAPI service mode."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from gitprism.config import GitPrismConfig
from gitprism.fetcher import ArchivePayload, ArchiveTooLargeError, GitHubApiError, RepoNotFoundError
from gitprism.pipeline import Ingestor
from gitprism.service import create_app, run_service
from tests._fixtures.archive_builder import ArchiveBuilder


class _StubClient:
    def __init__(self, data: bytes = b"", error: Exception | None = None) -> None:
        self.data = data
        self.error = error
        self.fetched: List[str] = []

    def resolve_default_ref(self, owner: str, repo: str) -> str:
        if self.error is not None:
            raise self.error
        return "main"

    def check_archive_size(self, owner: str, repo: str, ref: str) -> None:
        return None

    def fetch_archive(self, owner: str, repo: str, ref: str) -> ArchivePayload:
        self.fetched.append(f"{owner}/{repo}@{ref}")
        return ArchivePayload(data=self.data, rate_limit_remaining="10", rate_limit_reset="99")


def _make_client(stub: _StubClient) -> TestClient:
    config = GitPrismConfig(max_file_count=100)
    app = create_app(lambda: Ingestor(config, client=stub))  # type: ignore[arg-type]
    return TestClient(app)


@pytest.fixture
def stub() -> _StubClient:
    return _StubClient(
        ArchiveBuilder().build(
            {
                "src/index.ts": "const x = 1;",
                "README.md": "# Hello",
                "package-lock.json": "{}",
            }
        )
    )


def test_health_endpoint(stub: _StubClient) -> None:
    response = _make_client(stub).get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_llms_txt_lists_limits(stub: _StubClient) -> None:
    response = _make_client(stub).get("/llms.txt")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "Maximum file count: 100" in response.text


def test_ingest_summary_sets_metadata_headers(stub: _StubClient) -> None:
    response = _make_client(stub).get("/ingest", params={"repo": "acme/widgets", "detail": "summary"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/markdown")
    assert response.headers["x-repo"] == "acme/widgets"
    assert response.headers["x-ref"] == "main"
    assert response.headers["x-file-count"] == "2"
    assert response.headers["x-total-size"] == str(len("const x = 1;") + len("# Hello"))
    assert response.headers["x-truncated"] == "false"
    assert response.headers["x-ratelimit-remaining"] == "10"
    assert response.text.startswith("---\nrepo: acme/widgets\n")


def test_ingest_full_streams_file_contents(stub: _StubClient) -> None:
    response = _make_client(stub).get("/ingest?repo=acme/widgets&ref=dev")

    assert response.status_code == 200
    assert "```typescript\nconst x = 1;\n```" in response.text
    assert "package-lock.json" not in response.text
    assert stub.fetched == ["acme/widgets@dev"]


def test_embedded_github_url_route(stub: _StubClient) -> None:
    response = _make_client(stub).get("/https://github.com/acme/widgets/tree/v1/src?structure")

    assert response.status_code == 200
    assert "## Directory Structure" in response.text
    assert "index.ts" in response.text
    assert "README.md" not in response.text
    assert stub.fetched == ["acme/widgets@v1"]


def test_parse_error_returns_400(stub: _StubClient) -> None:
    response = _make_client(stub).get("/ingest?repo=justowner")
    assert response.status_code == 400
    assert "owner/repo" in response.json()["error"]


def test_unknown_route_returns_400(stub: _StubClient) -> None:
    response = _make_client(stub).get("/not-a-route")
    assert response.status_code == 400


@pytest.mark.parametrize(
    ("error", "status"),
    [
        (RepoNotFoundError("missing"), 404),
        (ArchiveTooLargeError("too big"), 413),
        (GitHubApiError(500, "boom"), 502),
    ],
)
def test_upstream_errors_map_to_status_codes(error: Exception, status: int) -> None:
    response = _make_client(_StubClient(error=error)).get("/ingest?repo=acme/widgets")
    assert response.status_code == status


def test_unreadable_archive_returns_500() -> None:
    response = _make_client(_StubClient(data=b"not a zip")).get("/ingest?repo=acme/widgets")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_requests_do_not_share_state(stub: _StubClient) -> None:
    client = _make_client(stub)

    first = client.get("/ingest?repo=acme/widgets&detail=summary&ref=a")
    second = client.get("/ingest?repo=acme/widgets&detail=summary&ref=b")

    assert first.headers["x-ref"] == "a"
    assert second.headers["x-ref"] == "b"


def test_run_service_configures_logging_before_serving(monkeypatch: pytest.MonkeyPatch) -> None:
    import uvicorn

    captured: Dict[str, Any] = {}

    def _fake_run(app: Any, **kwargs: Any) -> None:
        captured["app"] = app
        captured.update(kwargs)
        captured["handlers"] = list(logging.getLogger("gitprism").handlers)

    monkeypatch.setattr(uvicorn, "run", _fake_run)

    run_service(host="127.0.0.1", port=9001, verbose=True)

    assert captured["host"] == "127.0.0.1"
    assert captured["port"] == 9001
    assert captured["log_level"] == "debug"
    assert len(captured["handlers"]) == 1
    assert logging.getLogger("gitprism").level == logging.DEBUG
