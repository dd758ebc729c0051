"""FastAPI application entrypoint for gitprism service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from pydantic import BaseModel

from ..archive import ArchiveError
from ..config import GitPrismConfig, load_config
from ..fetcher import ArchiveTooLargeError, GitHubApiError, RepoNotFoundError
from ..logging import configure_logging, get_logger
from ..models import DetailLevel, RequestDescriptor
from ..pipeline import IngestOutcome, Ingestor
from ..renderer import format_bytes, stream_chunks
from ..request_parser import ParseError, parse_address
from .headers import MARKDOWN_MEDIA_TYPE, build_response_headers

_logger = get_logger("service")


class HealthResponse(BaseModel):
    status: str


def build_llms_txt(config: GitPrismConfig) -> str:
    """Describe the HTTP API for agents that read /llms.txt."""
    return "\n".join(
        [
            "# GitPrism",
            "> Convert public GitHub repositories into LLM-ready Markdown.",
            "",
            "## API",
            "GET /ingest?repo={owner/repo}&ref={branch}&path={subdir}&detail={level}",
            "",
            "## Parameters",
            '- repo (required): GitHub owner/repo, e.g. "cloudflare/workers-sdk"',
            "- ref (optional): Branch, tag, or commit SHA. Defaults to the repo's default branch.",
            '- path (optional): Subdirectory to scope results to, e.g. "src/components"',
            f"- detail (optional): One of: {', '.join(DetailLevel.tokens())}. Defaults to full.",
            "",
            "## Shorthand",
            "GET /https://github.com/{owner}/{repo}/tree/{ref}/{path}",
            "",
            "## Limits",
            f"- Maximum zip archive size: {format_bytes(config.max_zip_bytes)}",
            f"- Maximum output size: {format_bytes(config.max_output_bytes)}",
            f"- Maximum file count: {config.max_file_count:,}",
            "- Only public repositories are supported unless a token is configured",
            "",
        ]
    )


def _default_ingestor() -> Ingestor:
    return Ingestor(load_config(Path.cwd()))


def create_app(ingestor_factory: Callable[[], Ingestor] = _default_ingestor) -> FastAPI:
    """Create the FastAPI application exposing the ingest routes."""

    app = FastAPI(title="GitPrism", version="1.0.0")

    async def _run(descriptor: RequestDescriptor) -> IngestOutcome:
        # A fresh ingestor per request keeps requests independent.
        ingestor = ingestor_factory()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, ingestor.run, descriptor)

    async def _respond(request: Request) -> Response:
        address = request.url.path
        if request.url.query:
            address = f"{address}?{request.url.query}"
        descriptor = parse_address(address)
        outcome = await _run(descriptor)
        headers = build_response_headers(
            outcome.result,
            rate_limit_remaining=outcome.rate_limit_remaining,
            rate_limit_reset=outcome.rate_limit_reset,
        )
        if outcome.detail is DetailLevel.FULL:
            return StreamingResponse(
                stream_chunks(outcome.result),
                media_type=MARKDOWN_MEDIA_TYPE,
                headers=headers,
            )
        return Response(content=outcome.render(), media_type=MARKDOWN_MEDIA_TYPE, headers=headers)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/llms.txt", response_class=PlainTextResponse)
    async def llms_txt() -> PlainTextResponse:
        config = ingestor_factory().config
        return PlainTextResponse(
            build_llms_txt(config),
            headers={"Cache-Control": "public, max-age=86400"},
        )

    @app.get("/ingest")
    async def ingest(request: Request) -> Response:
        return await _respond(request)

    @app.get("/{target:path}")
    async def ingest_github_url(request: Request, target: str) -> Response:
        return await _respond(request)

    @app.exception_handler(ParseError)
    async def parse_error_handler(_: Any, exc: ParseError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(RepoNotFoundError)
    async def not_found_handler(_: Any, exc: RepoNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": "Repository not found or is private"})

    @app.exception_handler(ArchiveTooLargeError)
    async def too_large_handler(_: Any, exc: ArchiveTooLargeError) -> JSONResponse:
        return JSONResponse(status_code=413, content={"error": str(exc)})

    @app.exception_handler(GitHubApiError)
    async def github_error_handler(_: Any, exc: GitHubApiError) -> JSONResponse:
        return JSONResponse(status_code=502, content={"error": f"GitHub API returned {exc.status}"})

    @app.exception_handler(ArchiveError)
    async def archive_error_handler(_: Any, exc: ArchiveError) -> JSONResponse:
        _logger.error("Archive processing failed: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return app


def run_service(host: str = "0.0.0.0", port: int = 8000, *, verbose: bool = False) -> None:
    import uvicorn

    configure_logging(verbose=verbose)
    uvicorn.run(create_app(), host=host, port=port, log_level="debug" if verbose else "info")


__all__ = ["build_llms_txt", "create_app", "run_service"]
