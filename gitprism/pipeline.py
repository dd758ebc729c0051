"""Ingest pipeline tying request parsing, retrieval, processing and rendering together."""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from typing import Iterator, Optional

from .archive import ArchiveProcessor, ProcessOptions
from .config import GitPrismConfig
from .fetcher import GitHubClient
from .logging import get_logger
from .models import DetailLevel, IngestResult, RequestDescriptor
from .renderer import iter_chunks, render


@dataclass
class IngestOutcome:
    """Processed result plus the upstream rate-limit state for response headers."""

    result: IngestResult
    detail: DetailLevel
    rate_limit_remaining: str = ""
    rate_limit_reset: str = ""

    def render(self) -> str:
        return render(self.result, self.detail)

    def chunks(self) -> Iterator[str]:
        if self.detail is DetailLevel.FULL:
            return iter_chunks(self.result)
        return iter([self.render()])


class Ingestor:
    """Runs the ingest flow for a single request at a time.

    Holds no per-request state: each call builds its own filter and result.
    """

    def __init__(
        self,
        config: GitPrismConfig | None = None,
        *,
        client: GitHubClient | None = None,
        processor: ArchiveProcessor | None = None,
    ) -> None:
        self.config = config or GitPrismConfig()
        self.client = client or GitHubClient(self.config)
        self.processor = processor or ArchiveProcessor()
        self.logger = get_logger("pipeline")

    def run(self, descriptor: RequestDescriptor) -> IngestOutcome:
        """Resolve, download and process the repository named by ``descriptor``."""
        started = time.monotonic()
        ref = descriptor.ref or self.client.resolve_default_ref(descriptor.owner, descriptor.repo)
        self.client.check_archive_size(descriptor.owner, descriptor.repo, ref)
        payload = self.client.fetch_archive(descriptor.owner, descriptor.repo, ref)

        outcome = self.process_archive(descriptor, payload.data, ref=ref)
        outcome.rate_limit_remaining = payload.rate_limit_remaining
        outcome.rate_limit_reset = payload.rate_limit_reset
        self._log_outcome(descriptor, outcome, started)
        return outcome

    def process_archive(
        self,
        descriptor: RequestDescriptor,
        data: bytes,
        *,
        ref: Optional[str] = None,
    ) -> IngestOutcome:
        """Process archive bytes already in hand (no network access)."""
        options = ProcessOptions(
            detail=descriptor.detail,
            subpath=descriptor.path,
            max_output_bytes=self.config.max_output_bytes,
            max_file_count=self.config.max_file_count,
        )
        result = self.processor.process(data, options)
        result = replace(
            result,
            owner=descriptor.owner,
            repo=descriptor.repo,
            ref=ref or descriptor.ref or "",
        )
        return IngestOutcome(result=result, detail=descriptor.detail)

    def _log_outcome(self, descriptor: RequestDescriptor, outcome: IngestOutcome, started: float) -> None:
        result = outcome.result
        self.logger.info(
            "Ingested %s@%s detail=%s files=%d size=%d truncated=%s remaining=%s latency_ms=%d",
            descriptor.repo_name,
            result.ref,
            descriptor.detail.value,
            result.file_count,
            result.total_size,
            result.truncated,
            outcome.rate_limit_remaining or "-",
            int((time.monotonic() - started) * 1000),
        )


__all__ = ["IngestOutcome", "Ingestor"]
