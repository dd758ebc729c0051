"""Zip archive traversal with filtering, binary detection and output budgets."""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from typing import List, Optional

from .logging import get_logger
from .models import DetailLevel, IncludedFile, IngestResult
from .path_filter import BINARY_SNIFF_BYTES, PathFilter, is_binary_content, rebase_path

DEFAULT_MAX_OUTPUT_BYTES = 10 * 1024 * 1024
DEFAULT_MAX_FILE_COUNT = 5000
IGNORE_FILENAME = ".gitignore"


class ArchiveError(RuntimeError):
    """Raised when the archive bytes cannot be decoded."""


@dataclass
class ProcessOptions:
    """Per-request knobs for archive processing."""

    detail: DetailLevel = DetailLevel.FULL
    subpath: Optional[str] = None
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    max_file_count: int = DEFAULT_MAX_FILE_COUNT


def truncation_note(included: int, total: int) -> str:
    return (
        f"<!-- [TRUNCATED] Output limit reached. {included} of {total} files included. "
        "Use ?path= to target a subdirectory for complete results. -->"
    )


def _archive_prefix(names: List[str]) -> str:
    # GitHub zipballs wrap everything in a single owner-repo-sha/ directory.
    for name in names:
        slash = name.find("/")
        if slash != -1:
            return name[: slash + 1]
    return ""


def _strip_prefix(name: str, prefix: str) -> str:
    return name[len(prefix):] if prefix and name.startswith(prefix) else name


class ArchiveProcessor:
    """Walks a repository zipball and produces a normalized ingest result."""

    def __init__(self) -> None:
        self.logger = get_logger("archive")

    def process(self, data: bytes, options: ProcessOptions | None = None) -> IngestResult:
        """Return the files admitted from ``data`` under the given options."""
        options = options or ProcessOptions()
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
            raise ArchiveError(f"Unable to read repository archive: {exc}") from exc

        with archive:
            try:
                return self._walk(archive, options)
            except zipfile.BadZipFile as exc:
                raise ArchiveError(f"Corrupt entry in repository archive: {exc}") from exc

    def _walk(self, archive: zipfile.ZipFile, options: ProcessOptions) -> IngestResult:
        infos = archive.infolist()
        prefix = _archive_prefix([info.filename for info in infos])
        self.logger.debug("Archive prefix %r across %d entries", prefix, len(infos))

        path_filter = PathFilter(self._read_ignore_file(archive, prefix))
        self.logger.debug("Compiled %d ignore rules", len(path_filter.rules))

        file_infos = []
        for info in infos:
            rel_path = _strip_prefix(info.filename, prefix)
            if not rel_path or info.is_dir() or rel_path.endswith("/"):
                continue
            file_infos.append((rel_path, info))

        detail = options.detail
        files: List[IncludedFile] = []
        total_size = 0
        truncated = False

        for rel_path, info in file_infos:
            if path_filter.is_statically_excluded(rel_path) or path_filter.is_ignored(rel_path):
                continue

            scoped_path = rebase_path(rel_path, options.subpath)
            if scoped_path is None:
                continue

            with archive.open(info) as handle:
                head = handle.read(BINARY_SNIFF_BYTES)
            if is_binary_content(head):
                continue

            if len(files) >= options.max_file_count:
                truncated = True
                break

            size = info.file_size
            if detail.needs_bodies and total_size + size > options.max_output_bytes:
                truncated = True
                break

            entry = IncludedFile(path=scoped_path, size=size)
            if detail.needs_line_counts:
                raw = archive.read(info)
                text = raw.decode("utf-8", errors="replace")
                entry.lines = text.count("\n") + 1
                if detail.needs_bodies:
                    entry.content = text

            files.append(entry)
            total_size += size

        message = None
        if truncated:
            message = truncation_note(len(files), len(file_infos))
            self.logger.info(
                "Truncated output at %d of %d files (%d bytes)",
                len(files),
                len(file_infos),
                total_size,
            )

        return IngestResult(
            files=files,
            truncated=truncated,
            truncation_message=message,
            total_entries=len(file_infos),
        )

    @staticmethod
    def _read_ignore_file(archive: zipfile.ZipFile, prefix: str) -> str | None:
        # Only the root .gitignore is honored; nested ones are never read.
        try:
            info = archive.getinfo(prefix + IGNORE_FILENAME)
        except KeyError:
            return None
        if info.is_dir():
            return None
        return archive.read(info).decode("utf-8", errors="replace")


__all__ = [
    "ArchiveError",
    "ArchiveProcessor",
    "DEFAULT_MAX_FILE_COUNT",
    "DEFAULT_MAX_OUTPUT_BYTES",
    "IGNORE_FILENAME",
    "ProcessOptions",
    "truncation_note",
]
