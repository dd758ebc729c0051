"""Core data models shared across gitprism components."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class DetailLevel(str, Enum):
    """Output verbosity tiers, from metadata only to full file bodies."""

    SUMMARY = "summary"
    STRUCTURE = "structure"
    FILE_LIST = "file-list"
    FULL = "full"

    @property
    def needs_line_counts(self) -> bool:
        return self in (DetailLevel.FILE_LIST, DetailLevel.FULL)

    @property
    def needs_bodies(self) -> bool:
        return self is DetailLevel.FULL

    @classmethod
    def tokens(cls) -> List[str]:
        return [level.value for level in cls]


@dataclass(frozen=True)
class RequestDescriptor:
    """Normalized ingest request produced by the request parser."""

    owner: str
    repo: str
    ref: Optional[str] = None
    path: Optional[str] = None
    detail: DetailLevel = DetailLevel.FULL
    bypass_cache: bool = False

    @property
    def repo_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class IncludedFile:
    """A file admitted into the ingest result."""

    path: str
    size: int
    lines: Optional[int] = None
    content: Optional[str] = None


@dataclass
class IngestResult:
    """Normalized view of an archive after filtering and budgeting.

    ``file_count`` and ``total_size`` are derived from ``files`` so the
    summary counters can never drift from the file list.
    """

    files: List[IncludedFile] = field(default_factory=list)
    truncated: bool = False
    truncation_message: Optional[str] = None
    total_entries: int = 0
    owner: str = ""
    repo: str = ""
    ref: str = ""

    @property
    def file_count(self) -> int:
        return len(self.files)

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self.files)

    @property
    def repo_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class TreeNode:
    """Node of the directory tree rendered for display."""

    name: str
    is_dir: bool
    children: Dict[str, "TreeNode"] = field(default_factory=dict)
