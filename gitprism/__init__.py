"""Convert repository zipballs into LLM-ready Markdown."""

from .archive import ArchiveError, ArchiveProcessor, ProcessOptions
from .models import DetailLevel, IncludedFile, IngestResult, RequestDescriptor, TreeNode
from .path_filter import PathFilter, scope_to_subpath
from .renderer import iter_chunks, render, stream_chunks
from .request_parser import ParseError, parse_address, parse_structured
from .tree import build_tree

__all__ = [
    "ArchiveError",
    "ArchiveProcessor",
    "DetailLevel",
    "IncludedFile",
    "IngestResult",
    "ParseError",
    "PathFilter",
    "ProcessOptions",
    "RequestDescriptor",
    "TreeNode",
    "build_tree",
    "iter_chunks",
    "parse_address",
    "parse_structured",
    "render",
    "scope_to_subpath",
    "stream_chunks",
]
