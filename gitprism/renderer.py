"""Markdown rendering of ingest results at each detail level."""

from __future__ import annotations

import asyncio
import re
from typing import AsyncIterator, Iterator, List, Sequence

from .models import DetailLevel, IncludedFile, IngestResult, TreeNode
from .tree import build_tree

_LANGUAGE_BY_EXTENSION = {
    "ts": "typescript",
    "tsx": "typescript",
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "cjs": "javascript",
    "py": "python",
    "rs": "rust",
    "go": "go",
    "java": "java",
    "kt": "kotlin",
    "c": "c",
    "h": "c",
    "cpp": "cpp",
    "cc": "cpp",
    "cxx": "cpp",
    "cs": "csharp",
    "rb": "ruby",
    "php": "php",
    "sh": "bash",
    "bash": "bash",
    "zsh": "bash",
    "md": "markdown",
    "mdx": "markdown",
    "json": "json",
    "jsonc": "json",
    "yaml": "yaml",
    "yml": "yaml",
    "toml": "toml",
    "html": "html",
    "htm": "html",
    "css": "css",
    "scss": "scss",
    "sass": "scss",
    "less": "css",
    "xml": "xml",
    "svg": "xml",
    "sql": "sql",
    "graphql": "graphql",
    "gql": "graphql",
    "tf": "hcl",
    "hcl": "hcl",
    "dockerfile": "dockerfile",
    "swift": "swift",
    "r": "r",
    "lua": "lua",
    "vim": "vim",
    "ex": "elixir",
    "exs": "elixir",
    "erl": "erlang",
    "hrl": "erlang",
    "hs": "haskell",
    "lhs": "haskell",
    "clj": "clojure",
    "cljs": "clojure",
    "scala": "scala",
    "dart": "dart",
    "vue": "vue",
    "astro": "astro",
    "nix": "nix",
}

_LANGUAGE_BY_FILENAME = {
    "dockerfile": "dockerfile",
    "makefile": "makefile",
}

DIRECTORY_HEADING = "## Directory Structure"
CONTENTS_HEADING = "## File Contents"
FILE_LIST_HEADING = "## File List"


def detect_language(path: str) -> str:
    """Return the fence language tag for ``path``, or an empty string."""
    filename = path.rsplit("/", 1)[-1]
    by_name = _LANGUAGE_BY_FILENAME.get(filename.lower())
    if by_name:
        return by_name

    dot = filename.rfind(".")
    if dot == -1 or dot == len(filename) - 1:
        return ""
    return _LANGUAGE_BY_EXTENSION.get(filename[dot + 1 :].lower(), "")


def format_bytes(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def format_summary(result: IngestResult) -> str:
    """Front-matter metadata block followed by a short human-readable header."""
    lines = [
        "---",
        f"repo: {result.repo_name}",
        f"ref: {result.ref}",
        f"files: {result.file_count}",
        f"size: {result.total_size}",
        f"truncated: {'true' if result.truncated else 'false'}",
        "---",
        "",
        f"# {result.repo_name}",
        "",
        f"**Ref:** `{result.ref}`  ",
        f"**Files:** {result.file_count}  ",
        f"**Total size:** {format_bytes(result.total_size)}  ",
        "",
    ]
    return "\n".join(lines)


def _render_children(node: TreeNode, prefix: str, output: List[str]) -> None:
    children = list(node.children.values())
    for index, child in enumerate(children):
        is_last = index == len(children) - 1
        connector = "└── " if is_last else "├── "
        name = f"{child.name}/" if child.is_dir else child.name
        output.append(f"{prefix}{connector}{name}\n")
        _render_children(child, prefix + ("    " if is_last else "│   "), output)


def format_tree(files: Sequence[IncludedFile], root_name: str | None = None) -> str:
    tree = build_tree(entry.path for entry in files)
    output: List[str] = ["```\n", f"{root_name}/\n" if root_name else "./\n"]
    _render_children(tree, "", output)
    output.append("```\n")
    return "".join(output)


def format_file_list(result: IngestResult) -> str:
    rows = [
        f"| {entry.path} | {entry.size} | {entry.lines if entry.lines is not None else '-'} |"
        for entry in result.files
    ]
    table = [
        FILE_LIST_HEADING,
        "",
        "| Path | Size (bytes) | Lines |",
        "|------|-------------|-------|",
        *rows,
        "",
    ]
    return "\n".join(table)


def code_fence(body: str) -> str:
    """Return a backtick fence longer than any backtick run inside ``body``."""
    longest = max((len(run) for run in re.findall(r"`+", body)), default=0)
    return "`" * max(3, longest + 1)


def format_file_block(entry: IncludedFile) -> str:
    language = detect_language(entry.path)
    body = entry.content or ""
    fence = code_fence(body)
    return "\n".join(
        [
            f"### `{entry.path}`",
            "",
            f"{fence}{language}",
            body,
            fence,
            "",
        ]
    )


def _structure(result: IngestResult) -> str:
    return f"{format_summary(result)}\n{DIRECTORY_HEADING}\n\n{format_tree(result.files)}"


def _truncation_chunk(result: IngestResult) -> str:
    if result.truncated and result.truncation_message:
        return f"\n{result.truncation_message}\n"
    return ""


def iter_chunks(result: IngestResult) -> Iterator[str]:
    """Yield the full rendering as a header chunk, one chunk per file, then the note.

    Each chunk is rendered only when requested, so a consumer that stops
    iterating stops the rendering of the remaining files.
    """
    yield f"{_structure(result)}\n{CONTENTS_HEADING}\n\n"
    for entry in result.files:
        yield format_file_block(entry)
    note = _truncation_chunk(result)
    if note:
        yield note


async def stream_chunks(result: IngestResult, *, max_pending: int = 16) -> AsyncIterator[str]:
    """Stream :func:`iter_chunks` through a bounded producer/consumer queue.

    A background task renders chunks into the queue while the caller drains
    it. Closing the generator early cancels the producer.
    """
    queue: asyncio.Queue[str | Exception | None] = asyncio.Queue(maxsize=max_pending)

    async def _produce() -> None:
        try:
            for chunk in iter_chunks(result):
                await queue.put(chunk)
        except Exception as exc:
            # Hand the failure to the consumer instead of leaving it waiting.
            await queue.put(exc)
            return
        await queue.put(None)

    producer = asyncio.create_task(_produce())
    try:
        while True:
            item = await queue.get()
            if item is None:
                break
            if isinstance(item, Exception):
                raise item
            yield item
        await producer
    finally:
        if not producer.done():
            producer.cancel()
            try:
                await producer
            except asyncio.CancelledError:
                pass


def render(result: IngestResult, detail: DetailLevel) -> str:
    """Render ``result`` as Markdown at the requested detail level."""
    if detail is DetailLevel.SUMMARY:
        return format_summary(result)
    if detail is DetailLevel.STRUCTURE:
        return _structure(result)
    if detail is DetailLevel.FILE_LIST:
        return f"{_structure(result)}\n{format_file_list(result)}{_truncation_chunk(result)}"
    return "".join(iter_chunks(result))


__all__ = [
    "code_fence",
    "detect_language",
    "format_bytes",
    "format_file_block",
    "format_file_list",
    "format_summary",
    "format_tree",
    "iter_chunks",
    "render",
    "stream_chunks",
]
