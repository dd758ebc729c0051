"""Path exclusion rules: static ignore lists, .gitignore patterns and binary sniffing."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Sequence

BINARY_SNIFF_BYTES = 8192

_EXCLUDED_DIRS = {
    "node_modules",
    "vendor",
    ".git",
    "__pycache__",
    ".venv",
    "venv",
    "dist",
    "build",
    ".next",
    ".nuxt",
    ".svelte-kit",
    ".output",
    ".cache",
    ".parcel-cache",
    "coverage",
    ".tox",
    ".mypy_cache",
}

_EXCLUDED_FILES = {
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    "Cargo.lock",
    "composer.lock",
    "Gemfile.lock",
    "go.sum",
    "poetry.lock",
    ".DS_Store",
}

_GENERATED_SUFFIXES = (
    ".min.js",
    ".min.css",
    ".map",
    ".wasm",
    ".pb.go",
    ".pyc",
    ".pyo",
)

_BINARY_SUFFIXES = (
    ".png",
    ".jpg",
    ".jpeg",
    ".gif",
    ".ico",
    ".webp",
    ".bmp",
    ".tiff",
    ".svg",
    ".woff",
    ".woff2",
    ".ttf",
    ".eot",
    ".otf",
    ".pdf",
    ".zip",
    ".tar",
    ".gz",
    ".bz2",
    ".7z",
    ".rar",
    ".exe",
    ".dll",
    ".so",
    ".dylib",
    ".bin",
    ".o",
    ".a",
    ".mp3",
    ".mp4",
    ".avi",
    ".mov",
    ".mkv",
    ".flac",
    ".wav",
    ".ogg",
    ".sqlite",
    ".db",
)


@dataclass(frozen=True)
class IgnoreRule:
    """A single compiled .gitignore line."""

    pattern: str
    negate: bool
    regex: Pattern[str]

    def matches(self, rel_path: str) -> bool:
        return self.regex.fullmatch(rel_path) is not None


def _translate_glob(pattern: str) -> str:
    """Translate the body of a gitignore pattern into a regular expression."""
    out: List[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        if char == "*":
            if pattern.startswith("**", index):
                index += 2
                if index < length and pattern[index] == "/":
                    # "**/" matches zero or more leading directories.
                    out.append("(?:.*/)?")
                    index += 1
                else:
                    out.append(".*")
                continue
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            end = pattern.find("]", index + 2 if pattern.startswith("[]", index) else index + 1)
            if end == -1:
                raise ValueError(f"unterminated character class in {pattern!r}")
            body = pattern[index + 1 : end]
            if body.startswith("!"):
                body = "^" + body[1:]
            out.append("[" + body.replace("\\", "\\\\") + "]")
            index = end
        elif char == "\\" and index + 1 < length:
            index += 1
            out.append(re.escape(pattern[index]))
        else:
            out.append(re.escape(char))
        index += 1
    return "".join(out)


def compile_ignore_pattern(line: str) -> Optional[IgnoreRule]:
    """Compile one .gitignore line, returning ``None`` for blanks and comments."""
    stripped = line.strip()
    if not stripped or stripped.startswith("#"):
        return None

    negate = stripped.startswith("!")
    pattern = stripped[1:] if negate else stripped
    if pattern.startswith(("\\#", "\\!")):
        pattern = pattern[1:]
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    body = pattern.rstrip("/")
    rooted = body.startswith("/")
    body = body.lstrip("/")
    if not body:
        return None

    prefix = "" if rooted else "(?:.*/)?"
    # Directory patterns need something beneath them; plain names also cover
    # everything inside a directory of that name.
    suffix = "/.*" if directory_only else "(?:/.*)?"
    regex = re.compile(prefix + _translate_glob(body) + suffix, re.DOTALL)
    return IgnoreRule(pattern=stripped, negate=negate, regex=regex)


def compile_ignore_rules(text: str) -> List[IgnoreRule]:
    """Compile the contents of a .gitignore file into ordered rules.

    Lines that cannot be compiled are skipped so one bad pattern does not
    disable the rest of the file.
    """
    rules: List[IgnoreRule] = []
    for raw_line in text.splitlines():
        try:
            rule = compile_ignore_pattern(raw_line)
        except (ValueError, re.error):
            continue
        if rule is not None:
            rules.append(rule)
    return rules


def is_binary_content(data: bytes) -> bool:
    """Return True when a zero byte appears within the first 8 KiB."""
    return b"\x00" in data[:BINARY_SNIFF_BYTES]


def rebase_path(path: str, subpath: Optional[str]) -> Optional[str]:
    """Return ``path`` relative to ``subpath``, or ``None`` when it falls outside it.

    A path equal to the subpath itself (a file subpath) is kept unchanged.
    """
    scope = (subpath or "").strip("/")
    if not scope:
        return path
    if path == scope:
        return path
    prefix = scope + "/"
    if path.startswith(prefix):
        return path[len(prefix):]
    return None


def scope_to_subpath(paths: Iterable[str], subpath: Optional[str]) -> List[str]:
    """Keep only paths under ``subpath`` and strip that prefix from them."""
    scoped: List[str] = []
    for path in paths:
        rebased = rebase_path(path, subpath)
        if rebased is not None:
            scoped.append(rebased)
    return scoped


class PathFilter:
    """Decides whether an archive entry is excluded from ingestion.

    Checks run in order and stop at the first exclusion: static name rules,
    the compiled root .gitignore, then a binary sniff when content is given.
    Each ingest builds its own filter from that archive's .gitignore.
    """

    def __init__(self, ignore_text: str | None = None) -> None:
        self.rules: Sequence[IgnoreRule] = compile_ignore_rules(ignore_text) if ignore_text else ()

    def should_exclude(self, rel_path: str, content: bytes | None = None) -> bool:
        if self.is_statically_excluded(rel_path):
            return True
        if self.is_ignored(rel_path):
            return True
        if content is not None and is_binary_content(content):
            return True
        return False

    @staticmethod
    def is_statically_excluded(rel_path: str) -> bool:
        parts = rel_path.split("/")
        if any(part in _EXCLUDED_DIRS for part in parts[:-1]):
            return True
        if len(parts) == 1 and parts[0] in _EXCLUDED_DIRS:
            return True

        filename = parts[-1]
        if filename in _EXCLUDED_FILES:
            return True

        lowered = filename.lower()
        return lowered.endswith(_GENERATED_SUFFIXES) or lowered.endswith(_BINARY_SUFFIXES)

    def is_ignored(self, rel_path: str) -> bool:
        ignored = False
        for rule in self.rules:
            if rule.matches(rel_path):
                ignored = not rule.negate
        return ignored


__all__ = [
    "BINARY_SNIFF_BYTES",
    "IgnoreRule",
    "PathFilter",
    "compile_ignore_pattern",
    "compile_ignore_rules",
    "is_binary_content",
    "rebase_path",
    "scope_to_subpath",
]
