"""Directory tree construction for rendered output."""

from __future__ import annotations

from typing import Iterable

from .models import TreeNode


def build_tree(paths: Iterable[str]) -> TreeNode:
    """Insert slash-separated paths into a prefix tree.

    Siblings keep the order in which they were first seen, which matches the
    archive enumeration order of the ingest result.
    """
    root = TreeNode(name="", is_dir=True)
    for path in paths:
        parts = [part for part in path.split("/") if part]
        node = root
        for index, part in enumerate(parts):
            is_dir = index < len(parts) - 1
            child = node.children.get(part)
            if child is None:
                child = TreeNode(name=part, is_dir=is_dir)
                node.children[part] = child
            elif is_dir and not child.is_dir:
                child.is_dir = True
            node = child
    return root


__all__ = ["build_tree"]
