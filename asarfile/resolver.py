from __future__ import annotations

from typing import Iterator, List, Optional, Tuple, Union

from .content import Entry, File, Folder, Root
from .pathutil import join_path, split_path


def find(root: Root, path: Union[str, List[str]]) -> Optional[Entry]:
    """Return the entry at ``path`` (slash separated), or None when absent.

    An empty path, or one made only of separators and '.', resolves to the
    root itself. A file matches only when the whole path has been consumed.
    A path containing '..' never names an entry.
    """
    try:
        parts = split_path(path) if isinstance(path, str) else list(path)
    except ValueError:
        return None
    node: Entry = root
    for part in parts:
        if isinstance(node, File):
            # Files have no children to descend into
            return None
        child = node.children.get(part)
        if child is None:
            return None
        node = child
    return node


def walk(root: Union[Root, Folder], prefix: str = "") -> Iterator[Tuple[str, Entry]]:
    """Yield ``(path, entry)`` for every folder and file below ``root``, pre-order."""
    stack: List[Tuple[str, Entry]] = []
    for name, child in reversed(list(root.children.items())):
        stack.append((join_path(prefix, name), child))
    while stack:
        path, entry = stack.pop()
        yield path, entry
        if isinstance(entry, Folder):
            for name, child in reversed(list(entry.children.items())):
                stack.append((join_path(path, name), child))


def iter_paths(root: Root) -> Iterator[str]:
    for path, _entry in walk(root):
        yield path


def paths_containing(root: Root, pattern: str) -> List[str]:
    """Paths whose final component contains ``pattern``."""
    return [p for p, e in walk(root) if pattern in e.name]
