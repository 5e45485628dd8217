from __future__ import annotations

from typing import List


def split_path(p: str) -> List[str]:
    """Split an archive path into its components.

    Rules:
    - Convert backslashes to slashes
    - Drop empty and '.' segments
    - Reject '..' segments
    """
    parts = [q for q in p.replace("\\", "/").split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise ValueError("Path may not contain '..'")
    return parts


def norm_path(p: str) -> str:
    """Normalize archive paths to a canonical forward-slash form."""
    return "/".join(split_path(p))


def join_path(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name
