from __future__ import annotations

import os
from typing import BinaryIO, List, Optional

from .content import Entry, File, Root, from_json
from .errors import AsarError, AsarIOError
from .extract import extract, read_file
from .header import Header, read_header
from .pathutil import split_path
from .resolver import find, iter_paths, paths_containing, walk


class ArchiveReader:
    """Read-only handle on one archive file.

    The header is decoded and the full entry tree validated on ``open()``; the
    archive file stays open until ``close()``. A handle is not safe for
    concurrent use from several threads.
    """

    def __init__(self, path: str, *, strict: bool = False):
        self.path = path
        self.strict = strict
        self.f: Optional[BinaryIO] = None
        self.header: Optional[Header] = None
        self.root: Optional[Root] = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        try:
            self.f = open(self.path, "rb")
        except OSError as exc:
            raise AsarIOError(f"failed to open archive ({exc.strerror or exc})", self.path) from exc
        try:
            self.header = read_header(self.f, strict=self.strict)
            self.root = from_json(self.header.value)
        except (AsarError, OSError, ValueError) as exc:
            # Ensure file handle is closed on failure to avoid leaks
            self.close()
            raise exc

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    @property
    def start(self) -> int:
        if self.header is None:
            raise RuntimeError("Archive not open")
        return self.header.start

    def _require_open(self) -> Root:
        if self.f is None or self.root is None:
            raise RuntimeError("Archive not open")
        return self.root

    def list(self) -> List[str]:
        return list(iter_paths(self._require_open()))

    def entries(self):
        return walk(self._require_open())

    def find(self, path: str) -> Optional[Entry]:
        return find(self._require_open(), path)

    def paths_containing(self, pattern: str) -> List[str]:
        return paths_containing(self._require_open(), pattern)

    def read_file(self, path: str) -> Optional[bytes]:
        """Bytes of the file at ``path``; None when it is absent, not a file, or unreadable."""
        if self.f is None or self.root is None:
            return None
        return read_file(self.root, self.f, self.start, path)

    def extract(self, dest: str, paths: Optional[List[str]] = None) -> int:
        """Extract the whole archive, or only ``paths``, under ``dest``.

        Selected paths keep their position relative to the archive root.
        Returns the number of folders and files written.
        """
        root = self._require_open()
        if not paths:
            extract(root, self.f, self.start, dest)
            return _count(root)
        written = 0
        for p in paths:
            entry = find(root, p)
            if entry is None:
                raise AsarError(f"Path not found in archive: {p}")
            parts = split_path(p)
            extract(entry, self.f, self.start, os.path.join(dest, *parts[:-1]))
            written += _count(entry)
        return written


def _count(entry: Entry) -> int:
    if isinstance(entry, File):
        return 1
    own = 0 if isinstance(entry, Root) else 1
    return own + sum(1 for _ in walk(entry))
