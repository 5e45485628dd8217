from __future__ import annotations

import os
from typing import Any, BinaryIO, Dict, Optional

from .constants import DEFAULT_ALIGN, DEFAULT_SORT
from .content import PackingList, build_from_directory
from .errors import AsarIOError, InvalidContentTypeError
from .fsutil import copy_file_into
from .header import encode_header


def write_archive(f: BinaryIO, value: Dict[str, Any], packing: PackingList, *, align: int = DEFAULT_ALIGN) -> int:
    """Write header and file bytes to an open stream; returns the data region start."""
    if not isinstance(value, dict) or not isinstance(packing, PackingList):
        raise InvalidContentTypeError(
            "Archive bytes can only be concatenated from a header value and packing list built from a directory"
        )
    header = encode_header(value, align=align)
    f.write(header)
    start = len(header)
    for item in packing:
        copy_file_into(f, item.path, item.size)
    return start


def pack(value: Dict[str, Any], packing: PackingList, dest: str, *, align: int = DEFAULT_ALIGN) -> int:
    """Create ``dest`` (truncating it) and write a complete archive into it.

    A failure part-way leaves the partially written archive on disk.
    """
    try:
        f = open(dest, "wb")
    except OSError as exc:
        raise AsarIOError(f"failed to create archive ({exc.strerror or exc})", dest) from exc
    with f:
        try:
            return write_archive(f, value, packing, align=align)
        except OSError as exc:
            if isinstance(exc, AsarIOError):
                raise
            raise AsarIOError(f"failed to write archive ({exc.strerror or exc})", dest) from exc


def pack_directory(src_dir: str, dest: str, *, sort: bool = DEFAULT_SORT, align: int = DEFAULT_ALIGN) -> PackingList:
    """Pack every file and folder under ``src_dir`` into the archive ``dest``."""
    with ArchiveWriter(dest, sort=sort, align=align) as w:
        w.add_dir(src_dir)
        w.finalize()
    return w.packing


class ArchiveWriter:
    """Builds an archive from one source directory.

    The archive file is created on ``open()``; nothing is written until
    ``finalize()`` because the header, which must come first, depends on every
    file that follows it.
    """

    def __init__(self, out_path: str, *, sort: bool = DEFAULT_SORT, align: int = DEFAULT_ALIGN):
        if align < 0:
            raise ValueError("align must be >= 0")
        self.out_path = out_path
        self.sort = sort
        self.align = align
        self.f: Optional[BinaryIO] = None
        self.value: Optional[Dict[str, Any]] = None
        self.packing = PackingList()
        self.start: int = 0
        self._finalized = False

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.f is not None:
            return
        try:
            self.f = open(self.out_path, "wb")
        except OSError as exc:
            raise AsarIOError(f"failed to create archive ({exc.strerror or exc})", self.out_path) from exc

    def close(self):
        if self.f is not None:
            self.f.close()
            self.f = None

    def add_dir(self, src_dir: str) -> None:
        """Walk ``src_dir`` and record the header value and packing order."""
        if self.value is not None:
            raise RuntimeError("Source directory already added")
        self.value, self.packing = build_from_directory(
            src_dir, sort=self.sort, exclude=[os.path.abspath(self.out_path)]
        )

    def finalize(self) -> int:
        """Write the header followed by every listed file; returns the data start."""
        if self.f is None:
            raise RuntimeError("Archive not open")
        if self._finalized:
            raise RuntimeError("Archive already finalized")
        if self.value is None:
            raise RuntimeError("No source directory added")
        try:
            self.start = write_archive(self.f, self.value, self.packing, align=self.align)
        except AsarIOError:
            raise
        except OSError as exc:
            raise AsarIOError(f"failed to write archive ({exc.strerror or exc})", self.out_path) from exc
        self._finalized = True
        return self.start
