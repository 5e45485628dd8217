from __future__ import annotations

import os
import stat
from typing import BinaryIO, Iterator, NamedTuple

from .constants import COPY_BUFSIZE
from .errors import AsarIOError


class DirChild(NamedTuple):
    name: str
    is_dir: bool
    size: int


def stream_length(f: BinaryIO) -> int:
    try:
        return os.fstat(f.fileno()).st_size
    except (AttributeError, OSError, ValueError):
        pos = f.tell()
        end = f.seek(0, os.SEEK_END)
        f.seek(pos)
        return end


def read_exact(f: BinaryIO, n: int) -> bytes:
    b = f.read(n)
    if len(b) != n:
        raise EOFError("Unexpected EOF")
    return b


def read_exact_at(f: BinaryIO, offset: int, n: int) -> bytes:
    # Region must lie inside the stream before seeking or allocating for it
    if offset + n > stream_length(f):
        raise EOFError("Unexpected EOF")
    f.seek(offset)
    return read_exact(f, n)


def list_dir(path: str) -> Iterator[DirChild]:
    """Yield the regular files and directories directly under ``path``.

    Entries come back in the order the OS enumerates them. Symbolic links,
    sockets, devices and FIFOs are skipped.
    """
    try:
        with os.scandir(path) as it:
            for ent in it:
                st = ent.stat(follow_symlinks=False)
                if stat.S_ISDIR(st.st_mode):
                    yield DirChild(ent.name, True, 0)
                elif stat.S_ISREG(st.st_mode):
                    yield DirChild(ent.name, False, st.st_size)
    except OSError as exc:
        raise AsarIOError(f"failed to list directory ({exc.strerror or exc})", path) from exc


def make_dirs(path: str) -> None:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as exc:
        raise AsarIOError(f"failed to create directory ({exc.strerror or exc})", path) from exc


def copy_region_to_file(f: BinaryIO, offset: int, size: int, out_path: str) -> None:
    """Create ``out_path`` holding exactly ``size`` bytes read from ``f`` at ``offset``."""
    try:
        available = stream_length(f) - offset
    except OSError as exc:
        raise AsarIOError(f"failed to extract file ({exc.strerror or exc})", out_path) from exc
    if available < size:
        missing = size - max(available, 0)
        raise AsarIOError(f"archive truncated ({missing} of {size} bytes missing)", out_path)
    try:
        with open(out_path, "wb") as wf:
            f.seek(offset)
            remaining = size
            while remaining:
                buf = f.read(min(COPY_BUFSIZE, remaining))
                if not buf:
                    raise AsarIOError(f"archive truncated ({remaining} of {size} bytes missing)", out_path)
                wf.write(buf)
                remaining -= len(buf)
    except AsarIOError:
        raise
    except OSError as exc:
        raise AsarIOError(f"failed to extract file ({exc.strerror or exc})", out_path) from exc


def copy_file_into(out: BinaryIO, src_path: str, expected_size: int) -> int:
    """Append the full contents of ``src_path`` to ``out``; returns the byte count.

    The number of bytes copied must equal ``expected_size``: a source that
    grew or shrank since it was listed would shift every later offset.
    """
    copied = 0
    try:
        with open(src_path, "rb") as sf:
            while True:
                buf = sf.read(COPY_BUFSIZE)
                if not buf:
                    break
                out.write(buf)
                copied += len(buf)
    except OSError as exc:
        raise AsarIOError(f"failed to read source file ({exc.strerror or exc})", src_path) from exc
    if copied != expected_size:
        raise AsarIOError(
            f"source file changed size while packing (expected {expected_size} bytes, read {copied})",
            src_path,
        )
    return copied
