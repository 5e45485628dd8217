from __future__ import annotations

import os
from typing import BinaryIO, Optional

from .content import Entry, File, Folder, Root
from .errors import AsarError, InvalidContentTypeError
from .fsutil import copy_region_to_file, make_dirs, read_exact_at
from .resolver import find, walk


def extract(entry: Entry, f: BinaryIO, start: int, dest: str) -> None:
    """Write ``entry`` and everything below it under ``dest``.

    The root maps onto ``dest`` itself; a folder or file is created under
    ``dest`` with its own name. Existing directories are reused and existing
    files overwritten. A failure leaves whatever was already written in place.
    """
    if isinstance(entry, File):
        make_dirs(dest)
        copy_region_to_file(f, start + entry.offset, entry.size, os.path.join(dest, entry.name))
        return
    if isinstance(entry, Root):
        base = dest
    elif isinstance(entry, Folder):
        base = os.path.join(dest, entry.name)
    else:
        raise InvalidContentTypeError(f"Cannot extract content of type {type(entry).__name__}")
    make_dirs(base)
    for rel, child in walk(entry):
        out_path = os.path.join(base, *rel.split("/"))
        if isinstance(child, Folder):
            make_dirs(out_path)
        else:
            copy_region_to_file(f, start + child.offset, child.size, out_path)


def read_file(root: Root, f: BinaryIO, start: int, path: str) -> Optional[bytes]:
    """Return the bytes of the file at ``path``, or None.

    Absent paths, folders, the root and read failures all give None.
    """
    try:
        entry = find(root, path)
        if not isinstance(entry, File):
            return None
        return read_exact_at(f, start + entry.offset, entry.size)
    except (AsarError, OSError, EOFError, ValueError):
        return None
