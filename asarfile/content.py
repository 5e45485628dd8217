from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, NamedTuple, Tuple, Union

from .constants import (
    KEY_FILES,
    KEY_OFFSET,
    KEY_SIZE,
    MAX_OFFSET,
    MAX_SAFE_INTEGER,
    DEFAULT_SORT,
)
from .errors import AsarIOError, HeaderParseError, InvalidContentTypeError
from .fsutil import list_dir


_OFFSET_RE = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class File:
    name: str
    offset: int
    size: int

    kind = "file"


@dataclass(frozen=True)
class Folder:
    name: str
    children: Mapping[str, "Entry"] = field(default_factory=dict)

    kind = "dir"


@dataclass(frozen=True)
class Root:
    children: Mapping[str, "Entry"] = field(default_factory=dict)

    kind = "root"

    name = ""


Entry = Union[File, Folder, Root]


class PackingItem(NamedTuple):
    path: str
    size: int


@dataclass
class PackingList:
    """Source files in the order their bytes are concatenated after the header."""

    items: List[PackingItem] = field(default_factory=list)

    def append(self, path: str, size: int) -> None:
        self.items.append(PackingItem(path, size))

    @property
    def total_size(self) -> int:
        return sum(it.size for it in self.items)

    def __iter__(self) -> Iterator[PackingItem]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


def _parse_size(name: str, size: Any) -> int:
    # bool is an int subclass but not a JSON number
    if isinstance(size, bool) or not isinstance(size, int) or size < 0:
        raise HeaderParseError(f"size nan for file: {name}", entity=name)
    if size > MAX_SAFE_INTEGER:
        raise HeaderParseError(f"size of {name} is greater than MAX_SAFE_INTEGER", entity=name)
    return size


def _parse_offset(name: str, offset: str) -> int:
    if not _OFFSET_RE.fullmatch(offset):
        raise HeaderParseError(f"invalid offset {offset!r} for file: {name}", entity=name)
    value = int(offset)
    if value > MAX_OFFSET:
        raise HeaderParseError(f"offset of {name} does not fit in 64 bits", entity=name)
    return value


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def classify(name: str, descriptor: Any) -> Entry:
    """Classify one raw header descriptor as a File or Folder.

    A descriptor is a file when it carries a string ``offset`` and a numeric
    ``size``; otherwise it must carry a ``files`` object. Folder children are
    classified too, so the returned entry is fully validated.
    """
    if not isinstance(descriptor, dict):
        raise HeaderParseError(f"Error parsing header for entity: {name}", entity=name)
    offset = descriptor.get(KEY_OFFSET)
    size = descriptor.get(KEY_SIZE)
    if isinstance(offset, str) and _is_number(size):
        return File(name=name, offset=_parse_offset(name, offset), size=_parse_size(name, size))
    files = descriptor.get(KEY_FILES)
    if not isinstance(files, dict):
        raise HeaderParseError(f"Error parsing header for entity: {name}", entity=name)
    return Folder(name=name, children=_classify_children(files))


def _valid_name(name: str) -> bool:
    # One path component, never a separator or a relative reference
    return bool(name) and "/" not in name and "\\" not in name and name not in (".", "..")


def _classify_children(files: Dict[str, Any]) -> Mapping[str, Entry]:
    children: Dict[str, Entry] = {}
    for child_name, child in files.items():
        if not _valid_name(child_name):
            raise HeaderParseError(f"Invalid entry name: {child_name!r}", entity=child_name)
        children[child_name] = classify(child_name, child)
    return MappingProxyType(children)


def from_json(value: Any) -> Root:
    """Build the typed tree for a decoded header value."""
    if not isinstance(value, dict):
        raise InvalidContentTypeError("Expected a JSON object for the archive root")
    files = value.get(KEY_FILES)
    if not isinstance(files, dict):
        raise HeaderParseError("'files' not found in root directory")
    try:
        return Root(children=_classify_children(files))
    except RecursionError as exc:
        raise HeaderParseError("Header nests folders too deeply") from exc


def to_json(entry: Entry) -> Dict[str, Any]:
    if isinstance(entry, File):
        return {KEY_SIZE: entry.size, KEY_OFFSET: str(entry.offset)}
    if isinstance(entry, (Folder, Root)):
        return {KEY_FILES: {name: to_json(child) for name, child in entry.children.items()}}
    raise InvalidContentTypeError(f"Unexpected content type: {type(entry).__name__}")


def build_from_directory(
    path: str, *, sort: bool = DEFAULT_SORT, exclude: Iterable[str] = ()
) -> Tuple[Dict[str, Any], PackingList]:
    """Walk ``path`` depth-first and derive the header value plus packing list.

    Files receive contiguous offsets in visit order, and the packing list
    records them in exactly that order, so concatenating the listed files
    reproduces the offsets in the header. With ``sort=True`` each directory's
    children are visited by name; otherwise the OS enumeration order is kept.
    Absolute paths in ``exclude`` (typically the archive being written) are
    left out.
    """
    src = os.path.abspath(path)
    if not os.path.isdir(src):
        raise AsarIOError("source is not a directory", src)
    skip = {os.path.abspath(p) for p in exclude}
    packing = PackingList()
    running = 0

    def _walk(dir_path: str) -> Dict[str, Any]:
        nonlocal running
        children = list(list_dir(dir_path))
        if sort:
            children.sort(key=lambda c: c.name)
        files: Dict[str, Any] = {}
        for child in children:
            child_path = os.path.join(dir_path, child.name)
            if child_path in skip:
                continue
            if not _valid_name(child.name):
                raise HeaderParseError(f"Invalid entry name: {child.name!r}", entity=child.name)
            if child.is_dir:
                files[child.name] = _walk(child_path)
                continue
            if child.size > MAX_SAFE_INTEGER:
                raise HeaderParseError(
                    f"size of {child.name} is greater than MAX_SAFE_INTEGER", entity=child.name
                )
            if running + child.size > MAX_OFFSET:
                raise HeaderParseError(f"offset of {child.name} does not fit in 64 bits", entity=child.name)
            files[child.name] = {KEY_SIZE: child.size, KEY_OFFSET: str(running)}
            packing.append(child_path, child.size)
            running += child.size
        return {KEY_FILES: files}

    return _walk(src), packing
