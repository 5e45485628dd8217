from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict

from .constants import (
    HEADER_MARKER,
    HEADER_PREFIX_STRUCT,
    HEADER_PREFIX_SIZE,
    HEADER_SIZE_BASE,
    DEFAULT_ALIGN,
)
from .errors import HeaderParseError


# Header prefix layout (little endian, 16 bytes):
#  - marker u32          always 4
#  - pickle_size u32     size + 8
#  - header_size u32     size + 4 (the length-prefixed JSON string)
#  - json_len u32        exact byte length of the JSON text
# where size is json_len, or json_len rounded up when the string is padded.
# The data region begins right after the header string at 12 + header_size.


@dataclass
class Header:
    value: Dict[str, Any]
    json_len: int
    header_size: int
    marker: int

    @property
    def start(self) -> int:
        return HEADER_SIZE_BASE + self.header_size


def _padded_len(n: int, align: int) -> int:
    if align <= 0:
        return n
    return (n + align - 1) // align * align


def dumps_header(value: Dict[str, Any]) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def encode_header(value: Dict[str, Any], *, align: int = DEFAULT_ALIGN) -> bytes:
    """Serialize a header JSON value into the framed bytes preceding the data region.

    ``align=0`` writes the JSON text without padding. A positive ``align``
    rounds the string up to a multiple of ``align`` and fills the gap with zero
    bytes; readers locate the data region from the size field, so both layouts
    decode the same way.
    """
    if align < 0:
        raise ValueError("align must be >= 0")
    payload = dumps_header(value)
    json_len = len(payload)
    size = _padded_len(json_len, align)
    if size + 8 > 0xFFFFFFFF:
        raise ValueError("header too large for a 32-bit size field")
    prefix = HEADER_PREFIX_STRUCT.pack(HEADER_MARKER, size + 8, size + 4, json_len)
    return prefix + payload + b"\x00" * (size - json_len)


def read_header(f: BinaryIO, *, strict: bool = False) -> Header:
    f.seek(0)
    raw = f.read(HEADER_PREFIX_SIZE)
    if len(raw) != HEADER_PREFIX_SIZE:
        raise HeaderParseError("Failed to parse archive header, file too short")
    marker, _pickle_size, header_size, json_len = HEADER_PREFIX_STRUCT.unpack(raw)
    if strict and marker != HEADER_MARKER:
        raise HeaderParseError(f"Bad header marker {marker} (expected {HEADER_MARKER})")
    if header_size < json_len + 4:
        raise HeaderParseError("Header size field is smaller than the JSON payload")
    payload = f.read(json_len)
    if len(payload) != json_len:
        raise HeaderParseError("Failed to parse archive header, JSON payload truncated")
    try:
        value = json.loads(payload.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise HeaderParseError(f"Header is not valid UTF-8: {exc}") from exc
    except (ValueError, RecursionError) as exc:
        raise HeaderParseError(f"Header is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise HeaderParseError("Header JSON must be an object")
    return Header(value=value, json_len=json_len, header_size=header_size, marker=marker)
