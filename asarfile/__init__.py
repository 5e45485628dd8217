"""
asarfile: read and write ASAR archives.

An ASAR archive is a 16-byte length prefix, a JSON header describing the
directory tree, and the raw bytes of every file concatenated after it. Each
file entry records its size and its offset from the end of the header.

- Header framing (marker, size fields, JSON payload), optional padding
- Typed, fully validated entry tree (Root/Folder/File)
- Path lookup, enumeration and name search
- Extraction of the whole tree or selected paths, single-file reads
- Packing a directory with contiguous offsets, native or sorted order

No compression, encryption, symlinks or in-place updates.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "content",
    "header",
    "reader",
    "resolver",
    "writer",
]

# Importable programmatic API is available via asarfile.reader/asarfile.writer and
# the CLI functions in asarfile.cli (cmd_pack/cmd_extract) which take normal parameters.
