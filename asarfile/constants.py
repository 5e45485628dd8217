import struct


# Envelope marker stored in the first u32 of every archive
HEADER_MARKER = 4

# Header prefix: marker, pickle size, string size, json length (all u32 LE)
HEADER_PREFIX_STRUCT = struct.Struct("<IIII")
HEADER_PREFIX_SIZE = HEADER_PREFIX_STRUCT.size  # 16

# Bytes preceding the JSON string that the size field at offset 8 does not cover
HEADER_SIZE_BASE = 12

# Largest integer exactly representable by an IEEE-754 double (Number.MAX_SAFE_INTEGER)
MAX_SAFE_INTEGER = 2**53 - 1

# Offsets are held as unsigned 64-bit values
MAX_OFFSET = 2**64 - 1

# Header keys
KEY_FILES = "files"
KEY_SIZE = "size"
KEY_OFFSET = "offset"

# Packing defaults: native directory order, no header padding
DEFAULT_SORT = False
DEFAULT_ALIGN = 0

COPY_BUFSIZE = 1_048_576  # 1 MiB
