from __future__ import annotations

import os
import sys
import time
import argparse
from typing import List, Optional

from asarfile.content import File, Folder
from asarfile.reader import ArchiveReader
from asarfile.writer import ArchiveWriter
from asarfile.errors import AsarError, HeaderParseError


def _kind_label(entry) -> str:
    return {File: "file", Folder: "dir"}.get(type(entry), "root")


def cmd_pack(src_dir: str, output: str, *, sort: bool = False, align: int = 0, quiet: bool = False) -> bool:
    """Pack a directory into a new archive.

    Args:
        src_dir: Directory whose contents become the archive root.
        output: Path of the archive to write (truncated if it exists).
        sort: Visit directory entries by name instead of OS order.
        align: Pad the JSON header to a multiple of this many bytes (0 = no padding).
    """
    t0 = time.time()
    with ArchiveWriter(output, sort=sort, align=align) as w:
        w.add_dir(src_dir)
        if not quiet:
            for item in w.packing:
                print(f"   packing: {os.path.relpath(item.path, src_dir)} ({item.size} bytes)")
        w.finalize()
        start = w.start
        n_files = len(w.packing)
        total = w.packing.total_size

    dt = max(0.000001, time.time() - t0)
    mib = total / (1024.0 * 1024.0)
    print(f"Done: {n_files} files; header {start} bytes; {mib:.2f} MiB in {dt:.1f}s")
    return True


def cmd_extract(
    archive: str,
    *,
    outdir: str = ".",
    paths: Optional[list[str]] = None,
    strict: bool = False,
    quiet: bool = False,
) -> bool:
    """Extract an archive, or selected paths from it, into a directory."""
    with ArchiveReader(archive, strict=strict) as r:
        if not quiet:
            for path, entry in r.entries():
                if paths and not any(path == p.strip("/") or path.startswith(p.strip("/") + "/") for p in paths):
                    continue
                suffix = "/" if isinstance(entry, Folder) else ""
                print(f" extracting: {path}{suffix}")
        count = r.extract(outdir, paths=paths or None)
    print(f"Done: {count} entries written to {outdir}")
    return True


def cmd_list(archive: str, *, long: bool = False) -> bool:
    """List archive paths, optionally with kind, size and offset."""
    with ArchiveReader(archive) as r:
        if not long:
            for p in r.list():
                print(p)
            return True
        for path, entry in r.entries():
            if isinstance(entry, File):
                print(f"file\t{entry.size}\t{entry.offset}\t{path}")
            else:
                print(f"{_kind_label(entry)}\t-\t-\t{path}")
    return True


def cmd_cat(archive: str, path: str) -> bool:
    """Write the bytes of one archived file to stdout."""
    with ArchiveReader(archive) as r:
        data = r.read_file(path)
    if data is None:
        print(f"No data for {path}", file=sys.stderr)
        return False
    out = getattr(sys.stdout, "buffer", None)
    if out is None:
        sys.stdout.write(data.decode("utf-8", errors="replace"))
    else:
        out.write(data)
        out.flush()
    return True


def cmd_find(archive: str, pattern: str) -> bool:
    """Print paths whose final component contains ``pattern``."""
    with ArchiveReader(archive) as r:
        matches = r.paths_containing(pattern)
    for p in matches:
        print(p)
    return bool(matches)


def cmd_info(archive: str) -> bool:
    with ArchiveReader(archive) as r:
        entries = list(r.entries())
        files = [e for _p, e in entries if isinstance(e, File)]
        hdr = r.header
        print(f"Archive: {archive}")
        print(f"  Header JSON: {hdr.json_len} bytes")
        print(f"  Header padding: {hdr.header_size - 4 - hdr.json_len} bytes")
        print(f"  Data start: {r.start}")
        if hdr.marker != 4:
            print(f"  Warning: unexpected header marker {hdr.marker}", file=sys.stderr)
        print(f"  Entries: {len(entries)}")
        print(f"    Files: {len(files)}")
        print(f"    Directories: {len(entries) - len(files)}")
        print(f"  Data size: {sum(e.size for e in files)} bytes")
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="asarfile",
        description="ASAR archive tool",
        epilog="Archives are stored uncompressed; file offsets are relative to the end of the header.",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_pack = sub.add_parser("pack", help="Pack a directory into an archive")
    ap_pack.add_argument("src", help="Source directory")
    ap_pack.add_argument("output", help="Output .asar path")
    ap_pack.add_argument("--sort", action="store_true", help="Order entries by name instead of directory order")
    ap_pack.add_argument("--align", type=int, default=0, help="Pad the JSON header to a multiple of N bytes (default 0 = no padding)")
    ap_pack.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_extract = sub.add_parser("extract", help="Extract files")
    ap_extract.add_argument("archive", help="Archive path")
    ap_extract.add_argument("--outdir", default=".", help="Output directory")
    ap_extract.add_argument("paths", nargs="*", help="Specific archive paths to extract (files or directories)")
    ap_extract.add_argument("--strict", action="store_true", help="Reject archives whose header marker is not 4")
    ap_extract.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_list = sub.add_parser("list", help="List archive contents")
    ap_list.add_argument("archive", help="Archive path")
    ap_list.add_argument("--long", "-l", action="store_true", help="Show kind, size and offset")

    ap_cat = sub.add_parser("cat", help="Write one archived file to stdout")
    ap_cat.add_argument("archive", help="Archive path")
    ap_cat.add_argument("path", help="Path inside the archive")

    ap_find = sub.add_parser("find", help="Find paths whose name contains a pattern")
    ap_find.add_argument("archive", help="Archive path")
    ap_find.add_argument("pattern", help="Substring to look for in entry names")

    ap_info = sub.add_parser("info", help="Show archive information")
    ap_info.add_argument("archive", help="Archive path")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "pack":
            if args.align < 0:
                ap.error("--align must be >= 0")
            cmd_pack(args.src, args.output, sort=args.sort, align=args.align, quiet=args.quiet)
        elif args.cmd == "extract":
            cmd_extract(args.archive, outdir=args.outdir, paths=args.paths, strict=args.strict, quiet=args.quiet)
        elif args.cmd == "list":
            cmd_list(args.archive, long=args.long)
        elif args.cmd == "cat":
            sys.exit(0 if cmd_cat(args.archive, args.path) else 1)
        elif args.cmd == "find":
            sys.exit(0 if cmd_find(args.archive, args.pattern) else 1)
        elif args.cmd == "info":
            cmd_info(args.archive)
        else:
            raise RuntimeError("Unknown command")
    except HeaderParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Hint: the file does not look like a valid archive header.", file=sys.stderr)
        sys.exit(2)
    except (AsarError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
