from __future__ import annotations

import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path
from typing import Dict

from asarfile.reader import ArchiveReader


def _random_bytes(size: int) -> bytes:
    return os.urandom(size)


def _build_fixture_tree(root: Path) -> Dict[str, bytes]:
    files: Dict[str, bytes] = {}
    (root / "docs").mkdir()
    (root / "docs" / "notes").mkdir()
    content = b"hello world\n" * 20
    (root / "docs" / "readme.txt").write_bytes(content)
    files["docs/readme.txt"] = content

    bin_data = _random_bytes(2048)
    (root / "docs" / "notes" / "binary.bin").write_bytes(bin_data)
    files["docs/notes/binary.bin"] = bin_data

    (root / "docs" / "notes" / "empty.txt").write_text("")
    files["docs/notes/empty.txt"] = b""

    (root / "app.js").write_bytes(b"console.log('hi');\n")
    files["app.js"] = b"console.log('hi');\n"
    return files


def _compare_trees(src: Path, dst: Path):
    for root_src, dirs_src, files_src in os.walk(src):
        rel = os.path.relpath(root_src, src)
        root_dst = os.path.join(dst, rel) if rel != "." else dst
        assert os.path.isdir(root_dst), f"Missing directory: {root_dst}"

        dirs_dst = sorted(d for d in os.listdir(root_dst) if os.path.isdir(os.path.join(root_dst, d)))
        assert dirs_dst == sorted(dirs_src), f"Directory mismatch under {root_src}: {dirs_dst} != {sorted(dirs_src)}"

        for fname in files_src:
            with open(Path(root_src) / fname, "rb") as sf, open(Path(root_dst) / fname, "rb") as df:
                assert sf.read() == df.read(), f"File contents differ: {Path(root_dst) / fname}"


class CLIIntegrationTests(unittest.TestCase):
    def run_cli(self, args, *, expect: int | None = 0, cwd: Path | None = None):
        cmd = [sys.executable, "-m", "asarfile.cli"] + list(args)
        env = os.environ.copy()
        repo_root = Path(__file__).resolve().parent
        existing = env.get("PYTHONPATH", "")
        env["PYTHONPATH"] = str(repo_root) if not existing else f"{repo_root}{os.pathsep}{existing}"
        proc = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=env,
        )
        if expect is not None and proc.returncode != expect:
            raise AssertionError(
                f"CLI exited {proc.returncode}, expected {expect}\nCommand: {' '.join(cmd)}\n"
                f"STDOUT:\n{proc.stdout.decode(errors='replace')}\nSTDERR:\n{proc.stderr.decode(errors='replace')}"
            )
        return proc

    def make_workspace(self):
        tmp_src = tempfile.TemporaryDirectory()
        tmp_workspace = tempfile.TemporaryDirectory()
        self.addCleanup(tmp_src.cleanup)
        self.addCleanup(tmp_workspace.cleanup)
        src_root = Path(tmp_src.name)
        files = _build_fixture_tree(src_root)
        return src_root, Path(tmp_workspace.name), files

    def test_pack_extract_roundtrip(self):
        src_root, workspace, _files = self.make_workspace()
        archive = workspace / "app.asar"
        pack_proc = self.run_cli(["pack", str(src_root), str(archive)])
        self.assertIn(b"Done: 4 files", pack_proc.stdout)

        extract_dir = workspace / "extract"
        self.run_cli(["extract", str(archive), "--outdir", str(extract_dir), "--quiet"])
        _compare_trees(src_root, extract_dir)

    def test_sorted_pack_is_deterministic(self):
        src_root, workspace, _files = self.make_workspace()
        a = workspace / "a.asar"
        b = workspace / "b.asar"
        self.run_cli(["pack", str(src_root), str(a), "--sort", "--quiet"])
        self.run_cli(["pack", str(src_root), str(b), "--sort", "--quiet", "--align", "8"])
        with ArchiveReader(str(a)) as ra, ArchiveReader(str(b)) as rb:
            self.assertEqual(ra.list(), rb.list())
            self.assertEqual(ra.list()[0], "app.js")
            self.assertEqual(ra.header.value, rb.header.value)
            self.assertEqual((rb.header.header_size - 4) % 8, 0)

    def test_list_cat_find_info(self):
        src_root, workspace, files = self.make_workspace()
        archive = workspace / "app.asar"
        self.run_cli(["pack", str(src_root), str(archive), "--sort", "--quiet"])

        listing = self.run_cli(["list", str(archive)]).stdout.decode().splitlines()
        self.assertEqual(
            listing,
            ["app.js", "docs", "docs/notes", "docs/notes/binary.bin", "docs/notes/empty.txt", "docs/readme.txt"],
        )

        long_listing = self.run_cli(["list", "-l", str(archive)]).stdout.decode()
        self.assertIn("file\t19\t0\tapp.js", long_listing)
        self.assertIn("dir\t-\t-\tdocs", long_listing)

        cat = self.run_cli(["cat", str(archive), "docs/notes/binary.bin"])
        self.assertEqual(cat.stdout, files["docs/notes/binary.bin"])

        # Folders and missing paths yield no data
        self.run_cli(["cat", str(archive), "docs"], expect=1)
        self.run_cli(["cat", str(archive), "missing.txt"], expect=1)

        found = self.run_cli(["find", str(archive), "bin"]).stdout.decode().splitlines()
        self.assertEqual(found, ["docs/notes/binary.bin"])
        self.run_cli(["find", str(archive), "nothing-matches"], expect=1)

        info = self.run_cli(["info", str(archive)]).stdout.decode()
        self.assertIn("Files: 4", info)
        self.assertIn("Directories: 2", info)

    def test_selective_extract(self):
        src_root, workspace, files = self.make_workspace()
        archive = workspace / "app.asar"
        self.run_cli(["pack", str(src_root), str(archive), "--quiet"])
        out = workspace / "out"
        self.run_cli(["extract", str(archive), "--outdir", str(out), "docs/notes"])
        self.assertEqual((out / "docs" / "notes" / "binary.bin").read_bytes(), files["docs/notes/binary.bin"])
        self.assertFalse((out / "app.js").exists())
        self.assertFalse((out / "docs" / "readme.txt").exists())

    def test_errors_exit_with_status_2(self):
        _src_root, workspace, _files = self.make_workspace()
        bogus = workspace / "bogus.asar"
        bogus.write_bytes(b"\x04\x00\x00\x00")
        proc = self.run_cli(["list", str(bogus)], expect=2)
        self.assertIn(b"Error:", proc.stderr)

        proc = self.run_cli(["extract", str(workspace / "missing.asar")], expect=2)
        self.assertIn(b"Error:", proc.stderr)

        proc = self.run_cli(["pack", str(workspace / "no-such-dir"), str(workspace / "x.asar")], expect=2)
        self.assertIn(b"Error:", proc.stderr)


if __name__ == "__main__":
    unittest.main()
