"""
Unit tests for archive_writer module.
"""

import gzip
import io
import tarfile

import pytest
from pathlib import Path

from pgdump_split.archive_writer import (
    archive_bytes,
    read_archive,
    write_archive,
    write_directory,
)
from pgdump_split.errors import UnsafePathError
from pgdump_split.object_model import OutputTree


@pytest.fixture
def tree() -> OutputTree:
    """Return a small output tree."""
    return OutputTree(files={
        "public/TABLES/t.sql": "CREATE TABLE public.t (id integer);\n",
        "SCHEMAS/app.sql": "CREATE SCHEMA app;\n",
        "app/FUNCTIONS/für.sql": "CREATE FUNCTION app.für() RETURNS integer;\n",
    })


def members(data: bytes) -> list[tarfile.TarInfo]:
    with tarfile.open(fileobj=io.BytesIO(data), mode="r") as tar:
        return tar.getmembers()


class TestArchiveBytes:
    """Tests for deterministic archive content."""

    def test_deterministic(self, tree: OutputTree):
        """Test that the same tree gives the same bytes."""
        assert archive_bytes(tree) == archive_bytes(tree)

    def test_insertion_order_irrelevant(self, tree: OutputTree):
        """Test that dict order of the tree does not matter."""
        reordered = OutputTree(files=dict(reversed(list(tree.files.items()))))
        assert archive_bytes(reordered) == archive_bytes(tree)

    def test_entries_sorted(self, tree: OutputTree):
        """Test that entries are sorted by path bytes."""
        names = [m.name for m in members(archive_bytes(tree))]
        assert names == ["SCHEMAS/app.sql", "app/FUNCTIONS/für.sql", "public/TABLES/t.sql"]

    def test_fixed_metadata(self, tree: OutputTree):
        """Test that entry metadata is constant."""
        for member in members(archive_bytes(tree)):
            assert member.isfile()
            assert member.mtime == 0
            assert member.uid == 0
            assert member.gid == 0
            assert member.uname == ""
            assert member.gname == ""
            assert member.mode == 0o644

    def test_content(self, tree: OutputTree):
        """Test that file content is stored as UTF-8."""
        files = read_archive(archive_bytes(tree))
        assert files == dict(tree.items())

    def test_gzip_deterministic(self, tree: OutputTree):
        """Test that gzip output has no timestamp or file name."""
        data = archive_bytes(tree, compression="gz")
        assert data == archive_bytes(tree, compression="gz")
        assert data[:2] == b"\x1f\x8b"
        assert data[4:8] == b"\x00\x00\x00\x00"  # header mtime
        assert gzip.decompress(data) == archive_bytes(tree)

    def test_gzip_read_back(self, tree: OutputTree):
        """Test reading a compressed archive."""
        assert read_archive(archive_bytes(tree, compression="gz")) == dict(tree.items())

    def test_unknown_compression(self, tree: OutputTree):
        """Test unsupported compression names."""
        with pytest.raises(ValueError):
            archive_bytes(tree, compression="bz2")

    def test_empty_tree(self):
        """Test that an empty tree is a valid empty archive."""
        assert members(archive_bytes(OutputTree())) == []


class TestWriteOutput:
    """Tests for writing archives and directories."""

    def test_write_archive(self, tree: OutputTree, tmp_path: Path):
        """Test writing a tar file."""
        out = write_archive(tree, tmp_path / "schema.tar")
        assert out.read_bytes() == archive_bytes(tree)

    def test_write_archive_refuses_existing(self, tree: OutputTree, tmp_path: Path):
        """Test that an existing archive is never overwritten."""
        out = tmp_path / "schema.tar"
        out.write_bytes(b"keep me")
        with pytest.raises(FileExistsError):
            write_archive(tree, out)
        assert out.read_bytes() == b"keep me"

    def test_write_directory(self, tree: OutputTree, tmp_path: Path):
        """Test writing a directory tree."""
        out = write_directory(tree, tmp_path / "schema")
        assert (out / "public" / "TABLES" / "t.sql").read_text(encoding="utf-8") == (
            "CREATE TABLE public.t (id integer);\n"
        )
        assert (out / "SCHEMAS" / "app.sql").is_file()
        written = sorted(p.relative_to(out).as_posix() for p in out.rglob("*.sql"))
        assert written == sorted(tree.files)

    def test_write_directory_refuses_existing(self, tree: OutputTree, tmp_path: Path):
        """Test that an existing directory is refused."""
        (tmp_path / "schema").mkdir()
        with pytest.raises(FileExistsError):
            write_directory(tree, tmp_path / "schema")

    def test_write_directory_rejects_parent_segments(self, tmp_path: Path):
        """Test that a path climbing out of the output directory writes nothing."""
        tree = OutputTree(files={"../TABLES/t.sql": "CREATE TABLE t (id integer);\n"})
        with pytest.raises(UnsafePathError):
            write_directory(tree, tmp_path / "out" / "schema")
        assert not (tmp_path / "out").exists()

    def test_archive_rejects_parent_segments(self):
        """Test that unsafe entries never reach the tar."""
        tree = OutputTree(files={"a/../../b.sql": "x\n"})
        with pytest.raises(UnsafePathError):
            archive_bytes(tree)
