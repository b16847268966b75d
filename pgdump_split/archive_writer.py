"""
Archive writer: serialize the output tree deterministically.

The archive bytes depend only on the tree content:
- entries sorted by the UTF-8 bytes of their path
- regular file entries only (directories are implied by paths)
- mtime 0, uid/gid 0, empty owner names, mode 0644
- gzip variant: header mtime 0 and no embedded file name

Everything is built in memory and written in one go, so a failure never
leaves a partial archive behind.
"""

import gzip
import io
import logging
import tarfile
from pathlib import Path

from pgdump_split.object_model import OutputTree
from pgdump_split.path_resolver import check_relative_path

logger = logging.getLogger(__name__)

FILE_MODE = 0o644
FIXED_MTIME = 0
GZIP_MAGIC = b"\x1f\x8b"


def _tar_info(path: str, size: int) -> tarfile.TarInfo:
    info = tarfile.TarInfo(name=path)
    info.size = size
    info.mtime = FIXED_MTIME
    info.mode = FILE_MODE
    info.uid = 0
    info.gid = 0
    info.uname = ""
    info.gname = ""
    info.type = tarfile.REGTYPE
    return info


def archive_bytes(tree: OutputTree, compression: str | None = None) -> bytes:
    """
    Build the archive for a tree.

    Args:
        tree: Rendered output tree
        compression: None for plain tar, "gz" for gzip

    Returns:
        Archive content
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.GNU_FORMAT, encoding="utf-8") as tar:
        for path, content in tree.items():
            data = content.encode("utf-8")
            check_relative_path(path)
            tar.addfile(_tar_info(path, len(data)), io.BytesIO(data))
    data = buf.getvalue()

    if compression is None:
        return data
    if compression == "gz":
        out = io.BytesIO()
        with gzip.GzipFile(filename="", mode="wb", fileobj=out, mtime=FIXED_MTIME) as gz:
            gz.write(data)
        return out.getvalue()
    raise ValueError(f"Unsupported compression: {compression!r}")


def write_archive(
    tree: OutputTree,
    out_path: Path,
    compression: str | None = None,
) -> Path:
    """
    Write the tree as a tar archive.

    Args:
        tree: Rendered output tree
        out_path: Archive path; must not exist yet
        compression: None or "gz"

    Returns:
        Path to the written archive
    """
    if out_path.exists():
        raise FileExistsError(f"output {out_path} already exists")
    data = archive_bytes(tree, compression=compression)
    out_path.write_bytes(data)
    logger.info("Wrote %d files (%d bytes) to %s", len(tree), len(data), out_path)
    return out_path


def write_directory(tree: OutputTree, out_dir: Path) -> Path:
    """
    Write the tree as a plain directory.

    Args:
        tree: Rendered output tree
        out_dir: Directory to create; must not exist yet

    Returns:
        Path to the output directory
    """
    if out_dir.exists():
        raise FileExistsError(f"output {out_dir} already exists")
    for path in tree.paths():
        check_relative_path(path)
    out_dir.mkdir(parents=True)
    for path, content in tree.items():
        file_path = out_dir.joinpath(*path.split("/"))
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(content.encode("utf-8"))
    logger.info("Wrote %d files to %s", len(tree), out_dir)
    return out_dir


def read_archive(data: bytes) -> dict[str, str]:
    """
    Read an archive produced by archive_bytes back into path -> content.

    Args:
        data: Plain or gzip-compressed tar bytes

    Returns:
        Dict of path to decoded file content, in archive order
    """
    if data[:2] == GZIP_MAGIC:
        data = gzip.decompress(data)
    files: dict[str, str] = {}
    with tarfile.open(fileobj=io.BytesIO(data), mode="r", encoding="utf-8") as tar:
        for member in tar.getmembers():
            if not member.isfile():
                continue
            extracted = tar.extractfile(member)
            files[member.name] = extracted.read().decode("utf-8")
    return files
