# src/vaultpack/core/hashing.py
"""
Streaming content hashing and verified file copies.

Every blob in the store is addressed by the SHA-1 of its bytes, so the
hash doubles as an integrity check. Two disciplines hold throughout:

- Reads are bounded by CHUNK_SIZE; files are never slurped whole.
- Writes go to a temporary sibling first and are renamed into place, so a
  reader never observes a partially written file at the final path.
"""

import hashlib
import os
import re
import tempfile
from pathlib import Path
from typing import BinaryIO

from vaultpack.contracts import IntegrityFault

CHUNK_SIZE = 16 * 1024 * 1024

HASH_HEX_LENGTH = 40

MIRROR_SUFFIX = ".bkup"

_TMP_SUFFIX = ".tmp"

_HASH_PATTERN = re.compile(r"^[0-9a-f]{40}$")


def is_content_hash(text: str) -> bool:
    """Whether text is a well-formed content hash (40 lower-case hex chars)."""
    return bool(_HASH_PATTERN.match(text))


def digest_bytes(data: bytes) -> str:
    """Hash in-memory content."""
    return hashlib.sha1(data).hexdigest()


def digest_file(path: Path) -> str:
    """Hash a file by streaming it in bounded chunks.

    Args:
        path: File to hash

    Returns:
        40-character hex digest

    Raises:
        OSError: If the file cannot be opened or read
    """
    h = hashlib.sha1()
    with Path(path).open("rb") as f:
        while chunk := f.read(CHUNK_SIZE):
            h.update(chunk)
    return h.hexdigest()


def mirror_path(path: Path) -> Path:
    """Sidecar location holding the redundancy copy of path."""
    path = Path(path)
    return path.with_name(path.name + MIRROR_SUFFIX)


def _open_tmp(path: Path) -> tuple[BinaryIO, Path]:
    # Unique hidden sibling; never collides with files next to path.
    fd, name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=_TMP_SUFFIX)
    return os.fdopen(fd, "wb"), Path(name)


def _fsync_dir(directory: Path) -> None:
    # Persist the rename itself (POSIX only).
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Write data to path via temp-file-then-rename.

    Args:
        path: Final destination (parent directory must exist)
        data: Complete file content
    """
    path = Path(path)
    f, tmp = _open_tmp(path)
    try:
        with f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    _fsync_dir(path.parent)


def verified_copy(src: Path, dst: Path, expected_hash: str) -> None:
    """Copy src to dst, hashing the stream, and only publish matching bytes.

    The copy is written to a temporary sibling of dst. If its digest equals
    expected_hash it is renamed over dst; otherwise the temporary file is
    discarded and dst is left exactly as it was.

    Args:
        src: File to copy from
        dst: Final destination (parent directory must exist)
        expected_hash: Digest the copied bytes must have

    Raises:
        OSError: On any filesystem failure
        IntegrityFault: If the copied bytes do not hash to expected_hash
    """
    src = Path(src)
    dst = Path(dst)
    fout, tmp = _open_tmp(dst)
    h = hashlib.sha1()
    try:
        with fout, src.open("rb") as fin:
            while chunk := fin.read(CHUNK_SIZE):
                fout.write(chunk)
                h.update(chunk)
            fout.flush()
            os.fsync(fout.fileno())

        actual_hash = h.hexdigest()
        if actual_hash != expected_hash:
            raise IntegrityFault(src, expected_hash, actual_hash)

        os.replace(tmp, dst)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise
    _fsync_dir(dst.parent)


def mirror_if_enabled(path: Path, expected_hash: str, redundancy_level: int) -> Path | None:
    """Write the redundancy copy of path when redundancy is on.

    Returns:
        The mirror path if a copy was written, None for redundancy level 0
    """
    if redundancy_level < 1:
        return None
    target = mirror_path(path)
    verified_copy(path, target, expected_hash)
    return target
