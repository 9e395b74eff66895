# src/vaultpack/core/content_store.py
"""
Content-addressed blob store.

Every blob lives at a path derived from its own hash, so:
- Identical content is stored exactly once
- Any blob can be verified by rehashing it
- Blobs are immutable once written; there is no delete (superseded ledger
  entries may still reference old blobs)

With redundancy enabled each blob also has a mirror sidecar. Either copy
can repair the other; repair is always a whole-file copy of the side that
verifies, never a reconstruction.
"""

from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable

from vaultpack.contracts import BlobMissingError, CorruptionError
from vaultpack.core.hashing import (
    atomic_write_bytes,
    digest_bytes,
    digest_file,
    is_content_hash,
    mirror_if_enabled,
    mirror_path,
    verified_copy,
)
from vaultpack.core.logging import get_logger

logger = get_logger(__name__)

DATA_DIR_NAME = "data"


@runtime_checkable
class ContentStore(Protocol):
    """Protocol for content-addressed storage backends.

    All implementations address blobs by the SHA-1 hex digest of their
    content and never delete them.
    """

    def exists(self, content_hash: str) -> bool:
        """Check if the primary copy of a blob exists."""
        ...

    def locate(self, content_hash: str, create_dirs: bool = False) -> Path:
        """Path of the primary copy of a blob."""
        ...

    def put(self, source_file: Path, content_hash: str, redundancy_level: int) -> Path:
        """Copy a file into the store under content_hash."""
        ...

    def put_bytes(self, content: bytes, redundancy_level: int) -> str:
        """Store in-memory content and return its hash."""
        ...

    def verify(self, content_hash: str) -> None:
        """Raise CorruptionError unless the primary copy hashes to content_hash."""
        ...

    def verify_mirror(self, content_hash: str) -> None:
        """Raise CorruptionError unless the mirror copy hashes to content_hash."""
        ...

    def restore_from_mirror(self, content_hash: str) -> None:
        """Overwrite the primary copy with the verified mirror."""
        ...

    def rebuild_mirror(self, content_hash: str) -> None:
        """Overwrite the mirror with the verified primary copy."""
        ...


class FilesystemContentStore:
    """Filesystem-based content store.

    Shards blobs three levels deep on the leading hex pairs of the hash to
    bound per-directory fan-out.

    Structure: root/data/ab/cd/ef/abcdef0123...  (+ abcdef0123....bkup)
    """

    def __init__(self, root: Path) -> None:
        """Initialize filesystem store.

        Args:
            root: Pack root directory; blobs live under root/data
        """
        self.root = Path(root)
        self.data_dir = self.root / DATA_DIR_NAME

    def locate(self, content_hash: str, create_dirs: bool = False) -> Path:
        """Get the sharded filesystem path for a content hash.

        Args:
            content_hash: 40-hex content hash
            create_dirs: Ensure the shard directories exist

        Raises:
            ValueError: If content_hash is not a well-formed hash
        """
        if not is_content_hash(content_hash):
            raise ValueError(f"not a content hash: {content_hash!r}")
        path = (
            self.data_dir
            / content_hash[0:2]
            / content_hash[2:4]
            / content_hash[4:6]
            / content_hash
        )
        if create_dirs:
            path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        return path

    def exists(self, content_hash: str) -> bool:
        return self.locate(content_hash).is_file()

    def mirror_exists(self, content_hash: str) -> bool:
        return mirror_path(self.locate(content_hash)).is_file()

    def put(self, source_file: Path, content_hash: str, redundancy_level: int) -> Path:
        """Copy a file into the store, overwriting whatever is there.

        Overwriting is what makes this usable for healing a corrupt blob.

        Args:
            source_file: File whose bytes hash to content_hash
            content_hash: Address to store under
            redundancy_level: 1 to also write the mirror copy

        Returns:
            Path of the primary copy

        Raises:
            IntegrityFault: If the source bytes do not hash to content_hash
        """
        path = self.locate(content_hash, create_dirs=True)
        verified_copy(source_file, path, content_hash)
        mirror_if_enabled(path, content_hash, redundancy_level)
        return path

    def put_bytes(self, content: bytes, redundancy_level: int) -> str:
        """Store in-memory content and return its hash.

        The primary and (if enabled) the mirror are both fully written
        before this returns.
        """
        content_hash = digest_bytes(content)
        path = self.locate(content_hash, create_dirs=True)
        atomic_write_bytes(path, content)
        mirror_if_enabled(path, content_hash, redundancy_level)
        return content_hash

    def open_blob(self, content_hash: str) -> BinaryIO:
        """Open the primary copy of a blob for reading.

        Raises:
            BlobMissingError: If the blob is absent
        """
        path = self.locate(content_hash)
        try:
            return path.open("rb")
        except FileNotFoundError:
            raise BlobMissingError(content_hash, path) from None

    def verify(self, content_hash: str) -> None:
        """Recompute the primary copy's digest and compare.

        Raises:
            BlobMissingError: If the primary copy is absent
            CorruptionError: If the digest does not match
        """
        self._verify_file(content_hash, self.locate(content_hash))

    def verify_mirror(self, content_hash: str) -> None:
        """Same check as verify(), against the mirror sidecar."""
        self._verify_file(content_hash, mirror_path(self.locate(content_hash)))

    def restore_from_mirror(self, content_hash: str) -> None:
        """Repair the primary copy from the mirror.

        Raises:
            CorruptionError: If the mirror is missing or corrupt, or the
                primary still fails verification after the copy
        """
        path = self.locate(content_hash, create_dirs=True)
        self.verify_mirror(content_hash)
        verified_copy(mirror_path(path), path, content_hash)
        self.verify(content_hash)
        logger.info("primary_restored_from_mirror", content_hash=content_hash, path=str(path))

    def rebuild_mirror(self, content_hash: str) -> None:
        """Repair the mirror from the primary copy.

        Raises:
            CorruptionError: If the primary is missing or corrupt, or the
                mirror still fails verification after the copy
        """
        path = self.locate(content_hash)
        self.verify(content_hash)
        verified_copy(path, mirror_path(path), content_hash)
        self.verify_mirror(content_hash)
        logger.info("mirror_rebuilt", content_hash=content_hash, path=str(path))

    def _verify_file(self, content_hash: str, path: Path) -> None:
        try:
            actual_hash = digest_file(path)
        except FileNotFoundError:
            raise BlobMissingError(content_hash, path) from None
        if actual_hash != content_hash:
            raise CorruptionError(content_hash, actual_hash, path)
