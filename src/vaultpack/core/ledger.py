# src/vaultpack/core/ledger.py
"""
The ledger: an append-only log of (logical path -> content hash) entries.

Two parts, kept strictly apart:
1. The log: every entry ever appended, in order. Never edited, never
   compacted. Superseded entries stay because their blobs are never
   deleted and remain verifiable.
2. The index: logical path -> most recent entry, derived by scanning the
   log with last-write-wins.

The serialized ledger is itself a blob in the content store. The only
mutable state on disk is the root pointer (``<root>/refs``), a bare hash
naming the current ledger blob. Commit writes the new blob (and mirror)
completely before the pointer is swapped.

Blob format, one record per line, in log order:

    <base64(logical path)> <40-hex content hash>\\n
"""

import base64
import binascii
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType

from vaultpack.contracts import (
    CorruptionError,
    LedgerEntry,
    LedgerFormatError,
    LedgerUnrecoverableError,
    PointerFormatError,
)
from vaultpack.core.content_store import ContentStore
from vaultpack.core.hashing import atomic_write_bytes, is_content_hash
from vaultpack.core.logging import get_logger

logger = get_logger(__name__)

ROOT_POINTER_NAME = "refs"

_PATH_ENCODING = "utf-8"
_PATH_ERRORS = "surrogateescape"


def encode_path(path: str) -> str:
    """Encode a logical path for the ledger format.

    Undecodable POSIX filenames (surrogate-escaped by os) round-trip.
    """
    return base64.b64encode(path.encode(_PATH_ENCODING, _PATH_ERRORS)).decode("ascii")


def decode_path(encoded: str, line_number: int = 0) -> str:
    """Inverse of encode_path.

    Raises:
        LedgerFormatError: If encoded is not valid base64
    """
    try:
        raw = base64.b64decode(encoded.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        raise LedgerFormatError(line_number, f"invalid path encoding: {e}") from e
    return raw.decode(_PATH_ENCODING, _PATH_ERRORS)


def read_root_pointer(pointer_path: Path) -> str | None:
    """Read the hash of the current ledger blob.

    Returns:
        The ledger hash, or None if no ledger has ever been committed

    Raises:
        PointerFormatError: If the pointer does not hold exactly one hash
    """
    try:
        raw = Path(pointer_path).read_bytes()
    except FileNotFoundError:
        return None

    # One trailing newline is tolerated so a hand-repaired pointer still loads.
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    try:
        text = raw.decode("ascii")
    except UnicodeDecodeError:
        text = ""
    if not is_content_hash(text):
        raise PointerFormatError(f"{pointer_path} does not contain a content hash")
    return text


def write_root_pointer(pointer_path: Path, ledger_hash: str) -> None:
    """Atomically repoint the root pointer at ledger_hash."""
    if not is_content_hash(ledger_hash):
        raise ValueError(f"not a content hash: {ledger_hash!r}")
    atomic_write_bytes(Path(pointer_path), ledger_hash.encode("ascii"))


class Ledger:
    """Append log of ledger entries plus its last-write-wins index.

    Usage:
        ledger = Ledger.load(store, root / "refs", read_only=False)
        ledger.append(LedgerEntry("/alias/a", content_hash))
        ledger.commit(store, root / "refs", redundancy_level=1)
    """

    def __init__(self, entries: Iterable[LedgerEntry] = ()) -> None:
        self._entries: list[LedgerEntry] = []
        self._index: dict[str, LedgerEntry] = {}
        for entry in entries:
            self._entries.append(entry)
            self._index[entry.logical_path] = entry

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        """Every entry in log order, superseded ones included."""
        return tuple(self._entries)

    @property
    def index(self) -> Mapping[str, LedgerEntry]:
        """Read-only view: logical path -> most recent entry."""
        return MappingProxyType(self._index)

    def current(self, logical_path: str) -> LedgerEntry | None:
        return self._index.get(logical_path)

    def current_entries(self) -> list[LedgerEntry]:
        return list(self._index.values())

    def paths(self) -> list[str]:
        """Current logical paths, sorted."""
        return sorted(self._index)

    def append(self, entry: LedgerEntry) -> bool:
        """Append an entry unless it is already current.

        Returns:
            True if the log grew, False if the index already held this
            exact path/hash pair
        """
        existing = self._index.get(entry.logical_path)
        if existing is not None and existing.content_hash == entry.content_hash:
            return False
        self._entries.append(entry)
        self._index[entry.logical_path] = entry
        return True

    def serialize(self) -> bytes:
        """Render the log in the on-disk line format, in log order."""
        return b"".join(
            f"{encode_path(e.logical_path)} {e.content_hash}\n".encode("ascii")
            for e in self._entries
        )

    @classmethod
    def parse(cls, data: bytes) -> "Ledger":
        """Parse a serialized ledger.

        Malformed lines are fatal; nothing is skipped.

        Raises:
            LedgerFormatError: On the first malformed line
        """
        try:
            text = data.decode("ascii")
        except UnicodeDecodeError as e:
            raise LedgerFormatError(
                data.count(b"\n", 0, e.start) + 1, "non-ascii content"
            ) from e

        if text and not text.endswith("\n"):
            raise LedgerFormatError(text.count("\n") + 1, "truncated record")

        entries: list[LedgerEntry] = []
        for line_number, line in enumerate(text.split("\n")[:-1], start=1):
            fields = line.split(" ")
            if len(fields) != 2 or not fields[0]:
                raise LedgerFormatError(line_number, f"expected 2 fields, got {line!r}")
            encoded_path, content_hash = fields
            if not is_content_hash(content_hash):
                raise LedgerFormatError(line_number, f"invalid content hash {content_hash!r}")
            entries.append(LedgerEntry(decode_path(encoded_path, line_number), content_hash))
        return cls(entries)

    @classmethod
    def load(cls, store: ContentStore, pointer_path: Path, read_only: bool) -> "Ledger":
        """Load the current ledger through the root pointer.

        A missing pointer means a fresh store and yields an empty ledger.

        Args:
            store: Content store holding the ledger blob
            pointer_path: Root pointer file
            read_only: If True, corruption is reported and never repaired

        Raises:
            CorruptionError: Ledger blob corrupt and read_only
            LedgerUnrecoverableError: Ledger blob corrupt and mirror repair failed
            PointerFormatError: Root pointer malformed
            LedgerFormatError: Ledger blob verified but does not parse
        """
        ledger_hash = read_root_pointer(pointer_path)
        if ledger_hash is None:
            return cls()

        try:
            store.verify(ledger_hash)
        except CorruptionError as e:
            if read_only:
                raise
            logger.error("ledger_corrupt", ledger_hash=ledger_hash, error=str(e))
            try:
                store.restore_from_mirror(ledger_hash)
            except CorruptionError as repair_error:
                raise LedgerUnrecoverableError(
                    ledger_hash,
                    e.actual_hash,
                    e.path,
                    message=(
                        f"detected corruption in {e.path} while reading ledger: {e}; "
                        f"attempted recovery failed: {repair_error}"
                    ),
                ) from repair_error
            logger.warning("ledger_repaired", ledger_hash=ledger_hash)

        with store.locate(ledger_hash).open("rb") as f:
            data = f.read()
        return cls.parse(data)

    def commit(self, store: ContentStore, pointer_path: Path, redundancy_level: int) -> str:
        """Store the ledger as a new blob, then repoint the root pointer.

        The blob and its mirror are fully written before the pointer moves,
        so an interrupted commit leaves the previous ledger current.

        Returns:
            Hash of the committed ledger blob
        """
        ledger_hash = store.put_bytes(self.serialize(), redundancy_level)
        write_root_pointer(pointer_path, ledger_hash)
        logger.info(
            "ledger_committed",
            ledger_hash=ledger_hash,
            entries=len(self._entries),
            tracked=len(self._index),
        )
        return ledger_hash
