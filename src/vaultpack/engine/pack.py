# src/vaultpack/engine/pack.py
"""Pack: backup session lifecycle over one destination root.

Coordinates:
- Ledger load at open (with repair from the mirror when writable)
- Adding files and trees (hash, conflict check, store or heal, append)
- Listing, verification, recovery and single-file restore
- Commit of the ledger at close

A pack assumes exclusive ownership of its destination root for the
duration of the session; there is no locking between processes.
"""

import os
from pathlib import Path
from types import TracebackType
from typing import Any

from vaultpack.contracts import (
    AddOutcome,
    AddResult,
    ConfigError,
    ConflictError,
    CorruptionError,
    LedgerEntry,
    NotTrackedError,
    PackClosedError,
    ReadOnlyError,
    RecoveryResult,
    SessionState,
    VerifyReport,
)
from vaultpack.core.content_store import FilesystemContentStore
from vaultpack.core.hashing import digest_file, verified_copy
from vaultpack.core.integrity import recover_all, verify_all
from vaultpack.core.ledger import ROOT_POINTER_NAME, Ledger
from vaultpack.core.logging import get_logger
from vaultpack.prompt import Prompter, ask

logger = get_logger(__name__)

SUPPORTED_REDUNDANCY_LEVELS = (0, 1)


def _raise_walk_error(error: OSError) -> None:
    raise error


class Pack:
    """One backup session over a destination root.

    Lifecycle: OPENED -> MUTATING (any number of add/list/verify/recover/
    restore calls, in any order) -> CLOSED. CLOSED is terminal; every call
    after close() raises PackClosedError.

    Usage:
        pack = Pack.open("/mnt/backup", redundancy_level=1)
        pack.add_dir("/home/alice/photos/", "/photos/")
        pack.close()

        with Pack.open("/mnt/backup", read_only=True) as pack:
            ok = pack.verify()
    """

    def __init__(
        self,
        root: Path | str,
        *,
        read_only: bool = False,
        interactive: bool = False,
        redundancy_level: int = 0,
        prompt: Prompter | None = None,
    ) -> None:
        """Open a pack and load its ledger.

        Args:
            root: Destination root directory
            read_only: Refuse mutation and never repair a corrupt ledger
            interactive: Ask (via prompt) before saving a changed file;
                non-interactive sessions raise ConflictError instead
            redundancy_level: 0 = single copy, 1 = mirrored sidecar copies
            prompt: Question callback, defaults to the terminal prompt

        Raises:
            ConfigError: If redundancy_level is unsupported
            CorruptionError: If the ledger is corrupt and read_only
            LedgerUnrecoverableError: If the ledger is corrupt beyond repair
        """
        if redundancy_level not in SUPPORTED_REDUNDANCY_LEVELS:
            raise ConfigError(
                f"invalid redundancy level {redundancy_level}; "
                f"expected one of {SUPPORTED_REDUNDANCY_LEVELS}"
            )

        self._root = Path(root)
        self._read_only = read_only
        self._interactive = interactive
        self._redundancy_level = redundancy_level
        self._prompt: Prompter = prompt if prompt is not None else ask

        if not read_only:
            self._root.mkdir(mode=0o700, parents=True, exist_ok=True)

        self._store = FilesystemContentStore(self._root)
        self._pointer_path = self._root / ROOT_POINTER_NAME
        self._ledger = Ledger.load(self._store, self._pointer_path, read_only)
        self._state = SessionState.OPENED

        logger.debug(
            "pack_opened",
            root=str(self._root),
            read_only=read_only,
            redundancy_level=redundancy_level,
            entries=len(self._ledger),
        )

    @classmethod
    def open(cls, root: Path | str, **kwargs: Any) -> "Pack":
        """Alias constructor reading naturally at call sites."""
        return cls(root, **kwargs)

    def __enter__(self) -> "Pack":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        # Only commit a session that finished cleanly.
        if exc_type is None and self._state != SessionState.CLOSED:
            self.close()

    @property
    def root(self) -> Path:
        return self._root

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def redundancy_level(self) -> int:
        return self._redundancy_level

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def store(self) -> FilesystemContentStore:
        return self._store

    def _begin(self, *, mutating: bool) -> None:
        if self._state == SessionState.CLOSED:
            raise PackClosedError(f"pack {self._root} is closed")
        if mutating and self._read_only:
            raise ReadOnlyError(f"pack {self._root} was opened read-only")
        self._state = SessionState.MUTATING

    def add_file(self, source_path: Path | str, logical_path: str | None = None) -> AddResult:
        """Back up one file under a logical path.

        If the ledger already tracks logical_path with a different hash,
        the source changed since the last backup: interactive sessions ask
        whether to save the new version, non-interactive ones refuse.

        Args:
            source_path: File to back up
            logical_path: Identity to record (defaults to source_path);
                normalized to an absolute path

        Returns:
            AddResult describing what was done

        Raises:
            ConflictError: Source changed and the session is non-interactive
            IntegrityFault: Source changed while it was being copied
        """
        self._begin(mutating=True)

        source = Path(source_path)
        logical = os.path.abspath(str(source_path) if logical_path is None else logical_path)
        content_hash = digest_file(source)
        shown = str(source) if logical == str(source) else f"{source} ({logical})"

        current = self._ledger.current(logical)
        if current is not None and current.content_hash != content_hash:
            logger.warning(
                "source_changed",
                path=shown,
                current_hash=content_hash,
                backed_up_hash=current.content_hash,
            )
            if not self._interactive:
                raise ConflictError(logical, current.content_hash, content_hash)
            choice = self._prompt(
                f"Save the new version of {shown}? [y/N] ", ("y", "n"), 1, True
            )
            if choice != "y":
                logger.info("new_version_skipped", path=shown)
                return AddResult(str(source), logical, content_hash, AddOutcome.SKIPPED)

        if not self._store.exists(content_hash):
            blob_path = self._store.put(source, content_hash, self._redundancy_level)
            outcome = AddOutcome.STORED
            logger.info("blob_stored", path=shown, content_hash=content_hash, blob=str(blob_path))
        else:
            try:
                self._store.verify(content_hash)
                outcome = AddOutcome.DEDUPLICATED
                logger.info("blob_deduplicated", path=shown, content_hash=content_hash)
            except CorruptionError as e:
                # A blob stored under its own hash cannot legitimately differ.
                logger.error(
                    "blob_corrupt_rewritten",
                    path=shown,
                    content_hash=content_hash,
                    error=str(e),
                )
                self._store.put(source, content_hash, self._redundancy_level)
                outcome = AddOutcome.HEALED

        self._ledger.append(LedgerEntry(logical, content_hash))
        return AddResult(str(source), logical, content_hash, outcome)

    def add_dir(self, source_dir: Path | str, alias_dir: Path | str | None = None) -> list[AddResult]:
        """Back up every regular file under source_dir.

        Logical paths are formed by replacing the source_dir prefix with
        alias_dir. Directories themselves are not tracked. The walk order
        is sorted, so results are deterministic.

        Args:
            source_dir: Tree to back up
            alias_dir: Logical prefix (defaults to source_dir); when it
                differs from source_dir both must be absolute and agree on
                a trailing slash

        Returns:
            One AddResult per file, in walk order

        Raises:
            ConfigError: Relative or mismatched prefixes with a distinct alias
            FileNotFoundError: source_dir does not exist
        """
        self._begin(mutating=True)

        source = str(source_dir)
        alias = source if alias_dir is None else str(alias_dir)
        if alias != source:
            if not os.path.isabs(source):
                raise ConfigError(f"source {source} must be absolute when an alias is set")
            if not os.path.isabs(alias):
                raise ConfigError(f"alias {alias} must be absolute")
            if source.endswith("/") != alias.endswith("/"):
                raise ConfigError(
                    f"source {source} and alias {alias} must both end with / or neither"
                )
        if not os.path.isdir(source):
            raise FileNotFoundError(f"source directory not found: {source}")

        results: list[AddResult] = []
        for dirpath, dirnames, filenames in os.walk(source, onerror=_raise_walk_error):
            dirnames.sort()
            for name in sorted(filenames):
                walk_path = os.path.join(dirpath, name)
                if not os.path.isfile(walk_path):
                    logger.debug("special_file_skipped", path=walk_path)
                    continue
                results.append(self.add_file(walk_path, alias + walk_path[len(source):]))
        return results

    def list_paths(self) -> list[str]:
        """Current logical paths, sorted lexicographically."""
        self._begin(mutating=False)
        return self._ledger.paths()

    def verify_report(self) -> VerifyReport:
        """Verify every entry in the stored log and return the details."""
        self._begin(mutating=False)
        report = verify_all(self._ledger, self._store, self._redundancy_level)
        logger.info(
            "verify_finished",
            root=str(self._root),
            checked=len(report.checks),
            failed=len(report.failures),
        )
        return report

    def verify(self) -> bool:
        """Verify every entry in the stored log; True iff all verify."""
        return self.verify_report().passed

    def recover(self) -> RecoveryResult:
        """Verify every entry and repair from the redundant copy where possible.

        Returns:
            RecoveryResult; ``num_failed > 0`` means overall failure
        """
        self._begin(mutating=True)
        result = recover_all(self._ledger, self._store, self._redundancy_level)
        logger.info(
            "recover_finished",
            root=str(self._root),
            ok=result.num_ok,
            recovered=result.num_recovered,
            failed=result.num_failed,
        )
        return result

    def restore(self, logical_path: str, destination_path: Path | str) -> None:
        """Overwrite destination_path with the backed-up copy of logical_path.

        Raises:
            NotTrackedError: logical_path is not in the ledger
            CorruptionError: The stored blob fails verification
        """
        self._begin(mutating=False)

        entry = self._ledger.current(os.path.abspath(logical_path))
        if entry is None:
            raise NotTrackedError(logical_path)

        self._store.verify(entry.content_hash)

        destination = Path(destination_path)
        destination.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        verified_copy(self._store.locate(entry.content_hash), destination, entry.content_hash)
        logger.info(
            "file_restored",
            logical_path=entry.logical_path,
            destination=str(destination),
            content_hash=entry.content_hash,
        )

    def close(self) -> str | None:
        """Commit the ledger and end the session.

        Read-only sessions end without writing anything.

        Returns:
            Hash of the committed ledger, or None for read-only sessions
        """
        if self._state == SessionState.CLOSED:
            raise PackClosedError(f"pack {self._root} is already closed")

        ledger_hash = None
        if not self._read_only:
            ledger_hash = self._ledger.commit(
                self._store, self._pointer_path, self._redundancy_level
            )
        self._state = SessionState.CLOSED
        return ledger_hash
