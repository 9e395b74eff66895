"""Error taxonomy for the backup store.

Two families live here:

- VaultpackError and its subclasses are expected failure modes. Callers
  catch them, report them, and carry on or exit cleanly.
- IntegrityFault is an invariant violation (a verified copy produced the
  wrong bytes). It does not inherit from VaultpackError, so a
  broad ``except VaultpackError`` never swallows it.

Filesystem failures are plain OSError and are not wrapped.
"""

from pathlib import Path


class VaultpackError(Exception):
    """Base class for recoverable backup store errors."""

    pass


class CorruptionError(VaultpackError):
    """A recomputed hash does not match the hash the data is stored under.

    Attributes:
        content_hash: Hash the data is expected to have
        actual_hash: Hash actually computed (None if the file is missing)
        path: File that failed verification
    """

    def __init__(
        self,
        content_hash: str,
        actual_hash: str | None,
        path: Path,
        message: str | None = None,
    ) -> None:
        self.content_hash = content_hash
        self.actual_hash = actual_hash
        self.path = path
        if message is None:
            message = (
                f"{path} is corrupt; should be {content_hash} "
                f"but instead is {actual_hash}"
            )
        super().__init__(message)


class BlobMissingError(CorruptionError):
    """A blob the ledger references is absent from the store."""

    def __init__(self, content_hash: str, path: Path) -> None:
        super().__init__(
            content_hash,
            None,
            path,
            message=f"{path} is missing; expected blob {content_hash}",
        )


class LedgerUnrecoverableError(CorruptionError):
    """The ledger blob is corrupt and its mirror could not repair it."""

    pass


class ConflictError(VaultpackError):
    """A tracked file changed since its last backup and nobody resolved it."""

    def __init__(self, logical_path: str, stored_hash: str, current_hash: str) -> None:
        self.logical_path = logical_path
        self.stored_hash = stored_hash
        self.current_hash = current_hash
        super().__init__(
            f"local copy of {logical_path} has changed since backup; "
            f"current hash {current_hash} vs backed up {stored_hash}"
        )


class NotTrackedError(VaultpackError):
    """Lookup of a logical path the ledger does not know."""

    def __init__(self, logical_path: str) -> None:
        self.logical_path = logical_path
        super().__init__(f"{logical_path} not in backup")


class ConfigError(VaultpackError, ValueError):
    """Invalid alias/source combination or unsupported redundancy level."""

    pass


class FormatError(VaultpackError):
    """Ledger or root pointer content is not well-formed."""

    pass


class LedgerFormatError(FormatError):
    """A ledger blob line could not be parsed."""

    def __init__(self, line_number: int, reason: str) -> None:
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"corrupt ledger at line {line_number}: {reason}")


class PointerFormatError(FormatError):
    """The root pointer does not hold a single content hash."""

    pass


class PackClosedError(VaultpackError):
    """Operation attempted on a pack session that was already closed."""

    pass


class ReadOnlyError(VaultpackError):
    """Mutating operation attempted on a pack opened read-only."""

    pass


class IntegrityFault(RuntimeError):
    """Bytes written by a verified copy do not hash to the expected value.

    This means the source changed underneath the copy (or the machine is
    lying about its I/O). It is never retried and never handled locally.
    """

    def __init__(self, source: Path, expected_hash: str, actual_hash: str) -> None:
        self.source = source
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"hash mismatch copying {source}: expected {expected_hash}, got "
            f"{actual_hash}; was the file modified while the copy was running?"
        )
