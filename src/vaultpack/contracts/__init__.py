"""Shared contracts for cross-boundary data types.

All dataclasses, enums, and exceptions that cross subsystem boundaries
are defined here.

Import pattern:
    from vaultpack.contracts import LedgerEntry, CorruptionError, EntryStatus
"""

from vaultpack.contracts.enums import (
    AddOutcome,
    EntryStatus,
    RecoveryOutcome,
    SessionState,
)
from vaultpack.contracts.errors import (
    BlobMissingError,
    ConfigError,
    ConflictError,
    CorruptionError,
    FormatError,
    IntegrityFault,
    LedgerFormatError,
    LedgerUnrecoverableError,
    NotTrackedError,
    PackClosedError,
    PointerFormatError,
    ReadOnlyError,
    VaultpackError,
)
from vaultpack.contracts.data import LedgerEntry
from vaultpack.contracts.results import (
    AddResult,
    EntryCheck,
    RecoveryResult,
    VerifyReport,
)

__all__ = [
    # enums
    "AddOutcome",
    "EntryStatus",
    "RecoveryOutcome",
    "SessionState",
    # errors
    "BlobMissingError",
    "ConfigError",
    "ConflictError",
    "CorruptionError",
    "FormatError",
    "IntegrityFault",
    "LedgerFormatError",
    "LedgerUnrecoverableError",
    "NotTrackedError",
    "PackClosedError",
    "PointerFormatError",
    "ReadOnlyError",
    "VaultpackError",
    # data
    "LedgerEntry",
    # results
    "AddResult",
    "EntryCheck",
    "RecoveryResult",
    "VerifyReport",
]
