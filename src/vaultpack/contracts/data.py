"""Ledger record contract.

LedgerEntry crosses every boundary in the system (ledger, integrity scans,
pack engine, CLI output), so it lives here rather than in core.ledger.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LedgerEntry:
    """One (logical path -> content hash) record in the ledger log.

    logical_path is the alias-normalized absolute identity of a tracked
    file; it stays stable if the physical source tree is relocated.
    """

    logical_path: str
    content_hash: str
