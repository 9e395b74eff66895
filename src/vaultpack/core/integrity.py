"""Integrity scans and recovery over a ledger.

Provides:
- check_entry: classify one entry (primary and, with redundancy, mirror)
- verify_all: report-only scan of the whole ledger
- recover_all: scan and repair by copying the good side over the bad one

Scans never stop at the first failure; every entry is evaluated and
reported before the aggregate verdict is returned. Recovery never
fabricates data: if neither side verifies the entry is counted as failed.
"""

from collections.abc import Iterable

from vaultpack.contracts import (
    CorruptionError,
    EntryCheck,
    EntryStatus,
    LedgerEntry,
    RecoveryOutcome,
    RecoveryResult,
    VerifyReport,
)
from vaultpack.core.content_store import ContentStore
from vaultpack.core.ledger import Ledger
from vaultpack.core.logging import get_logger

logger = get_logger(__name__)


def _entries_to_scan(ledger: Ledger, current_only: bool) -> Iterable[LedgerEntry]:
    if current_only:
        return ledger.current_entries()
    return ledger.entries


def check_entry(store: ContentStore, entry: LedgerEntry, redundancy_level: int) -> EntryCheck:
    """Verify one entry's primary blob and, with redundancy, its mirror.

    Args:
        store: Content store holding the blobs
        entry: Entry to check
        redundancy_level: 0 checks the primary only; 1 also checks the mirror

    Returns:
        EntryCheck naming which side(s) failed
    """
    errors: list[str] = []

    primary_ok = True
    try:
        store.verify(entry.content_hash)
    except CorruptionError as e:
        primary_ok = False
        errors.append(str(e))

    mirror_ok = True
    if redundancy_level > 0:
        try:
            store.verify_mirror(entry.content_hash)
        except CorruptionError as e:
            mirror_ok = False
            errors.append(str(e))

    if primary_ok and mirror_ok:
        status = EntryStatus.OK
    elif not primary_ok and not mirror_ok:
        status = EntryStatus.BOTH_CORRUPT
    elif not primary_ok:
        status = EntryStatus.PRIMARY_CORRUPT
    else:
        status = EntryStatus.MIRROR_CORRUPT

    return EntryCheck(entry=entry, status=status, errors=tuple(errors))


def verify_all(
    ledger: Ledger,
    store: ContentStore,
    redundancy_level: int,
    *,
    current_only: bool = False,
) -> VerifyReport:
    """Verify every ledger entry without modifying anything.

    Args:
        ledger: Ledger to scan
        store: Content store holding the blobs
        redundancy_level: Whether mirrors are expected (and checked)
        current_only: Scan only current index entries instead of the full log

    Returns:
        VerifyReport; ``report.passed`` is the aggregate verdict
    """
    report = VerifyReport()
    for entry in _entries_to_scan(ledger, current_only):
        check = check_entry(store, entry, redundancy_level)
        report.checks.append(check)
        if check.ok:
            logger.info(
                "entry_verified",
                logical_path=entry.logical_path,
                content_hash=entry.content_hash,
            )
        else:
            logger.error(
                "entry_corrupt",
                logical_path=entry.logical_path,
                content_hash=entry.content_hash,
                status=check.status.value,
                errors=list(check.errors),
            )
    return report


def _repair(store: ContentStore, check: EntryCheck) -> RecoveryOutcome:
    content_hash = check.entry.content_hash
    try:
        if check.status == EntryStatus.PRIMARY_CORRUPT:
            store.restore_from_mirror(content_hash)
        elif check.status == EntryStatus.MIRROR_CORRUPT:
            store.rebuild_mirror(content_hash)
        else:
            logger.error(
                "entry_recovery_failed",
                logical_path=check.entry.logical_path,
                content_hash=content_hash,
                reason="no intact copy",
            )
            return RecoveryOutcome.FAILED
    except CorruptionError as e:
        logger.error(
            "entry_recovery_failed",
            logical_path=check.entry.logical_path,
            content_hash=content_hash,
            reason=str(e),
        )
        return RecoveryOutcome.FAILED

    logger.info(
        "entry_recovered",
        logical_path=check.entry.logical_path,
        content_hash=content_hash,
        repaired=check.status.value,
    )
    return RecoveryOutcome.RECOVERED


def recover_all(
    ledger: Ledger,
    store: ContentStore,
    redundancy_level: int,
    *,
    current_only: bool = False,
) -> RecoveryResult:
    """Verify every ledger entry and repair what can be repaired.

    Repair strategy per entry:
    - PRIMARY_CORRUPT: copy mirror over primary, re-verify
    - MIRROR_CORRUPT: copy primary over mirror, re-verify
    - BOTH_CORRUPT: failed, nothing is touched

    Without redundancy there is no mirror, so any primary corruption
    ends up failed.

    Returns:
        RecoveryResult; callers treat ``num_failed > 0`` as overall failure
    """
    result = RecoveryResult()
    for entry in _entries_to_scan(ledger, current_only):
        check = check_entry(store, entry, redundancy_level)
        if check.ok:
            logger.info(
                "entry_verified",
                logical_path=entry.logical_path,
                content_hash=entry.content_hash,
            )
            result.record(entry, RecoveryOutcome.OK)
            continue

        logger.error(
            "entry_corrupt",
            logical_path=entry.logical_path,
            content_hash=entry.content_hash,
            status=check.status.value,
            errors=list(check.errors),
        )
        result.record(entry, _repair(store, check))
    return result
