"""Operation outcomes and results.

These types answer: "What did a scan or an add produce?"
"""

from collections.abc import Iterator
from dataclasses import dataclass, field

from vaultpack.contracts.data import LedgerEntry
from vaultpack.contracts.enums import AddOutcome, EntryStatus, RecoveryOutcome


@dataclass(frozen=True)
class EntryCheck:
    """Integrity verdict for one ledger entry.

    errors holds one human-readable message per failed side.
    """

    entry: LedgerEntry
    status: EntryStatus
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.status == EntryStatus.OK


@dataclass
class VerifyReport:
    """Result of a full verification scan."""

    checks: list[EntryCheck] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """True iff every checked entry verified."""
        return all(check.ok for check in self.checks)

    @property
    def failures(self) -> list[EntryCheck]:
        return [check for check in self.checks if not check.ok]


@dataclass
class RecoveryResult:
    """Counters and per-entry outcomes of a recovery scan.

    Unpacks as the ``(num_ok, num_recovered, num_failed)`` triple:

        num_ok, num_recovered, num_failed = pack.recover()
    """

    num_ok: int = 0
    num_recovered: int = 0
    num_failed: int = 0
    outcomes: list[tuple[LedgerEntry, RecoveryOutcome]] = field(
        default_factory=list, repr=False
    )

    def record(self, entry: LedgerEntry, outcome: RecoveryOutcome) -> None:
        """Count one entry under exactly one outcome."""
        if outcome == RecoveryOutcome.OK:
            self.num_ok += 1
        elif outcome == RecoveryOutcome.RECOVERED:
            self.num_recovered += 1
        else:
            self.num_failed += 1
        self.outcomes.append((entry, outcome))

    @property
    def passed(self) -> bool:
        return self.num_failed == 0

    def __iter__(self) -> Iterator[int]:
        return iter((self.num_ok, self.num_recovered, self.num_failed))


@dataclass(frozen=True)
class AddResult:
    """What happened when one source file was added to a pack."""

    source_path: str
    logical_path: str
    content_hash: str
    outcome: AddOutcome
