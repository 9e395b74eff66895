"""Status codes and outcomes shared across subsystem boundaries.

Every enum is a (str, Enum) so values render cleanly in structured log
events and CLI output.
"""

from enum import Enum


class EntryStatus(str, Enum):
    """Integrity state of one ledger entry during a scan.

    PRIMARY_CORRUPT and MIRROR_CORRUPT name the side that failed; the
    other side verified (or, without redundancy, was not consulted).
    """

    OK = "ok"
    PRIMARY_CORRUPT = "primary_corrupt"
    MIRROR_CORRUPT = "mirror_corrupt"
    BOTH_CORRUPT = "both_corrupt"


class RecoveryOutcome(str, Enum):
    """What a recovery scan did for one entry.

    Each entry lands in exactly one of these buckets.
    """

    OK = "ok"
    RECOVERED = "recovered"
    FAILED = "failed"


class AddOutcome(str, Enum):
    """Result of adding one source file to a pack.

    Values:
        STORED: No blob existed for the content; a new one was written
        DEDUPLICATED: An intact blob already existed; only the ledger was touched
        HEALED: A blob existed but failed verification and was rewritten
        SKIPPED: The source changed since the last backup and the user declined
    """

    STORED = "stored"
    DEDUPLICATED = "deduplicated"
    HEALED = "healed"
    SKIPPED = "skipped"


class SessionState(str, Enum):
    """Lifecycle of a pack session. CLOSED is terminal."""

    OPENED = "opened"
    MUTATING = "mutating"
    CLOSED = "closed"
