"""Core infrastructure: Hashing, Content Store, Ledger, Integrity, Configuration, Logging."""

from vaultpack.core.config import (
    BackupSettings,
    LoggingSettings,
    load_settings,
)
from vaultpack.core.content_store import (
    ContentStore,
    FilesystemContentStore,
)
from vaultpack.core.hashing import (
    digest_bytes,
    digest_file,
    verified_copy,
)
from vaultpack.core.integrity import (
    check_entry,
    recover_all,
    verify_all,
)
from vaultpack.core.ledger import (
    Ledger,
    decode_path,
    encode_path,
)
from vaultpack.core.logging import (
    configure_logging,
    get_logger,
)

__all__ = [
    "BackupSettings",
    "ContentStore",
    "FilesystemContentStore",
    "Ledger",
    "LoggingSettings",
    "check_entry",
    "configure_logging",
    "decode_path",
    "digest_bytes",
    "digest_file",
    "encode_path",
    "get_logger",
    "load_settings",
    "recover_all",
    "verified_copy",
    "verify_all",
]
