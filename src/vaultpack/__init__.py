"""vaultpack: deduplicating, content-addressed backup store."""

__version__ = "0.1.0"
