"""Pack engine: backup session lifecycle."""

from vaultpack.engine.pack import Pack

__all__ = ["Pack"]
