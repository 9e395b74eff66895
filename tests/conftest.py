"""Shared test fixtures and helpers.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/core/test_ledger.py
"""

import os
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Filesystem helpers
# =============================================================================


@pytest.fixture
def corrupt() -> Callable[[Path], None]:
    """Flip the bytes of a file in place, keeping its length."""

    def _corrupt(path: Path) -> None:
        data = path.read_bytes()
        if not data:
            path.write_bytes(b"\x00")
            return
        path.write_bytes(bytes(b ^ 0xFF for b in data))

    return _corrupt


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """Three files a, b, c under tmp_path/src."""
    src = tmp_path / "src"
    src.mkdir()
    (src / "a").write_bytes(b"alpha contents\n")
    (src / "b").write_bytes(b"bravo contents\n")
    (src / "c").write_bytes(b"charlie contents\n")
    return src


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo configure_logging() so later tests never write to a stale stream."""
    yield
    structlog.reset_defaults()
