"""Pytest configuration for test isolation.

Successful exchange-rate lookups are cached under a project-relative
directory (``./.cache``). When tests run in the same working tree, those
cache files would let a later test skip its stubbed HTTP transport and read a
rate written by an earlier one, which makes assertions about request counts
and failure handling flaky.

To keep tests hermetic, the cache root is redirected to a unique temporary
directory for each test, and endpoint variables from the developer's shell
are cleared.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

# Make sure the workspace `packages/` dir is on sys.path so `statement_import` is importable
_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
sys.path[:0] = [p for p in [str(_PKG_DIR), str(_ROOT)] if p not in sys.path]

_ENDPOINT_VARS = (
    "SI_RATE_API_URL",
    "SI_DUPLICATE_API_URL",
    "SI_SINK_URL",
    "SI_SINK_API_KEY",
    "SI_HTTP_TIMEOUT",
    "SI_CONVERSION_CONCURRENCY",
)


@pytest.fixture(autouse=True)
def _isolate_cache_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Force a per-test cache root so tests don't share on-disk state.

    The application reads ``SI_CACHE_DIR`` (when set) to override the default
    ``./.cache`` location. We point it at the test's own temporary directory.
    """

    cache_root = tmp_path / "cache"
    cache_root.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("SI_CACHE_DIR", os.fspath(cache_root))
    for name in _ENDPOINT_VARS:
        monkeypatch.delenv(name, raising=False)
