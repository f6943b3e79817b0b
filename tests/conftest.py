"""Shared test fixtures.

Every test runs with a clean ``MENTARIE_*`` environment and an empty
settings cache, so settings constructed inside the code under test only see
what the test sets explicitly.
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from mentarie.realtime.settings import _get_settings_cached


def _clear_settings_cache() -> None:
    _get_settings_cached.cache_clear()


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: object) -> Iterator[None]:
    """Strip MENTARIE_* variables and run from a directory without a ``.env``."""
    for key in list(os.environ):
        if key.startswith("MENTARIE_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    _clear_settings_cache()
    yield
    _clear_settings_cache()
