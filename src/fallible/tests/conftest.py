"""Shared fixtures: every test starts from the environment's settings and no log handler."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from fallible import clear_settings_cache, reset_logging


@pytest.fixture(autouse=True)
def clean_state() -> Iterator[None]:
    """Reset cached settings and installed logging around each test."""
    clear_settings_cache()
    reset_logging()
    yield
    clear_settings_cache()
    reset_logging()
