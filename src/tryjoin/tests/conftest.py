"""Shared fixtures: fresh settings and silent logging for every test."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from tryjoin.foundation.config import clear_settings_cache
from tryjoin.runtime.observability import configure_logging


@pytest.fixture(autouse=True)
def clean_environment() -> Iterator[None]:
    """Reset cached settings and mute logging around each test."""
    clear_settings_cache()
    configure_logging(format="none")
    yield
    clear_settings_cache()
