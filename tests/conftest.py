"""Test configuration and shared fixtures."""
from __future__ import annotations

import pytest

from support import FakeClock, RecordingStore, std_folders


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Prevent the user's environment affecting the tests."""
    monkeypatch.delenv('SNIPDESK_FOLDER', raising=False)
    monkeypatch.delenv('SNIPDESK_WRITE_DELAY', raising=False)


@pytest.fixture
def clock():
    """Provide a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def store():
    """Provide a store holding the standard folders.

    No folder is active or loaded.
    """
    return RecordingStore(std_folders())
