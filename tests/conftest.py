"""Shared fixtures for the Outreach Roadmap test suite."""

from __future__ import annotations

import pytest

from engines import storage
from engines.funnel import EO, FIO, LIO, PERFORMANCE, SETTINGS, TARGETS, default_state


@pytest.fixture
def state() -> dict:
    """Fresh copy of the built-in default snapshot."""
    return default_state()


@pytest.fixture
def settings(state: dict) -> dict:
    return state[SETTINGS]


@pytest.fixture
def lio_performance(state: dict) -> dict:
    return state[LIO][PERFORMANCE]


@pytest.fixture
def eo_performance(state: dict) -> dict:
    return state[EO][PERFORMANCE]


@pytest.fixture
def lio_targets(state: dict) -> dict:
    return state[LIO][TARGETS]


@pytest.fixture
def eo_targets(state: dict) -> dict:
    return state[EO][TARGETS]


@pytest.fixture
def fio_targets(state: dict) -> dict:
    return state[FIO][TARGETS]


@pytest.fixture
def store_dir(tmp_path, monkeypatch):
    """Point the snapshot store at a temporary directory."""
    monkeypatch.setattr(storage, "DATA_DIR", str(tmp_path))
    return tmp_path
