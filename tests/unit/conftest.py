# tests/unit/conftest.py
"""Shared fixtures for quota guard unit tests."""

import pytest

from gravity_guard.core import GravityConfig

from builders import FakePresenter, FakeSound


@pytest.fixture
def config():
    return GravityConfig()


@pytest.fixture
def presenter():
    return FakePresenter()


@pytest.fixture
def sound():
    return FakeSound()
