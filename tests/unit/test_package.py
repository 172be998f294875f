# tests/unit/test_package.py
"""Tests for package metadata and source file headers."""

from pathlib import Path

import pytest

import gravity_guard

PACKAGE_DIR = Path(gravity_guard.__file__).parent
HEADER = [
    "# SPDX-License-Identifier: LGPL-3.0-only",
    "# Copyright (c) 2026 Gravity Guard Contributors",
]


def test_version_exported():
    assert gravity_guard.__version__ == "0.1.0"


@pytest.mark.parametrize(
    "path",
    sorted(PACKAGE_DIR.rglob("*.py")),
    ids=lambda p: str(p.relative_to(PACKAGE_DIR)),
)
def test_source_header(path):
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[:2] == HEADER
