"""Pytest configuration for the ocacli tests."""

import sys
from pathlib import Path

import pytest

PYTHON_SRC = Path(__file__).resolve().parents[1]
if str(PYTHON_SRC) not in sys.path:
    sys.path.append(str(PYTHON_SRC))
TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.append(str(TESTS_DIR))

from device_stubs import make_context  # noqa: E402


@pytest.fixture
def ctx():
    context = make_context()
    yield context
    context.finish()
