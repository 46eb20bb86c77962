"""Shared fixtures for the POS core tests."""

import pathlib
import sys

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from config import DEFAULT_TABLES  # noqa: E402
from poscore.tests.fakes import build_harness  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def harness():
    h = build_harness()
    await h.tables.seed(DEFAULT_TABLES)
    return h
