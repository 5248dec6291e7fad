"""
Repository-level pytest configuration.

Why this exists:
  - Register the UI fixtures plugin for every test directory
  - Provide safe defaults for local runs (no secrets embedded)
  - Initialise logging once per run
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

from crm_autotest.common.global_config import get_config, init_logger


pytest_plugins = ["crm_autotest.ui_testing.fixtures"]


def pytest_configure(config):
    init_logger()


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _local_env_defaults() -> Generator[None, None, None]:
    """
    Set local defaults if not already provided by the user/CI.

    This keeps local runs predictable.
    """
    defaults = {
        "ENV": "dev",
        "UI_BASE_URL": get_config("app.base_url", "http://localhost:3000"),
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, str(v))

    yield


@pytest.fixture(scope="session")
def app_base_url() -> str:
    """Base URL of the application under test."""
    return os.getenv("UI_BASE_URL", get_config("app.base_url", "http://localhost:3000"))
