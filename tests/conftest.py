from __future__ import annotations

import importlib
import os
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture(scope="session")
def app():
    # Must be set before the settings cache is populated by the app import.
    os.environ["LLM_API_KEY"] = "test-key"
    os.environ["LLM_PROVIDER"] = "openai"
    os.environ.pop("PUBLIC_DOMAIN", None)

    from config.settings import get_settings

    get_settings.cache_clear()
    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def override(app):
    """Register dependency overrides for one test and clear them afterwards."""

    def _override(dependency, value) -> None:
        app.dependency_overrides[dependency] = lambda: value

    yield _override
    app.dependency_overrides.clear()
