"""
Global test configuration with support for different test types.
"""

from contextlib import suppress
import logging
import os

import pytest

from page_insight.pipeline.stage_executor import StageExecutor
from tests.helpers import FakeAdapter, RecordingSleep


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-in escape hatch: mark a test with @pytest.mark.allow_dotenv
    to permit .env loading for that specific test.
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "page_insight.config.env_loader.load_dotenv",
            lambda *_args, **_kwargs: False,
        )


@pytest.fixture(autouse=True)
def isolate_page_insight_env(request, monkeypatch):
    """Ensure a clean PAGE_INSIGHT_* environment for each test.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the current env.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("PAGE_INSIGHT_"):
            monkeypatch.delenv(key, raising=False)
    # Avoid DEBUG toggles enabling telemetry
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(autouse=True)
def neutral_home_config(request, monkeypatch, tmp_path):
    """Point the home-config path to an isolated temp file by default.

    Prevents reading a developer's real ~/.config/page_insight.toml.
    """
    if request.node.get_closest_marker("allow_real_home_config"):
        return
    fake_home_dir = tmp_path / "home_config_isolated"
    fake_home_dir.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv(
        "PAGE_INSIGHT_CONFIG_HOME", str(fake_home_dir / "page_insight.toml")
    )


@pytest.fixture(autouse=True)
def isolated_project_dir(request, monkeypatch, tmp_path):
    """Run each test from an empty directory so no pyproject.toml is found."""
    if request.node.get_closest_marker("allow_real_project_config"):
        return
    project_dir = tmp_path / "project"
    project_dir.mkdir(exist_ok=True)
    monkeypatch.chdir(project_dir)


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Sets the log level for noisy external libraries to WARNING."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "contract: Behavioral guarantees of the public pipeline",
        "integration: Component integration tests with mocked HTTP",
        "allow_dotenv: Permit python-dotenv to load .env files",
        "allow_env_pollution: Keep PAGE_INSIGHT_* variables from the real env",
        "allow_real_home_config: Read the real home configuration file",
        "allow_real_project_config: Run from the real working directory",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Core Fixtures ---


@pytest.fixture
def mock_api_key():
    """Provide a consistent, fake API key for tests."""
    return "test_api_key_12345_67890_abcdef_ghijkl"


@pytest.fixture
def fake_adapter():
    """An adapter that answers every stage successfully."""
    return FakeAdapter()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def stage_executor(recording_sleep):
    """Stage executor whose backoff sleeps return immediately."""
    return StageExecutor(sleep=recording_sleep)
