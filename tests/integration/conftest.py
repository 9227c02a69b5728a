"""Pytest configuration and fixtures for integration tests.

Ensures environment variables are loaded and checks that a live provider is
reachable before running integration tests.
"""

import os
from pathlib import Path

import httpx
import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Load .env and force a small, deterministic setup for live runs."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    os.environ.setdefault("MAX_ATTEMPTS", "2")
    os.environ.setdefault("RETRY_DELAY_SECONDS", "1")

    print("\n" + "=" * 70)
    print("Note: These tests require a running Ollama server or OPENAI_API_KEY")
    print(f"Environment loaded from: {env_path}")
    print(f"  - OLLAMA_BASE_URL: {os.getenv('OLLAMA_BASE_URL', 'http://localhost:11434')}")
    print(f"  - OLLAMA_MODEL: {os.getenv('OLLAMA_MODEL', 'gemma3:1b')}")
    print(f"  - OPENAI_API_KEY: {'set' if os.getenv('OPENAI_API_KEY') else 'not set'}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session", autouse=True)
def check_provider_available():
    """Skip the whole session when no provider can be used.

    Runs for all integration tests: requires either a reachable Ollama server
    or a configured OPENAI_API_KEY.
    """
    if os.getenv("OPENAI_API_KEY"):
        return

    base_url = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434").rstrip("/")
    try:
        response = httpx.get(f"{base_url}/api/tags", timeout=3)
        if response.status_code == 200:
            return
        reason = f"status {response.status_code}"
    except httpx.HTTPError as e:
        reason = str(e)

    pytest.skip(
        f"Integration tests skipped. Ollama not reachable at {base_url} ({reason}) and OPENAI_API_KEY not set.",
        allow_module_level=True,
    )
