"""Pytest configuration and fixtures for integration tests.

Loads .env from the project root and skips the live tests when the
catalog API key is not configured.
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Load environment variables before test collection."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    print("\n" + "=" * 70)
    print("Note: live tests require SPOONACULAR_API_KEY (and GEMINI_API_KEY for analysis)")
    print(f"Environment loaded from: {env_path}")
    print("=" * 70 + "\n")


@pytest.fixture(scope="session", autouse=True)
def check_api_keys():
    """Skip the whole integration session when the catalog key is missing."""
    if not os.getenv("SPOONACULAR_API_KEY"):
        pytest.skip(
            "Integration tests skipped. Missing API key: SPOONACULAR_API_KEY. Please set it in your .env file.",
            allow_module_level=True,
        )


@pytest.fixture
def require_gemini():
    """Skip a single test when the analysis key is missing."""
    if not os.getenv("GEMINI_API_KEY"):
        pytest.skip("GEMINI_API_KEY not configured")
