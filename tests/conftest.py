# =============================================================================
# Pytest Configuration and Fixtures
# =============================================================================
# Shared fixtures for the Hawk-Bayes test suite.
#
# Coroutine tests and fixtures run under pytest-asyncio (asyncio_mode =
# "auto" in pyproject.toml). Every test gets a fresh in-memory database.
# =============================================================================

import pytest
import tempfile
from pathlib import Path

from hawk_bayes.classifier import Classifier
from hawk_bayes.config import Config
from hawk_bayes.storage import Database, TokenStore


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
async def database():
    """A connected in-memory token database."""
    db = Database(":memory:")
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def store(database):
    """TokenStore on the in-memory database."""
    return TokenStore(database)


@pytest.fixture
def config():
    """Default configuration."""
    return Config()


@pytest.fixture
def classifier(store, config):
    """Classifier with default configuration on an empty store."""
    return Classifier(store, config)


@pytest.fixture
def sample_probable_text():
    """A friendly, ordinary message."""
    return (
        "Hi Anna, thanks for the meeting notes from Tuesday. "
        "Let's review the quarterly report together tomorrow morning."
    )


@pytest.fixture
def sample_improbable_text():
    """A typical junk message."""
    return (
        "URGENT!!! You have WON $1,000,000!!! Claim your prize now: "
        "http://scam.example.com/prize - cheap pills, limited offer!!!"
    )
