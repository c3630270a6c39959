"""
pytest configuration for replicator tests.

Adds src directory to Python path for imports and resets process-wide state
(config singleton, log context) between tests.
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from config.config import (  # noqa: E402
    DeadLetterConfig,
    ReplicatorConfig,
    SearchConfig,
    reset_config,
)
from core.logging.context import clear_log_context  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_process_state():
    reset_config()
    clear_log_context()
    yield
    reset_config()
    clear_log_context()


@pytest.fixture
def replicator_config():
    """A complete, already-valid configuration."""
    return ReplicatorConfig(
        search=SearchConfig(
            host="search.local",
            port=9200,
            scheme="https",
            index="products",
            username="elastic",
            password="changeme",
        ),
        dead_letter=DeadLetterConfig(
            bootstrap_servers="localhost:9092",
            topic="products.dlq",
        ),
    )
