"""
Pytest configuration and fixtures for ddb-foundry tests.
"""

import json
import sys
from pathlib import Path

import pytest

# Add src directory to Python path to allow importing ddb_foundry
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def ddb_envelope() -> dict:
    """The sample Cleric export exactly as the character service returns it."""
    with open(FIXTURES_DIR / "ddb_cleric_sample.json", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def ddb_sample(ddb_envelope) -> dict:
    """The sample Cleric character without its API envelope."""
    return ddb_envelope["data"]
