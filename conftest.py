import sys
from datetime import date
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from database import DatabaseManager, Reading
from utility_types import ResourceType


@pytest.fixture
def db(tmp_path: Path) -> DatabaseManager:
    return DatabaseManager(str(tmp_path / "meterhq.db"))


@pytest.fixture
def seed(db):
    """Insert readings given as {'YYYY-MM-DD': value}."""
    def _seed(values, resource_type=ResourceType.ELECTRIC):
        for day, value in values.items():
            db.upsert_reading(Reading(date.fromisoformat(day), value, resource_type))
    return _seed
