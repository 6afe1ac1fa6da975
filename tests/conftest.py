import os
import sys
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# The app engine is built at import time; point it at a throwaway file first.
_API_DB_DIR = Path(tempfile.mkdtemp(prefix="roof_api_tests_"))
API_DB_FILE = _API_DB_DIR / "api.db"
os.environ["ROOFAPI_DATABASE_URL"] = f"sqlite+aiosqlite:///{API_DB_FILE}"

from roof_api.db.database import create_tables, make_engine, make_session_factory  # noqa: E402
from roof_api.db import models  # noqa: E402,F401


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'validations.db'}"


@pytest.fixture
def open_db(db_url):
    """Async context manager yielding a session factory over a fresh database.

    Must be entered inside the test's own event loop (asyncio.run).
    """

    @asynccontextmanager
    async def _open():
        engine = make_engine(db_url)
        await create_tables(engine)
        try:
            yield make_session_factory(engine)
        finally:
            await engine.dispose()

    return _open


@pytest.fixture
def building_payload():
    """Factory for valid ValidatedBuildingCreate payloads."""

    def _make(**overrides):
        payload = {
            "osm_id": 123456789,
            "osm_type": "way",
            "latitude": 59.3293235,
            "longitude": 18.0685808,
            "roof_color_hex": "#B43232",
            "validation_method": "llm",
            "validated_by": "mapper42",
            "ai_confidence": 0.82,
        }
        payload.update(overrides)
        return payload

    return _make
