import os
import sys
import asyncio
from typing import List, Optional

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


@pytest.fixture(scope="session")
def session_loop():
    """Single event loop for all sync fixtures that need to run async DB code."""

    loop = asyncio.new_event_loop()
    yield loop
    loop.close()

# Register every model with the declarative Base so metadata.create_all builds
# the whole archive schema.
from pointiq import db, models  # noqa: F401
from pointiq.exceptions import RemoteStoreError
from pointiq.schemas import PointRecord

# Honour any externally provided DATABASE_URL but fall back to an in-memory
# SQLite database so local runs remain isolated.
DEFAULT_DB_URL = os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep developer Supabase credentials and data dirs out of the tests."""

    for name in (
        "SUPABASE_URL",
        "SUPABASE_KEY",
        "POINTIQ_POINTS_FILE",
        "POINTIQ_SUPABASE_TABLE",
        "POINTIQ_SYNC_QUEUE_SIZE",
        "POINTIQ_REMOTE_TIMEOUT",
        "POINTIQ_AUTO_ADVANCE_GAMES",
        "API_PREFIX",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("POINTIQ_DATA_DIR", str(tmp_path / "data"))
    yield


@pytest.fixture(autouse=True, scope="session")
def ensure_database(session_loop):
    """Ensure the test database starts clean and honours DATABASE_URL."""

    mp = pytest.MonkeyPatch()
    desired_url = os.getenv("DATABASE_URL") or DEFAULT_DB_URL
    mp.setenv("DATABASE_URL", desired_url)

    if desired_url.startswith("sqlite") and ":memory:" not in desired_url:
        path = desired_url.split("///")[-1]
        if os.path.exists(path):
            os.remove(path)

    db.engine = None
    db.AsyncSessionLocal = None
    yield
    session_loop.run_until_complete(db.dispose_engine())
    mp.undo()


async def _reset_schema(engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(db.Base.metadata.drop_all)
        await conn.run_sync(db.Base.metadata.create_all)


@pytest.fixture
def archive_db(session_loop):
    """Reset the match archive schema before a test that touches the database."""

    engine = db.engine or db.get_engine()
    session_loop.run_until_complete(_reset_schema(engine))
    yield engine


class FakeRemote:
    """In-memory stand-in for the Supabase point table."""

    def __init__(self, records: List[PointRecord] | None = None) -> None:
        self.rows = {r.id: r for r in records or []}
        self.calls: List[str] = []
        self.fail = False

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if self.fail:
            raise RemoteStoreError(operation, "connection refused")

    async def insert(self, record: PointRecord) -> None:
        self._check("insert")
        self.rows[record.id] = record

    async def select_all(self, match_id: Optional[str] = None) -> List[PointRecord]:
        self._check("select_all")
        rows = [
            r for r in self.rows.values() if match_id is None or r.match_id == match_id
        ]
        return sorted(rows, key=lambda r: r.timestamp, reverse=True)

    async def delete_by_id(self, point_id: str) -> None:
        self._check("delete_by_id")
        self.rows.pop(point_id, None)

    async def delete_all(self, match_id: Optional[str] = None) -> None:
        self._check("delete_all")
        self.rows = {
            k: r
            for k, r in self.rows.items()
            if match_id is not None and r.match_id != match_id
        }


@pytest.fixture
def fake_remote():
    return FakeRemote()
