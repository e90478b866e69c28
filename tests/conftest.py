"""Shared fixtures: in-memory attempt store, shared storage, API client."""
from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from simtrack.core.config import get_settings
from simtrack.core.security import create_session_token
from simtrack.db.base import Base
from simtrack.db.session import get_db
from simtrack.engine.cache import LocalProgressCache
from simtrack.engine.errors import RemoteStoreError
from simtrack.engine.storage import SharedStorage
from simtrack.engine.store import RemoteProgress
from simtrack.engine.tracker import ProgressTracker
from simtrack.main import app
from simtrack.models.simulation import Simulation
from simtrack.models.user import User

SIM_ID = "product-manager"
ATTEMPT_ID = "attempt-1"
TOTAL = 5


class FakeAttemptStore:
    """Attempt store kept in memory; reads and writes can be made to fail or block."""

    def __init__(self, total_task_count: int = TOTAL):
        self.total_task_count = total_task_count
        self.completed: dict[str, set[int]] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.read_calls = 0
        self.write_calls: list[tuple[str, int]] = []
        self.read_gate: asyncio.Event | None = None

    async def read_progress(self, attempt_id: str) -> RemoteProgress:
        self.read_calls += 1
        # the answer reflects the store when the request was sent
        snapshot = tuple(sorted(self.completed.get(attempt_id, set())))
        if self.read_gate is not None:
            await self.read_gate.wait()
        if self.fail_reads:
            raise RemoteStoreError("network down")
        return RemoteProgress(completed_task_indices=snapshot, total_task_count=self.total_task_count)

    async def write_completion(self, attempt_id: str, task_index: int) -> None:
        self.write_calls.append((attempt_id, task_index))
        if self.fail_writes:
            raise RemoteStoreError("network down")
        self.completed.setdefault(attempt_id, set()).add(task_index)


class BrokenStorage:
    """Storage that is never available (private browsing)."""

    def get_item(self, key):
        raise OSError("storage disabled")

    def set_item(self, key, value):
        raise OSError("storage disabled")

    def remove_item(self, key):
        raise OSError("storage disabled")


@pytest.fixture
def shared_storage() -> SharedStorage:
    return SharedStorage()


@pytest.fixture
def tab(shared_storage: SharedStorage):
    return shared_storage.area()


@pytest.fixture
def cache(tab) -> LocalProgressCache:
    return LocalProgressCache(tab)


@pytest.fixture
def store() -> FakeAttemptStore:
    return FakeAttemptStore()


@pytest.fixture
def make_tracker(shared_storage: SharedStorage, store: FakeAttemptStore):
    """Factory: one tracker per simulated tab, all on the same shared storage."""
    trackers: list[ProgressTracker] = []

    def factory(user_id=None, attempt_id: str = ATTEMPT_ID, total: int = TOTAL, storage=None) -> ProgressTracker:
        area = storage if storage is not None else shared_storage.area()
        tracker = ProgressTracker(
            simulation_id=SIM_ID,
            attempt_id=attempt_id,
            total_task_count=total,
            cache=LocalProgressCache(area),
            store=store,
            user_id=user_id,
            storage=area if storage is None else None,
        )
        trackers.append(tracker)
        return tracker

    yield factory
    for tracker in trackers:
        tracker.close()


# ---------- API ----------

SEED_STEPS = [{"title": f"Task {i + 1}", "stage": i + 1} for i in range(TOTAL)]


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with factory() as db:
        db.add(Simulation(slug=SIM_ID, title="A Week as a Product Manager", steps_json=json.dumps(SEED_STEPS)))
        db.add(Simulation(slug="retired", title="Retired", steps_json="[]", active=False))
        db.add(User(email="ada@example.com"))
        db.add(User(email="grace@example.com"))
        await db.commit()

    yield factory
    await engine.dispose()


@pytest.fixture
async def api_app(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


def auth_cookies(user_id: int) -> dict[str, str]:
    return {get_settings().auth_cookie_name: create_session_token(user_id)}


def guest_cookies(session_id: str) -> dict[str, str]:
    return {get_settings().session_cookie_name: session_id}


@pytest.fixture
async def make_client(api_app):
    clients: list[httpx.AsyncClient] = []

    def factory(cookies: dict[str, str] | None = None) -> httpx.AsyncClient:
        client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=api_app),
            base_url="http://test",
            cookies=cookies,
        )
        clients.append(client)
        return client

    yield factory
    for client in clients:
        await client.aclose()
