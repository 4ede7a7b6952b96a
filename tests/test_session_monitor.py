import asyncio

import pytest

from vitrineturbo.core import MemoryStorage, SessionStore, SessionRegistry
from vitrineturbo.core.session_monitor import setup_session_monitoring, run_session_sweeper

pytestmark = pytest.mark.asyncio

DAY = 24 * 60 * 60


async def test_monitor_fires_once_on_expiry_and_clears(clock):
    store = SessionStore(MemoryStorage(), clock=clock)
    store.create("u1", "corretor")
    expired = []

    cancel = setup_session_monitoring(store, lambda: expired.append(1), interval=0.01)
    await asyncio.sleep(0.05)
    assert expired == []

    clock.advance(8 * DAY)
    await asyncio.sleep(0.1)

    assert expired == [1]
    assert store.get_stored_user() is None
    cancel()


async def test_monitor_cancel_stops_checks(clock):
    storage = MemoryStorage()
    store = SessionStore(storage, clock=clock)
    store.create("u1", "corretor")
    expired = []

    cancel = setup_session_monitoring(store, lambda: expired.append(1), interval=0.01)
    cancel()
    clock.advance(8 * DAY)
    await asyncio.sleep(0.05)

    assert expired == []
    assert storage.get_item("vitrineturbo_session") is not None


async def test_sweeper_removes_expired_sessions(clock):
    registry = SessionRegistry(MemoryStorage(), clock=clock)
    registry.store_for("session_1_a").create("u1", "corretor", session_id="session_1_a")
    clock.advance(8 * DAY)

    task = asyncio.create_task(run_session_sweeper(registry, interval=0.01))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert registry.session_ids() == set()
