"""
Unit tests for explorer.store module.

Tests:
- insert() idempotence by event id
- count() / all() / __len__ / __contains__ / __iter__
- on_count callback
- Concurrent insertion from threads and tasks
"""

import asyncio
import threading

from kindscope.explorer.store import EventStore
from tests.conftest import make_event


class TestInsert:
    def test_new_event(self):
        store = EventStore()
        assert store.insert(make_event(1)) is True
        assert store.count() == 1

    def test_duplicate_ignored(self):
        store = EventStore()
        store.insert(make_event(1))
        assert store.insert(make_event(1)) is False
        assert store.count() == 1

    def test_first_copy_wins(self):
        store = EventStore()
        first = make_event(1, content="first")
        store.insert(first)
        store.insert(make_event(1, content="second"))
        assert store.all()[0].content == "first"

    def test_empty(self):
        store = EventStore()
        assert store.count() == 0
        assert store.all() == []
        assert len(store) == 0


class TestQueries:
    def test_contains_by_id(self):
        store = EventStore()
        event = make_event(5)
        store.insert(event)
        assert event.id in store
        assert make_event(6).id not in store

    def test_iter_and_len(self):
        store = EventStore()
        for n in range(3):
            store.insert(make_event(n))
        assert len(store) == 3
        assert {e.id for e in store} == {make_event(n).id for n in range(3)}

    def test_all_is_snapshot(self):
        store = EventStore()
        store.insert(make_event(1))
        snapshot = store.all()
        store.insert(make_event(2))
        assert len(snapshot) == 1


class TestCallback:
    def test_called_with_new_count(self):
        counts: list[int] = []
        store = EventStore(on_count=counts.append)
        store.insert(make_event(1))
        store.insert(make_event(1))
        store.insert(make_event(2))
        assert counts == [1, 2]


class TestConcurrency:
    def test_threads_never_duplicate(self):
        store = EventStore()
        events = [make_event(n) for n in range(200)]
        barrier = threading.Barrier(8)

        def worker() -> None:
            barrier.wait()
            for event in events:
                store.insert(event)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.count() == 200

    def test_threads_never_lose_inserts(self):
        store = EventStore()
        added = []
        lock = threading.Lock()

        def worker(offset: int) -> None:
            for n in range(offset, offset + 100):
                if store.insert(make_event(n)):
                    with lock:
                        added.append(n)

        threads = [threading.Thread(target=worker, args=(i * 50,)) for i in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        # Ranges overlap; each id is reported as new exactly once
        assert sorted(added) == sorted(set(added))
        assert store.count() == len(added) == 250

    async def test_tasks(self):
        store = EventStore()
        events = [make_event(n) for n in range(50)]

        async def deliver() -> None:
            for event in events:
                store.insert(event)
                await asyncio.sleep(0)

        await asyncio.gather(*(deliver() for _ in range(5)))
        assert store.count() == 50
