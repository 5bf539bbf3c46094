"""
Unit tests for explorer.session module.

Tests:
- SettleOnce write-once semantics
- RelaySession.run() complete / timeout / error outcomes
- Exactly one liveness record per session
- Connection always closed after settlement, abandoned past the deadline
- settle() / result() guards
"""

import asyncio
import threading
import time

import pytest

from kindscope.core.exceptions import ConnectivityError, RelayTimeoutError
from kindscope.explorer.liveness import LivenessReporter
from kindscope.explorer.session import RelaySession, SessionResult, SettleOnce, drain_closes
from kindscope.explorer.store import EventStore
from kindscope.models import SessionState
from tests.conftest import FakeConnection, FakeTransport, make_event


class HangingClose(FakeConnection):
    async def close(self) -> None:
        self.close_calls += 1
        await asyncio.Event().wait()


# =============================================================================
# SettleOnce
# =============================================================================


class TestSettleOnce:
    def test_first_wins(self):
        cell: SettleOnce[str] = SettleOnce()
        assert cell.settle("timeout") is True
        assert cell.settle("complete") is False
        assert cell.value == "timeout"

    def test_initially_unsettled(self):
        cell: SettleOnce[str] = SettleOnce()
        assert not cell.is_settled
        assert cell.value is None

    def test_threads_single_winner(self):
        cell: SettleOnce[int] = SettleOnce()
        barrier = threading.Barrier(16)
        wins: list[int] = []

        def worker(n: int) -> None:
            barrier.wait()
            if cell.settle(n):
                wins.append(n)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(wins) == 1
        assert cell.value == wins[0]


# =============================================================================
# RelaySession
# =============================================================================


def _session(relay, request, connection_or_error, *, timeout=1.0, total=1):
    transport = FakeTransport({relay.url: connection_or_error})
    store = EventStore()
    liveness = LivenessReporter(total)
    session = RelaySession(relay, request, transport, store, liveness, timeout=timeout)
    return session, store, liveness


class TestRunComplete:
    async def test_events_stored(self, relay_a, fetch_request, abc_events):
        connection = FakeConnection(abc_events[:2])
        session, store, liveness = _session(relay_a, fetch_request, connection)

        result = await session.run()

        assert isinstance(result, SessionResult)
        assert result.state is SessionState.COMPLETE
        assert result.error is None
        assert result.events_received == 2
        assert result.relay == relay_a
        assert store.count() == 2
        assert liveness.snapshot().connected == 1

    async def test_duplicates_counted_but_not_stored(self, relay_a, fetch_request):
        connection = FakeConnection([make_event(1), make_event(1)])
        session, store, _ = _session(relay_a, fetch_request, connection)

        result = await session.run()

        assert result.events_received == 2
        assert store.count() == 1

    async def test_no_events_is_complete(self, relay_a, fetch_request):
        session, store, _ = _session(relay_a, fetch_request, FakeConnection())
        result = await session.run()
        assert result.state is SessionState.COMPLETE
        assert store.count() == 0

    async def test_connection_closed(self, relay_a, fetch_request):
        connection = FakeConnection([make_event(1)])
        session, _, _ = _session(relay_a, fetch_request, connection)
        await session.run()
        assert connection.close_calls == 1

    async def test_filter_passed_to_subscription(self, relay_a, fetch_request):
        connection = FakeConnection()
        session, _, _ = _session(relay_a, fetch_request, connection)
        await session.run()
        assert len(connection.filters) == 1

    async def test_state_and_duration(self, relay_a, fetch_request):
        session, _, _ = _session(relay_a, fetch_request, FakeConnection())
        assert session.state is SessionState.PENDING
        result = await session.run()
        assert session.state is SessionState.COMPLETE
        assert result.duration >= 0


class TestRunTimeout:
    async def test_hanging_relay_times_out(self, relay_a, fetch_request):
        connection = FakeConnection([make_event(1)], hang=True)
        session, store, liveness = _session(relay_a, fetch_request, connection, timeout=0.05)

        result = await session.run()

        assert result.state is SessionState.TIMEOUT
        assert isinstance(result.error, RelayTimeoutError)
        # Events delivered before the deadline are kept
        assert store.count() == 1
        assert liveness.snapshot().failed == 1
        await drain_closes()
        assert connection.close_calls == 1

    async def test_hanging_close_abandoned_at_deadline(self, relay_a, fetch_request, monkeypatch):
        monkeypatch.setattr("kindscope.explorer.session._CLOSE_TIMEOUT", 0.5)
        connection = HangingClose(hang=True)
        session, _, _ = _session(relay_a, fetch_request, connection, timeout=0.05)

        started = time.monotonic()
        result = await session.run()

        assert result.state is SessionState.TIMEOUT
        assert time.monotonic() - started < 0.3
        await drain_closes()
        assert connection.close_calls == 1

    async def test_hanging_close_bounded_by_deadline(self, relay_a, fetch_request, monkeypatch):
        monkeypatch.setattr("kindscope.explorer.session._CLOSE_TIMEOUT", 0.5)
        connection = HangingClose([make_event(1)])
        session, _, _ = _session(relay_a, fetch_request, connection, timeout=0.1)

        started = time.monotonic()
        result = await session.run()

        assert result.state is SessionState.COMPLETE
        assert time.monotonic() - started < 0.3
        await drain_closes()

    async def test_slow_connect_times_out(self, relay_a, fetch_request):
        class SlowTransport:
            async def connect(self, relay, timeout):
                await asyncio.sleep(10)

        liveness = LivenessReporter(1)
        session = RelaySession(
            relay_a, fetch_request, SlowTransport(), EventStore(), liveness, timeout=0.05
        )

        result = await session.run()

        assert result.state is SessionState.TIMEOUT
        assert liveness.snapshot().failed == 1

    async def test_connected_then_timeout_counted_once(self, relay_a, fetch_request):
        connection = FakeConnection(hang=True)
        session, _, liveness = _session(relay_a, fetch_request, connection, timeout=0.05)

        await session.run()

        snapshot = liveness.snapshot()
        assert (snapshot.connected, snapshot.failed) == (0, 1)


class TestRunError:
    async def test_connect_oserror(self, relay_a, fetch_request):
        session, _, liveness = _session(relay_a, fetch_request, OSError("refused"))

        result = await session.run()

        assert result.state is SessionState.ERROR
        assert isinstance(result.error, ConnectivityError)
        assert "refused" in str(result.error)
        assert liveness.snapshot().failed == 1

    async def test_connect_connectivity_error(self, relay_a, fetch_request):
        error = ConnectivityError("dns failure")
        session, _, _ = _session(relay_a, fetch_request, error)

        result = await session.run()

        assert result.state is SessionState.ERROR
        assert result.error is error

    async def test_stream_drop_keeps_received_events(self, relay_a, fetch_request):
        connection = FakeConnection([make_event(1)], error=ConnectionResetError("reset"))
        session, store, _ = _session(relay_a, fetch_request, connection)

        result = await session.run()

        assert result.state is SessionState.ERROR
        assert store.count() == 1
        assert connection.close_calls == 1

    async def test_empty_oserror_message(self, relay_a, fetch_request):
        session, _, _ = _session(relay_a, fetch_request, ConnectionRefusedError())
        result = await session.run()
        assert str(result.error) == "ConnectionRefusedError"

    async def test_unexpected_exception_propagates(self, relay_a, fetch_request):
        session, _, liveness = _session(relay_a, fetch_request, RuntimeError("bug"))

        with pytest.raises(RuntimeError):
            await session.run()

        assert liveness.snapshot().settled == 0


class TestSettle:
    def test_only_first_settlement_counts(self, relay_a, fetch_request):
        session, _, liveness = _session(relay_a, fetch_request, FakeConnection(), total=2)

        assert session.settle(SessionState.TIMEOUT) is True
        assert session.settle(SessionState.COMPLETE) is False

        assert session.state is SessionState.TIMEOUT
        assert liveness.snapshot().settled == 1
        assert session.result().state is SessionState.TIMEOUT

    def test_non_terminal_rejected(self, relay_a, fetch_request):
        session, _, _ = _session(relay_a, fetch_request, FakeConnection())
        with pytest.raises(ValueError, match="non-terminal"):
            session.settle(SessionState.STREAMING)

    def test_result_before_settlement(self, relay_a, fetch_request):
        session, _, _ = _session(relay_a, fetch_request, FakeConnection())
        with pytest.raises(RuntimeError, match="has not settled"):
            session.result()

    async def test_close_failure_does_not_change_outcome(self, relay_a, fetch_request):
        class BrokenClose(FakeConnection):
            async def close(self) -> None:
                raise OSError("close failed")

        session, _, _ = _session(relay_a, fetch_request, BrokenClose([make_event(1)]))
        result = await session.run()
        assert result.state is SessionState.COMPLETE
