"""One relay, one subscription, one settlement.

A [RelaySession][kindscope.explorer.session.RelaySession] connects to a single
relay, subscribes with the request filter, forwards every event it receives
to the shared [EventStore][kindscope.explorer.store.EventStore], and settles
exactly once:

* ``complete`` -- the relay signalled end of stored events;
* ``timeout`` -- the per-relay deadline, started at dispatch, elapsed first;
* ``error`` -- connecting or streaming failed.

Failures are *returned* as a [SessionResult][kindscope.explorer.session.SessionResult],
never raised, so one broken relay cannot cut short the fan-out. Only task
cancellation propagates.

Every settlement path goes through a per-session
[SettleOnce][kindscope.explorer.session.SettleOnce] cell: the first
``settle()`` wins and reports to the liveness counters, later ones are no-ops.
"""

from __future__ import annotations

import asyncio
import contextlib
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from kindscope.core.exceptions import ConnectivityError, KindscopeError, RelayTimeoutError
from kindscope.core.logger import Logger
from kindscope.models.constants import SessionState
from kindscope.utils.transport import DEFAULT_TIMEOUT

from .request import create_filter


if TYPE_CHECKING:
    from kindscope.models.relay import RelayAddress
    from kindscope.models.request import FetchRequest
    from kindscope.utils.transport import RelayConnection, RelayTransport

    from .liveness import LivenessReporter
    from .store import EventStore


T = TypeVar("T")

# Upper bound on a single connection shutdown after settlement
_CLOSE_TIMEOUT = 2.0

# Closes still running after their session returned; entries drop out when done
_pending_closes: set[asyncio.Task[None]] = set()


async def _close_quietly(connection: RelayConnection) -> None:
    # The outcome is already settled; close errors are not part of it.
    with contextlib.suppress(Exception):
        await asyncio.wait_for(connection.close(), timeout=_CLOSE_TIMEOUT)


async def drain_closes() -> None:
    """Wait for connection closes that outlived their sessions.

    Each close is bounded, so this returns within a couple of seconds.
    """
    loop = asyncio.get_running_loop()
    pending = {task for task in _pending_closes if task.get_loop() is loop}
    if pending:
        await asyncio.wait(pending)


class SettleOnce(Generic[T]):
    """Write-once cell: the first [settle()][kindscope.explorer.session.SettleOnce.settle] wins.

    Examples:
        ```python
        cell = SettleOnce()
        cell.settle("timeout")   # True
        cell.settle("complete")  # False, already settled
        cell.value               # 'timeout'
        ```
    """

    __slots__ = ("_lock", "_settled", "_value")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._settled = False
        self._value: T | None = None

    def settle(self, value: T) -> bool:
        """Store *value* if nothing is stored yet.

        Returns:
            ``True`` if this call settled the cell.
        """
        with self._lock:
            if self._settled:
                return False
            self._settled = True
            self._value = value
            return True

    @property
    def is_settled(self) -> bool:
        return self._settled

    @property
    def value(self) -> T | None:
        return self._value


@dataclass(frozen=True, slots=True)
class SessionResult:
    """Outcome of one relay session.

    Attributes:
        relay: The relay queried.
        state: Settled state (``complete``, ``timeout``, or ``error``).
        events_received: Events delivered by the relay, duplicates included.
        duration: Seconds from dispatch to settlement.
        error: The absorbed failure, ``None`` when complete.
    """

    relay: RelayAddress
    state: SessionState
    events_received: int
    duration: float
    error: KindscopeError | None = None


class RelaySession:
    """Fetch the request's events from one relay.

    Args:
        relay: The relay to query.
        request: The fetch request (author, window, kind).
        transport: Connection factory.
        store: Shared deduplicating store receiving every event.
        liveness: Shared counters receiving the single settlement.
        timeout: Deadline in seconds from the start of
            [run()][kindscope.explorer.session.RelaySession.run].
        logger: Logger for settlement records.
    """

    def __init__(
        self,
        relay: RelayAddress,
        request: FetchRequest,
        transport: RelayTransport,
        store: EventStore,
        liveness: LivenessReporter,
        *,
        timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
        logger: Logger | None = None,
    ) -> None:
        self._relay = relay
        self._request = request
        self._transport = transport
        self._store = store
        self._liveness = liveness
        self._timeout = timeout
        self._logger = logger or Logger("kindscope.session")
        self._state = SessionState.PENDING
        self._outcome: SettleOnce[SessionState] = SettleOnce()
        self._error: KindscopeError | None = None
        self._events_received = 0
        self._started: float | None = None
        self._duration = 0.0

    @property
    def relay(self) -> RelayAddress:
        return self._relay

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def events_received(self) -> int:
        return self._events_received

    def settle(self, state: SessionState, error: KindscopeError | None = None) -> bool:
        """Settle the session, reporting to the liveness counters once.

        Returns:
            ``True`` if this call settled the session, ``False`` if it was
            already settled (the call is then a no-op).

        Raises:
            ValueError: If *state* is not a settled state.
        """
        if not state.is_settled:
            raise ValueError(f"Cannot settle with non-terminal state: {state}")
        if not self._outcome.settle(state):
            return False

        self._state = state
        self._error = error
        if self._started is not None:
            self._duration = time.monotonic() - self._started
        self._liveness.record(state)

        log = self._logger.info if state.is_success else self._logger.warning
        log(
            "session_settled",
            relay=self._relay.url,
            outcome=state,
            events=self._events_received,
            duration=round(self._duration, 3),
            error=error or "",
        )
        return True

    def result(self) -> SessionResult:
        """Return the settled outcome.

        Raises:
            RuntimeError: If the session has not settled yet.
        """
        state = self._outcome.value
        if state is None:
            raise RuntimeError(f"Session for {self._relay.url} has not settled")
        return SessionResult(
            relay=self._relay,
            state=state,
            events_received=self._events_received,
            duration=self._duration,
            error=self._error,
        )

    async def run(self) -> SessionResult:
        """Connect, stream until end of stored events, and settle.

        Returns:
            The [SessionResult][kindscope.explorer.session.SessionResult];
            connection failures and timeouts are reported here, not raised.
        """
        self._started = time.monotonic()
        connection: RelayConnection | None = None

        try:
            async with asyncio.timeout(self._timeout):
                connection = await self._transport.connect(self._relay, self._timeout)
                self._state = SessionState.CONNECTED

                event_filter = create_filter(self._request)
                self._state = SessionState.STREAMING
                async for event in connection.subscribe(event_filter):
                    self._events_received += 1
                    self._store.insert(event)

            self.settle(SessionState.COMPLETE)
        except TimeoutError:
            self.settle(
                SessionState.TIMEOUT,
                RelayTimeoutError(f"No end of stored events within {self._timeout}s"),
            )
        except OSError as e:
            self.settle(SessionState.ERROR, ConnectivityError(str(e) or type(e).__name__))
        except ConnectivityError as e:
            self.settle(SessionState.ERROR, e)
        finally:
            if connection is not None:
                await self._close(connection)

        return self.result()

    async def _close(self, connection: RelayConnection) -> None:
        # Wait for the close only while the session deadline allows; past it
        # the connection is abandoned and finishes closing in the background.
        task = asyncio.get_running_loop().create_task(_close_quietly(connection))
        _pending_closes.add(task)
        task.add_done_callback(_pending_closes.discard)

        started = self._started if self._started is not None else time.monotonic()
        remaining = max(started + self._timeout - time.monotonic(), 0.0)
        await asyncio.wait({task}, timeout=remaining)
