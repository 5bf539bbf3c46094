"""Fan-out coordinator: one request, many relays, one merged result.

[FanoutCoordinator.fetch()][kindscope.explorer.fanout.FanoutCoordinator.fetch]
starts one [RelaySession][kindscope.explorer.session.RelaySession] per relay,
all at once, each with its own deadline. It then waits for **every** session
to settle -- completed, timed out, or failed -- and returns the deduplicated
events. A failing relay only reduces the yield; the fetch itself fails only
on request-level input errors, before any relay is contacted.

Progress is pushed while sessions run: ``on_progress(connected, failed,
total)`` after each settlement and ``on_event_count(count)`` after each newly
stored event.

Examples:
    ```python
    events = await fetch_events(
        "npub1...",
        ["wss://relay.damus.io", "wss://nos.lol"],
        kind=1,
        on_progress=lambda c, f, t: print(f"{c}/{t} connected, {f} failed"),
    )
    ```
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from typing import TYPE_CHECKING

from kindscope.core.exceptions import ConnectivityError, InputError
from kindscope.core.logger import Logger
from kindscope.models.constants import SessionState
from kindscope.utils.transport import DEFAULT_TIMEOUT, NostrSdkTransport

from .liveness import LivenessReporter, LivenessSnapshot, ProgressCallback
from .request import TimeBound, build_request
from .session import RelaySession, SessionResult
from .store import CountCallback, EventStore


if TYPE_CHECKING:
    from kindscope.models.event import Event
    from kindscope.models.relay import RelayAddress
    from kindscope.models.request import FetchRequest
    from kindscope.utils.transport import RelayTransport


class FanoutCoordinator:
    """Query many relays concurrently and merge their events.

    Each call to [fetch()][kindscope.explorer.fanout.FanoutCoordinator.fetch]
    gets a fresh store and fresh liveness counters; nothing carries over
    between fetches except the ``last_*`` inspection properties.

    Args:
        transport: Relay connection factory (default:
            [NostrSdkTransport][kindscope.utils.transport.NostrSdkTransport]).
        timeout: Per-relay deadline in seconds, counted from each session's
            own dispatch.
        on_progress: Liveness callback ``(connected, failed, total)``.
        on_event_count: Distinct-event count callback.
        logger: Structured logger.
    """

    def __init__(
        self,
        transport: RelayTransport | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
        on_progress: ProgressCallback | None = None,
        on_event_count: CountCallback | None = None,
        logger: Logger | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self._transport: RelayTransport = transport or NostrSdkTransport()
        self._timeout = timeout
        self._on_progress = on_progress
        self._on_event_count = on_event_count
        self._logger = logger or Logger("kindscope.fanout")
        self._last_results: tuple[SessionResult, ...] = ()
        self._last_liveness: LivenessSnapshot | None = None

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def last_results(self) -> tuple[SessionResult, ...]:
        """Per-relay results of the most recent fetch, in relay order."""
        return self._last_results

    @property
    def last_liveness(self) -> LivenessSnapshot | None:
        """Final liveness counts of the most recent fetch."""
        return self._last_liveness

    async def fetch(self, request: FetchRequest) -> list[Event]:
        """Fetch *request* from all of its relays and return the distinct events.

        Returns:
            Deduplicated events in no particular order; see
            [classify()][kindscope.explorer.classify.classify] for ordering.

        Raises:
            InputError: If the request has no relays.
        """
        if not request.relays:
            raise InputError("At least one valid relay is required")

        store = EventStore(on_count=self._on_event_count)
        liveness = LivenessReporter(len(request.relays), on_progress=self._on_progress)
        liveness.publish()
        if self._on_event_count is not None:
            self._on_event_count(0)

        sessions = [self._create_session(relay, request, store, liveness) for relay in request.relays]

        self._logger.info(
            "fetch_started",
            pubkey=request.pubkey,
            relays=len(sessions),
            kind=request.kind if request.kind is not None else "all",
            since=request.since or "",
            until=request.until or "",
        )
        started = time.monotonic()

        outcomes = await asyncio.gather(*(s.run() for s in sessions), return_exceptions=True)
        results = tuple(
            self._collect(session, outcome) for session, outcome in zip(sessions, outcomes, strict=True)
        )

        snapshot = liveness.snapshot()
        self._last_results = results
        self._last_liveness = snapshot

        events = store.all()
        self._logger.info(
            "fetch_completed",
            events=len(events),
            connected=snapshot.connected,
            failed=snapshot.failed,
            total=snapshot.total,
            duration=round(time.monotonic() - started, 3),
        )
        return events

    def _create_session(
        self,
        relay: RelayAddress,
        request: FetchRequest,
        store: EventStore,
        liveness: LivenessReporter,
    ) -> RelaySession:
        return RelaySession(
            relay,
            request,
            self._transport,
            store,
            liveness,
            timeout=self._timeout,
        )

    def _collect(self, session: RelaySession, outcome: SessionResult | BaseException) -> SessionResult:
        if isinstance(outcome, SessionResult):
            return outcome
        if not isinstance(outcome, Exception):
            # KeyboardInterrupt, SystemExit, CancelledError
            raise outcome
        self._logger.error(
            "session_crashed",
            relay=session.relay.url,
            error_type=type(outcome).__name__,
            error=str(outcome),
        )
        session.settle(SessionState.ERROR, ConnectivityError(f"Unexpected error: {outcome}"))
        return session.result()


async def fetch_events(
    pubkey: str,
    relays: str | Iterable[str | RelayAddress],
    *,
    since: TimeBound = None,
    until: TimeBound = None,
    kind: int | str | None = None,
    transport: RelayTransport | None = None,
    timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
    on_progress: ProgressCallback | None = None,
    on_event_count: CountCallback | None = None,
) -> list[Event]:
    """Validate the inputs and run a single fan-out fetch.

    See [build_request()][kindscope.explorer.request.build_request] for the
    accepted input forms.

    Raises:
        InputError: On a missing/invalid key or when no valid relay remains.
    """
    request = build_request(pubkey, relays, since=since, until=until, kind=kind)
    coordinator = FanoutCoordinator(
        transport,
        timeout=timeout,
        on_progress=on_progress,
        on_event_count=on_event_count,
    )
    return await coordinator.fetch(request)
