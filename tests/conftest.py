"""
Pytest configuration and shared fixtures for kindscope tests.

Provides:
- Event factory with valid hex ids
- In-memory RelayTransport / RelayConnection fakes
- Sample request fixtures
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from typing import Any

import pytest

from kindscope.models import Event, FetchRequest, RelayAddress


# A real secp256k1 public key, so nostr_sdk accepts it in filters
PUBKEY_HEX = "3bf0c63fcb93463407af97a5e5ee64fa883d107ef9e558472c4eb9aaaefa459d"
PUBKEY_NPUB = "npub180cvv07tjdrrgpa0j7j7tmnyl2yr6yr7l8j4s3evf6u64th6gkwsyjh6w6"


def make_event(
    n: int,
    *,
    kind: int = 1,
    created_at: int = 1_700_000_000,
    content: str = "",
    pubkey: str = PUBKEY_HEX,
) -> Event:
    """Build an Event whose id is *n* rendered as 64 hex digits."""
    return Event(
        id=f"{n:064x}",
        pubkey=pubkey,
        created_at=created_at,
        kind=kind,
        content=content,
    )


# ============================================================================
# Transport Fakes
# ============================================================================


class FakeConnection:
    """RelayConnection that replays a fixed event list.

    Args:
        events: Events yielded in order.
        hang: Never signal end of stored events after the last event.
        error: Raised after the last event instead of ending the stream.
        delay: Seconds to sleep before each event.
    """

    def __init__(
        self,
        events: Iterable[Event] = (),
        *,
        hang: bool = False,
        error: BaseException | None = None,
        delay: float = 0.0,
    ) -> None:
        self.events = list(events)
        self.hang = hang
        self.error = error
        self.delay = delay
        self.filters: list[Any] = []
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    async def subscribe(self, event_filter: Any) -> AsyncIterator[Event]:
        self.filters.append(event_filter)
        for event in self.events:
            if self.delay:
                await asyncio.sleep(self.delay)
            yield event
        if self.error is not None:
            raise self.error
        if self.hang:
            await asyncio.Event().wait()

    async def close(self) -> None:
        self.close_calls += 1


class FakeTransport:
    """RelayTransport mapping relay URLs to a connection or a connect error."""

    def __init__(self, behaviours: Mapping[str, FakeConnection | BaseException]) -> None:
        self.behaviours = dict(behaviours)
        self.connected: list[str] = []

    async def connect(self, relay: RelayAddress, timeout: float) -> FakeConnection:  # noqa: ASYNC109
        self.connected.append(relay.url)
        behaviour = self.behaviours[relay.url]
        if isinstance(behaviour, BaseException):
            raise behaviour
        return behaviour


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


@pytest.fixture
def relay_a() -> RelayAddress:
    return RelayAddress("wss://a.example")


@pytest.fixture
def relay_b() -> RelayAddress:
    return RelayAddress("wss://b.example")


@pytest.fixture
def relay_c() -> RelayAddress:
    return RelayAddress("wss://c.example")


@pytest.fixture
def fetch_request(relay_a: RelayAddress, relay_b: RelayAddress, relay_c: RelayAddress) -> FetchRequest:
    """Request over three relays with no time window or kind filter."""
    return FetchRequest(pubkey=PUBKEY_HEX, relays=(relay_a, relay_b, relay_c))


@pytest.fixture
def abc_events() -> tuple[Event, Event, Event]:
    """Events 1 (kind 1), 2 (kind 0), 3 (kind 1), oldest to newest."""
    return (
        make_event(1, kind=1, created_at=100, content="first note"),
        make_event(2, kind=0, created_at=200, content='{"name": "alice"}'),
        make_event(3, kind=1, created_at=300, content="second note"),
    )
