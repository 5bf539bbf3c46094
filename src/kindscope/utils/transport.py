"""Relay transport: connect, subscribe, close.

The explorer talks to relays only through the small
[RelayTransport][kindscope.utils.transport.RelayTransport] protocol defined
here, so sessions can be driven by the real Nostr client in production and by
in-memory fakes in tests.

[NostrSdkTransport][kindscope.utils.transport.NostrSdkTransport] is the
production implementation. It opens one ``nostr_sdk.Client`` per relay,
connects with ``try_connect`` (so a refused connection is reported instead of
being retried in the background), and streams stored events until the relay
sends EOSE.

Note:
    The SDK stream is given a slightly longer timeout than the session
    deadline, so the caller's own deadline is what ends a silent relay and
    the two outcomes (end of stored events vs. timeout) stay distinguishable.

Errors follow the standard library: a failed connection raises ``OSError``,
an exceeded deadline ``TimeoutError``. Malformed events are logged and
skipped, never raised.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Final, Protocol

from nostr_sdk import Client, ClientBuilder, NostrSigner, RelayUrl

from kindscope.models.event import Event


if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from nostr_sdk import Filter, Keys

    from kindscope.models.relay import RelayAddress


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT: Final[float] = 10.0

# Extra seconds granted to the SDK stream beyond the caller's deadline
_STREAM_GRACE: Final[float] = 1.0

# Upper bound on a single client shutdown
_SHUTDOWN_TIMEOUT: Final[float] = 2.0

# Shutdowns detached from a cancelled connect; entries drop out when done
_detached_shutdowns: set[asyncio.Task[None]] = set()


class RelayConnection(Protocol):
    """An open connection to one relay."""

    def subscribe(self, event_filter: Filter) -> AsyncIterator[Event]:
        """Yield stored events matching *event_filter* until end of stored events."""
        ...

    async def close(self) -> None:
        """Release the connection. Safe to call more than once."""
        ...


class RelayTransport(Protocol):
    """Factory for relay connections."""

    async def connect(self, relay: RelayAddress, timeout: float) -> RelayConnection:  # noqa: ASYNC109
        """Open a connection to *relay*.

        Raises:
            OSError: If the relay cannot be reached.
            TimeoutError: If connecting takes longer than *timeout*.
        """
        ...


async def create_client(keys: Keys | None = None) -> Client:
    """Create a Nostr client, read-only unless *keys* are given.

    Keys are only needed for relays that demand NIP-42 authentication
    before serving stored events.
    """
    builder = ClientBuilder()
    if keys is not None:
        builder = builder.signer(NostrSigner.keys(keys))
    return builder.build()


async def _shutdown(client: Client) -> None:
    # nostr-sdk Rust FFI can raise arbitrary exception types during shutdown.
    with contextlib.suppress(Exception):
        await asyncio.wait_for(client.shutdown(), timeout=_SHUTDOWN_TIMEOUT)


def _detach_shutdown(client: Client) -> None:
    task = asyncio.get_running_loop().create_task(_shutdown(client))
    _detached_shutdowns.add(task)
    task.add_done_callback(_detached_shutdowns.discard)


class NostrSdkConnection:
    """[RelayConnection][kindscope.utils.transport.RelayConnection] backed by a ``nostr_sdk.Client``."""

    __slots__ = ("_client", "_closed", "_relay", "_timeout")

    def __init__(self, client: Client, relay: RelayAddress, timeout: float) -> None:  # noqa: ASYNC109
        self._client = client
        self._relay = relay
        self._timeout = timeout
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def subscribe(self, event_filter: Filter) -> AsyncIterator[Event]:
        """Stream stored events, converting each to an [Event][kindscope.models.event.Event].

        Raises:
            OSError: If the connection was closed or the stream fails.
        """
        if self._closed:
            raise OSError(f"Connection closed: {self._relay.url}")

        try:
            stream = await self._client.stream_events(
                event_filter, timedelta(seconds=self._timeout + _STREAM_GRACE)
            )
        except Exception as e:  # noqa: BLE001  # nostr-sdk raises FFI error types
            raise OSError(f"Subscription failed: {self._relay.url} ({e})") from e

        while True:
            try:
                nostr_event = await stream.next()
            except Exception as e:  # noqa: BLE001  # nostr-sdk raises FFI error types
                raise OSError(f"Stream failed: {self._relay.url} ({e})") from e
            if nostr_event is None:
                return
            try:
                yield Event.from_nostr(nostr_event)
            except (ValueError, TypeError, OverflowError) as e:
                logger.debug("event_parse_error relay=%s error=%s", self._relay.url, e)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await _shutdown(self._client)


class NostrSdkTransport:
    """[RelayTransport][kindscope.utils.transport.RelayTransport] using ``nostr_sdk``.

    Args:
        keys: Optional signing keys for NIP-42 authentication.

    Examples:
        ```python
        transport = NostrSdkTransport()
        connection = await transport.connect(RelayAddress("wss://nos.lol"), timeout=10.0)
        try:
            async for event in connection.subscribe(event_filter):
                print(event.id)
        finally:
            await connection.close()
        ```
    """

    def __init__(self, keys: Keys | None = None) -> None:
        self._keys = keys

    async def connect(
        self,
        relay: RelayAddress,
        timeout: float = DEFAULT_TIMEOUT,  # noqa: ASYNC109
    ) -> NostrSdkConnection:
        try:
            relay_url = RelayUrl.parse(relay.url)
        except Exception as e:  # noqa: BLE001  # nostr-sdk raises FFI error types
            raise OSError(f"Invalid relay URL: {relay.url} ({e})") from e

        logger.debug("connecting relay=%s", relay.url)
        client = await create_client(self._keys)
        try:
            await client.add_relay(relay_url)
            output = await client.try_connect(timedelta(seconds=timeout))
        except Exception as e:  # noqa: BLE001  # nostr-sdk raises FFI error types
            await _shutdown(client)
            raise OSError(f"Connection failed: {relay.url} ({e})") from e
        except asyncio.CancelledError:
            # The caller's deadline has passed; do not hold it up any longer.
            _detach_shutdown(client)
            raise

        if relay_url not in output.success:
            await _shutdown(client)
            error_message = output.failed.get(relay_url, "Unknown error")
            raise OSError(f"Connection failed: {relay.url} ({error_message})")

        logger.debug("connected relay=%s", relay.url)
        return NostrSdkConnection(client, relay, timeout)
