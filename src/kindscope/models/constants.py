"""Shared constants for the models layer.

Defines the enumerations and fixed values used across model modules and by
the explorer. Placing them here avoids circular dependencies between the
models, utils, and explorer layers.

See Also:
    [kindscope.models.relay][]: Uses ``RELAY_SCHEMES`` to accept relay addresses.
    [kindscope.explorer.session][]: Moves each relay session through
        [SessionState][kindscope.models.constants.SessionState].
"""

from __future__ import annotations

from enum import IntEnum, StrEnum


class SessionState(StrEnum):
    """Lifecycle of a single relay session within one fetch.

    A session starts ``PENDING``, becomes ``CONNECTED`` once the WebSocket is
    open and ``STREAMING`` once the subscription is issued. It then ends in
    exactly one of the three settled states.

    Attributes:
        PENDING: Dispatched, connection not yet established.
        CONNECTED: Connection open, subscription not yet issued.
        STREAMING: Subscription issued, receiving stored events.
        COMPLETE: Relay signalled end of stored events (EOSE).
        TIMEOUT: The per-relay deadline elapsed first.
        ERROR: Connection or protocol failure.

    See Also:
        [RelaySession][kindscope.explorer.session.RelaySession]: Owns the
            state transitions.
        [LivenessReporter][kindscope.explorer.liveness.LivenessReporter]:
            Counts settled states.
    """

    PENDING = "pending"
    CONNECTED = "connected"
    STREAMING = "streaming"
    COMPLETE = "complete"
    TIMEOUT = "timeout"
    ERROR = "error"

    @property
    def is_settled(self) -> bool:
        """Whether this is a terminal state."""
        return self in _SETTLED_STATES

    @property
    def is_success(self) -> bool:
        """Whether this terminal state counts as a connected relay."""
        return self is SessionState.COMPLETE


_SETTLED_STATES = frozenset({SessionState.COMPLETE, SessionState.TIMEOUT, SessionState.ERROR})


class EventKind(IntEnum):
    """Event kinds the explorer renders specially.

    Attributes:
        SET_METADATA: Kind 0 -- profile metadata, summarized by its ``name``.
        TEXT_NOTE: Kind 1 -- short text note, summarized by a content preview.
    """

    SET_METADATA = 0
    TEXT_NOTE = 1


EVENT_KIND_MAX = 65_535

RELAY_SCHEMES: tuple[str, ...] = ("wss://", "ws://")

DEFAULT_RELAYS: tuple[str, ...] = (
    "wss://relay.damus.io",
    "wss://relay.nostr.band",
    "wss://nos.lol",
    "wss://nostr.wine",
    "wss://relay.current.fyi",
    "wss://relay.snort.social",
    "wss://nostr.fmt.wiz.biz",
    "wss://relay.nostr.info",
    "wss://nostr.zebedee.cloud",
    "wss://nostr.oxtr.dev",
    "wss://brb.io",
    "wss://relay.nostr.bg",
    "wss://nostr.mom",
)
