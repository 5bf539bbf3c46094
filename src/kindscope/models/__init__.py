"""Pure frozen dataclasses with zero network I/O.

The models layer is the foundation of the package. It depends on no other
kindscope package, only on the standard library (``nostr_sdk`` appears in
type hints and in [Event.from_nostr()][kindscope.models.event.Event.from_nostr]).
Every model validates itself in ``__post_init__`` so invalid instances never
escape the constructor.

Attributes:
    Event: Immutable Nostr event keyed by its ``id``.
    RelayAddress: Relay URL accepted by scheme prefix only.
    FetchRequest: Normalized author/time-window/kind/relays request.
    KindNames: Immutable kind-number to display-name table.
    SessionState: Lifecycle and settlement states of a relay session.

See Also:
    [kindscope.explorer][]: Fetches, merges, and classifies these models.
"""

from .constants import DEFAULT_RELAYS, EVENT_KIND_MAX, RELAY_SCHEMES, EventKind, SessionState
from .event import Event
from .kinds import (
    CURATED_KIND_NAMES,
    KindNames,
    NameLookup,
    is_plausible_kind_name,
    placeholder_name,
)
from .relay import RelayAddress, has_relay_scheme, parse_relay_list
from .request import FetchRequest


__all__ = [
    "CURATED_KIND_NAMES",
    "DEFAULT_RELAYS",
    "EVENT_KIND_MAX",
    "RELAY_SCHEMES",
    "Event",
    "EventKind",
    "FetchRequest",
    "KindNames",
    "NameLookup",
    "RelayAddress",
    "SessionState",
    "has_relay_scheme",
    "is_plausible_kind_name",
    "parse_relay_list",
    "placeholder_name",
]
