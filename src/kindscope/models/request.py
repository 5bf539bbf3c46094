"""
Validated fetch request.

A [FetchRequest][kindscope.models.request.FetchRequest] is the single input of
a fan-out fetch: whose events, which time window, which kind, and which
relays. Values are already normalized (hex author, integer timestamps); the
boundary conversion from user input lives in
[build_request()][kindscope.explorer.request.build_request].
"""

from __future__ import annotations

from dataclasses import dataclass

from ._validation import validate_hex_key, validate_instance, validate_int
from .constants import EVENT_KIND_MAX
from .relay import RelayAddress


@dataclass(frozen=True, slots=True)
class FetchRequest:
    """Immutable, normalized request for one fan-out fetch.

    ``since <= until`` is the caller's responsibility and is not checked.

    Attributes:
        pubkey: Author public key, 64 lowercase hex characters.
        relays: Relays to query, at least one.
        since: Inclusive lower bound on ``created_at``, or ``None``.
        until: Inclusive upper bound on ``created_at``, or ``None``.
        kind: Restrict to one event kind, or ``None`` for all kinds.

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If the key is malformed, ``relays`` is empty, or a bound
            or kind is out of range.
    """

    pubkey: str
    relays: tuple[RelayAddress, ...]
    since: int | None = None
    until: int | None = None
    kind: int | None = None

    def __post_init__(self) -> None:
        validate_hex_key(self.pubkey, "pubkey")
        object.__setattr__(self, "relays", tuple(self.relays))
        if not self.relays:
            raise ValueError("relays must not be empty")
        for relay in self.relays:
            validate_instance(relay, RelayAddress, "relay")
        if self.since is not None:
            validate_int(self.since, "since")
        if self.until is not None:
            validate_int(self.until, "until")
        if self.kind is not None:
            validate_int(self.kind, "kind", maximum=EVENT_KIND_MAX)
