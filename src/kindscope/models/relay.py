"""
Relay addresses and relay-list parsing.

The explorer treats a relay as an opaque WebSocket URL. The only rule it
enforces is the connection scheme: anything that does not start with
``ws://`` or ``wss://`` is not a relay address.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ._validation import validate_str_no_null
from .constants import DEFAULT_RELAYS, RELAY_SCHEMES


def has_relay_scheme(url: str) -> bool:
    """Return ``True`` if *url* starts with a WebSocket scheme (case-insensitive)."""
    return url.strip().lower().startswith(RELAY_SCHEMES)


@dataclass(frozen=True, slots=True)
class RelayAddress:
    """Immutable address of one relay.

    Attributes:
        url: The relay URL with surrounding whitespace stripped.

    Raises:
        ValueError: If the URL lacks a ``ws://``/``wss://`` prefix or
            contains null bytes.

    Examples:
        ```python
        relay = RelayAddress(" wss://nos.lol ")
        relay.url     # 'wss://nos.lol'
        relay.scheme  # 'wss'
        ```
    """

    url: str

    def __post_init__(self) -> None:
        validate_str_no_null(self.url, "url")
        url = self.url.strip()
        if not has_relay_scheme(url):
            raise ValueError(f"Invalid relay address: {url!r} (expected ws:// or wss://)")
        object.__setattr__(self, "url", url)

    @property
    def scheme(self) -> str:
        return self.url.split("://", 1)[0].lower()

    def __str__(self) -> str:
        return self.url


def parse_relay_list(
    value: str | Iterable[str] | None,
    default: Iterable[str] = DEFAULT_RELAYS,
) -> list[RelayAddress]:
    """Parse a relay list, silently dropping entries without a relay scheme.

    Accepts either a comma-separated string or an iterable of URLs. A missing
    or blank input yields *default*. Duplicates are removed, keeping the first
    occurrence.

    Args:
        value: Comma-separated URLs, an iterable of URLs, or ``None``.
        default: Relay URLs used when *value* is empty.

    Returns:
        The valid relay addresses in input order. May be empty when every
        entry was dropped; callers decide whether that is an error.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        candidates: Iterable[str] = default
    elif isinstance(value, str):
        candidates = value.split(",")
    else:
        candidates = value

    relays: list[RelayAddress] = []
    seen: set[str] = set()
    for candidate in candidates:
        if not isinstance(candidate, str) or "\x00" in candidate:
            continue
        if not has_relay_scheme(candidate):
            continue
        relay = RelayAddress(candidate)
        if relay.url in seen:
            continue
        seen.add(relay.url)
        relays.append(relay)
    return relays
