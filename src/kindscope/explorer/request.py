"""Request boundary: user input to [FetchRequest][kindscope.models.request.FetchRequest], and request to relay filter.

[build_request()][kindscope.explorer.request.build_request] is where every
request-level input error is raised, before any relay is contacted.
[create_filter()][kindscope.explorer.request.create_filter] turns the request
into the ``nostr_sdk.Filter`` each relay session subscribes with.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from typing import TypeAlias

from nostr_sdk import Filter, Kind, PublicKey, Timestamp

from kindscope.core.exceptions import InputError, InvalidKeyError
from kindscope.models.constants import EVENT_KIND_MAX
from kindscope.models.relay import RelayAddress, parse_relay_list
from kindscope.models.request import FetchRequest
from kindscope.utils.keys import normalize_pubkey


TimeBound: TypeAlias = datetime.datetime | datetime.date | int | None


def to_timestamp(value: TimeBound) -> int | None:
    """Convert a time bound to Unix seconds.

    Naive datetimes and plain dates are interpreted in local time (a date
    means its midnight). Integers are taken as Unix seconds.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise TypeError("time bound must not be a bool")
    if isinstance(value, int):
        return value
    if isinstance(value, datetime.datetime):
        return int(value.timestamp())
    if isinstance(value, datetime.date):
        return int(datetime.datetime.combine(value, datetime.time.min).timestamp())
    raise TypeError(f"Unsupported time bound: {type(value).__name__}")


def end_of_day(value: datetime.date) -> datetime.datetime:
    """Return the last second of *value*'s day, for inclusive day-granular upper bounds."""
    return datetime.datetime.combine(value, datetime.time(23, 59, 59))


def _parse_kind(kind: int | str | None) -> int | None:
    if kind is None or (isinstance(kind, str) and not kind.strip()):
        return None
    try:
        value = int(kind)
    except (TypeError, ValueError):
        raise InputError(f"Invalid kind: {kind!r}") from None
    if not 0 <= value <= EVENT_KIND_MAX:
        raise InputError(f"Kind {value} out of valid range (0-{EVENT_KIND_MAX})")
    return value


def _parse_relays(relays: str | Iterable[str | RelayAddress] | None) -> tuple[RelayAddress, ...]:
    if relays is None:
        return ()
    if isinstance(relays, str):
        return tuple(parse_relay_list(relays, default=()))
    merged: dict[str, RelayAddress] = {}
    for item in relays:
        if isinstance(item, RelayAddress):
            merged.setdefault(item.url, item)
        elif isinstance(item, str):
            for relay in parse_relay_list([item], default=()):
                merged.setdefault(relay.url, relay)
    return tuple(merged.values())


def build_request(
    pubkey: str | None,
    relays: str | Iterable[str | RelayAddress] | None,
    *,
    since: TimeBound = None,
    until: TimeBound = None,
    kind: int | str | None = None,
) -> FetchRequest:
    """Validate user input and build a [FetchRequest][kindscope.models.request.FetchRequest].

    Relay entries without a ``ws://``/``wss://`` prefix are dropped silently;
    the request is rejected only if none remain.

    Args:
        pubkey: Author key, hex or ``npub1``.
        relays: Relay URLs (comma-separated string or iterable).
        since: Inclusive lower bound (datetime, date, or Unix seconds).
        until: Inclusive upper bound. Callers wanting day granularity pass
            [end_of_day()][kindscope.explorer.request.end_of_day].
        kind: Optional single kind; a blank string means all kinds.

    Raises:
        InputError: If the key is missing, no valid relay remains, or the
            kind is not an integer in range.
        InvalidKeyError: If the key is neither hex nor ``npub``.
    """
    if pubkey is None or not pubkey.strip():
        raise InputError("Public key is required")
    try:
        hex_pubkey = normalize_pubkey(pubkey)
    except ValueError as e:
        raise InvalidKeyError(str(e)) from None

    addresses = _parse_relays(relays)
    if not addresses:
        raise InputError("At least one valid relay is required")

    try:
        since_ts = to_timestamp(since)
        until_ts = to_timestamp(until)
    except TypeError as e:
        raise InputError(str(e)) from None

    try:
        return FetchRequest(
            pubkey=hex_pubkey,
            relays=addresses,
            since=since_ts,
            until=until_ts,
            kind=_parse_kind(kind),
        )
    except ValueError as e:
        raise InputError(str(e)) from None


def create_filter(request: FetchRequest) -> Filter:
    """Build the ``nostr_sdk.Filter`` matching *request*.

    The filter selects the author's events, bounded by ``since``/``until``
    when present and restricted to one kind when requested.
    """
    f = Filter().authors([PublicKey.parse(request.pubkey)])

    if request.since is not None:
        f = f.since(Timestamp.from_secs(request.since))
    if request.until is not None:
        f = f.until(Timestamp.from_secs(request.until))
    if request.kind is not None:
        f = f.kinds([Kind(request.kind)])

    return f
