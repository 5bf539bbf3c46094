"""Nostr key normalization, relay transport, and HTTP helpers.

The utils layer depends only on [kindscope.models][kindscope.models] and
third-party libraries. It raises standard library exceptions (``ValueError``,
``OSError``, ``TimeoutError``); the explorer translates them.

Attributes:
    keys: Hex / ``npub`` public key normalization.
    transport: ``RelayTransport`` protocol and its ``nostr_sdk`` implementation.
    http: Bounded JSON reading for ``aiohttp`` responses.

Note:
    The utils layer has **zero** imports from ``kindscope.core`` or
    ``kindscope.explorer``.
"""

from .http import read_bounded, read_bounded_json
from .keys import normalize_pubkey
from .transport import (
    DEFAULT_TIMEOUT,
    NostrSdkConnection,
    NostrSdkTransport,
    RelayConnection,
    RelayTransport,
    create_client,
)


__all__ = [
    "DEFAULT_TIMEOUT",
    "NostrSdkConnection",
    "NostrSdkTransport",
    "RelayConnection",
    "RelayTransport",
    "create_client",
    "normalize_pubkey",
    "read_bounded",
    "read_bounded_json",
]
