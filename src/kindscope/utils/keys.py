"""Nostr public key normalization.

Authors are accepted either as a 64-character hex key or as a NIP-19
``npub1...`` bech32 string, and always normalized to lowercase hex, which is
what relay filters expect. Bech32 decoding is delegated to
``nostr_sdk.PublicKey``.

Examples:
    ```python
    normalize_pubkey("npub1...")   # '3bf0c63f...'
    normalize_pubkey("3BF0C63F" + "0" * 56)  # lowercased
    ```
"""

from __future__ import annotations

import re

from nostr_sdk import PublicKey


NPUB_PREFIX = "npub1"

_HEX_KEY = re.compile(r"^[0-9a-fA-F]{64}$")


def normalize_pubkey(value: str | None) -> str:
    """Return *value* as a canonical lowercase hex public key.

    Args:
        value: Hex or ``npub1`` bech32 public key. Surrounding whitespace is
            ignored.

    Returns:
        The 64-character lowercase hex key.

    Raises:
        ValueError: If *value* is empty, a malformed ``npub``, or neither
            format.
    """
    if value is None or not value.strip():
        raise ValueError("Public key is required")

    value = value.strip()
    if _HEX_KEY.match(value):
        return value.lower()

    if value.startswith(NPUB_PREFIX):
        try:
            return PublicKey.parse(value).to_hex()
        except Exception:  # noqa: BLE001  # nostr-sdk raises FFI error types
            raise ValueError("Invalid npub format") from None

    raise ValueError("Invalid public key format")
