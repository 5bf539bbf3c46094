"""kindscope exception hierarchy.

Separates the errors a caller must see (bad configuration, bad request input)
from the per-relay failures the fan-out absorbs.

Exception hierarchy:

```text
KindscopeError (base -- never raised directly)
├── ConfigurationError      -- config validation, bad YAML
├── InputError              -- request rejected before any network activity
│   └── InvalidKeyError     -- author key is neither hex nor npub
├── ConnectivityError       -- relay unreachable, connection dropped
│   └── RelayTimeoutError   -- connect or response deadline exceeded
└── LookupFailedError       -- remote kind-name lookup failed
```

See Also:
    [build_request()][kindscope.explorer.request.build_request]: Raises
        [InputError][kindscope.core.exceptions.InputError].
    [RelaySession][kindscope.explorer.session.RelaySession]: Absorbs
        [ConnectivityError][kindscope.core.exceptions.ConnectivityError]
        into an ``error`` or ``timeout`` settlement.
"""

from __future__ import annotations


class KindscopeError(Exception):
    """Base exception for all kindscope errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigurationError(KindscopeError):
    """Invalid or missing configuration (YAML, CLI flags)."""


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class InputError(KindscopeError):
    """Request-level input error: missing author, no usable relay.

    Raised before any relay is contacted; the fetch never starts.
    """


class InvalidKeyError(InputError):
    """The author key is neither a 64-char hex key nor an ``npub1`` key."""


# ---------------------------------------------------------------------------
# Connectivity
# ---------------------------------------------------------------------------


class ConnectivityError(KindscopeError):
    """Relay unreachable or connection lost.

    Never propagated out of a fetch; recorded as a failed relay.
    """


class RelayTimeoutError(ConnectivityError):
    """Connection or response timed out."""


# ---------------------------------------------------------------------------
# Kind-name lookup
# ---------------------------------------------------------------------------


class LookupFailedError(KindscopeError):
    """The remote kind-name lookup returned an error response."""
