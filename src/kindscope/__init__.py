r"""kindscope -- Fetch a Nostr author's events from many relays and group them by kind.

One request fans out to every configured relay at once; each relay gets its
own deadline and its own settlement, the results are merged by event id, and
the merged set is grouped by kind for display.

Imports flow strictly downward:

```text
              explorer         Fan-out, merge, classify, display, config
              /      \
           core      utils     Logging, errors, YAML / keys, transport, HTTP
              \      /
              models           Pure frozen dataclasses (zero I/O)
```

Attributes:
    models: Pure frozen dataclasses. Zero I/O, depends only on stdlib.
    core: Exceptions, structured logging, YAML loading.
    utils: Nostr key normalization, relay transport, bounded HTTP reads.
    explorer: Fan-out coordinator, relay sessions, merge store,
        classifier, kind-name resolver, display helpers.

Note:
    For lightweight usage, import directly from subpackages::

        from kindscope.models import Event
        from kindscope.explorer import fetch_events

    Top-level imports (``from kindscope import fetch_events``) use lazy
    loading and resolve on first access.
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("kindscope")

__all__ = [
    "Event",
    "ExplorerConfig",
    "FanoutCoordinator",
    "FetchRequest",
    "KindNames",
    "KindscopeError",
    "Logger",
    "RelayAddress",
    "build_request",
    "classify",
    "fetch_events",
    "select_events",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "KindscopeError": ("kindscope.core", "KindscopeError"),
    "Logger": ("kindscope.core", "Logger"),
    "Event": ("kindscope.models", "Event"),
    "FetchRequest": ("kindscope.models", "FetchRequest"),
    "KindNames": ("kindscope.models", "KindNames"),
    "RelayAddress": ("kindscope.models", "RelayAddress"),
    "ExplorerConfig": ("kindscope.explorer", "ExplorerConfig"),
    "FanoutCoordinator": ("kindscope.explorer", "FanoutCoordinator"),
    "build_request": ("kindscope.explorer", "build_request"),
    "classify": ("kindscope.explorer", "classify"),
    "fetch_events": ("kindscope.explorer", "fetch_events"),
    "select_events": ("kindscope.explorer", "select_events"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'kindscope' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
