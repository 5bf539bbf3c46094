"""Explorer package: fan-out fetch, merge, classification, and display.

Re-exports all public symbols::

    from kindscope.explorer import FanoutCoordinator, classify, fetch_events
"""

from .classify import (
    ALL_KINDS,
    Classification,
    EventStats,
    KindGroups,
    classify,
    select_events,
    sorted_kinds,
)
from .configs import ExplorerConfig, KindLookupConfig, LoggingConfig
from .fanout import FanoutCoordinator, fetch_events
from .kinds import KindNameCache, KindNameResolver, extract_kind_definitions
from .liveness import LivenessReporter, LivenessSnapshot, ProgressCallback
from .request import TimeBound, build_request, create_filter, end_of_day, to_timestamp
from .session import RelaySession, SessionResult, SettleOnce, drain_closes
from .store import CountCallback, EventStore


__all__ = [
    "ALL_KINDS",
    "Classification",
    "CountCallback",
    "EventStats",
    "EventStore",
    "ExplorerConfig",
    "FanoutCoordinator",
    "KindGroups",
    "KindLookupConfig",
    "KindNameCache",
    "KindNameResolver",
    "LivenessReporter",
    "LivenessSnapshot",
    "LoggingConfig",
    "ProgressCallback",
    "RelaySession",
    "SessionResult",
    "SettleOnce",
    "TimeBound",
    "build_request",
    "classify",
    "create_filter",
    "drain_closes",
    "end_of_day",
    "extract_kind_definitions",
    "fetch_events",
    "select_events",
    "sorted_kinds",
    "to_timestamp",
]
