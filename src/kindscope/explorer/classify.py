"""Group fetched events by kind for display.

[classify()][kindscope.explorer.classify.classify] is pure and synchronous:
it never touches the network and never mutates its input.
[select_events()][kindscope.explorer.classify.select_events] is the
read-side selection used by the CLI's ``--show`` option.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from operator import attrgetter
from types import MappingProxyType
from typing import Final, TypeAlias

from kindscope.models.event import Event


ALL_KINDS: Final[str] = "all"

KindGroups: TypeAlias = Mapping[int, tuple[Event, ...]]

_by_created_at = attrgetter("created_at")


@dataclass(frozen=True, slots=True)
class EventStats:
    """Summary counts of a classification.

    Attributes:
        total: Number of events classified.
        unique_kinds: Number of distinct kinds among them.
    """

    total: int = 0
    unique_kinds: int = 0


@dataclass(frozen=True, slots=True)
class Classification:
    """Result of [classify()][kindscope.explorer.classify.classify].

    Attributes:
        groups: Read-only mapping of kind to events, newest first.
        stats: Summary counts.
    """

    groups: KindGroups = field(default_factory=lambda: MappingProxyType({}))
    stats: EventStats = field(default_factory=EventStats)


def _newest_first(events: Iterable[Event]) -> tuple[Event, ...]:
    # sorted() is stable with reverse=True, so ties keep their input order
    return tuple(sorted(events, key=_by_created_at, reverse=True))


def classify(events: Iterable[Event] | None) -> Classification:
    """Group *events* by kind, each group sorted by ``created_at`` descending.

    Examples:
        ```python
        result = classify([note_old, metadata, note_new])
        result.groups[1]           # (note_new, note_old)
        result.stats.unique_kinds  # 2
        ```
    """
    if events is None:
        return Classification()

    buckets: dict[int, list[Event]] = {}
    total = 0
    for event in events:
        buckets.setdefault(event.kind, []).append(event)
        total += 1

    groups = {kind: _newest_first(bucket) for kind, bucket in buckets.items()}
    return Classification(
        groups=MappingProxyType(groups),
        stats=EventStats(total=total, unique_kinds=len(groups)),
    )


def sorted_kinds(groups: KindGroups) -> list[int]:
    """Kinds present in *groups*, ascending."""
    return sorted(groups)


def select_events(groups: KindGroups, selection: int | str = ALL_KINDS) -> tuple[Event, ...]:
    """Pick the events to display.

    Args:
        groups: Output of [classify()][kindscope.explorer.classify.classify].
        selection: ``"all"`` for every event newest first, or a kind number
            (int or numeric string) for that kind's group.

    Returns:
        The selected events; empty if the kind is not present.

    Raises:
        ValueError: If *selection* is neither ``"all"`` nor a kind number.
    """
    if isinstance(selection, str):
        text = selection.strip().lower()
        if text == ALL_KINDS:
            return _newest_first(event for group in groups.values() for event in group)
        if not text.isdigit():
            raise ValueError(f"Invalid selection: {selection!r}")
        selection = int(text)
    elif isinstance(selection, bool) or not isinstance(selection, int):
        raise ValueError(f"Invalid selection: {selection!r}")

    return groups.get(selection, ())
