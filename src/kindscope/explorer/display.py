"""Plain-text rendering of fetch results for the CLI.

Every helper returns strings and never prints. Malformed auxiliary payloads
(e.g. a kind-0 ``content`` that is not JSON) fall back to a placeholder
instead of raising.
"""

from __future__ import annotations

import datetime
import json
from typing import TYPE_CHECKING

from kindscope.models.constants import EventKind

from .classify import KindGroups, select_events, sorted_kinds


if TYPE_CHECKING:
    from kindscope.models.event import Event
    from kindscope.models.kinds import NameLookup

    from .classify import EventStats
    from .liveness import LivenessSnapshot


_PREVIEW_LENGTH = 100
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_EVENTS = "No events found."
NO_EVENTS_FOR_KIND = "No events found for the selected kind."


def format_timestamp(timestamp: int) -> str:
    """Format Unix seconds as local time, or as the raw number when out of range."""
    try:
        return datetime.datetime.fromtimestamp(timestamp).strftime(_TIME_FORMAT)
    except (ValueError, OverflowError, OSError):
        return str(timestamp)


def format_event_json(event: Event) -> str:
    return json.dumps(event.to_dict(), indent=2, ensure_ascii=False)


def _metadata_name(content: str) -> str:
    try:
        metadata = json.loads(content)
    except ValueError:
        return "Metadata"
    if not isinstance(metadata, dict):
        return "Metadata"
    for key in ("name", "display_name"):
        value = metadata.get(key)
        if isinstance(value, str) and value:
            return value
    return "Metadata"


def event_summary(event: Event, names: NameLookup) -> str:
    """One-line summary of *event*.

    Text notes show the first 100 characters of their content, metadata
    events the profile ``name`` (or ``display_name``), and every other kind
    its display name.
    """
    if event.kind == EventKind.TEXT_NOTE:
        if len(event.content) > _PREVIEW_LENGTH:
            return event.content[:_PREVIEW_LENGTH] + "..."
        return event.content
    if event.kind == EventKind.SET_METADATA:
        return _metadata_name(event.content)
    return names.name_of(event.kind)


def format_event_header(event: Event, names: NameLookup) -> str:
    return f"{format_timestamp(event.created_at)} - Kind {event.kind} ({names.name_of(event.kind)})"


def kind_options(groups: KindGroups, names: NameLookup) -> list[str]:
    """Lines ``"<kind> - <name> (<count>)"``, kinds ascending."""
    return [f"{kind} - {names.name_of(kind)} ({len(groups[kind])})" for kind in sorted_kinds(groups)]


def render_events(
    groups: KindGroups,
    selection: int | str,
    names: NameLookup,
    *,
    raw_json: bool = False,
) -> str:
    """Render the selected events as text.

    With ``raw_json`` each event is one compact JSON line; otherwise each
    gets a header line followed by indented JSON.

    Raises:
        ValueError: If *selection* is neither ``"all"`` nor a kind number.
    """
    if not groups:
        return NO_EVENTS

    events = select_events(groups, selection)
    if not events:
        return NO_EVENTS_FOR_KIND

    if raw_json:
        return "\n".join(json.dumps(event.to_dict(), ensure_ascii=False) for event in events)

    blocks = [f"{format_event_header(event, names)}\n{format_event_json(event)}" for event in events]
    return "\n\n".join(blocks)


def format_stats(stats: EventStats) -> str:
    return f"Total events: {stats.total}\nUnique kinds: {stats.unique_kinds}"


def format_progress(connected: int, failed: int, total: int) -> str:
    return f"Connected relays: {connected}/{total} (failed: {failed})"


def format_event_count(count: int) -> str:
    return f"Events found: {count}"


def format_liveness(snapshot: LivenessSnapshot) -> str:
    return format_progress(snapshot.connected, snapshot.failed, snapshot.total)
