"""
Kind-number to display-name table.

[KindNames][kindscope.models.kinds.KindNames] is an immutable mapping built
once at startup from the curated table below plus optional configured
overrides. Looking a name up never mutates it; names discovered at runtime
live in a separately scoped cache owned by
[KindNameResolver][kindscope.explorer.kinds.KindNameResolver].

Names that look like scraped prose or markup (quotes, backticks, table pipes,
sentence fragments) are rejected by
[is_plausible_kind_name()][kindscope.models.kinds.is_plausible_kind_name]
and treated as absent, so they fall back to the generic placeholder.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, Protocol

from .constants import EVENT_KIND_MAX


CURATED_KIND_NAMES: Mapping[int, str] = MappingProxyType(
    {
        0: "Metadata",
        1: "Short Text Note",
        2: "Recommend Relay",
        3: "Contacts",
        4: "Encrypted Direct Message",
        5: "Event Deletion",
        6: "Repost",
        7: "Reaction",
        8: "Badge Award",
        9: "Cancel Badge Award",
        10: "Job Request",
        11: "Job Result",
        40: "Channel Creation",
        41: "Channel Metadata",
        42: "Channel Message",
        43: "Channel Hide Message",
        44: "Channel Mute User",
        45: "Public Chat Reserved",
        1063: "File Metadata",
        1984: "Reporting",
        9734: "Zap Request",
        9735: "Zap",
        10000: "Mute List",
        10001: "Pin List",
        10002: "Relay List Metadata",
        13194: "Wallet Info",
        22242: "Client Authentication",
        23194: "Wallet Request",
        23195: "Wallet Response",
        24133: "Nostr Connect",
        30000: "Categorized People List",
        30001: "Categorized Bookmark List",
        30008: "Profile Badges",
        30009: "Badge Definition",
        30017: "Create or update a stall",
        30018: "Create or update a product",
        30023: "Long-form Content",
        30078: "Application-specific Data",
        30402: "Classifieds",
        31989: "Handler recommendation",
        31990: "Handler information",
    }
)

_MAX_NAME_LENGTH = 48
_MAX_NAME_WORDS = 6
_FORBIDDEN_CHARS = frozenset('"`|<>{}[]()=:;\\/*#')


def placeholder_name(kind: int) -> str:
    """Generic display name for a kind without a known name."""
    return f"Kind {kind}"


def is_plausible_kind_name(name: Any) -> bool:
    """Return ``True`` if *name* looks like a curated kind name.

    A plausible name is a short title: it starts with an uppercase letter or
    digit, has at most six words, contains no markup or code punctuation, and
    does not end like a sentence.
    """
    if not isinstance(name, str):
        return False
    name = name.strip()
    if not name or len(name) > _MAX_NAME_LENGTH:
        return False
    if not (name[0].isupper() or name[0].isdigit()):
        return False
    if name.endswith((".", ",")) or len(name.split()) > _MAX_NAME_WORDS:
        return False
    return not any(char in _FORBIDDEN_CHARS for char in name)


def _coerce_kind(key: Any) -> int | None:
    try:
        kind = int(key)
    except (TypeError, ValueError):
        return None
    return kind if 0 <= kind <= EVENT_KIND_MAX else None


def _clean_names(names: Mapping[Any, Any]) -> dict[int, str]:
    cleaned: dict[int, str] = {}
    for key, name in names.items():
        kind = _coerce_kind(key)
        if kind is not None and is_plausible_kind_name(name):
            cleaned[kind] = name.strip()
    return cleaned


class NameLookup(Protocol):
    """Anything that can turn a kind number into a display name."""

    def name_of(self, kind: int) -> str: ...


class KindNames(Mapping[int, str]):
    """Immutable kind-name table.

    Args:
        names: Base table; defaults to ``CURATED_KIND_NAMES``.
        overrides: Extra or replacement names (e.g. from configuration).
            Keys may be strings as loaded from YAML/JSON.

    Implausible names and out-of-range keys in either input are dropped.

    Examples:
        ```python
        names = KindNames(overrides={"1111": "Comment"})
        names.name_of(1)      # 'Short Text Note'
        names.name_of(1111)   # 'Comment'
        names.name_of(4242)   # 'Kind 4242'
        ```
    """

    __slots__ = ("_names",)

    def __init__(
        self,
        names: Mapping[Any, Any] | None = None,
        *,
        overrides: Mapping[Any, Any] | None = None,
    ) -> None:
        merged = _clean_names(CURATED_KIND_NAMES if names is None else names)
        if overrides:
            merged.update(_clean_names(overrides))
        self._names: Mapping[int, str] = MappingProxyType(merged)

    def name_of(self, kind: int) -> str:
        """Return the display name for *kind*, or ``"Kind <n>"`` if unknown."""
        return self._names.get(kind) or placeholder_name(kind)

    def __getitem__(self, kind: int) -> str:
        return self._names[kind]

    def __iter__(self) -> Iterator[int]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"KindNames({len(self._names)} names)"
