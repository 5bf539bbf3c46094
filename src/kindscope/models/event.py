"""
Immutable Nostr event record.

Unlike the SDK object it is built from, [Event][kindscope.models.event.Event]
is a plain frozen dataclass: hashable, comparable, and safe to share between
concurrently running relay sessions. Identity is the event ``id`` (the
SHA-256 of the serialized event), so two events with the same ``id`` are the
same event no matter which relay delivered them.

See Also:
    [kindscope.explorer.store][]: Deduplicates events by ``id``.
    [kindscope.explorer.classify][]: Groups events by ``kind``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ._validation import validate_hex_key, validate_int, validate_str_no_null
from .constants import EVENT_KIND_MAX


if TYPE_CHECKING:
    from nostr_sdk import Event as NostrEvent


Tags = tuple[tuple[str, ...], ...]


def _freeze_tags(tags: Iterable[Iterable[str]]) -> Tags:
    return tuple(tuple(str(value) for value in tag) for tag in tags)


@dataclass(frozen=True, slots=True)
class Event:
    """Immutable Nostr event.

    Validation is performed eagerly at construction time so invalid
    instances never reach the merge store.

    Attributes:
        id: Event id, 64 lowercase hex characters.
        pubkey: Author public key, 64 lowercase hex characters.
        created_at: Unix timestamp (seconds) of event creation.
        kind: Integer event kind (0-65535).
        content: Raw content string (opaque to the explorer).
        tags: Tag arrays, frozen into nested tuples.
        sig: Schnorr signature as hex (carried for display only).

    Raises:
        TypeError: If a field has the wrong type.
        ValueError: If ``id``/``pubkey`` are not hex keys, ``kind`` is out of
            range, ``created_at`` is negative, or content has null bytes.

    Examples:
        ```python
        event = Event(id="ab" * 32, pubkey="cd" * 32, created_at=1700000000,
                      kind=1, content="hello")
        event.to_dict()["kind"]  # 1
        ```
    """

    id: str
    pubkey: str
    created_at: int
    kind: int
    content: str
    tags: Tags = field(default=(), compare=False)
    sig: str = field(default="", compare=False, repr=False)

    def __post_init__(self) -> None:
        validate_hex_key(self.id, "id")
        validate_hex_key(self.pubkey, "pubkey")
        validate_int(self.created_at, "created_at")
        validate_int(self.kind, "kind", maximum=EVENT_KIND_MAX)
        validate_str_no_null(self.content, "content")
        validate_str_no_null(self.sig, "sig")
        # Bypass frozen restriction to normalize lists coming from JSON
        object.__setattr__(self, "tags", _freeze_tags(self.tags))

    @classmethod
    def from_nostr(cls, event: NostrEvent) -> Event:
        """Build an [Event][kindscope.models.event.Event] from a ``nostr_sdk.Event``.

        Raises:
            ValueError: If the SDK event carries values this model rejects.
        """
        return cls(
            id=event.id().to_hex(),
            pubkey=event.author().to_hex(),
            created_at=event.created_at().as_secs(),
            kind=event.kind().as_u16(),
            content=event.content(),
            tags=[tag.as_vec() for tag in event.tags().to_vec()],
            sig=event.signature(),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Event:
        """Build an [Event][kindscope.models.event.Event] from NIP-01 JSON fields.

        Raises:
            KeyError: If a required field is missing.
        """
        return cls(
            id=data["id"],
            pubkey=data["pubkey"],
            created_at=data["created_at"],
            kind=data["kind"],
            content=data.get("content", ""),
            tags=data.get("tags", ()),
            sig=data.get("sig", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the NIP-01 JSON representation."""
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
            "sig": self.sig,
        }
