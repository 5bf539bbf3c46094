"""Per-fetch relay liveness counters.

[LivenessReporter][kindscope.explorer.liveness.LivenessReporter] counts how
many relays of the current fetch settled as connected (end of stored events
received) and how many failed (timed out or errored), and pushes each change
to an optional progress callback. Once every session has settled,
``connected + failed == total``.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass

from kindscope.models.constants import SessionState


ProgressCallback = Callable[[int, int, int], None]


@dataclass(frozen=True, slots=True)
class LivenessSnapshot:
    """Point-in-time liveness counts.

    Attributes:
        connected: Relays that settled ``complete``.
        failed: Relays that settled ``timeout`` or ``error``.
        total: Relays in the fetch.
    """

    connected: int
    failed: int
    total: int

    @property
    def settled(self) -> int:
        return self.connected + self.failed

    @property
    def pending(self) -> int:
        return self.total - self.settled

    @property
    def is_complete(self) -> bool:
        return self.settled == self.total

    @property
    def progress(self) -> float:
        """Settled share of relays, in percent."""
        if self.total == 0:
            return 100.0
        return self.settled / self.total * 100


class LivenessReporter:
    """Thread-safe connected/failed counters for one fetch.

    Args:
        total: Number of relay sessions in the fetch.
        on_progress: Optional callback receiving
            ``(connected, failed, total)`` after every change and on
            [publish()][kindscope.explorer.liveness.LivenessReporter.publish].
    """

    __slots__ = ("_connected", "_failed", "_lock", "_on_progress", "_total")

    def __init__(self, total: int, on_progress: ProgressCallback | None = None) -> None:
        if total < 0:
            raise ValueError("total must be non-negative")
        self._total = total
        self._connected = 0
        self._failed = 0
        self._lock = threading.Lock()
        self._on_progress = on_progress

    @property
    def total(self) -> int:
        return self._total

    def record(self, state: SessionState) -> LivenessSnapshot:
        """Count one session settlement.

        ``COMPLETE`` increments ``connected``; ``TIMEOUT`` and ``ERROR``
        increment ``failed``.

        Raises:
            ValueError: If *state* is not a settled state, or every session
                has already been counted.
        """
        if not state.is_settled:
            raise ValueError(f"Cannot record unsettled state: {state}")

        with self._lock:
            if self._connected + self._failed >= self._total:
                raise ValueError("All sessions have already settled")
            if state.is_success:
                self._connected += 1
            else:
                self._failed += 1
            snapshot = LivenessSnapshot(self._connected, self._failed, self._total)

        self._notify(snapshot)
        return snapshot

    def snapshot(self) -> LivenessSnapshot:
        with self._lock:
            return LivenessSnapshot(self._connected, self._failed, self._total)

    def publish(self) -> LivenessSnapshot:
        """Push the current counts to the callback without changing them."""
        snapshot = self.snapshot()
        self._notify(snapshot)
        return snapshot

    def _notify(self, snapshot: LivenessSnapshot) -> None:
        if self._on_progress is not None:
            self._on_progress(snapshot.connected, snapshot.failed, snapshot.total)
