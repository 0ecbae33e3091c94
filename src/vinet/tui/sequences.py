"""Multi-key sequence recognition (gg, dd, dr, yy, yp).

States: idle, or pending(prefix, deadline). Deadlines are driven by the
shared Scheduler so tests control them with a virtual clock.

A prefix that is also a complete command (a lone "y" in the JSON preview)
is committed when its quiet period expires. A key that cannot continue the
pending prefix cancels it without committing and is then handled on its own.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from vinet.core.scheduler import Handle, Scheduler


@dataclass(frozen=True)
class Pending:
    prefix: str
    deadline: float


class _PendingMarker:
    def __repr__(self) -> str:
        return "PENDING"


# Returned by feed() when the key was absorbed into a pending prefix.
PENDING = _PendingMarker()


class SequenceBuffer:
    def __init__(
        self,
        scheduler: Scheduler,
        timeouts_ms: Mapping[str, float],
        on_commit: Callable[[str], None],
    ):
        self._scheduler = scheduler
        self._timeouts = timeouts_ms
        self._on_commit = on_commit
        self._pending: Pending | None = None
        self._timer: Handle | None = None
        self._timeout_actions: Mapping[str, str] = {}

    @property
    def state(self) -> Pending | None:
        """None when idle."""
        return self._pending

    def reset(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._pending = None
        self._timeout_actions = {}

    def feed(
        self,
        key: str,
        sequences: Mapping[str, str],
        timeout_actions: Mapping[str, str] | None = None,
    ) -> str | _PendingMarker | None:
        """Feed one key.

        Returns the action of a completed sequence, PENDING when the key
        started (or extended) a prefix, or None when the key is not part of
        any sequence and should be dispatched as a single key.
        """
        if self._pending is not None:
            candidate = self._pending.prefix + key
            self.reset()
            action = sequences.get(candidate)
            if action is not None:
                return action
            # falls through: key is handled fresh

        if len(key) == 1 and any(len(seq) > 1 and seq.startswith(key) for seq in sequences):
            delay = self._timeouts.get(key, 1000)
            self._pending = Pending(key, self._scheduler.now() + delay)
            self._timeout_actions = dict(timeout_actions or {})
            pending = self._pending
            self._timer = self._scheduler.call_later(delay, lambda: self._expire(pending))
            return PENDING
        return None

    def _expire(self, pending: Pending) -> None:
        if self._pending is not pending:
            return
        action = self._timeout_actions.get(pending.prefix)
        self._pending = None
        self._timer = None
        self._timeout_actions = {}
        if action is not None:
            self._on_commit(action)
