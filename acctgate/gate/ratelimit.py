"""Global hourly rate limiting.

The limiter is a view derived from the audit log.  Instead of rescanning
the whole log on every request it keeps a fixed ring of one-second
buckets spanning the window, so a check costs the same however long the
log grows.  An entry counts iff ``0 <= now - created_on <= window``.  For
any ``now`` at or after the newest entry the ring matches
:meth:`AuditLog.count_within` exactly; an earlier ``now`` (clock stepped
back) is answered by the scan itself.

This is a point-in-time check, not a reservation: nothing is held between
the check and the audit append.  Requests submitted concurrently against
separate invocations can therefore overshoot the limit slightly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from acctgate.config import RATE_WINDOW_SECONDS
from acctgate.gate.audit import AuditEntry, AuditLog


@dataclass
class _Bucket:
    second: int = -1
    count: int = 0


class HourlyWindow:
    """Fixed-size ring of per-second counters covering ``window`` seconds."""

    def __init__(self, window: int = RATE_WINDOW_SECONDS) -> None:
        self.window = window
        # window + 1 slots: both ends of [now - window, now] are inclusive
        self._ring: List[_Bucket] = [_Bucket() for _ in range(window + 1)]

    def record(self, ts: int) -> None:
        bucket = self._ring[ts % len(self._ring)]
        if bucket.second == ts:
            bucket.count += 1
        elif bucket.second < ts:
            # slot held a second at least one full ring older: overwrite
            bucket.second = ts
            bucket.count = 1
        # else: a full ring older than the slot, so outside every window
        # ending at or after the newest recorded second

    def count(self, now: int) -> int:
        return sum(
            b.count for b in self._ring
            if b.count and 0 <= now - b.second <= self.window
        )


class RateLimiter:
    """Counts recent provisioning events from the audit log."""

    def __init__(self, audit: AuditLog, window: int = RATE_WINDOW_SECONDS) -> None:
        self._audit = audit
        self._window = HourlyWindow(window)
        self._newest = -1
        for entry in audit:
            self._on_append(entry)
        audit.subscribe(self._on_append)

    def _on_append(self, entry: AuditEntry) -> None:
        self._window.record(entry.created_on)
        self._newest = max(self._newest, entry.created_on)

    def current_hourly_count(self, now: int) -> int:
        if now < self._newest:
            # the ring may have dropped seconds still inside this window
            # (clock stepped back): count from the log itself
            return self._audit.count_within(now, self._window.window)
        return self._window.count(now)

    def check_and_admit(self, now: int, limit: int) -> bool:
        return self.current_hourly_count(now) < limit
