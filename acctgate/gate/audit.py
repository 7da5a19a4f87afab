"""Immutable chained audit log of provisioned accounts.

Each entry contains a SHA-256 hash of the previous entry so that
tampering is detectable.  Entries are only ever appended; the log
makes no assumption about their timestamp order.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

GENESIS_HASH = "0" * 64


@dataclass(frozen=True)
class AuditEntry:
    resource_name: str
    created_on: int  # seconds since epoch
    prev_hash: str
    entry_hash: str


def _digest(resource_name: str, created_on: int, prev_hash: str) -> str:
    payload = json.dumps(
        {"resource_name": resource_name, "created_on": created_on, "prev_hash": prev_hash},
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode()).hexdigest()


class AuditLog:
    """Append-only hash-chained audit log."""

    def __init__(self) -> None:
        self._entries: List[AuditEntry] = []
        self._prev_hash: str = GENESIS_HASH
        self._subscribers: List[Callable[[AuditEntry], None]] = []

    def __len__(self) -> int:
        return len(self._entries)

    def subscribe(self, callback: Callable[[AuditEntry], None]) -> None:
        """Call *callback* with every entry appended from now on."""
        self._subscribers.append(callback)

    def append(self, resource_name: str, created_on: int) -> AuditEntry:
        entry = AuditEntry(
            resource_name=resource_name,
            created_on=created_on,
            prev_hash=self._prev_hash,
            entry_hash=_digest(resource_name, created_on, self._prev_hash),
        )
        self._entries.append(entry)
        self._prev_hash = entry.entry_hash
        for callback in self._subscribers:
            callback(entry)
        return entry

    def __iter__(self):
        return iter(self._entries)

    def entries(self) -> List[Dict[str, Any]]:
        return [
            {
                "resource_name": e.resource_name,
                "created_on": e.created_on,
                "prev_hash": e.prev_hash,
                "entry_hash": e.entry_hash,
            }
            for e in self._entries
        ]

    def count_within(self, now: int, window: int) -> int:
        """Linear scan: entries with ``0 <= now - created_on <= window``."""
        return sum(1 for e in self._entries if 0 <= now - e.created_on <= window)

    def verify_chain(self) -> bool:
        """Verify the integrity of the full chain."""
        prev = GENESIS_HASH
        for e in self._entries:
            if e.prev_hash != prev:
                return False
            if e.entry_hash != _digest(e.resource_name, e.created_on, e.prev_hash):
                return False
            prev = e.entry_hash
        return True
