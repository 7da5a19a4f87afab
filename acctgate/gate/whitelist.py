"""Whitelist Registry.

Maps a caller identity to its quota state.  A quota is either
``Unlimited`` (the caller is held to the global hourly rate limit) or
``Bounded(limit)`` (the caller may provision up to ``limit`` accounts in
total and is never rate limited).  On the wire ``max_accounts == 0``
means ``Unlimited``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Set, Union

from acctgate.errors import (
    AlreadyWhitelisted,
    InvalidWhitelistEntry,
    NotWhitelisted,
    QuotaExceeded,
)
from acctgate.logs import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Unlimited:
    pass


@dataclass(frozen=True)
class Bounded:
    limit: int


Quota = Union[Unlimited, Bounded]


def quota_from_max(max_accounts: int) -> Quota:
    if max_accounts < 0:
        raise InvalidWhitelistEntry("max_accounts must not be negative")
    return Unlimited() if max_accounts == 0 else Bounded(max_accounts)


@dataclass
class WhitelistEntry:
    identity: str
    total_accounts: int
    quota: Quota

    @property
    def max_accounts(self) -> int:
        return self.quota.limit if isinstance(self.quota, Bounded) else 0

    def to_dict(self) -> dict:
        return {
            "identity": self.identity,
            "total_accounts": self.total_accounts,
            "max_accounts": self.max_accounts,
        }


class WhitelistRegistry:
    """In-memory whitelist plus the legacy table it superseded."""

    def __init__(self, legacy: Iterable[str] = ()) -> None:
        self._entries: Dict[str, WhitelistEntry] = {}
        self._legacy: Set[str] = set(legacy)

    # ---- administration ----

    def add(self, identity: str, total_accounts: int, max_accounts: int) -> WhitelistEntry:
        if identity in self._entries:
            raise AlreadyWhitelisted("Account already exists in the whitelist", identity=identity)
        if total_accounts < 0:
            raise InvalidWhitelistEntry("total_accounts must not be negative")
        quota = quota_from_max(max_accounts)
        if isinstance(quota, Bounded) and total_accounts > quota.limit:
            raise InvalidWhitelistEntry(
                f"total_accounts {total_accounts} exceeds max_accounts {quota.limit}"
            )

        entry = WhitelistEntry(identity, total_accounts, quota)
        self._entries[identity] = entry
        log.info("whitelist_added", **entry.to_dict())
        return entry

    def remove(self, identity: str) -> None:
        if identity not in self._entries:
            raise NotWhitelisted("Account does not exist in the whitelist", identity=identity)
        del self._entries[identity]
        log.info("whitelist_removed", identity=identity)

    def erase_legacy(self, identity: str) -> None:
        if identity not in self._legacy:
            raise NotWhitelisted("Account does not exist in the old whitelist", identity=identity)
        self._legacy.discard(identity)
        log.info("legacy_whitelist_erased", identity=identity)

    # ---- queries ----

    def lookup(self, identity: str) -> WhitelistEntry | None:
        return self._entries.get(identity)

    def entries(self) -> List[WhitelistEntry]:
        return list(self._entries.values())

    def legacy(self) -> List[str]:
        return sorted(self._legacy)

    # ---- usage ----

    def increment_usage(self, identity: str) -> WhitelistEntry:
        entry = self._entries.get(identity)
        if entry is None:
            raise NotWhitelisted("Account does not exist in the whitelist", identity=identity)
        total = entry.total_accounts + 1
        if isinstance(entry.quota, Bounded) and total > entry.quota.limit:
            raise QuotaExceeded(
                "You have exceeded the maximum number of accounts allowed for your account",
                identity=identity,
                max_accounts=entry.quota.limit,
            )
        entry.total_accounts = total
        return entry

    def release_usage(self, identity: str) -> None:
        """Give back one unit taken by ``increment_usage``."""
        entry = self._entries.get(identity)
        if entry is not None and entry.total_accounts > 0:
            entry.total_accounts -= 1
