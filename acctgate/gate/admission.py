"""Admission Controller.

Two-tier policy, not a hybrid:

* a caller with a ``Bounded`` quota is admitted while it has units left
  and is never subject to the hourly limit;
* a caller with an ``Unlimited`` quota is admitted only while fewer than
  ``max_accounts_per_hour`` accounts were provisioned in the last hour.

Callers that are not whitelisted are never admitted.
"""

from __future__ import annotations

from dataclasses import dataclass

from acctgate.errors import NotAuthorized, QuotaExceeded, RateLimited
from acctgate.gate.ratelimit import RateLimiter
from acctgate.gate.settings import Configuration
from acctgate.gate.whitelist import Bounded, WhitelistRegistry
from acctgate.logs import get_logger

log = get_logger(__name__)

MODE_QUOTA = "quota"
MODE_RATE = "rate"


@dataclass
class AdmissionDecision:
    identity: str
    mode: str
    # quota mode: total after the increment; rate mode: hourly count seen
    usage: int
    limit: int
    released: bool = False


class AdmissionController:
    def __init__(self, registry: WhitelistRegistry, limiter: RateLimiter) -> None:
        self._registry = registry
        self._limiter = limiter

    def admit(self, identity: str, now: int, config: Configuration) -> AdmissionDecision:
        entry = self._registry.lookup(identity)
        if entry is None:
            log.info("admission_denied", identity=identity, reason="not_whitelisted")
            raise NotAuthorized("Account doesn't have permission to create accounts", identity=identity)

        if isinstance(entry.quota, Bounded):
            try:
                entry = self._registry.increment_usage(identity)
            except QuotaExceeded:
                log.info("admission_denied", identity=identity, reason="quota_exceeded")
                raise
            decision = AdmissionDecision(identity, MODE_QUOTA, entry.total_accounts, entry.quota.limit)
        else:
            limit = config.max_accounts_per_hour
            count = self._limiter.current_hourly_count(now)
            if count >= limit:
                log.info("admission_denied", identity=identity, reason="rate_limited", count=count)
                raise RateLimited(
                    "You have exceeded the maximum number of accounts per hour",
                    identity=identity,
                    count=count,
                    limit=limit,
                )
            decision = AdmissionDecision(identity, MODE_RATE, count, limit)

        log.info("admission_granted", identity=identity, mode=decision.mode, usage=decision.usage)
        return decision

    def release(self, decision: AdmissionDecision) -> None:
        """Undo the quota unit a decision consumed (rate mode holds nothing)."""
        if decision.released:
            return
        if decision.mode == MODE_QUOTA:
            self._registry.release_usage(decision.identity)
        decision.released = True
