"""ProvisioningGate: the operations exposed to callers.

Callers are assumed authenticated (the HTTP layer verifies signatures);
the gate still checks that the authenticated actor is the one an
operation requires.

Each state-changing operation runs under a single invocation lock, so
from the core's point of view every request executes alone: the
admission check, quota increment, downstream calls and audit append
either all take effect or (through the saga and admission release) none
of them do.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Iterable

from acctgate.chain import names
from acctgate.chain.client import ChainClient
from acctgate.config import CONTRACT_ACCOUNT
from acctgate.errors import Unauthorized
from acctgate.gate.admission import AdmissionController
from acctgate.gate.audit import AuditLog
from acctgate.gate.pricing import PricingOracle
from acctgate.gate.provisioner import ProvisionResult, Provisioner
from acctgate.gate.ratelimit import RateLimiter
from acctgate.gate.settings import ConfigStore, Configuration
from acctgate.gate.whitelist import WhitelistEntry, WhitelistRegistry
from acctgate.logs import get_logger

log = get_logger(__name__)


def _epoch_seconds() -> int:
    return int(time.time())


class ProvisioningGate:
    def __init__(
        self,
        client: ChainClient,
        contract: str = CONTRACT_ACCOUNT,
        store: ConfigStore | None = None,
        registry: WhitelistRegistry | None = None,
        audit: AuditLog | None = None,
        clock: Callable[[], int] = _epoch_seconds,
        legacy_whitelist: Iterable[str] = (),
    ) -> None:
        self.contract = contract
        self.store = store or ConfigStore(publisher=contract)
        self.registry = registry or WhitelistRegistry(legacy=legacy_whitelist)
        self.audit = audit or AuditLog()
        self.limiter = RateLimiter(self.audit)
        self.admission = AdmissionController(self.registry, self.limiter)
        self.provisioner = Provisioner(client, PricingOracle(client), self.audit, contract=contract)
        self._clock = clock
        self._lock = threading.Lock()

        self.store.initialize()

    def _require_owner(self, actor: str) -> None:
        if actor != self.contract:
            raise Unauthorized(f"{actor} is not the contract owner", actor=actor)

    # ---- caller operations ----

    def create(self, caller: str, account: str, owner_key: str, active_key: str) -> ProvisionResult:
        names.validate(account)
        with self._lock:
            config = self.store.get()
            now = self._clock()
            decision = self.admission.admit(caller, now, config)
            try:
                return self.provisioner.provision(caller, account, owner_key, active_key, config, now)
            except Exception:
                self.admission.release(decision)
                raise

    # ---- owner operations ----

    def add_whitelist(self, actor: str, identity: str, total_accounts: int, max_accounts: int) -> WhitelistEntry:
        with self._lock:
            self._require_owner(actor)
            return self.registry.add(identity, total_accounts, max_accounts)

    def remove_whitelist(self, actor: str, identity: str) -> None:
        with self._lock:
            self._require_owner(actor)
            self.registry.remove(identity)

    def erase_legacy_whitelist(self, actor: str, identity: str) -> None:
        with self._lock:
            self._require_owner(actor)
            self.registry.erase_legacy(identity)

    # ---- publisher operations ----

    def configure(self, actor: str, max_accounts_per_hour: int, stake_cpu: int, stake_net: int) -> Configuration:
        with self._lock:
            return self.store.configure(actor, max_accounts_per_hour, stake_cpu, stake_net)

    def reload_config(self) -> Configuration:
        with self._lock:
            return self.store.reload()

    # ---- reads ----

    def get_config(self) -> Configuration:
        return self.store.get()

    def get_whitelist(self, identity: str) -> WhitelistEntry | None:
        return self.registry.lookup(identity)

    def rate_status(self) -> Dict[str, int]:
        now = self._clock()
        return {
            "now": now,
            "count": self.limiter.current_hourly_count(now),
            "limit": self.store.get().max_accounts_per_hour,
        }
