"""Provisioner.

Once a request is admitted the provisioner creates the account and pays
for its resources.  The downstream calls are an explicit saga: an ordered
list of steps, each paired with the call that undoes it.  If a step
fails, the steps that already completed are compensated in reverse order
and the original error is re-raised, so no partial account is left behind
even on a ledger that does not commit the calls atomically.

Order of the steps:
1. ``newaccount``  – owner/active single-key authorities
2. ``buyram``      – RAM for the computed price, paid by the contract
3. ``delegatebw``  – configured NET/CPU stake, paid by the contract,
                     not transferred
4. audit append    – records the account and the time of creation
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from acctgate.chain import names
from acctgate.chain.client import ChainClient
from acctgate.chain.models import Authority
from acctgate.config import CONTRACT_ACCOUNT, RAM_BYTES_PER_ACCOUNT
from acctgate.gate.audit import AuditLog
from acctgate.gate.pricing import PricingOracle
from acctgate.gate.settings import Configuration
from acctgate.logs import get_logger

log = get_logger(__name__)


# --------------------------------------------------------------------------
# Saga
# --------------------------------------------------------------------------


@dataclass
class SagaStep:
    name: str
    action: Callable[[], Any]
    # receives the action's result
    compensate: Optional[Callable[[Any], None]] = None


@dataclass
class Saga:
    steps: List[SagaStep]
    completed: List[str] = field(default_factory=list)

    def run(self) -> List[Any]:
        done: List[tuple] = []
        for step in self.steps:
            try:
                result = step.action()
            except Exception as exc:
                log.warning("saga_step_failed", step=step.name, error=str(exc))
                self._compensate(done)
                raise
            done.append((step, result))
            self.completed.append(step.name)
        return [result for _, result in done]

    def _compensate(self, done: List[tuple]) -> None:
        for step, result in reversed(done):
            if step.compensate is None:
                continue
            try:
                step.compensate(result)
            except Exception:
                # keep unwinding; the failure is left for an operator
                log.exception("saga_compensation_failed", step=step.name)
            else:
                log.info("saga_compensated", step=step.name)


# --------------------------------------------------------------------------
# Provisioner
# --------------------------------------------------------------------------


@dataclass
class ProvisionResult:
    account: str
    creator: str
    ram_price: int
    ram_bytes: int
    stake_net: int
    stake_cpu: int
    created_on: int

    def to_dict(self) -> dict:
        return dict(self.__dict__)


class Provisioner:
    def __init__(
        self,
        client: ChainClient,
        oracle: PricingOracle,
        audit: AuditLog,
        contract: str = CONTRACT_ACCOUNT,
        ram_bytes: int = RAM_BYTES_PER_ACCOUNT,
    ) -> None:
        self._client = client
        self._oracle = oracle
        self._audit = audit
        self._contract = contract
        self._ram_bytes = ram_bytes

    def acting_authority(self, caller: str, account: str) -> str:
        """Who signs ``newaccount``.

        A name outside any namespace is created by the contract itself;
        a namespaced name needs the caller's authority to pass the
        ledger's namespace check.
        """
        return self._contract if not names.is_namespaced(account) else caller

    def provision(
        self,
        caller: str,
        account: str,
        owner_key: str,
        active_key: str,
        config: Configuration,
        now: int,
    ) -> ProvisionResult:
        creator = self.acting_authority(caller, account)
        ram_price = self._oracle.quote(self._ram_bytes)
        stake_net = config.stake_net_amount
        stake_cpu = config.stake_cpu_amount

        saga = Saga([
            SagaStep(
                "newaccount",
                lambda: self._client.new_account(
                    creator,
                    account,
                    owner=Authority.single_key(owner_key),
                    active=Authority.single_key(active_key),
                ),
                lambda _: self._client.delete_account(account),
            ),
            SagaStep(
                "buyram",
                lambda: self._client.buy_ram(self._contract, account, ram_price),
                lambda res: self._client.refund_ram(self._contract, account, int(res.get("bytes", 0))),
            ),
            SagaStep(
                "delegatebw",
                lambda: self._client.delegate_bw(self._contract, account, stake_net, stake_cpu, transfer=False),
                lambda _: self._client.undelegate_bw(self._contract, account, stake_net, stake_cpu),
            ),
            SagaStep(
                "audit",
                lambda: self._audit.append(account, now),
            ),
        ])
        results = saga.run()

        result = ProvisionResult(
            account=account,
            creator=creator,
            ram_price=ram_price,
            ram_bytes=int(results[1].get("bytes", 0)),
            stake_net=stake_net,
            stake_cpu=stake_cpu,
            created_on=now,
        )
        log.info("account_provisioned", caller=caller, **result.to_dict())
        return result
