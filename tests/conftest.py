"""Shared fixtures: a simulated ledger behind a TestClient and a gate wired to it."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from acctgate.chain.client import ChainClient
from acctgate.chain.ledger import LedgerState, create_app as create_ledger_app
from acctgate.config import CONTRACT_ACCOUNT
from acctgate.gate.service import ProvisioningGate

OWNER_KEY = "EOS6MRyAjQq8ud7hVNYcfnVPJqcVpscN5So8BhtHuGYqET5GDW5CV"
ACTIVE_KEY = "EOS7ijWCBmoXBi3CgtK7DJxentZZeTkeUnaSDvyro9dq7Sd1C3dC4"

T0 = 1_700_000_000


class FakeClock:
    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture()
def ledger_state():
    return LedgerState.bootstrap(extra=("tf", "alice"))


@pytest.fixture()
def ledger(ledger_state):
    return TestClient(create_ledger_app(ledger_state))


@pytest.fixture()
def chain(ledger):
    return ChainClient(http=ledger)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def gate(chain, clock):
    return ProvisioningGate(chain, contract=CONTRACT_ACCOUNT, clock=clock, legacy_whitelist=["oldie"])
