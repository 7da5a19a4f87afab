"""Tests for the provisioner and its saga."""

import pytest

from acctgate.config import CONTRACT_ACCOUNT
from acctgate.errors import LedgerError, MarketUnavailable
from acctgate.gate.audit import AuditLog
from acctgate.gate.pricing import PricingOracle
from acctgate.gate.provisioner import Provisioner, Saga, SagaStep
from acctgate.gate.settings import Configuration

from conftest import ACTIVE_KEY, OWNER_KEY, T0


@pytest.fixture()
def audit():
    return AuditLog()


@pytest.fixture()
def provisioner(chain, audit):
    return Provisioner(chain, PricingOracle(chain), audit, contract=CONTRACT_ACCOUNT)


# ---------- saga ----------------------------------------------------------


def test_saga_compensates_in_reverse():
    calls = []

    def boom():
        raise RuntimeError("step 3")

    saga = Saga([
        SagaStep("one", lambda: calls.append("one") or 1, lambda r: calls.append(f"undo-one:{r}")),
        SagaStep("two", lambda: calls.append("two") or 2, lambda r: calls.append(f"undo-two:{r}")),
        SagaStep("three", boom, lambda r: calls.append("undo-three")),
    ])
    with pytest.raises(RuntimeError, match="step 3"):
        saga.run()
    assert calls == ["one", "two", "undo-two:2", "undo-one:1"]
    assert saga.completed == ["one", "two"]


def test_saga_keeps_unwinding_after_failed_compensation():
    calls = []

    def bad_undo(_):
        raise RuntimeError("cannot undo")

    def boom():
        raise ValueError("late")

    saga = Saga([
        SagaStep("one", lambda: 1, lambda r: calls.append("undo-one")),
        SagaStep("two", lambda: 2, bad_undo),
        SagaStep("three", boom),
    ])
    with pytest.raises(ValueError):
        saga.run()
    assert calls == ["undo-one"]


# ---------- provisioning ---------------------------------------------------


def test_provision_happy_path(provisioner, ledger, ledger_state, audit):
    config = Configuration()
    result = provisioner.provision("tf", "carol.tf", OWNER_KEY, ACTIVE_KEY, config, T0)

    assert result.creator == "tf"
    assert result.created_on == T0
    acct = ledger.get("/accounts/carol.tf").json()
    assert acct["creator"] == "tf"
    assert acct["owner"] == {"threshold": 1, "keys": [{"key": OWNER_KEY, "weight": 1}], "accounts": [], "waits": []}
    assert acct["active"]["keys"] == [{"key": ACTIVE_KEY, "weight": 1}]
    assert acct["ram_bytes"] == result.ram_bytes > 0
    assert acct["net"] == 1000 and acct["cpu"] == 9000
    assert acct["transferred"] is False
    assert [e["resource_name"] for e in audit.entries()] == ["carol.tf"]


def test_plain_name_created_by_contract(provisioner, ledger):
    result = provisioner.provision("alice", "carol", OWNER_KEY, ACTIVE_KEY, Configuration(), T0)
    assert result.creator == CONTRACT_ACCOUNT
    assert ledger.get("/accounts/carol").json()["creator"] == CONTRACT_ACCOUNT


def test_contract_pays(provisioner, ledger_state):
    before = ledger_state.balances[CONTRACT_ACCOUNT]
    result = provisioner.provision("tf", "carol.tf", OWNER_KEY, ACTIVE_KEY, Configuration(), T0)
    spent = before - ledger_state.balances[CONTRACT_ACCOUNT]
    assert spent == result.ram_price + result.stake_net + result.stake_cpu


def test_foreign_namespace_rejected(provisioner, ledger_state, audit):
    with pytest.raises(LedgerError):
        provisioner.provision("alice", "carol.tf", OWNER_KEY, ACTIVE_KEY, Configuration(), T0)
    assert "carol.tf" not in ledger_state.accounts
    assert len(audit) == 0


def test_buyram_failure_rolls_back_account(provisioner, ledger_state, audit):
    ledger_state.fail_next.add("buyram")
    with pytest.raises(LedgerError):
        provisioner.provision("tf", "carol.tf", OWNER_KEY, ACTIVE_KEY, Configuration(), T0)
    assert "carol.tf" not in ledger_state.accounts
    assert len(audit) == 0


def test_delegatebw_failure_rolls_back_ram_and_account(provisioner, ledger_state, audit):
    before = ledger_state.balances[CONTRACT_ACCOUNT]
    market_base = ledger_state.markets["RAMCORE"].base.balance
    ledger_state.fail_next.add("delegatebw")
    with pytest.raises(LedgerError):
        provisioner.provision("tf", "carol.tf", OWNER_KEY, ACTIVE_KEY, Configuration(), T0)
    assert "carol.tf" not in ledger_state.accounts
    assert ledger_state.markets["RAMCORE"].base.balance == market_base
    # the RAM round trip loses a few minor units to rounding
    assert 0 <= before - ledger_state.balances[CONTRACT_ACCOUNT] < 5
    assert len(audit) == 0


def test_insufficient_funds(provisioner, ledger_state):
    ledger_state.balances[CONTRACT_ACCOUNT] = 0
    with pytest.raises(LedgerError):
        provisioner.provision("tf", "carol.tf", OWNER_KEY, ACTIVE_KEY, Configuration(), T0)
    assert "carol.tf" not in ledger_state.accounts


def test_market_unavailable_before_any_call(provisioner, ledger_state):
    ledger_state.markets.clear()
    with pytest.raises(MarketUnavailable):
        provisioner.provision("tf", "carol.tf", OWNER_KEY, ACTIVE_KEY, Configuration(), T0)
    assert "carol.tf" not in ledger_state.accounts
