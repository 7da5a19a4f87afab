"""Tests for the provisioning gate operations."""

import pytest

from acctgate.config import CONTRACT_ACCOUNT
from acctgate.errors import (
    AlreadyWhitelisted,
    InvalidAccountName,
    InvalidConfig,
    LedgerError,
    NotAuthorized,
    NotWhitelisted,
    QuotaExceeded,
    RateLimited,
    Unauthorized,
)

from conftest import ACTIVE_KEY, OWNER_KEY, T0


def _name(i: int) -> str:
    return f"acct{chr(97 + i // 26)}{chr(97 + i % 26)}"


def test_quota_of_one(gate, ledger_state):
    gate.add_whitelist(CONTRACT_ACCOUNT, "tf", 0, 1)
    gate.create("tf", "carol.tf", OWNER_KEY, ACTIVE_KEY)
    assert gate.get_whitelist("tf").total_accounts == 1
    with pytest.raises(QuotaExceeded):
        gate.create("tf", "dave.tf", OWNER_KEY, ACTIVE_KEY)
    assert "dave.tf" not in ledger_state.accounts
    assert gate.get_whitelist("tf").total_accounts == 1


def test_quota_counts_from_initial_total(gate):
    gate.add_whitelist(CONTRACT_ACCOUNT, "tf", 2, 5)
    for i in range(3):
        gate.create("tf", f"{_name(i)}.tf", OWNER_KEY, ACTIVE_KEY)
    assert gate.get_whitelist("tf").total_accounts == 5
    with pytest.raises(QuotaExceeded):
        gate.create("tf", "last.tf", OWNER_KEY, ACTIVE_KEY)


def test_hourly_limit_default_config(gate, clock):
    gate.add_whitelist(CONTRACT_ACCOUNT, "alice", 0, 0)
    for i in range(50):
        gate.create("alice", _name(i), OWNER_KEY, ACTIVE_KEY)
        clock.advance(60)
    with pytest.raises(RateLimited):
        gate.create("alice", _name(50), OWNER_KEY, ACTIVE_KEY)
    assert gate.rate_status() == {"now": T0 + 3000, "count": 50, "limit": 50}

    # the first entry leaves the window
    clock.now = T0 + 3601
    gate.create("alice", _name(50), OWNER_KEY, ACTIVE_KEY)


def test_bounded_callers_feed_the_hourly_count(gate):
    gate.configure(CONTRACT_ACCOUNT, 1, 9000, 1000)
    gate.add_whitelist(CONTRACT_ACCOUNT, "tf", 0, 10)
    gate.add_whitelist(CONTRACT_ACCOUNT, "alice", 0, 0)
    gate.create("tf", "carol.tf", OWNER_KEY, ACTIVE_KEY)
    gate.create("tf", "dave.tf", OWNER_KEY, ACTIVE_KEY)
    with pytest.raises(RateLimited):
        gate.create("alice", "erin", OWNER_KEY, ACTIVE_KEY)


def test_zero_per_hour_blocks_unlimited_callers(gate):
    gate.configure(CONTRACT_ACCOUNT, 0, 9000, 1000)
    gate.add_whitelist(CONTRACT_ACCOUNT, "alice", 0, 0)
    with pytest.raises(RateLimited):
        gate.create("alice", "carol", OWNER_KEY, ACTIVE_KEY)


def test_unknown_caller(gate):
    with pytest.raises(NotAuthorized):
        gate.create("mallory", "carol", OWNER_KEY, ACTIVE_KEY)


def test_invalid_name_consumes_nothing(gate):
    gate.add_whitelist(CONTRACT_ACCOUNT, "tf", 0, 1)
    with pytest.raises(InvalidAccountName):
        gate.create("tf", "Carol.tf", OWNER_KEY, ACTIVE_KEY)
    assert gate.get_whitelist("tf").total_accounts == 0


def test_failed_provisioning_releases_quota(gate, ledger_state):
    gate.add_whitelist(CONTRACT_ACCOUNT, "tf", 0, 1)
    ledger_state.fail_next.add("delegatebw")
    with pytest.raises(LedgerError):
        gate.create("tf", "carol.tf", OWNER_KEY, ACTIVE_KEY)
    assert gate.get_whitelist("tf").total_accounts == 0
    assert len(gate.audit) == 0

    gate.create("tf", "carol.tf", OWNER_KEY, ACTIVE_KEY)
    assert gate.get_whitelist("tf").total_accounts == 1


def test_duplicate_account(gate):
    gate.add_whitelist(CONTRACT_ACCOUNT, "alice", 0, 0)
    gate.create("alice", "carol", OWNER_KEY, ACTIVE_KEY)
    with pytest.raises(LedgerError):
        gate.create("alice", "carol", OWNER_KEY, ACTIVE_KEY)
    assert len(gate.audit) == 1


def test_whitelist_administration(gate):
    with pytest.raises(Unauthorized):
        gate.add_whitelist("tf", "tf", 0, 100)
    gate.add_whitelist(CONTRACT_ACCOUNT, "tf", 0, 1)
    with pytest.raises(AlreadyWhitelisted):
        gate.add_whitelist(CONTRACT_ACCOUNT, "tf", 0, 1)
    with pytest.raises(Unauthorized):
        gate.remove_whitelist("tf", "tf")
    gate.remove_whitelist(CONTRACT_ACCOUNT, "tf")
    with pytest.raises(NotWhitelisted):
        gate.remove_whitelist(CONTRACT_ACCOUNT, "tf")


def test_erase_legacy(gate):
    with pytest.raises(Unauthorized):
        gate.erase_legacy_whitelist("tf", "oldie")
    gate.erase_legacy_whitelist(CONTRACT_ACCOUNT, "oldie")
    with pytest.raises(NotWhitelisted):
        gate.erase_legacy_whitelist(CONTRACT_ACCOUNT, "oldie")


def test_configure(gate):
    with pytest.raises(Unauthorized):
        gate.configure("tf", 10, 9000, 1000)
    with pytest.raises(InvalidConfig):
        gate.configure(CONTRACT_ACCOUNT, 10, 50, 1000)
    config = gate.configure(CONTRACT_ACCOUNT, 10, 500, 600)
    assert gate.get_config() == config
    assert (config.max_accounts_per_hour, config.stake_cpu_amount, config.stake_net_amount) == (10, 500, 600)


def test_stake_amounts_follow_config(gate, ledger_state):
    gate.configure(CONTRACT_ACCOUNT, 10, 500, 600)
    gate.add_whitelist(CONTRACT_ACCOUNT, "alice", 0, 0)
    gate.create("alice", "carol", OWNER_KEY, ACTIVE_KEY)
    acct = ledger_state.accounts["carol"]
    assert (acct["cpu"], acct["net"]) == (500, 600)
