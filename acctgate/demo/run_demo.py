#!/usr/bin/env python3
"""AcctGate end-to-end demo.

Usage (two services running)::

    uvicorn acctgate.chain.ledger:app --port 8888
    ACCTGATE_IDENTITY_KEYS="free.tf=free-tf-dev-key,tf=tf-dev-key,faucet=faucet-dev-key" \\
        uvicorn acctgate.gate.app:app --port 8000
    python -m acctgate.demo.run_demo

The script:
1. Whitelists ``tf`` with a quota of 2 and ``faucet`` with no quota.
2. Lowers the hourly limit to 3.
3. Creates namespaced accounts as ``tf`` until the quota is exhausted.
4. Creates plain accounts as ``faucet`` until the hourly limit is hit.
5. Dumps the audit log.
"""

from __future__ import annotations

import os
import secrets

import httpx

from acctgate.config import CONTRACT_ACCOUNT
from acctgate.crypto.signatures import Keyring, signed_request

# ---------- configurable base URLs (env vars → localhost fallback) ---------
GATE = os.environ.get("ACCTGATE_GATE_URL", "http://localhost:8000")
LEDGER = os.environ.get("ACCTGATE_LEDGER_URL", "http://localhost:8888")

KEYS = Keyring({
    CONTRACT_ACCOUNT: "free-tf-dev-key",
    "tf": "tf-dev-key",
    "faucet": "faucet-dev-key",
})


def banner(msg: str) -> None:
    print(f"\n{'='*60}")
    print(f"  {msg}")
    print(f"{'='*60}")


def _random_name(length: int) -> str:
    alphabet = "abcdefghijklmnopqrstuvwxyz12345"
    return "".join(secrets.choice(alphabet) for _ in range(length))


def create(client: httpx.Client, creator: str, account: str) -> httpx.Response:
    payload = {
        "creator": creator,
        "account_name": account,
        "owner_key": "EOS6MRyAjQq8ud7hVNYcfnVPJqcVpscN5So8BhtHuGYqET5GDW5CV",
        "active_key": "EOS6MRyAjQq8ud7hVNYcfnVPJqcVpscN5So8BhtHuGYqET5GDW5CV",
    }
    return client.post(f"{GATE}/create", json=signed_request(KEYS, creator, "create", payload))


def main() -> None:
    client = httpx.Client(timeout=15.0)

    banner("1) Whitelist callers")
    for identity, max_accounts in (("tf", 2), ("faucet", 0)):
        payload = {"actor": CONTRACT_ACCOUNT, "identity": identity, "total_accounts": 0, "max_accounts": max_accounts}
        resp = client.post(
            f"{GATE}/whitelist/add",
            json=signed_request(KEYS, CONTRACT_ACCOUNT, "addwhitelist", payload),
        )
        print(f"   {identity}: {resp.status_code} {resp.json()}")

    banner("2) Configure: 3 accounts per hour")
    payload = {
        "actor": CONTRACT_ACCOUNT,
        "max_accounts_per_hour": 3,
        "stake_cpu_amount": 9000,
        "stake_net_amount": 1000,
    }
    resp = client.post(f"{GATE}/configure", json=signed_request(KEYS, CONTRACT_ACCOUNT, "configure", payload))
    print(f"   {resp.json()}")

    banner("3) Quota mode (tf, max 2)")
    for _ in range(3):
        account = _random_name(9) + ".tf"
        resp = create(client, "tf", account)
        print(f"   {account}: {resp.status_code} {resp.json()}")

    banner("4) Rate mode (faucet, 3 per hour)")
    for _ in range(4):
        account = "f" + _random_name(11)
        resp = create(client, "faucet", account)
        print(f"   {account}: {resp.status_code} {resp.json()}")
        if resp.status_code == 200:
            acct = client.get(f"{LEDGER}/accounts/{account}").json()
            print(f"      ram={acct['ram_bytes']} net={acct['net']} cpu={acct['cpu']}")

    banner("5) Audit log")
    audit = client.get(f"{GATE}/audit").json()
    print(f"   chain_valid = {audit['chain_valid']}")
    for entry in audit["entries"]:
        print(f"   {entry['created_on']}  {entry['resource_name']}")


if __name__ == "__main__":
    main()
