"""Simulated ledger node (FastAPI application).

Stands in for the real chain so the gate can be run end to end.  It
keeps accounts, token balances and a single Bancor RAM market in memory.

Endpoints:
- POST /newaccount     – create an account (namespace rule enforced)
- POST /buyram         – spend tokens on RAM for a receiver
- POST /delegatebw     – stake NET/CPU for a receiver
- GET  /rammarket/{s}  – RAM exchange state
- GET  /accounts/{n}   – account details
- POST /deleteaccount, /refundram, /undelegatebw – compensations
- POST /fail/{action}  – arm a one-shot failure (tests and demos)
"""

from __future__ import annotations

from typing import Any, Dict, Set

from fastapi import FastAPI, HTTPException

from acctgate.chain import names
from acctgate.chain.models import (
    BuyRam,
    Connector,
    DelegateBandwidth,
    DeleteAccount,
    NewAccount,
    RamMarket,
    RefundRam,
)
from acctgate.config import CONTRACT_ACCOUNT, RAM_MARKET_SYMBOL


def bancor_output(in_reserve: int, out_reserve: int, amount: int) -> int:
    """Equal-weight connector: tokens out for *amount* tokens in."""
    return out_reserve * amount // (in_reserve + amount)


class LedgerState:
    """Mutable ledger state."""

    def __init__(
        self,
        ram_base: int = 64 * 1024**3,
        ram_quote: int = 10_000_000_0000,
        balances: Dict[str, int] | None = None,
    ) -> None:
        # name -> {"creator", "owner", "active", "ram_bytes", "net", "cpu"}
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.balances: Dict[str, int] = dict(balances or {})
        self.markets: Dict[str, RamMarket] = {
            RAM_MARKET_SYMBOL: RamMarket(
                symbol=RAM_MARKET_SYMBOL,
                base=Connector(balance=ram_base, symbol="RAM"),
                quote=Connector(balance=ram_quote, symbol="TLOS"),
            )
        }
        # actions armed to fail once
        self.fail_next: Set[str] = set()

    @classmethod
    def bootstrap(
        cls,
        contract: str = CONTRACT_ACCOUNT,
        balance: int = 1_000_000_0000,
        extra: tuple = ("tf",),
    ) -> "LedgerState":
        """A ledger with a funded contract account and some namespace accounts."""
        state = cls()
        state.add_account(contract, balance)
        for name in extra:
            state.add_account(name)
        return state

    def add_account(self, name: str, balance: int = 0) -> None:
        self.accounts[name] = {
            "creator": None,
            "owner": None,
            "active": None,
            "ram_bytes": 0,
            "net": 0,
            "cpu": 0,
        }
        self.balances[name] = balance


def create_app(state: LedgerState | None = None) -> FastAPI:
    """Factory that creates a ledger app around *state*."""
    if state is None:
        state = LedgerState()

    app = FastAPI(title="AcctGate Simulated Ledger")
    app.state.ledger = state

    def _armed(action: str) -> None:
        if action in state.fail_next:
            state.fail_next.discard(action)
            raise HTTPException(500, f"{action} failed (injected)")

    def _account(name: str) -> Dict[str, Any]:
        acct = state.accounts.get(name)
        if acct is None:
            raise HTTPException(404, f"unknown account {name}")
        return acct

    def _debit(name: str, amount: int) -> None:
        if state.balances.get(name, 0) < amount:
            raise HTTPException(400, f"{name} has insufficient balance")
        state.balances[name] -= amount

    def _market() -> RamMarket:
        return state.markets[RAM_MARKET_SYMBOL]

    @app.post("/newaccount")
    def newaccount(req: NewAccount):
        _armed("newaccount")
        if not names.is_valid(req.name):
            raise HTTPException(400, f"invalid account name {req.name}")
        if req.name in state.accounts:
            raise HTTPException(409, f"account {req.name} already exists")
        _account(req.creator)
        if names.is_namespaced(req.name) and names.suffix(req.name) != req.creator:
            raise HTTPException(403, f"only {names.suffix(req.name)} may create {req.name}")
        state.add_account(req.name)
        acct = state.accounts[req.name]
        acct["creator"] = req.creator
        acct["owner"] = req.owner.model_dump()
        acct["active"] = req.active.model_dump()
        return {"status": "created", "name": req.name}

    @app.post("/buyram")
    def buyram(req: BuyRam):
        _armed("buyram")
        acct = _account(req.receiver)
        if req.quant <= 0:
            raise HTTPException(400, "quantity must be positive")
        _debit(req.payer, req.quant)
        market = _market()
        nbytes = bancor_output(market.quote.balance, market.base.balance, req.quant)
        market.quote.balance += req.quant
        market.base.balance -= nbytes
        acct["ram_bytes"] += nbytes
        return {"status": "bought", "bytes": nbytes}

    @app.post("/delegatebw")
    def delegatebw(req: DelegateBandwidth):
        _armed("delegatebw")
        acct = _account(req.receiver)
        _debit(req.sender, req.stake_net_quantity + req.stake_cpu_quantity)
        acct["net"] += req.stake_net_quantity
        acct["cpu"] += req.stake_cpu_quantity
        acct["transferred"] = acct.get("transferred", False) or req.transfer
        return {"status": "delegated"}

    @app.get("/rammarket/{symbol}")
    def rammarket(symbol: str):
        market = state.markets.get(symbol)
        if market is None:
            raise HTTPException(404, f"no market {symbol}")
        return market.model_dump()

    @app.get("/accounts/{name}")
    def account(name: str):
        acct = _account(name)
        return {"name": name, "balance": state.balances.get(name, 0), **acct}

    @app.post("/deleteaccount")
    def deleteaccount(req: DeleteAccount):
        _account(req.name)
        del state.accounts[req.name]
        state.balances.pop(req.name, None)
        return {"status": "deleted", "name": req.name}

    @app.post("/refundram")
    def refundram(req: RefundRam):
        acct = _account(req.receiver)
        if acct["ram_bytes"] < req.bytes:
            raise HTTPException(400, "not enough RAM to refund")
        market = _market()
        tokens = bancor_output(market.base.balance, market.quote.balance, req.bytes)
        market.base.balance += req.bytes
        market.quote.balance -= tokens
        acct["ram_bytes"] -= req.bytes
        state.balances[req.payer] = state.balances.get(req.payer, 0) + tokens
        return {"status": "refunded", "tokens": tokens}

    @app.post("/undelegatebw")
    def undelegatebw(req: DelegateBandwidth):
        acct = _account(req.receiver)
        if acct["net"] < req.stake_net_quantity or acct["cpu"] < req.stake_cpu_quantity:
            raise HTTPException(400, "not enough stake to undelegate")
        acct["net"] -= req.stake_net_quantity
        acct["cpu"] -= req.stake_cpu_quantity
        state.balances[req.sender] = (
            state.balances.get(req.sender, 0) + req.stake_net_quantity + req.stake_cpu_quantity
        )
        return {"status": "undelegated"}

    @app.post("/fail/{action}")
    def fail(action: str):
        state.fail_next.add(action)
        return {"status": "armed", "action": action}

    return app


app = create_app(LedgerState.bootstrap())
