"""Wire models shared by the ledger client and the simulated ledger."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class KeyWeight(BaseModel):
    key: str
    weight: int = 1


class Authority(BaseModel):
    """Permission structure attached to an account."""

    threshold: int = 1
    keys: List[KeyWeight] = Field(default_factory=list)
    accounts: List[str] = Field(default_factory=list)
    waits: List[int] = Field(default_factory=list)

    @classmethod
    def single_key(cls, key: str) -> "Authority":
        """Single key, weight 1, threshold 1."""
        return cls(threshold=1, keys=[KeyWeight(key=key, weight=1)])


class NewAccount(BaseModel):
    creator: str
    name: str
    owner: Authority
    active: Authority


class BuyRam(BaseModel):
    payer: str
    receiver: str
    quant: int


class DelegateBandwidth(BaseModel):
    sender: str
    receiver: str
    stake_net_quantity: int
    stake_cpu_quantity: int
    transfer: bool = False


class RefundRam(BaseModel):
    payer: str
    receiver: str
    bytes: int


class DeleteAccount(BaseModel):
    name: str


class Connector(BaseModel):
    balance: int
    symbol: str


class RamMarket(BaseModel):
    """Snapshot of the RAM exchange state."""

    symbol: str
    base: Connector
    quote: Connector
