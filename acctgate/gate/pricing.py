"""Pricing Oracle Adapter.

Turns a RAM market snapshot into the token cost of a fixed number of
bytes, plus the market fee.
"""

from __future__ import annotations

from dataclasses import dataclass

from acctgate.chain.client import ChainClient
from acctgate.chain.models import RamMarket
from acctgate.config import (
    RAM_BYTES_PER_ACCOUNT,
    RAM_FEE_DENOMINATOR,
    RAM_FEE_NUMERATOR,
    RAM_MARKET_SYMBOL,
)
from acctgate.errors import MarketUnavailable


@dataclass(frozen=True)
class MarketSnapshot:
    """Equal-weight Bancor connector pair (RAM base, token quote)."""

    base_balance: int
    quote_balance: int

    @classmethod
    def from_market(cls, market: RamMarket) -> "MarketSnapshot":
        return cls(base_balance=market.base.balance, quote_balance=market.quote.balance)

    def convert(self, quantity: int) -> int:
        """Token value of *quantity* bytes."""
        return self.quote_balance * quantity // (self.base_balance + quantity)


def price_for(quantity: int, snapshot: MarketSnapshot | None) -> int:
    """Market value of *quantity* bytes plus the fee, rounded up."""
    if snapshot is None:
        raise MarketUnavailable(f"no {RAM_MARKET_SYMBOL} market entry")
    base_cost = snapshot.convert(quantity)
    return -(-base_cost * RAM_FEE_NUMERATOR // RAM_FEE_DENOMINATOR)


class PricingOracle:
    """Reads the live snapshot from the ledger and prices against it."""

    def __init__(self, client: ChainClient, symbol: str = RAM_MARKET_SYMBOL) -> None:
        self._client = client
        self._symbol = symbol

    def snapshot(self) -> MarketSnapshot | None:
        market = self._client.ram_market(self._symbol)
        return MarketSnapshot.from_market(market) if market is not None else None

    def quote(self, quantity: int = RAM_BYTES_PER_ACCOUNT) -> int:
        return price_for(quantity, self.snapshot())
