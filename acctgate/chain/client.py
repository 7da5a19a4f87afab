"""httpx client for the ledger primitives the gate calls into.

The gate never talks to the ledger any other way.  Primitives:

- ``newaccount``   – create an account with owner/active authorities
- ``buyram``       – buy RAM for a receiver, paid by the payer
- ``delegatebw``   – stake NET/CPU for a receiver, paid by the sender
- ``rammarket``    – read the RAM exchange state keyed by market symbol

and the inverse calls used to compensate a partially applied
provisioning: ``deleteaccount``, ``refundram``, ``undelegatebw``.
"""

from __future__ import annotations

from typing import Any, Dict

import httpx

from acctgate.chain.models import (
    Authority,
    BuyRam,
    DelegateBandwidth,
    DeleteAccount,
    NewAccount,
    RamMarket,
    RefundRam,
)
from acctgate.config import LEDGER_TIMEOUT, LEDGER_URL
from acctgate.errors import LedgerError


class ChainClient:
    """Synchronous ledger client.

    *http* may be any ``httpx.Client`` (including a FastAPI ``TestClient``);
    by default one is created against ``config.LEDGER_URL``.
    """

    def __init__(self, http: httpx.Client | None = None, base_url: str = LEDGER_URL) -> None:
        self._http = http or httpx.Client(base_url=base_url, timeout=LEDGER_TIMEOUT)

    def close(self) -> None:
        self._http.close()

    # ---- transport ----

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise LedgerError(f"ledger unreachable: {exc}", path=path) from exc

    def _push(self, action: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        resp = self._request("POST", f"/{action}", json=payload)
        if resp.is_error:
            raise LedgerError(
                f"{action} rejected ({resp.status_code}): {_detail(resp)}",
                action=action,
                status=resp.status_code,
            )
        return resp.json()

    # ---- primitives ----

    def new_account(self, creator: str, name: str, owner: Authority, active: Authority) -> Dict[str, Any]:
        req = NewAccount(creator=creator, name=name, owner=owner, active=active)
        return self._push("newaccount", req.model_dump())

    def buy_ram(self, payer: str, receiver: str, quant: int) -> Dict[str, Any]:
        return self._push("buyram", BuyRam(payer=payer, receiver=receiver, quant=quant).model_dump())

    def delegate_bw(
        self,
        sender: str,
        receiver: str,
        stake_net: int,
        stake_cpu: int,
        transfer: bool = False,
    ) -> Dict[str, Any]:
        req = DelegateBandwidth(
            sender=sender,
            receiver=receiver,
            stake_net_quantity=stake_net,
            stake_cpu_quantity=stake_cpu,
            transfer=transfer,
        )
        return self._push("delegatebw", req.model_dump())

    def ram_market(self, symbol: str) -> RamMarket | None:
        """Return the market snapshot, or ``None`` if the symbol has no entry."""
        resp = self._request("GET", f"/rammarket/{symbol}")
        if resp.status_code == 404:
            return None
        if resp.is_error:
            raise LedgerError(f"rammarket read failed ({resp.status_code})", symbol=symbol)
        return RamMarket.model_validate(resp.json())

    # ---- compensations ----

    def delete_account(self, name: str) -> Dict[str, Any]:
        return self._push("deleteaccount", DeleteAccount(name=name).model_dump())

    def refund_ram(self, payer: str, receiver: str, nbytes: int) -> Dict[str, Any]:
        return self._push("refundram", RefundRam(payer=payer, receiver=receiver, bytes=nbytes).model_dump())

    def undelegate_bw(self, sender: str, receiver: str, stake_net: int, stake_cpu: int) -> Dict[str, Any]:
        req = DelegateBandwidth(
            sender=sender,
            receiver=receiver,
            stake_net_quantity=stake_net,
            stake_cpu_quantity=stake_cpu,
        )
        return self._push("undelegatebw", req.model_dump())


def _detail(resp: httpx.Response) -> str:
    try:
        return str(resp.json().get("detail", resp.text))
    except ValueError:
        return resp.text
