"""Gate FastAPI application.

Endpoints:
- POST /create                 – provision an account (signed by the creator)
- POST /whitelist/add          – whitelist a caller (signed by the contract)
- POST /whitelist/remove       – remove a caller (signed by the contract)
- POST /whitelist/erase_legacy – drop an entry of the legacy whitelist
- POST /configure              – update the policy (signed by the publisher)
- GET  /config, /whitelist/{identity}, /rate, /audit

Every mutating request carries the acting identity and an HMAC signature
over ``canonical(action, payload)``; it is verified before any gate
logic runs.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from acctgate.chain.client import ChainClient
from acctgate.config import CONFIG_PATH, CONTRACT_ACCOUNT, LOG_JSON, LOG_LEVEL
from acctgate.crypto.signatures import Keyring, canonical
from acctgate.errors import GateError, InvalidSignature, WhitelistEntryNotFound
from acctgate.gate.service import ProvisioningGate
from acctgate.gate.settings import ConfigStore
from acctgate.logs import configure_logging, get_logger

log = get_logger(__name__)

# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class SignedRequest(BaseModel):
    signature: str

    def payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"signature"})


class CreateRequest(SignedRequest):
    creator: str
    account_name: str
    owner_key: str
    active_key: str


class AddWhitelistRequest(SignedRequest):
    actor: str
    identity: str
    total_accounts: int = 0
    max_accounts: int = 0


class IdentityRequest(SignedRequest):
    actor: str
    identity: str


class ConfigureRequest(SignedRequest):
    actor: str
    max_accounts_per_hour: int
    stake_cpu_amount: int
    stake_net_amount: int


class AuditResponse(BaseModel):
    entries: List[Dict[str, Any]]
    chain_valid: bool


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app(gate: ProvisioningGate | None = None, keyring: Keyring | None = None) -> FastAPI:
    """Factory that creates a gate app.

    Without arguments the gate talks to ``config.LEDGER_URL`` and keeps
    its configuration at ``config.CONFIG_PATH`` (in-memory if unset).
    """
    if gate is None:
        gate = ProvisioningGate(
            ChainClient(),
            contract=CONTRACT_ACCOUNT,
            store=ConfigStore(publisher=CONTRACT_ACCOUNT, path=CONFIG_PATH or None),
        )
    if keyring is None:
        keyring = Keyring()

    app = FastAPI(title="AcctGate")
    app.state.gate = gate

    def _verify(identity: str, action: str, req: SignedRequest) -> None:
        if not keyring.verify(identity, canonical(action, req.payload()), req.signature):
            log.warning("signature_rejected", identity=identity, action=action)
            raise InvalidSignature(f"bad signature for {identity}", identity=identity)

    @app.exception_handler(GateError)
    async def gate_error(request: Request, exc: GateError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.post("/create")
    def create(req: CreateRequest):
        _verify(req.creator, "create", req)
        result = gate.create(req.creator, req.account_name, req.owner_key, req.active_key)
        return {"status": "created", **result.to_dict()}

    @app.post("/whitelist/add")
    def add_whitelist(req: AddWhitelistRequest):
        _verify(req.actor, "addwhitelist", req)
        entry = gate.add_whitelist(req.actor, req.identity, req.total_accounts, req.max_accounts)
        return {"status": "whitelisted", **entry.to_dict()}

    @app.post("/whitelist/remove")
    def remove_whitelist(req: IdentityRequest):
        _verify(req.actor, "removewlist", req)
        gate.remove_whitelist(req.actor, req.identity)
        return {"status": "removed", "identity": req.identity}

    @app.post("/whitelist/erase_legacy")
    def erase_legacy(req: IdentityRequest):
        _verify(req.actor, "erasewlist", req)
        gate.erase_legacy_whitelist(req.actor, req.identity)
        return {"status": "erased", "identity": req.identity}

    @app.post("/configure")
    def configure(req: ConfigureRequest):
        _verify(req.actor, "configure", req)
        config = gate.configure(req.actor, req.max_accounts_per_hour, req.stake_cpu_amount, req.stake_net_amount)
        return config.model_dump()

    @app.get("/config")
    def get_config():
        return gate.get_config().model_dump()

    @app.get("/whitelist/{identity}")
    def get_whitelist(identity: str):
        entry = gate.get_whitelist(identity)
        if entry is None:
            raise WhitelistEntryNotFound(f"{identity} is not whitelisted", identity=identity)
        return entry.to_dict()

    @app.get("/rate")
    def rate():
        return gate.rate_status()

    @app.get("/audit")
    def audit():
        """Return the full audit log."""
        return AuditResponse(entries=gate.audit.entries(), chain_valid=gate.audit.verify_chain())

    return app


configure_logging(level=LOG_LEVEL, format_json=LOG_JSON)
app = create_app()
