"""Error taxonomy for the provisioning gate.

Every failure is synchronous and terminal: it aborts the request it was
raised in and is never retried internally.  Each class carries the HTTP
status the gate app answers with and a stable machine-readable ``code``.
"""

from __future__ import annotations


class GateError(Exception):
    """Base class for all gate failures."""

    status_code = 500
    code = "gate_error"

    def __init__(self, message: str = "", **context) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code
        self.context = context

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


# ---------- authorization ----------


class AuthorizationError(GateError):
    status_code = 403
    code = "authorization_error"


class NotAuthorized(AuthorizationError):
    """Caller is not whitelisted and may not provision at all."""

    code = "not_authorized"


class Unauthorized(AuthorizationError):
    """Caller lacks the identity an administrative operation requires."""

    code = "unauthorized"


class InvalidSignature(AuthorizationError):
    status_code = 401
    code = "invalid_signature"


# ---------- policy ----------


class PolicyError(GateError):
    status_code = 429
    code = "policy_error"


class QuotaExceeded(PolicyError):
    code = "quota_exceeded"


class RateLimited(PolicyError):
    code = "rate_limited"


# ---------- configuration / validation ----------


class ConfigurationError(GateError):
    status_code = 400
    code = "configuration_error"


class InvalidConfig(ConfigurationError):
    code = "invalid_config"


class ValidationError(GateError):
    status_code = 400
    code = "validation_error"


class InvalidAccountName(ValidationError):
    code = "invalid_account_name"


class InvalidWhitelistEntry(ValidationError):
    code = "invalid_whitelist_entry"


# ---------- dependencies ----------


class DependencyError(GateError):
    status_code = 502
    code = "dependency_error"


class MarketUnavailable(DependencyError):
    status_code = 503
    code = "market_unavailable"


class LedgerError(DependencyError):
    """A ledger primitive rejected the call or could not be reached."""

    code = "ledger_error"


# ---------- state consistency ----------


class StateError(GateError):
    status_code = 409
    code = "state_error"


class AlreadyWhitelisted(StateError):
    code = "already_whitelisted"


class NotWhitelisted(StateError):
    code = "not_whitelisted"


class WhitelistEntryNotFound(NotWhitelisted):
    """Read of an identity that has no whitelist entry."""

    status_code = 404
