"""MVP identity verification – HMAC-SHA256 per identity.

Each identity has a pre-shared key (see config.IDENTITY_KEYS).
A signature is HMAC(key, canonical(action, payload)).
"""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any, Dict, Mapping

from acctgate.config import IDENTITY_KEYS


def canonical(action: str, payload: Mapping[str, Any]) -> str:
    """Canonical JSON (sorted keys, no whitespace) of an action request."""
    return json.dumps(
        {"action": action, "payload": dict(payload)},
        sort_keys=True,
        separators=(",", ":"),
    )


class Keyring:
    """identity -> shared secret."""

    def __init__(self, keys: Dict[str, str] | None = None) -> None:
        self._keys: Dict[str, str] = dict(IDENTITY_KEYS if keys is None else keys)

    def register(self, identity: str, secret: str) -> None:
        self._keys[identity] = secret

    def __contains__(self, identity: str) -> bool:
        return identity in self._keys

    def sign(self, identity: str, message: str) -> str:
        """Produce an HMAC-SHA256 hex signature for *message*."""
        key = self._keys[identity].encode()
        return hmac.new(key, message.encode(), hashlib.sha256).hexdigest()

    def verify(self, identity: str, message: str, signature: str) -> bool:
        """Verify *signature* for *message* from *identity*.

        Unknown identities never verify.
        """
        if identity not in self._keys:
            return False
        expected = self.sign(identity, message)
        return hmac.compare_digest(expected, signature)


def signed_request(keyring: Keyring, identity: str, action: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Return *payload* with the ``signature`` field a gate request needs."""
    return {**payload, "signature": keyring.sign(identity, canonical(action, payload))}
