"""Configuration Store.

Holds the tunable policy parameters.  The value is read once per request
and passed explicitly to the admission controller and the provisioner;
nothing inside the core reads it on its own.

Lifecycle: ``initialize()`` loads the persisted configuration (or creates
the defaults), ``reload()`` re-reads it, ``configure()`` validates and
persists a new one.  ``get()`` falls back to ``initialize()`` if the store
was never initialized.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from acctgate.config import (
    CONTRACT_ACCOUNT,
    DEFAULT_MAX_ACCOUNTS_PER_HOUR,
    DEFAULT_STAKE_CPU_AMOUNT,
    DEFAULT_STAKE_NET_AMOUNT,
    MAX_ACCOUNTS_PER_HOUR_RANGE,
    STAKE_AMOUNT_RANGE,
)
from acctgate.errors import InvalidConfig, Unauthorized
from acctgate.logs import get_logger

log = get_logger(__name__)


class Configuration(BaseModel):
    """Policy parameters; stake amounts are in token minor units."""

    publisher: str = CONTRACT_ACCOUNT
    max_accounts_per_hour: int = Field(
        DEFAULT_MAX_ACCOUNTS_PER_HOUR,
        ge=MAX_ACCOUNTS_PER_HOUR_RANGE[0],
        le=MAX_ACCOUNTS_PER_HOUR_RANGE[1],
    )
    stake_cpu_amount: int = Field(DEFAULT_STAKE_CPU_AMOUNT, ge=STAKE_AMOUNT_RANGE[0], le=STAKE_AMOUNT_RANGE[1])
    stake_net_amount: int = Field(DEFAULT_STAKE_NET_AMOUNT, ge=STAKE_AMOUNT_RANGE[0], le=STAKE_AMOUNT_RANGE[1])


def parse(data: dict) -> Configuration:
    """Validate *data* into a ``Configuration`` or raise ``InvalidConfig``."""
    try:
        return Configuration.model_validate(data)
    except ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err["loc"]})
        raise InvalidConfig(
            f"configuration outside of the range allowed: {', '.join(fields)}",
            fields=fields,
        ) from exc


class ConfigStore:
    """Owns the single ``Configuration`` record."""

    def __init__(self, publisher: str = CONTRACT_ACCOUNT, path: str | Path | None = None) -> None:
        self._publisher = publisher
        self._path = Path(path) if path else None
        self._config: Configuration | None = None

    def initialize(self) -> Configuration:
        if self._config is None:
            self._config = self._load()
            if self._config is None:
                self._config = Configuration(publisher=self._publisher)
                self._persist()
                log.info("config_initialized", publisher=self._publisher)
        return self._config

    def reload(self) -> Configuration:
        loaded = self._load()
        if loaded is not None:
            self._config = loaded
        return self.initialize()

    def get(self) -> Configuration:
        return self.initialize()

    def configure(
        self,
        actor: str,
        max_accounts_per_hour: int,
        stake_cpu: int,
        stake_net: int,
    ) -> Configuration:
        current = self.get()
        if actor != current.publisher:
            raise Unauthorized(f"{actor} is not the publisher", actor=actor)
        self._config = parse({
            **current.model_dump(),
            "max_accounts_per_hour": max_accounts_per_hour,
            "stake_cpu_amount": stake_cpu,
            "stake_net_amount": stake_net,
        })
        self._persist()
        log.info("config_updated", **self._config.model_dump())
        return self._config

    # ---- persistence ----

    def _load(self) -> Configuration | None:
        if self._path is None or not self._path.exists():
            return None
        return parse(json.loads(self._path.read_text()))

    def _persist(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(self._config.model_dump_json(indent=2))
