"""Global configuration for AcctGate."""

import os

# ---------- Contract identity ----------
# The account the gate acts as: it pays for RAM and bandwidth, owns the
# whitelist, and is the default publisher of the configuration.
CONTRACT_ACCOUNT = os.environ.get("ACCTGATE_CONTRACT", "free.tf")

# ---------- Ledger node (external collaborator) ----------
LEDGER_URL = os.environ.get("ACCTGATE_LEDGER_URL", "http://localhost:8888")
LEDGER_TIMEOUT = float(os.environ.get("ACCTGATE_LEDGER_TIMEOUT", "10.0"))

# ---------- Persisted configuration (empty = in-memory only) ----------
CONFIG_PATH = os.environ.get("ACCTGATE_CONFIG_PATH", "")

# ---------- Logging ----------
LOG_LEVEL = os.environ.get("ACCTGATE_LOG_LEVEL", "INFO")
LOG_JSON = os.environ.get("ACCTGATE_LOG_JSON", "0") == "1"

# ---------- Identity keys (MVP – shared secrets) ----------
# ACCTGATE_IDENTITY_KEYS="free.tf=secret-a,alice=secret-b"
_RAW_KEYS = os.environ.get("ACCTGATE_IDENTITY_KEYS", f"{CONTRACT_ACCOUNT}=free-tf-dev-key")
IDENTITY_KEYS = {
    name.strip(): secret.strip()
    for name, _, secret in (pair.partition("=") for pair in _RAW_KEYS.split(","))
    if name.strip() and secret.strip()
}

# ---------- Default policy ----------
DEFAULT_MAX_ACCOUNTS_PER_HOUR = 50
DEFAULT_STAKE_CPU_AMOUNT = 9000
DEFAULT_STAKE_NET_AMOUNT = 1000

# ---------- Policy bounds ----------
MAX_ACCOUNTS_PER_HOUR_RANGE = (0, 1000)
STAKE_AMOUNT_RANGE = (100, 50000)

# ---------- Rate window ----------
RATE_WINDOW_SECONDS = 3600

# ---------- Resource market ----------
RAM_MARKET_SYMBOL = "RAMCORE"
RAM_BYTES_PER_ACCOUNT = 4096
# price * 200 / 199, rounded up: covers the market's 0.5% fee
RAM_FEE_NUMERATOR = 200
RAM_FEE_DENOMINATOR = 199
