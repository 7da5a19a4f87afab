"""Account-name rules of the ledger.

Names are at most 12 characters drawn from ``a-z``, ``1-5`` and ``.``,
and may not end with a dot.  A dotted name such as ``alice.tf`` lives in
the ``tf`` namespace; only the namespace account may create it.
"""

from __future__ import annotations

import re

from acctgate.errors import InvalidAccountName

_NAME_RE = re.compile(r"^[a-z1-5.]{1,12}$")


def is_valid(name: str) -> bool:
    return bool(_NAME_RE.match(name)) and not name.endswith(".")


def validate(name: str) -> str:
    """Return *name* unchanged, or raise ``InvalidAccountName``."""
    if not is_valid(name):
        raise InvalidAccountName(f"invalid account name: {name!r}", account=name)
    return name


def suffix(name: str) -> str:
    """The segment after the last dot; the name itself if it has none."""
    return name.rsplit(".", 1)[-1]


def is_namespaced(name: str) -> bool:
    return suffix(name) != name
