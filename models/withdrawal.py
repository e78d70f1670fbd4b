# --------------------------------------------------------------------
# models/withdrawal.py
# What create_new_withdraw() hands back: the Coinbase transaction id plus
# the network block (status, hash, fee) when Coinbase includes one.
# --------------------------------------------------------------------
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class Withdrawal:
    id: str
    network: Optional[Dict[str, Any]] = None
