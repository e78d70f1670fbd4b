from __future__ import annotations
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator


def currency_code(account: Dict[str, Any]) -> Optional[str]:
    """Currency code of a raw /v2/accounts entry (``currency`` is an object in v2)."""
    currency = account.get("currency")
    if isinstance(currency, dict):
        return currency.get("code")
    return currency


class Wallet(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    currency: str = Field(..., min_length=1)
    balance: float = 0.0
    raw: Dict[str, Any] = Field(default_factory=dict, repr=False)

    @field_validator("currency")
    @classmethod
    def upper_code(cls, v):
        return v.upper()

    @classmethod
    def from_account(cls, account: Dict[str, Any]) -> "Wallet":
        balance = account.get("balance") or {}
        return cls(
            id=account.get("id"),
            name=account.get("name") or "",
            currency=currency_code(account),
            balance=balance.get("amount", 0) or 0,
            raw=account,
        )
