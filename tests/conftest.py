import pytest
from unittest.mock import AsyncMock, MagicMock

from modules.coinbase_client import CoinbaseClient

API_KEY = "test_api_key"
API_SECRET = "test_api_secret"

# ------------------------- helpers ------------------------- #

def make_response(status=200, payload=None):
    resp = MagicMock()
    resp.status = status
    resp.json = AsyncMock(return_value=payload)
    return resp


def make_session(*responses):
    """Fake aiohttp session; each request() call yields the next response
    (or raises it, when it is an exception)."""
    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    effects = []
    for r in responses:
        if isinstance(r, BaseException):
            effects.append(r)
            continue
        ctx = MagicMock()
        ctx.__aenter__.return_value = r
        ctx.__aexit__.return_value = False
        effects.append(ctx)
    session.request.side_effect = effects
    return session


def account(account_id, code, amount="0.00000000"):
    return {
        "id": account_id,
        "name": f"{code} Wallet",
        "primary": code == "BTC",
        "type": "wallet",
        "currency": {"code": code, "name": code},
        "balance": {"amount": amount, "currency": code},
    }

# ------------------------- fixtures ------------------------- #

@pytest.fixture
def accounts_payload():
    return {
        "pagination": {"next_uri": None},
        "data": [
            account("usd-1", "USD", "10.00"),
            account("btc-1", "BTC", "0.50000000"),
            account("eth-1", "ETH", "2.00000000"),
            account("ltc-1", "LTC", "7.25000000"),
        ],
    }


@pytest.fixture
def make_client():
    def _make(*responses, **kwargs):
        session = make_session(*responses)
        client = CoinbaseClient(API_KEY, API_SECRET, session=session, **kwargs)
        return client, session
    return _make
