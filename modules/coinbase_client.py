"""
coinbase_client.py
------------------
Async client for the Coinbase v2 REST endpoints a crypto cashier needs.

On setup() it lists the API key's accounts once and keeps the BTC, ETH and
LTC wallets in memory; deposit addresses and withdrawals are only allowed
after that.  Every request goes through `_request`, which signs it with
`RequestSigner`.  Balances are never refreshed after setup.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from core.errors import (
    CoinbaseAPIError,
    CoinbaseError,
    ConfigurationError,
    NotReadyError,
    ValidationError,
)
from models.wallet import Wallet, currency_code
from models.withdrawal import Withdrawal
from modules.notification_verifier import NotificationVerifier
from utils.signing import API_PREFIX, RequestSigner, canonical_body


# ----------------------------- constants ---------------------------------- #
DEFAULT_API_VERSION = "2022-01-30"
DEFAULT_BASE_URL = "https://api.coinbase.com"
DEFAULT_TIMEOUT = 10
SUPPORTED_CURRENCIES = ("BTC", "ETH", "LTC")
MAX_IDEM_LENGTH = 100
ACCOUNTS_PAGE_LIMIT = 100


class SessionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


# ---------------------------- client -------------------------------------- #
class CoinbaseClient:
    """Signed Coinbase v2 client gated on the cashier wallets being loaded."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        api_version: Optional[str] = None,
        debug: bool = False,
        *,
        notifications_key: Optional[str | bytes] = None,
        verifier: Optional[NotificationVerifier] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[aiohttp.ClientSession] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        # raises ConfigurationError on missing credentials
        self._signer = RequestSigner(api_key, api_secret)

        self.api_version = api_version or DEFAULT_API_VERSION
        self.debug = bool(debug)
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)

        # logger
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        if self.debug:
            self.logger.setLevel(logging.DEBUG)

        if verifier is None and notifications_key:
            verifier = NotificationVerifier(notifications_key, logger=self.logger)
        self.verifier = verifier

        # transport; only sessions we create are closed by close()
        self._session = session
        self._owns_session = session is None

        self.state = SessionState.UNINITIALIZED
        self._wallets: Dict[str, Wallet] = {}

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(api_key={self._signer.api_key!r}, "
            f"api_version={self.api_version!r}, state={self.state.value})"
        )

    @property
    def ready(self) -> bool:
        return self.state is SessionState.READY

    # -------------------------------------------------------------------- #
    @classmethod
    async def create(cls, *args: Any, **kwargs: Any) -> "CoinbaseClient":
        """Construct a client and wait for its wallets to load."""
        client = cls(*args, **kwargs)
        try:
            await client.setup()
        except BaseException:
            await client.close()
            raise
        return client

    async def __aenter__(self) -> "CoinbaseClient":
        try:
            await self.setup()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    # -------------------------------------------------------------------- #
    async def _request(self, method: str, endpoint: str, body: Optional[Dict[str, Any]] = None) -> Any:
        """Sign and send one request; return the decoded JSON response."""
        method = method.upper()
        path = f"{API_PREFIX}{endpoint}"
        url = f"{self.base_url}{path}"

        # the signed body and the sent body must be the same string
        data = canonical_body(body)
        headers = {"Content-Type": "application/json", "CB-VERSION": self.api_version}
        headers.update(self._signer.sign(method, path, data))

        session = self._get_session()
        try:
            async with session.request(
                method, url, data=data or None, headers=headers, timeout=self.timeout
            ) as resp:
                status = resp.status
                try:
                    payload = await resp.json(content_type=None)
                except ValueError as exc:
                    raise CoinbaseAPIError(
                        method,
                        url,
                        status if status >= 400 else None,
                        reason="invalid JSON response",
                    ) from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self.logger.debug("[Coinbase] %s %s transport error: %r", method, url, exc)
            raise CoinbaseAPIError(method, url, reason=str(exc) or exc.__class__.__name__) from exc

        if status >= 400:
            self.logger.debug("[Coinbase] %s", payload)
            raise CoinbaseAPIError(method, url, status, payload)
        return payload

    @staticmethod
    def _data(payload: Any) -> Any:
        if not isinstance(payload, dict) or "data" not in payload:
            raise CoinbaseError(f"[Coinbase] Unexpected response shape: {payload!r}")
        return payload["data"]

    async def _fetch_accounts(self) -> List[Dict[str, Any]]:
        """Every account visible to the API key, following pagination."""
        accounts: List[Dict[str, Any]] = []
        endpoint: Optional[str] = f"/accounts?limit={ACCOUNTS_PAGE_LIMIT}"
        while endpoint:
            payload = await self._request("GET", endpoint)
            accounts.extend(self._data(payload) or [])
            next_uri = (payload.get("pagination") or {}).get("next_uri")
            endpoint = next_uri[len(API_PREFIX):] if next_uri and next_uri.startswith(API_PREFIX) else None
        return accounts

    @staticmethod
    def _select_wallets(accounts: List[Dict[str, Any]]) -> Dict[str, Wallet]:
        wallets: Dict[str, Wallet] = {}
        for account in accounts:
            code = currency_code(account)
            if code in SUPPORTED_CURRENCIES and code not in wallets:
                wallets[code] = Wallet.from_account(account)

        missing = [c for c in SUPPORTED_CURRENCIES if c not in wallets]
        if missing:
            raise CoinbaseError(
                "[Coinbase] Please enable BTC, ETH and LTC wallets from Coinbase API manager! "
                f"Missing: {', '.join(missing)}"
            )
        return wallets

    async def setup(self) -> Dict[str, Wallet]:
        """Load the cashier wallets.  Runs once; a failure is final."""
        if self.state is not SessionState.UNINITIALIZED:
            raise CoinbaseError(
                f"[Coinbase] setup() : client is already {self.state.value}; accounts are loaded only once."
            )

        self.state = SessionState.LOADING
        self.logger.debug("[Coinbase] setup() : Getting account data from API...")
        try:
            wallets = self._select_wallets(await self._fetch_accounts())
        except BaseException:
            self.state = SessionState.FAILED
            raise

        self._wallets = wallets
        self.state = SessionState.READY
        self.logger.debug(
            "[Coinbase] setup() : Connected! BTC: %s, ETH: %s, LTC: %s.",
            wallets["BTC"].balance,
            wallets["ETH"].balance,
            wallets["LTC"].balance,
        )
        return dict(wallets)

    def _require_ready(self, operation: str) -> None:
        if self.state is not SessionState.READY:
            raise NotReadyError(operation)

    # -------------------------------------------------------------------- #
    def get_cashier_accounts(self) -> Dict[str, Wallet]:
        self._require_ready("get_cashier_accounts()")
        return dict(self._wallets)

    async def create_deposit_addresses(self, user_id: str) -> Dict[str, str]:
        """Create one receive address per cashier wallet, labelled with ``user_id``."""
        self._require_ready("create_deposit_addresses(user_id)")
        if not user_id:
            raise ValidationError(
                "[Coinbase] create_deposit_addresses(user_id) : Missing user_id parameter. This is required!"
            )
        self.logger.debug("[Coinbase] create_deposit_addresses(user_id) : Creating addresses for %s...", user_id)

        addresses: Dict[str, str] = {}
        for code in SUPPORTED_CURRENCIES:
            account_id = self._wallets[code].id
            payload = await self._request("POST", f"/accounts/{account_id}/addresses", {"name": user_id})
            addresses[code] = self._data(payload)["address"]

        self.logger.debug("[Coinbase] create_deposit_addresses(user_id) : Created addresses for %s!", user_id)
        return addresses

    async def create_new_withdraw(
        self,
        currency: str,
        amount: str | float,
        to_address: str,
        transaction_id: str,
    ) -> Withdrawal:
        """Send ``amount`` of ``currency`` to ``to_address``.

        ``transaction_id`` is passed as Coinbase's ``idem`` token: repeating a
        withdrawal with the same id returns the original transaction instead
        of sending twice.
        """
        operation = "create_new_withdraw(currency, amount, to_address, transaction_id)"
        self._require_ready(operation)

        if not currency or not amount or not to_address or not transaction_id:
            raise ValidationError(
                f"[Coinbase] {operation} : Missing currency, amount, to_address or "
                "transaction_id parameter(s). These are required!"
            )
        if currency not in SUPPORTED_CURRENCIES:
            raise ValidationError(
                f"[Coinbase] {operation} : currency parameter must be one of {list(SUPPORTED_CURRENCIES)}."
            )
        if len(str(transaction_id)) > MAX_IDEM_LENGTH:
            raise ValidationError(
                f"[Coinbase] {operation} : transaction_id must be at most {MAX_IDEM_LENGTH} characters."
            )

        self.logger.debug("[Coinbase] %s : Creating withdraw for transaction: %s.", operation, transaction_id)
        body = {
            "type": "send",
            "to": to_address,
            "amount": str(amount),
            "currency": currency,
            "idem": str(transaction_id),
        }
        account_id = self._wallets[currency].id
        data = self._data(await self._request("POST", f"/accounts/{account_id}/transactions", body))

        self.logger.debug(
            "[Coinbase] %s : Created withdraw valued %s %s to %s.", operation, amount, currency, to_address
        )
        return Withdrawal(id=data["id"], network=data.get("network"))

    async def get_exchange_rate(self, currency: str, to_currency: str) -> float:
        """Spot price: units of ``to_currency`` per 1 ``currency``."""
        if not currency or not to_currency:
            raise ValidationError(
                "[Coinbase] get_exchange_rate(currency, to_currency) : Missing currency or "
                "to_currency parameter(s). These are required!"
            )
        self.logger.debug("[Coinbase] Getting exchange rate from %s to %s...", currency, to_currency)

        data = self._data(await self._request("GET", f"/prices/{currency}-{to_currency}/spot"))
        amount = float(data["amount"])

        self.logger.debug("[Coinbase] Got exchange rate: 1 %s = %s %s", currency, amount, to_currency)
        return amount

    def validate_notification(self, body: str | bytes, signature: Optional[str]) -> bool:
        """True when ``signature`` (CB-SIGNATURE header) matches the raw ``body``."""
        if self.verifier is None:
            raise ConfigurationError(
                "[Coinbase] validate_notification() : no notifications public key configured."
            )
        return self.verifier.verify(body, signature)
