"""
core/initialization.py
----------------------
Loads configuration from .env and wires the runtime components with simple
dependency-injection (DI) overrides.
"""

from __future__ import annotations

import os
import logging
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv

from core.errors import ConfigurationError
from modules.coinbase_client import CoinbaseClient, DEFAULT_API_VERSION, DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from modules.notification_verifier import NotificationVerifier
from utils.config_manager import ConfigManager
from utils.config_validator import validate_config
from utils.logger import setup_logger

_TRUTHY = {"1", "true", "yes", "on"}


def _read_notifications_key() -> Optional[str]:
    inline = os.getenv("COINBASE_NOTIFICATIONS_KEY")
    if inline:
        # allow \n-escaped PEM in a single env line
        return inline.replace("\\n", "\n")
    key_file = os.getenv("COINBASE_NOTIFICATIONS_KEY_FILE")
    if key_file:
        try:
            return Path(key_file).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read COINBASE_NOTIFICATIONS_KEY_FILE {key_file}: {exc}") from exc
    return None


def load_configuration(env_path: str = "config.env") -> Dict:
    """
    Load settings from an .env-style file and return a structured config dict.
    Values already present in the environment win over the file.
    """
    log = logging.getLogger(__name__)
    load_dotenv(dotenv_path=env_path)

    timeout_raw = os.getenv("COINBASE_TIMEOUT", str(DEFAULT_TIMEOUT))
    try:
        timeout = float(timeout_raw)
    except ValueError as exc:
        raise ConfigurationError(f"COINBASE_TIMEOUT must be a number, got {timeout_raw!r}") from exc

    conf: Dict[str, object] = {
        "COINBASE": {
            "api_key": os.getenv("COINBASE_API_KEY"),
            "api_secret": os.getenv("COINBASE_API_SECRET"),
            "api_version": os.getenv("COINBASE_API_VERSION", DEFAULT_API_VERSION),
            "base_url": os.getenv("COINBASE_BASE_URL", DEFAULT_BASE_URL),
            "timeout": timeout,
            "debug": os.getenv("COINBASE_DEBUG", "false").strip().lower() in _TRUTHY,
            "notifications_key": _read_notifications_key(),
        },
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
    }

    # never log the secret or the key material
    log.debug("Coinbase API version: %s", conf["COINBASE"]["api_version"])
    log.debug("Coinbase base URL:    %s", conf["COINBASE"]["base_url"])
    log.debug("Notifications key configured: %s", bool(conf["COINBASE"]["notifications_key"]))

    return conf


def initialize_components(
    config: Dict,
    overrides: Optional[Dict[str, object]] = None,
    ) -> Dict[str, object]:
    """
    Construct and wire together all runtime components (supports DI via overrides).

    Keys you can override:
    {"logger", "verifier", "client", "session"}
    """
    overrides = overrides or {}
    validate_config(config)
    config = ConfigManager(config)

    # 1) Logger
    logger = overrides.get("logger") or setup_logger(
        "Coinbase", level="DEBUG" if config.is_debug() else config.get_log_level()
    )

    # 2) Notification verifier (optional, needs the public key)
    verifier = overrides.get("verifier")
    if verifier is None and config.get_notifications_key():
        verifier = NotificationVerifier(config.get_notifications_key(), logger=logger)

    # 3) Client – wallets are loaded later by `await client.setup()`
    client = overrides.get("client")
    if client is None:
        client = CoinbaseClient(
            api_key=config.get_api_key(),
            api_secret=config.get_api_secret(),
            api_version=config.get_api_version(),
            debug=config.is_debug(),
            verifier=verifier,
            base_url=config.get_base_url(),
            timeout=config.get_timeout(),
            session=overrides.get("session"),
            logger=logger,
        )

    logger.info("✅ Logger initialized.")
    logger.info("✅ Notification verifier %s.", "initialized" if verifier else "disabled (no public key)")
    logger.info("✅ CoinbaseClient initialized (API version %s).", client.api_version)

    return {
        "logger": logger,
        "verifier": verifier,
        "client": client,
    }
