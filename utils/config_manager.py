from typing import Any, Dict, Optional


class ConfigManager:
    def __init__(self, config: Dict[str, Any]):
        self.config = config

    def get(self, key: str, default: Any = None) -> Any:
        return self.config.get(key, default)

    def _coinbase(self) -> Dict[str, Any]:
        return self.config.get("COINBASE") or {}

    def get_api_key(self) -> str:
        return self._coinbase().get("api_key") or ""

    def get_api_secret(self) -> str:
        return self._coinbase().get("api_secret") or ""

    def get_api_version(self) -> Optional[str]:
        return self._coinbase().get("api_version") or None

    def get_base_url(self) -> str:
        return self._coinbase().get("base_url") or "https://api.coinbase.com"

    def get_timeout(self) -> float:
        return float(self._coinbase().get("timeout", 10))

    def is_debug(self) -> bool:
        return bool(self._coinbase().get("debug", False))

    def get_notifications_key(self) -> Optional[str]:
        return self._coinbase().get("notifications_key") or None

    def get_log_level(self) -> str:
        return str(self.config.get("LOG_LEVEL", "INFO")).upper()
