from core.errors import ConfigurationError


def validate_config(config: dict):
    section = config.get("COINBASE")
    if not section:
        raise ConfigurationError("Missing required configuration section: COINBASE")
    if not isinstance(section, dict):
        raise TypeError("COINBASE must be a dictionary.")

    missing = [k for k in ("api_key", "api_secret") if not section.get(k)]
    if missing:
        raise ConfigurationError(f"Missing required Coinbase credentials: {missing}")

    for key in ("api_key", "api_secret", "api_version", "base_url", "notifications_key"):
        value = section.get(key)
        if value is not None and not isinstance(value, str):
            raise TypeError(f"COINBASE.{key} must be a string.")

    timeout = section.get("timeout", 10)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise TypeError("COINBASE.timeout must be a positive number.")

    if not isinstance(section.get("debug", False), bool):
        raise TypeError("COINBASE.debug must be a boolean.")
