import logging

import pytest

from core.errors import ConfigurationError
from core.initialization import initialize_components, load_configuration
from modules.coinbase_client import CoinbaseClient
from utils.config_manager import ConfigManager
from utils.config_validator import validate_config

ENV_VARS = [
    "COINBASE_API_KEY",
    "COINBASE_API_SECRET",
    "COINBASE_API_VERSION",
    "COINBASE_BASE_URL",
    "COINBASE_TIMEOUT",
    "COINBASE_DEBUG",
    "COINBASE_NOTIFICATIONS_KEY",
    "COINBASE_NOTIFICATIONS_KEY_FILE",
    "LOG_LEVEL",
]

# ------------------------- Fixtures ------------------------- #

@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # set-then-delete so monkeypatch also removes whatever load_dotenv adds
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def config():
    return {
        "COINBASE": {
            "api_key": "key",
            "api_secret": "secret",
            "api_version": "2022-01-30",
            "base_url": "https://api.coinbase.com",
            "timeout": 10.0,
            "debug": False,
            "notifications_key": None,
        },
        "LOG_LEVEL": "INFO",
    }

# ------------------------- load_configuration ------------------------- #

def test_load_configuration_from_env_file(tmp_path):
    env_file = tmp_path / "config.env"
    env_file.write_text(
        "COINBASE_API_KEY=file_key\n"
        "COINBASE_API_SECRET=file_secret\n"
        "COINBASE_DEBUG=true\n"
        "COINBASE_TIMEOUT=5\n"
    )

    conf = load_configuration(str(env_file))

    section = conf["COINBASE"]
    assert section["api_key"] == "file_key"
    assert section["api_secret"] == "file_secret"
    assert section["debug"] is True
    assert section["timeout"] == 5.0
    assert section["api_version"] == "2022-01-30"
    assert section["notifications_key"] is None


def test_environment_wins_over_file(tmp_path, monkeypatch):
    env_file = tmp_path / "config.env"
    env_file.write_text("COINBASE_API_KEY=file_key\n")
    monkeypatch.setenv("COINBASE_API_KEY", "env_key")

    assert load_configuration(str(env_file))["COINBASE"]["api_key"] == "env_key"


def test_escaped_notifications_key(tmp_path, monkeypatch):
    monkeypatch.setenv("COINBASE_NOTIFICATIONS_KEY", "-----BEGIN PUBLIC KEY-----\\nabc\\n-----END PUBLIC KEY-----")
    conf = load_configuration(str(tmp_path / "missing.env"))
    assert conf["COINBASE"]["notifications_key"] == "-----BEGIN PUBLIC KEY-----\nabc\n-----END PUBLIC KEY-----"


def test_notifications_key_file(tmp_path, monkeypatch):
    key_file = tmp_path / "coinbase.pub"
    key_file.write_text("PEM DATA")
    monkeypatch.setenv("COINBASE_NOTIFICATIONS_KEY_FILE", str(key_file))

    conf = load_configuration(str(tmp_path / "missing.env"))
    assert conf["COINBASE"]["notifications_key"] == "PEM DATA"


def test_unreadable_notifications_key_file(tmp_path, monkeypatch):
    monkeypatch.setenv("COINBASE_NOTIFICATIONS_KEY_FILE", str(tmp_path / "nope.pub"))
    with pytest.raises(ConfigurationError):
        load_configuration(str(tmp_path / "missing.env"))


def test_bad_timeout(tmp_path, monkeypatch):
    monkeypatch.setenv("COINBASE_TIMEOUT", "soon")
    with pytest.raises(ConfigurationError):
        load_configuration(str(tmp_path / "missing.env"))

# ------------------------- validate_config ------------------------- #

def test_validate_config_accepts_valid(config):
    validate_config(config)


def test_validate_config_missing_section():
    with pytest.raises(ConfigurationError):
        validate_config({})


@pytest.mark.parametrize("field", ["api_key", "api_secret"])
def test_validate_config_missing_credentials(config, field):
    config["COINBASE"][field] = None
    with pytest.raises(ConfigurationError, match=field):
        validate_config(config)


@pytest.mark.parametrize("field,value", [("timeout", 0), ("timeout", "10"), ("debug", "yes"), ("api_version", 2022)])
def test_validate_config_types(config, field, value):
    config["COINBASE"][field] = value
    with pytest.raises(TypeError):
        validate_config(config)

# ------------------------- ConfigManager ------------------------- #

def test_config_manager_defaults():
    manager = ConfigManager({})
    assert manager.get_api_key() == ""
    assert manager.get_api_version() is None
    assert manager.get_base_url() == "https://api.coinbase.com"
    assert manager.get_timeout() == 10.0
    assert manager.is_debug() is False
    assert manager.get_notifications_key() is None
    assert manager.get_log_level() == "INFO"

# ------------------------- initialize_components ------------------------- #

def test_initialize_components(config):
    logger = logging.getLogger("test-init")
    components = initialize_components(config, overrides={"logger": logger})

    client = components["client"]
    assert isinstance(client, CoinbaseClient)
    assert client.logger is logger
    assert client.api_version == "2022-01-30"
    assert components["verifier"] is None
    assert client.verifier is None


def test_initialize_components_overrides(config):
    fake_client = object.__new__(CoinbaseClient)
    fake_client.api_version = "2023-01-01"
    verifier = object()

    components = initialize_components(
        config, overrides={"logger": logging.getLogger("test-init"), "client": fake_client, "verifier": verifier}
    )

    assert components["client"] is fake_client
    assert components["verifier"] is verifier


def test_initialize_components_rejects_missing_credentials(config):
    config["COINBASE"]["api_secret"] = ""
    with pytest.raises(ConfigurationError):
        initialize_components(config, overrides={"logger": logging.getLogger("test-init")})
