# pylint: disable=missing-module-docstring,missing-function-docstring
import pytest

from gloski.config import ClientConfig


ENV_VARS = (
    "GLOSKI_URL",
    "GLOSKI_API_KEY",
    "GLOSKI_TOKEN",
    "GLOSKI_TIMEOUT_S",
    "GLOSKI_HANDSHAKE_TIMEOUT_S",
    "GLOSKI_API_PREFIX",
    "ENABLE_JSON_LOGS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_load_from_env_requires_url():
    with pytest.raises(KeyError):
        ClientConfig.load_from_env()


def test_load_from_env_defaults(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GLOSKI_URL", "https://gloski.example.com/")

    config = ClientConfig.load_from_env()

    assert config.normalized_url == "https://gloski.example.com"
    assert config.api_prefix == "/api"
    assert config.api_key is None and config.token is None
    assert config.timeout_s == 30.0
    assert config.handshake_timeout_s == 10.0
    assert config.enable_json_logs is True


def test_load_from_env_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GLOSKI_URL", "http://localhost:8080")
    monkeypatch.setenv("GLOSKI_API_KEY", "k1")
    monkeypatch.setenv("GLOSKI_TIMEOUT_S", "2.5")
    monkeypatch.setenv("GLOSKI_HANDSHAKE_TIMEOUT_S", "3")
    monkeypatch.setenv("GLOSKI_API_PREFIX", "/v2")
    monkeypatch.setenv("ENABLE_JSON_LOGS", "0")

    config = ClientConfig.load_from_env()

    assert config.api_key == "k1"
    assert config.timeout_s == 2.5
    assert config.handshake_timeout_s == 3.0
    assert config.api_prefix == "/v2"
    assert config.enable_json_logs is False


def test_config_is_immutable():
    config = ClientConfig(url="https://gloski.example.com")

    with pytest.raises(AttributeError):
        config.url = "https://other"  # type: ignore[misc]


def test_config_carries_no_unused_log_level(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GLOSKI_URL", "http://localhost:8080")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    config = ClientConfig.load_from_env()

    assert not hasattr(config, "log_level")
    with pytest.raises(TypeError):
        ClientConfig(url="http://localhost:8080", log_level="DEBUG")  # type: ignore[call-arg]
