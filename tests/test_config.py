"""Configuration tests."""

import pytest

from proxy_manager.shared.config import Config, parse_address


def test_defaults(monkeypatch):
    for name in ("PROXY_MANAGER_ADDRESS", "PROXY_MANAGER_KEY", "PROXY_MANAGER_DOMAIN",
                 "PROXY_MANAGER_DISCOVERY", "CADDY_ADMIN_URL", "CADDY_SERVER_NAME", "REFRESH_INTERVAL",
                 "CADDY_REQUEST_TIMEOUT", "CONTAINER_RUNTIME"):
        monkeypatch.delenv(name, raising=False)

    config = Config()
    config.validate()

    assert config.ADDRESS == ":8080"
    assert config.listen == ("0.0.0.0", 8080)
    assert config.API_KEY == "secret"
    assert config.DOMAIN == "example.com"
    assert config.DISCOVERY_ENABLED is False
    assert config.CADDY_ADMIN_URL == "http://localhost:2019"
    assert config.CADDY_SERVER_NAME == "srv0"
    assert config.REFRESH_INTERVAL == 5


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PROXY_MANAGER_ADDRESS", "127.0.0.1:9090")
    monkeypatch.setenv("PROXY_MANAGER_DISCOVERY", "true")
    monkeypatch.setenv("CONTAINER_RUNTIME", "Docker")
    monkeypatch.setenv("CADDY_ADMIN_URL", "http://caddy:2019/")

    config = Config()
    config.validate()

    assert config.listen == ("127.0.0.1", 9090)
    assert config.DISCOVERY_ENABLED is True
    assert config.CONTAINER_RUNTIME == "docker"
    assert config.CADDY_ADMIN_URL == "http://caddy:2019"


def test_validate_collects_errors(monkeypatch):
    monkeypatch.setenv("PROXY_MANAGER_KEY", "")
    monkeypatch.setenv("REFRESH_INTERVAL", "0")
    monkeypatch.setenv("CONTAINER_RUNTIME", "lxc")

    with pytest.raises(ValueError) as exc_info:
        Config().validate()

    message = str(exc_info.value)
    assert "PROXY_MANAGER_KEY" in message
    assert "REFRESH_INTERVAL" in message
    assert "CONTAINER_RUNTIME" in message


@pytest.mark.parametrize("address", ["8080", "host:", ":70000", "localhost:http"])
def test_parse_address_rejects(address):
    with pytest.raises(ValueError):
        parse_address(address)


def test_parse_address_ipv6():
    assert parse_address("[::1]:8080") == ("::1", 8080)


@pytest.mark.parametrize("name", ["REFRESH_INTERVAL", "CADDY_REQUEST_TIMEOUT"])
@pytest.mark.parametrize("value", ["soon", "nan"])
def test_validate_reports_bad_numbers(monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    config = Config()
    with pytest.raises(ValueError) as exc_info:
        config.validate()

    assert name in str(exc_info.value)
