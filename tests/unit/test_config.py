"""
Unit tests for ServerConfig.
"""

import pytest

from lineserver.config import ServerConfig
from lineserver.errors import ConfigError


class TestDefaults:

    def test_defaults_are_valid(self):
        config = ServerConfig()
        config.validate()

        assert config.port == 8080
        assert config.idle_timeout == 30.0
        assert config.termination_token == "exit"
        assert config.farewell == "good bye!"
        assert config.service == "fibonacci"

    def test_port_zero_is_allowed(self):
        ServerConfig(port=0).validate()


class TestValidate:

    @pytest.mark.parametrize("overrides", [
        {"port": -1},
        {"port": 65536},
        {"backlog": 0},
        {"buffer_size": 0},
        {"idle_timeout": None},
        {"idle_timeout": 0},
        {"idle_timeout": -5},
        {"accept_poll_interval": 0},
        {"max_line_length": 0},
        {"termination_token": ""},
        {"termination_token": "a\nb"},
        {"farewell": "two\nlines"},
        {"encoding": "no-such-codec"},
        {"log_format": "xml"},
    ])
    def test_rejects(self, overrides):
        with pytest.raises(ConfigError):
            ServerConfig(**overrides).validate()

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            ServerConfig(idle_timeout=0).validate()


class TestFromEnv:

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("LINESERVER_HOST", "0.0.0.0")
        monkeypatch.setenv("LINESERVER_PORT", "9000")
        monkeypatch.setenv("LINESERVER_IDLE_TIMEOUT", "2.5")
        monkeypatch.setenv("LINESERVER_EXIT_TOKEN", "quit")
        monkeypatch.setenv("LINESERVER_SERVICE", "factorial")
        monkeypatch.setenv("LINESERVER_LOG_FORMAT", "json")

        config = ServerConfig.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == 9000
        assert config.idle_timeout == 2.5
        assert config.termination_token == "quit"
        assert config.service == "factorial"
        assert config.log_format == "json"

    def test_defaults_without_environment(self, monkeypatch):
        for name in ("LINESERVER_HOST", "LINESERVER_PORT", "LINESERVER_IDLE_TIMEOUT"):
            monkeypatch.delenv(name, raising=False)

        config = ServerConfig.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.idle_timeout == 30.0

    def test_bad_number_raises_config_error(self, monkeypatch):
        monkeypatch.setenv("LINESERVER_PORT", "eighty")

        with pytest.raises(ConfigError):
            ServerConfig.from_env()
