"""Settings tests — defaults and env var validation."""

import pytest
from pydantic import ValidationError

from bizdir.config import Settings


def test_defaults(monkeypatch):
    for var in ("BIZDIR_WS_HOST", "BIZDIR_WS_PORT", "BIZDIR_WS_HANDLER"):
        monkeypatch.delenv(var, raising=False)

    s = Settings()

    assert s.ws_host == "0.0.0.0"
    assert s.ws_port == 3001
    assert s.ws_handler == "notifications"
    assert s.ws_path == "/ws"
    assert s.strict_commands is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("BIZDIR_WS_PORT", "9000")
    monkeypatch.setenv("BIZDIR_WS_HANDLER", "Relay")
    monkeypatch.setenv("BIZDIR_STRICT_COMMANDS", "true")
    monkeypatch.setenv("BIZDIR_LOG_LEVEL", "debug")

    s = Settings()

    assert s.ws_port == 9000
    assert s.ws_handler == "relay"
    assert s.strict_commands is True
    assert s.log_level == "DEBUG"


def test_rejects_unknown_handler():
    with pytest.raises(ValidationError, match="BIZDIR_WS_HANDLER"):
        Settings(ws_handler="echo")


@pytest.mark.parametrize("port", [0, 70000])
def test_rejects_bad_port(port):
    with pytest.raises(ValidationError, match="BIZDIR_WS_PORT"):
        Settings(ws_port=port)
