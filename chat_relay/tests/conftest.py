"""Pytest configuration for the chat_relay test suite.

Every test runs with an isolated configuration: no provider credentials or
config file leak in from the developer's environment, the config caches are
reset and the relay logger is back at INFO.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterator, List

import pytest

from chat_relay.base.factory import build_default_registry
from chat_relay.base.logging import BASE_LOGGER_NAME, configure_logger
from chat_relay.base.registry import ProviderRegistry
from chat_relay.config import reset_config_cache
from chat_relay.config.env import ENV_ALIASES, ENV_MAP
from chat_relay.service.session import RelaySession

from .fakes import FakeTransport

_ISOLATED_VARS = (
    "CHAT_RELAY_CONFIG_FILE",
    "CHAT_RELAY_LOG_LEVEL",
    "CHAT_RELAY_TIMEOUT_REQUEST_SECONDS",
    "CHAT_RELAY_TIMEOUT_CONNECT_SECONDS",
    "CHAT_RELAY_CANCEL_GRACE_SECONDS",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Strip credentials and relay settings from the environment."""
    names = set(ENV_MAP.values())
    for aliases in ENV_ALIASES.values():
        names.update(aliases)
    for provider in ENV_MAP:
        names.update({f"{provider.upper()}_MODEL", f"{provider.upper()}_ENDPOINT"})
    names.update({"OLLAMA_MODEL", "OLLAMA_ENDPOINT"})
    for name in (*names, *_ISOLATED_VARS):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DOTENV_FILE", str(tmp_path / "missing.env"))
    reset_config_cache()
    configure_logger(level=logging.INFO)
    yield
    reset_config_cache()


@pytest.fixture()
def api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide real-looking credentials for every keyed provider."""
    for env_var in ENV_MAP.values():
        monkeypatch.setenv(env_var, "sk-live-0123456789")


@pytest.fixture()
def registry(api_keys) -> ProviderRegistry:
    return build_default_registry()


@pytest.fixture()
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def session(registry: ProviderRegistry, fake_transport: FakeTransport) -> RelaySession:
    return RelaySession(registry, fake_transport)


class RecordingHandler(logging.Handler):
    """Collect relay log events as parsed JSON payloads."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.messages: List[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())

    @property
    def events(self) -> List[Dict[str, Any]]:
        out = []
        for msg in self.messages:
            try:
                payload = json.loads(msg)
            except json.JSONDecodeError:
                continue
            if isinstance(payload, dict):
                out.append(payload)
        return out

    def named(self, event: str) -> List[Dict[str, Any]]:
        return [e for e in self.events if e.get("event") == event]


@pytest.fixture()
def relay_logs() -> Iterator[RecordingHandler]:
    """Attach a recording handler to the shared relay logger."""
    logger = logging.getLogger(BASE_LOGGER_NAME)
    handler = RecordingHandler()
    logger.addHandler(handler)
    try:
        yield handler
    finally:
        logger.removeHandler(handler)
