from __future__ import annotations

import os
import stat

import pytest

from chat_relay.base.transport import create_transport, discard_staged, stage_body
from chat_relay.base.transport import CurlTransport, HttpxTransport


def test_stage_body_writes_private_file(tmp_path):
    path = stage_body(b'{"a":1}', directory=str(tmp_path))

    assert os.path.basename(path).startswith("chat-relay-")
    assert path.endswith(".json")
    with open(path, "rb") as fh:
        assert fh.read() == b'{"a":1}'
    if os.name == "posix":
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_discard_staged_is_idempotent(tmp_path):
    path = stage_body(b"x", directory=str(tmp_path))
    assert discard_staged(path) is True
    assert discard_staged(path) is False
    assert discard_staged(None) is False


def test_create_transport_by_name():
    assert isinstance(create_transport("curl"), CurlTransport)
    assert isinstance(create_transport(" HTTPX "), HttpxTransport)
    with pytest.raises(ValueError):
        create_transport("carrier-pigeon")
