from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from actorqr.dispatch.api_client import ApiDispatcher
from actorqr.errors import ConfigurationError, DispatchError
from actorqr.models.record import Record

URL = "https://api.example.com/actors/notify"
RECORD = Record("A1", "Juan Pérez", "+52 (55) 1234-5678", "Actor", "Activo", "2")


def _session(resp) -> MagicMock:
    session = MagicMock()
    session.post.return_value = resp
    return session


def test_dispatch_sends_exact_multipart_parts(response):
    session = _session(response(201))
    ApiDispatcher(URL, session=session, timeout=7).dispatch(RECORD, "https://x/qr.png", b"PNG")

    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args == (URL,)
    assert kwargs["data"] == {
        "id_nombre": "Juan Pérez",
        "id_celular": "525512345678",
        "linkPath": "https://x/qr.png",
    }
    assert kwargs["files"] == {"file": ("qr.png", b"PNG", "image/png")}
    assert kwargs["timeout"] == 7


def test_dispatch_phone_without_digits_sends_empty_string(response):
    session = _session(response(200))
    rec = Record("A1", "Juan", "n/a", "Actor", "Activo", "2")
    ApiDispatcher(URL, session=session).dispatch(rec, "u", b"")
    assert session.post.call_args.kwargs["data"]["id_celular"] == ""


@pytest.mark.parametrize("status", [200, 204, 299])
def test_dispatch_accepts_2xx(status, response):
    ApiDispatcher(URL, session=_session(response(status))).dispatch(RECORD, "u", b"")


def test_dispatch_non_2xx_carries_status_and_body(response):
    session = _session(response(500, {"err": "x"}))
    with pytest.raises(DispatchError) as e:
        ApiDispatcher(URL, session=session).dispatch(RECORD, "u", b"")
    assert "500" in str(e.value)
    assert '{"err":"x"}' in str(e.value)
    assert e.value.status == 500
    assert e.value.body == '{"err":"x"}'


def test_dispatch_non_json_body_uses_text(response):
    resp = response(404)
    resp.json.side_effect = ValueError("no json")
    resp.text = "Not Found"
    with pytest.raises(DispatchError, match="API responded 404: Not Found"):
        ApiDispatcher(URL, session=_session(resp)).dispatch(RECORD, "u", b"")


@pytest.mark.parametrize("exc", [requests.ConnectionError("refused"), requests.Timeout("slow")])
def test_dispatch_network_failure(exc):
    session = MagicMock()
    session.post.side_effect = exc
    with pytest.raises(DispatchError) as e:
        ApiDispatcher(URL, session=session).dispatch(RECORD, "u", b"")
    assert e.value.status is None
    assert str(e.value).startswith("API request failed:")


@pytest.mark.parametrize("url", ["", "not a url", "ftp://host/path", "/relative/path"])
def test_invalid_url_rejected_at_construction(url):
    with pytest.raises(ConfigurationError):
        ApiDispatcher(url, session=MagicMock())
