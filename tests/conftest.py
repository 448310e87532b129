"""Shared fixtures: a real requests.Session whose ``send`` is mocked."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from momoapi.core.settings import MomoSettings


def make_response(
    status: int = 200,
    body=None,
    reason: str = "OK",
    url: str = "https://momo.test/",
) -> requests.Response:
    """Build a :class:`requests.Response` without touching the network."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.url = url
    if body is None:
        response._content = b""
    elif isinstance(body, (bytes, str)):
        response._content = body if isinstance(body, bytes) else body.encode()
    else:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    return response


def sent_request(session) -> requests.PreparedRequest:
    """Return the prepared request passed to the last ``session.send``."""
    return session.send.call_args[0][0]


def sent_json(session) -> dict:
    return json.loads(sent_request(session).body)


@pytest.fixture()
def session():
    s = requests.Session()
    s.send = MagicMock(return_value=make_response())
    return s


@pytest.fixture()
def settings():
    return MomoSettings(
        base_url="https://momo.test",
        target_environment="sandbox",
        api_user_id="user-1",
        api_key="key-1",
        provider_callback_host="callback.test",
        collection_primary_key="col-key",
        disbursement_secondary_key="dis-key",
        remittance_primary_key="rem-key",
    )
