"""Shared pytest fixtures.

Provides fake HTTP responses for tests that patch ``requests`` and a real
Curve25519 key pair standing in for the secret store's key.
"""

import json
from typing import Optional
from unittest import mock

import pytest
from nacl import encoding, public


def fake_response(
    status_code: int = 200,
    json_data: Optional[object] = None,
    headers: Optional[dict] = None,
    text: Optional[str] = None,
) -> mock.Mock:
    """Build a mock ``requests.Response``."""
    response = mock.Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.headers = headers or {}
    if json_data is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = text or ""
    else:
        response.json.return_value = json_data
        response.text = text if text is not None else json.dumps(json_data)
    return response


@pytest.fixture
def make_response():
    """Factory for mock HTTP responses.

    Example:
        >>> def test_something(make_response):
        >>>     response = make_response(200, {"access_token": "A1"})
    """
    return fake_response


@pytest.fixture
def store_private_key():
    """Private key the fake secret store seals against."""
    return public.PrivateKey.generate()


@pytest.fixture
def store_public_key_json(store_private_key):
    """Body of GET /actions/secrets/public-key for the fake store."""
    key = store_private_key.public_key.encode(encoding.Base64Encoder).decode()
    return {"key_id": "K1", "key": key}
