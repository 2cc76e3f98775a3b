"""
Shared fixtures and response builders.
"""

import json
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

import pytest
import requests

from frappe_client.api._http import HTTPClient

BASE_URL = "https://erp.example.com"


def make_response(
    status_code: int = 200,
    json_body: Optional[Any] = None,
    reason: str = "OK",
    method: str = "GET",
    url: str = BASE_URL + "/",
    cookies: Optional[Dict[str, str]] = None,
    text: Optional[str] = None,
) -> requests.Response:
    """Build a real requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response.encoding = "utf-8"
    response.url = url
    if json_body is not None:
        response._content = json.dumps(json_body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    elif text is not None:
        response._content = text.encode("utf-8")
        response.headers["Content-Type"] = "text/html"
    else:
        response._content = b""
    response.request = requests.Request(method, url).prepare()
    for name, value in (cookies or {}).items():
        response.cookies.set(name, value)
    return response


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep FRAPPE_* variables from the developer's shell out of tests."""
    for name in (
        "FRAPPE_URL",
        "FRAPPE_USERNAME",
        "FRAPPE_PASSWORD",
        "FRAPPE_API_KEY",
        "FRAPPE_SECRET_KEY",
        "FRAPPE_TIMEOUT",
        "FRAPPE_VERIFY_SSL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def http_client():
    """HTTPClient whose session is a mock."""
    client = HTTPClient(BASE_URL, headers={"Authorization": "token key:secret"})
    client._session = MagicMock()
    client._session.request.return_value = make_response(json_body={"data": {}})
    return client


def last_request(http_client) -> Dict[str, Any]:
    """Keyword arguments of the most recent session.request call."""
    return http_client._session.request.call_args.kwargs
