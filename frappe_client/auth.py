"""
Authentication module for Frappe Client.

Builds authenticated HTTP clients, either by exchanging username/password
for a session cookie or from a static API key/secret pair.
"""

import itertools
import logging
from typing import Optional, Mapping

import requests

from .api._http import HTTPClient, get_common_headers
from .config import DEFAULT_TIMEOUT
from .environment import EnvironmentContext
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

LOGIN_ENDPOINT = "/api/method/login"
SESSION_COOKIE = "sid"

# Stamps every client so callers can tell a re-login apart from the client it replaced
_generations = itertools.count(1)


def get_client_with_credentials(
    url: str,
    username: Optional[str],
    password: Optional[str],
    headers: Optional[Mapping[str, str]] = None,
    environment: Optional[EnvironmentContext] = None,
    timeout: int = DEFAULT_TIMEOUT,
    verify_ssl: bool = True,
) -> HTTPClient:
    """
    Log in with username and password and return a cookie-bearing client.

    Args:
        url: Base URL of the Frappe site
        username: User's login name or email
        password: User's password
        headers: Additional headers for every request
        environment: Page context for header derivation
        timeout: Request timeout in seconds
        verify_ssl: Verify TLS certificates

    Returns:
        HTTPClient sending ``Cookie: sid=...``

    Raises:
        AuthenticationError: If the login is rejected or no session cookie is set
    """
    url = url.rstrip("/")
    common_headers = get_common_headers(url, headers, environment)
    failure = f"Failed to login to {url}"

    logger.debug(f"Logging in to {url} as {username}")

    try:
        response = requests.post(
            url + LOGIN_ENDPOINT,
            json={"usr": username, "pwd": password},
            headers=common_headers,
            timeout=timeout,
            verify=verify_ssl,
        )
    except requests.exceptions.RequestException as e:
        logger.warning(f"Login request to {url} failed: {e}")
        raise AuthenticationError(failure, details=str(e)) from e

    if response.status_code == 200:
        sid = response.cookies.get(SESSION_COOKIE)
        if sid:
            logger.info(f"Logged in to {url} as {username}")
            return HTTPClient(
                url,
                headers={"Cookie": f"{SESSION_COOKIE}={sid}", **common_headers},
                timeout=timeout,
                verify_ssl=verify_ssl,
                generation=next(_generations),
            )
        logger.warning(f"Login to {url} returned no session cookie")
    else:
        logger.warning(f"Login to {url} rejected: HTTP {response.status_code}")

    raise AuthenticationError(failure, details={"status_code": response.status_code})


def get_client_with_keys(
    url: str,
    api_key: Optional[str],
    secret_key: Optional[str],
    headers: Optional[Mapping[str, str]] = None,
    environment: Optional[EnvironmentContext] = None,
    timeout: int = DEFAULT_TIMEOUT,
    verify_ssl: bool = True,
) -> HTTPClient:
    """
    Build a token-authenticated client. No request is made.

    Args:
        url: Base URL of the Frappe site
        api_key: API key of the user
        secret_key: API secret of the user
        headers: Additional headers for every request
        environment: Page context for header derivation
        timeout: Request timeout in seconds
        verify_ssl: Verify TLS certificates

    Returns:
        HTTPClient sending ``Authorization: token <key>:<secret>``
    """
    url = url.rstrip("/")
    return HTTPClient(
        url,
        headers={
            "Authorization": f"token {api_key}:{secret_key}",
            **get_common_headers(url, headers, environment),
        },
        with_credentials=True,
        timeout=timeout,
        verify_ssl=verify_ssl,
        generation=next(_generations),
    )
