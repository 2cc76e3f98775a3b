"""
Frappe API Client - Main facade for all API operations.

Holds the configuration and the current authenticated HTTP client, and hands
out domain-specific sub-clients bound to that client.
"""

import logging
from typing import Optional, Any

from ..auth import get_client_with_credentials, get_client_with_keys
from ..config import FrappeConfig
from ..exceptions import UsageError
from ._http import HTTPClient
from .db import FrappeDB
from .files import FrappeUpload

logger = logging.getLogger(__name__)


class Frappe:
    """
    Client for a Frappe site.

    With an API key and secret the client is ready immediately. With a
    username and password, call ``login()`` first.

    Usage:
        frappe = Frappe(url="https://erp.example.com", api_key="...", secret_key="...")
        todo = frappe.db().get_doc("ToDo", "abc123")

        frappe = Frappe(url="https://erp.example.com", username="admin", password="...")
        frappe.login()
        frappe.file().upload("invoice.pdf", FileArgs(is_private=True))

    ``login()`` replaces the held client as a whole. Sub-clients returned by
    ``db()`` and ``file()`` keep the client that was current when they were
    created, so requests already issued through them are unaffected by a
    later login. Calling ``login()`` from one thread while another is
    obtaining sub-clients is not synchronized.
    """

    def __init__(self, config: Optional[FrappeConfig] = None, **options: Any):
        """
        Initialize the client.

        Args:
            config: Connection settings
            **options: FrappeConfig fields, used instead of (or over) ``config``
        """
        if config is None:
            config = FrappeConfig(**options)
        elif options:
            config = config.with_overrides(**options)

        self.config = config
        self._client: Optional[HTTPClient] = None

        if config.has_keys():
            self._client = get_client_with_keys(
                config.url,
                config.api_key,
                config.secret_key,
                headers=config.headers,
                environment=config.environment,
                timeout=config.timeout,
                verify_ssl=config.verify_ssl,
            )

    @property
    def url(self) -> str:
        """Base URL of the site."""
        return self.config.url

    @property
    def is_authenticated(self) -> bool:
        """Check if an authenticated client is available."""
        return self._client is not None

    def login(self) -> HTTPClient:
        """
        Log in with the configured username and password.

        Returns:
            The new authenticated client (also held by this instance)

        Raises:
            UsageError: If API keys are configured, or no credentials are
            AuthenticationError: If the site rejects the login
        """
        config = self.config
        if config.has_keys():
            raise UsageError("You don't need to login if you have API key and secret key")
        if not config.has_credentials():
            raise UsageError("You need to provide username and password or API key and secret key")

        client = get_client_with_credentials(
            config.url,
            config.username,
            config.password,
            headers=config.headers,
            environment=config.environment,
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
        )
        logger.debug(f"Replacing client {self._client!r} with {client!r}")
        self._client = client
        return client

    def client(self) -> HTTPClient:
        """
        Get the current authenticated HTTP client.

        Raises:
            UsageError: If neither API keys nor a login produced a client
        """
        if self._client is None:
            raise UsageError("Not authenticated. Call login() first or configure an API key and secret key.")
        return self._client

    def db(self) -> FrappeDB:
        """Get a document operations client bound to the current client."""
        return FrappeDB(self.client())

    def file(self) -> FrappeUpload:
        """Get a file upload client bound to the current client."""
        return FrappeUpload(self.client())

    def close(self) -> None:
        """Close the current client's HTTP session."""
        if self._client is not None:
            self._client.close()

    def __enter__(self) -> "Frappe":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Frappe(url={self.url!r}, authenticated={self.is_authenticated})"
