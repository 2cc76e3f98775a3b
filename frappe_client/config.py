"""
Configuration for Frappe Client.

A configuration is created once and never mutated. Values can be given
explicitly or read from FRAPPE_* environment variables.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Optional, Dict, Any, Mapping

from .environment import EnvironmentContext, HeadlessEnvironment
from .exceptions import UsageError

DEFAULT_TIMEOUT = 30

ENV_PREFIX = "FRAPPE_"

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class FrappeConfig:
    """
    Immutable connection settings for a Frappe site.

    Exactly one credential pair is expected: username/password for cookie
    login, or api_key/secret_key for token authentication.
    """

    url: str
    username: Optional[str] = None
    password: Optional[str] = None
    api_key: Optional[str] = None
    secret_key: Optional[str] = None
    headers: Optional[Mapping[str, str]] = None
    timeout: int = DEFAULT_TIMEOUT
    verify_ssl: bool = True
    environment: EnvironmentContext = field(default_factory=HeadlessEnvironment, repr=False)

    def __post_init__(self):
        if not self.url:
            raise UsageError("A Frappe site URL is required")
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "url", self.url.rstrip("/"))
        if self.headers is not None:
            object.__setattr__(self, "headers", dict(self.headers))

    def has_keys(self) -> bool:
        """Check if API key and secret key are both set."""
        return bool(self.api_key and self.secret_key)

    def has_credentials(self) -> bool:
        """Check if username and password are both set."""
        return bool(self.username and self.password)

    def with_overrides(self, **changes: Any) -> "FrappeConfig":
        """Return a copy with the given fields replaced (None values ignored)."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary with secrets masked."""
        return {
            "url": self.url,
            "username": self.username,
            "password": "***" if self.password else None,
            "api_key": self.api_key,
            "secret_key": "***" if self.secret_key else None,
            "headers": dict(self.headers) if self.headers else {},
            "timeout": self.timeout,
            "verify_ssl": self.verify_ssl,
        }

    @classmethod
    def from_env(cls, **overrides: Any) -> "FrappeConfig":
        """
        Build a configuration from FRAPPE_* environment variables.

        Keyword arguments that are not None take precedence over the
        environment.
        """
        values: Dict[str, Any] = {
            "url": os.environ.get(f"{ENV_PREFIX}URL", ""),
            "username": os.environ.get(f"{ENV_PREFIX}USERNAME") or None,
            "password": os.environ.get(f"{ENV_PREFIX}PASSWORD") or None,
            "api_key": os.environ.get(f"{ENV_PREFIX}API_KEY") or None,
            "secret_key": os.environ.get(f"{ENV_PREFIX}SECRET_KEY") or None,
        }

        timeout = os.environ.get(f"{ENV_PREFIX}TIMEOUT")
        if timeout:
            try:
                values["timeout"] = int(timeout)
            except ValueError:
                raise UsageError(f"Invalid {ENV_PREFIX}TIMEOUT value: {timeout!r}")

        verify_ssl = os.environ.get(f"{ENV_PREFIX}VERIFY_SSL")
        if verify_ssl:
            values["verify_ssl"] = verify_ssl.strip().lower() in _TRUE_VALUES

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
