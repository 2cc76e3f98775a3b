"""
Frappe Client - Python SDK for Frappe-style REST backends.

Provides cookie (username/password) and token (API key/secret) authentication,
document CRUD and commands, and file uploads.
"""

__version__ = "1.0.0"
__prog_name__ = "frappe"

from .config import FrappeConfig
from .environment import EnvironmentContext, HeadlessEnvironment, StaticEnvironment
from .exceptions import (
    FrappeError,
    FrappeAPIError,
    AuthenticationError,
    UsageError,
)
from .types import (
    OrderBy,
    GetDocListArgs,
    GetLastDocArgs,
    FileArgs,
    UploadProgress,
)
from .api import Frappe, FrappeDB, FrappeUpload, HTTPClient

__all__ = [
    "__version__",
    "Frappe",
    "FrappeDB",
    "FrappeUpload",
    "HTTPClient",
    "FrappeConfig",
    "EnvironmentContext",
    "HeadlessEnvironment",
    "StaticEnvironment",
    "FrappeError",
    "FrappeAPIError",
    "AuthenticationError",
    "UsageError",
    "OrderBy",
    "GetDocListArgs",
    "GetLastDocArgs",
    "FileArgs",
    "UploadProgress",
]
