"""
Environment context used when deriving request headers.

A page-embedded client knows the origin it was served from and the CSRF token
rendered into the page. Headless callers (scripts, servers, tests) know
neither, which is the default.
"""

from typing import Optional

CSRF_TOKEN_PLACEHOLDER = "{{ csrf_token }}"


class EnvironmentContext:
    """Capability that exposes the current page origin and CSRF token."""
    
    def current_origin(self) -> Optional[str]:
        """Origin (scheme://host[:port]) of the current page, if any."""
        return None
    
    def csrf_token(self) -> Optional[str]:
        """CSRF token embedded in the current page, if any."""
        return None


class HeadlessEnvironment(EnvironmentContext):
    """No page, no origin, no token."""


class StaticEnvironment(EnvironmentContext):
    """
    Environment with a fixed origin and CSRF token.
    
    Useful for server-side rendering or tests that need to emulate a
    browser page served by the Frappe site itself.
    """
    
    def __init__(self, origin: Optional[str] = None, csrf_token: Optional[str] = None):
        self._origin = origin.rstrip("/") if origin else None
        self._csrf_token = csrf_token
    
    def current_origin(self) -> Optional[str]:
        return self._origin
    
    def csrf_token(self) -> Optional[str]:
        return self._csrf_token
    
    def __repr__(self) -> str:
        return f"StaticEnvironment(origin={self._origin!r})"
