"""
Base HTTP client for the Frappe API.

Handles common headers, session management, and error normalization.
"""

import logging
from http.cookiejar import DefaultCookiePolicy
from typing import Optional, Dict, Any, Mapping
from urllib.parse import urlsplit

import requests

from .. import __version__
from ..config import DEFAULT_TIMEOUT
from ..environment import CSRF_TOKEN_PLACEHOLDER, EnvironmentContext, HeadlessEnvironment
from ..exceptions import FrappeAPIError

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "There was an error while processing the request."


def get_common_headers(
    base_url: str,
    custom_headers: Optional[Mapping[str, str]] = None,
    environment: Optional[EnvironmentContext] = None,
) -> Dict[str, str]:
    """
    Build the headers sent with every request.

    Args:
        base_url: Base URL of the Frappe site
        custom_headers: Caller headers, merged over the defaults
        environment: Page context used for site-name and CSRF headers

    Returns:
        Merged header dictionary
    """
    environment = environment or HeadlessEnvironment()

    headers: Dict[str, str] = {
        "Accept": "application/json",
        "Content-Type": "application/json; charset=utf-8",
    }
    if custom_headers:
        headers.update(custom_headers)

    origin = environment.current_origin()
    if base_url and origin and base_url.rstrip("/") == origin.rstrip("/"):
        hostname = urlsplit(origin).hostname
        if hostname:
            headers["X-Frappe-Site-Name"] = hostname

    csrf_token = environment.csrf_token()
    if csrf_token and csrf_token != CSRF_TOKEN_PLACEHOLDER:
        headers["X-Frappe-CSRF-Token"] = csrf_token

    return headers


def encode_params(params: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Drop None values and render booleans the way JSON does."""
    if params is None:
        return None
    encoded = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        encoded[key] = value
    return encoded


def normalize_error(
    response: requests.Response,
    message: str = DEFAULT_ERROR_MESSAGE,
    use_remote_message: bool = False,
    exc_type_fallback: bool = True,
) -> FrappeAPIError:
    """
    Turn a failed response into a FrappeAPIError.

    Args:
        response: The non-2xx response
        message: Fixed message for the failed operation
        use_remote_message: Prefer the remote ``message`` field when present
        exc_type_fallback: Fall back to ``exc_type`` when ``exception`` is missing

    Returns:
        Normalized error (not raised)
    """
    try:
        error_data = response.json()
        if not isinstance(error_data, dict):
            error_data = {"data": error_data}
    except ValueError:
        error_data = {"text": response.text} if response.text else {}

    if use_remote_message and isinstance(error_data.get("message"), str) and error_data["message"]:
        message = error_data["message"]

    exception = error_data.get("exception")
    if exception is None and exc_type_fallback:
        exception = error_data.get("exc_type")

    return FrappeAPIError(
        message,
        http_status=response.status_code,
        http_status_text=response.reason or "",
        exception=exception or "",
        response_data=error_data,
    )


class HTTPClient:
    """
    Authenticated HTTP client for one Frappe site.

    Holds the base URL and the full header set (including the session cookie
    or token Authorization header). Instances are never re-authenticated in
    place: a new login produces a new client.

    Handles:
    - Session management
    - Query parameter encoding
    - Error normalization
    """

    def __init__(
        self,
        base_url: str,
        headers: Optional[Mapping[str, str]] = None,
        with_credentials: bool = False,
        timeout: int = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
        generation: int = 0,
    ):
        """
        Initialize the HTTP client.

        Args:
            base_url: Base URL of the Frappe site
            headers: Headers sent with every request
            with_credentials: Keep and send cookies set by the server
            timeout: Request timeout in seconds
            verify_ssl: Verify TLS certificates
            generation: Sequence number of the login that produced this client
        """
        self.base_url = base_url.rstrip("/")
        self._headers: Dict[str, str] = dict(headers or {})
        self.with_credentials = with_credentials
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.generation = generation
        self._session: Optional[requests.Session] = None

    @property
    def headers(self) -> Dict[str, str]:
        """Copy of the headers sent with every request."""
        return dict(self._headers)

    @property
    def session(self) -> requests.Session:
        """Get or create HTTP session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({
                "User-Agent": f"frappe-client/{__version__}",
            })
            self._session.headers.update(self._headers)
            if not self.with_credentials:
                self._session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

        return self._session

    def build_url(self, endpoint: str) -> str:
        """Build full URL from an endpoint path."""
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint
        return f"{self.base_url}{endpoint}"

    def _handle_response(
        self,
        response: requests.Response,
        error_message: str = DEFAULT_ERROR_MESSAGE,
        use_remote_message: bool = False,
        exc_type_fallback: bool = True,
    ) -> Dict[str, Any]:
        """Parse a successful response or raise a normalized error."""
        logger.debug(f"Request: {response.request.method} {response.request.url}")
        logger.debug(f"Response: {response.status_code}")

        if 200 <= response.status_code < 300:
            if response.status_code == 204 or not response.content:
                return {}
            try:
                return response.json()
            except ValueError:
                raise FrappeAPIError(
                    "Invalid JSON response",
                    http_status=response.status_code,
                    http_status_text=response.reason or "",
                    response_data={"text": response.text},
                )

        error = normalize_error(
            response,
            error_message,
            use_remote_message=use_remote_message,
            exc_type_fallback=exc_type_fallback,
        )
        logger.warning(
            "API error [%s %s] status=%d exception=%s",
            response.request.method,
            response.request.url,
            response.status_code,
            error.exception or "-",
        )
        raise error

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        json_data: Optional[Any] = None,
        data: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        error_message: str = DEFAULT_ERROR_MESSAGE,
        use_remote_message: bool = False,
        exc_type_fallback: bool = True,
    ) -> Dict[str, Any]:
        """
        Make an API request.

        Args:
            method: HTTP method
            endpoint: Path relative to the site URL (e.g. /api/resource/ToDo)
            params: Query parameters
            json_data: JSON body
            data: Raw body (bytes, file-like or iterable)
            headers: Per-request headers, merged over the client headers
            error_message: Message used when the request fails
            use_remote_message: Prefer the remote ``message`` on failure
            exc_type_fallback: Use ``exc_type`` when ``exception`` is missing

        Returns:
            Parsed response body

        Raises:
            FrappeAPIError: On transport failure or non-2xx response
        """
        url = self.build_url(endpoint)

        try:
            response = self.session.request(
                method=method,
                url=url,
                params=encode_params(params),
                json=json_data,
                data=data,
                headers=headers,
                timeout=self.timeout,
                verify=self.verify_ssl,
            )
        except requests.exceptions.ConnectionError as e:
            raise FrappeAPIError(f"{error_message} Connection failed: {e}") from e
        except requests.exceptions.Timeout as e:
            raise FrappeAPIError(f"{error_message} Request timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            raise FrappeAPIError(f"{error_message} Request failed: {e}") from e

        return self._handle_response(
            response,
            error_message,
            use_remote_message=use_remote_message,
            exc_type_fallback=exc_type_fallback,
        )

    def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            self._session.close()
            self._session = None

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"HTTPClient(base_url={self.base_url!r}, generation={self.generation})"
