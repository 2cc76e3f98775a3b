"""
Tests for the Frappe facade and its configuration.
"""

from unittest.mock import MagicMock, patch

import pytest

from frappe_client import Frappe, FrappeConfig
from frappe_client.api import FrappeDB, FrappeUpload, HTTPClient
from frappe_client.exceptions import UsageError

from tests.conftest import BASE_URL, make_response


@pytest.fixture
def mock_post():
    with patch("frappe_client.auth.requests.post") as mock:
        mock.return_value = make_response(200, {"message": "Logged In"}, method="POST", cookies={"sid": "abc"})
        yield mock


class TestConfig:
    """Tests for FrappeConfig."""

    def test_url_normalized(self):
        config = FrappeConfig(url=BASE_URL + "/")

        assert config.url == BASE_URL

    def test_url_required(self):
        with pytest.raises(UsageError):
            FrappeConfig(url="")

    def test_immutable(self):
        config = FrappeConfig(url=BASE_URL)

        with pytest.raises(Exception):
            config.url = "https://other.example.com"

    def test_credential_helpers(self):
        assert FrappeConfig(url=BASE_URL, api_key="k", secret_key="s").has_keys()
        assert not FrappeConfig(url=BASE_URL, api_key="k").has_keys()
        assert FrappeConfig(url=BASE_URL, username="u", password="p").has_credentials()
        assert not FrappeConfig(url=BASE_URL, username="u").has_credentials()

    def test_to_dict_masks_secrets(self):
        data = FrappeConfig(url=BASE_URL, password="p", api_key="k", secret_key="s").to_dict()

        assert data["password"] == "***"
        assert data["secret_key"] == "***"
        assert data["api_key"] == "k"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("FRAPPE_URL", BASE_URL)
        monkeypatch.setenv("FRAPPE_API_KEY", "key")
        monkeypatch.setenv("FRAPPE_SECRET_KEY", "secret")
        monkeypatch.setenv("FRAPPE_TIMEOUT", "5")
        monkeypatch.setenv("FRAPPE_VERIFY_SSL", "0")

        config = FrappeConfig.from_env()

        assert config.url == BASE_URL
        assert config.has_keys()
        assert config.timeout == 5
        assert config.verify_ssl is False

    def test_from_env_overrides(self, monkeypatch):
        monkeypatch.setenv("FRAPPE_URL", BASE_URL)

        config = FrappeConfig.from_env(url="https://other.example.com", username=None)

        assert config.url == "https://other.example.com"
        assert config.username is None

    def test_from_env_invalid_timeout(self, monkeypatch):
        monkeypatch.setenv("FRAPPE_URL", BASE_URL)
        monkeypatch.setenv("FRAPPE_TIMEOUT", "soon")

        with pytest.raises(UsageError):
            FrappeConfig.from_env()


class TestFacadeKeys:
    """Tests for API key authentication."""

    def test_client_ready_without_network(self, mock_post):
        """Test keys build the client immediately with no request."""
        frappe = Frappe(url=BASE_URL, api_key="key", secret_key="secret")

        mock_post.assert_not_called()
        assert frappe.is_authenticated
        assert frappe.client().headers["Authorization"] == "token key:secret"

    def test_login_with_keys_rejected(self, mock_post):
        """Test login is refused when keys are configured."""
        frappe = Frappe(url=BASE_URL, api_key="key", secret_key="secret")

        with pytest.raises(UsageError) as exc_info:
            frappe.login()

        assert "don't need to login" in str(exc_info.value)
        mock_post.assert_not_called()

    def test_login_with_keys_and_credentials_rejected(self, mock_post):
        """Test keys win over username/password."""
        frappe = Frappe(url=BASE_URL, username="admin", password="secret", api_key="key", secret_key="secret")

        with pytest.raises(UsageError) as exc_info:
            frappe.login()

        assert "don't need to login" in str(exc_info.value)
        mock_post.assert_not_called()


class TestFacadeLogin:
    """Tests for username/password login."""

    def test_no_credentials(self, mock_post):
        """Test login without any credential raises a usage error."""
        frappe = Frappe(url=BASE_URL)

        with pytest.raises(UsageError) as exc_info:
            frappe.login()

        assert "need to provide username and password" in str(exc_info.value)
        mock_post.assert_not_called()

    def test_partial_credentials(self, mock_post):
        frappe = Frappe(url=BASE_URL, username="admin")

        with pytest.raises(UsageError):
            frappe.login()

    def test_login(self, mock_post):
        """Test login makes one POST and holds a cookie client."""
        frappe = Frappe(url=BASE_URL, username="admin", password="secret")
        assert not frappe.is_authenticated

        client = frappe.login()

        mock_post.assert_called_once()
        assert mock_post.call_args.kwargs["json"] == {"usr": "admin", "pwd": "secret"}
        assert frappe.is_authenticated
        assert frappe.client() is client
        assert client.headers["Cookie"] == "sid=abc"

    def test_accessors_require_client(self):
        """Test sub-clients cannot be obtained before authentication."""
        frappe = Frappe(url=BASE_URL, username="admin", password="secret")

        with pytest.raises(UsageError):
            frappe.db()
        with pytest.raises(UsageError):
            frappe.file()
        with pytest.raises(UsageError):
            frappe.client()

    def test_accessors_bound_at_call_time(self, mock_post):
        """Test a re-login does not affect sub-clients obtained earlier."""
        frappe = Frappe(url=BASE_URL, username="admin", password="secret")
        first = frappe.login()
        db_before = frappe.db()

        mock_post.return_value = make_response(200, {}, method="POST", cookies={"sid": "def"})
        second = frappe.login()
        db_after = frappe.db()

        assert isinstance(db_before, FrappeDB)
        assert db_before._http is first
        assert db_after._http is second
        assert second.generation > first.generation
        assert isinstance(frappe.file(), FrappeUpload)
        assert frappe.file()._http is second

    def test_config_object_with_overrides(self):
        config = FrappeConfig(url=BASE_URL, api_key="key", secret_key="secret")

        frappe = Frappe(config, timeout=5)

        assert frappe.config.timeout == 5
        assert frappe.client().timeout == 5

    def test_context_manager_closes_client(self):
        frappe = Frappe(url=BASE_URL, api_key="key", secret_key="secret")
        session = MagicMock()
        frappe.client()._session = session

        with frappe:
            pass

        session.close.assert_called_once()


class TestRoundTrip:
    """Create then read back through the facade."""

    def test_create_then_get(self):
        frappe = Frappe(url=BASE_URL, api_key="key", secret_key="secret")
        client: HTTPClient = frappe.client()
        client._session = MagicMock()
        client._session.request.side_effect = [
            make_response(200, {"data": {"doctype": "X", "name": "X-0001", "a": 1}}, method="POST"),
            make_response(200, {"data": {"doctype": "X", "name": "X-0001", "a": 1, "owner": "Administrator"}}),
        ]

        created = frappe.db().create_doc({"doctype": "X", "a": 1})
        fetched = frappe.db().get_doc("X", created["name"])

        assert fetched["a"] == 1
        assert client._session.request.call_args.kwargs["url"] == BASE_URL + "/api/resource/X/X-0001"
