"""
Tests for CLI commands.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from frappe_client.cli import cli
from frappe_client.exceptions import AuthenticationError, FrappeAPIError

from tests.conftest import BASE_URL

KEY_ARGS = ['--url', BASE_URL, '--api-key', 'key', '--secret-key', 'secret']


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_frappe():
    """Patch the Frappe facade used by the CLI."""
    with patch('frappe_client.cli.Frappe') as mock_cls:
        frappe = MagicMock()
        frappe.is_authenticated = True
        frappe.__enter__.return_value = frappe
        db = MagicMock()
        frappe.db.return_value = db
        mock_cls.return_value = frappe
        yield frappe


class TestCLI:
    """Tests for main CLI."""

    def test_version(self, runner):
        """Test version option."""
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert 'frappe' in result.output.lower()

    def test_help(self, runner):
        """Test help output."""
        result = runner.invoke(cli, ['--help'])
        assert result.exit_code == 0
        assert 'Frappe CLI' in result.output

    def test_missing_url(self, runner):
        """Test commands fail cleanly without a site URL."""
        result = runner.invoke(cli, ['get', 'ToDo', 'TD-1'])
        assert result.exit_code == 1
        assert 'URL is required' in result.output


class TestDocumentCommands:
    """Tests for document commands."""

    def test_get_json(self, runner, mock_frappe):
        mock_frappe.db.return_value.get_doc.return_value = {'name': 'TD-1', 'status': 'Open'}

        result = runner.invoke(cli, KEY_ARGS + ['get', 'ToDo', 'TD-1', '--format', 'json'])

        assert result.exit_code == 0
        assert json.loads(result.output) == {'name': 'TD-1', 'status': 'Open'}
        mock_frappe.db.return_value.get_doc.assert_called_once_with('ToDo', 'TD-1')

    def test_list(self, runner, mock_frappe):
        db = mock_frappe.db.return_value
        db.get_doc_list.return_value = [{'name': 'TD-1', 'status': 'Open'}]

        result = runner.invoke(cli, KEY_ARGS + [
            'list', 'ToDo',
            '--fields', 'name,status',
            '--filters', '[["status", "=", "Open"]]',
            '--order-by', 'creation desc',
            '-n', '5',
        ])

        assert result.exit_code == 0
        assert 'TD-1' in result.output
        doctype, args = db.get_doc_list.call_args.args
        assert doctype == 'ToDo'
        assert args.fields == ['name', 'status']
        assert args.filters == [['status', '=', 'Open']]
        assert args.order_by.to_param() == 'creation desc'
        assert args.limit == 5

    def test_list_invalid_filters(self, runner, mock_frappe):
        result = runner.invoke(cli, KEY_ARGS + ['list', 'ToDo', '--filters', 'not json'])

        assert result.exit_code == 2
        assert 'Invalid JSON' in result.output

    def test_list_invalid_order(self, runner, mock_frappe):
        result = runner.invoke(cli, KEY_ARGS + ['list', 'ToDo', '--order-by', 'creation sideways'])

        assert result.exit_code == 2

    def test_count(self, runner, mock_frappe):
        mock_frappe.db.return_value.get_count.return_value = 7

        result = runner.invoke(cli, KEY_ARGS + ['count', 'ToDo'])

        assert result.exit_code == 0
        assert result.output.strip() == '7'

    def test_last_empty(self, runner, mock_frappe):
        mock_frappe.db.return_value.get_last_doc.return_value = {}

        result = runner.invoke(cli, KEY_ARGS + ['last', 'ToDo'])

        assert result.exit_code == 0
        assert 'No ToDo documents found' in result.output

    def test_create(self, runner, mock_frappe):
        db = mock_frappe.db.return_value
        db.create_doc.return_value = {'name': 'TD-2', 'description': 'Call'}

        result = runner.invoke(cli, KEY_ARGS + ['create', 'ToDo', '{"description": "Call"}'])

        assert result.exit_code == 0
        db.create_doc.assert_called_once_with({'description': 'Call', 'doctype': 'ToDo'})
        assert 'Created ToDo TD-2' in result.output

    def test_delete_requires_confirmation(self, runner, mock_frappe):
        result = runner.invoke(cli, KEY_ARGS + ['delete', 'ToDo', 'TD-1'], input='n\n')

        assert result.exit_code == 0
        mock_frappe.db.return_value.delete_doc.assert_not_called()

    def test_delete_yes(self, runner, mock_frappe):
        mock_frappe.db.return_value.delete_doc.return_value = {'message': 'ok'}

        result = runner.invoke(cli, KEY_ARGS + ['delete', 'ToDo', 'TD-1', '--yes'])

        assert result.exit_code == 0
        mock_frappe.db.return_value.delete_doc.assert_called_once_with('ToDo', 'TD-1')

    def test_api_error_exit_code(self, runner, mock_frappe):
        mock_frappe.db.return_value.get_doc.side_effect = FrappeAPIError(
            'There was an error while fetching the document.',
            http_status=404,
            http_status_text='Not Found',
            exception='DoesNotExistError',
        )

        result = runner.invoke(cli, KEY_ARGS + ['get', 'ToDo', 'TD-9'])

        assert result.exit_code == 1
        assert 'HTTP 404' in result.output
        assert 'DoesNotExistError' in result.output


class TestLoginCommand:
    """Tests for the login command."""

    def test_login_with_credentials(self, runner, mock_frappe):
        result = runner.invoke(cli, ['--url', BASE_URL, '-u', 'admin', '-p', 'secret', 'login'])

        assert result.exit_code == 0
        mock_frappe.login.assert_called_once()
        assert 'Login successful' in result.output

    def test_login_failure(self, runner, mock_frappe):
        mock_frappe.login.side_effect = AuthenticationError(f'Failed to login to {BASE_URL}')

        result = runner.invoke(cli, ['--url', BASE_URL, '-u', 'admin', '-p', 'wrong', 'login'])

        assert result.exit_code == 1
        assert 'Login failed' in result.output

    def test_login_prompts_for_password(self, runner, mock_frappe):
        with patch('frappe_client.cli.Frappe') as mock_cls:
            mock_cls.return_value = mock_frappe
            result = runner.invoke(cli, ['--url', BASE_URL, '-u', 'admin', 'login'], input='secret\n')

        assert result.exit_code == 0
        config = mock_cls.call_args.args[0]
        assert config.password == 'secret'
        mock_frappe.login.assert_called_once()


class TestUploadCommand:
    """Tests for the upload command."""

    def test_upload(self, runner, mock_frappe, tmp_path):
        path = tmp_path / 'invoice.pdf'
        path.write_bytes(b'%PDF-1.4')
        mock_frappe.file.return_value.upload.return_value = {
            'message': {'file_name': 'invoice.pdf', 'file_url': '/private/files/invoice.pdf'}
        }

        result = runner.invoke(cli, KEY_ARGS + ['upload', str(path), '--private', '--doctype', 'ToDo', '--docname', 'TD-1'])

        assert result.exit_code == 0
        assert '/private/files/invoice.pdf' in result.output
        file_arg, args = mock_frappe.file.return_value.upload.call_args.args[:2]
        assert file_arg == path
        assert args.is_private is True
        assert args.doctype == 'ToDo'
        assert args.docname == 'TD-1'
