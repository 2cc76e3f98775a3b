"""
Frappe CLI - Command Line Interface for Frappe sites.

This module provides the main CLI entry point and commands for:
- Credential verification (login)
- Document operations (get, list, create, update, delete, last, count)
- Document commands (submit, cancel, rename)
- File uploads
"""

import sys
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import click

from . import __version__, __prog_name__
from .api import Frappe
from .config import FrappeConfig, DEFAULT_TIMEOUT
from .exceptions import FrappeError, FrappeAPIError, AuthenticationError
from .types import FileArgs, GetDocListArgs, GetLastDocArgs, OrderBy
from .utils import (
    setup_logging,
    print_success,
    print_error,
    print_info,
    print_json,
    print_record,
    print_records,
    parse_json_argument,
    OutputFormat,
)

logger = logging.getLogger(__name__)


# ============================================================================
# CLI Context and Common Options
# ============================================================================

class FrappeContext:
    """CLI context object for sharing state between commands."""

    def __init__(self):
        self.options: Dict[str, Any] = {}

    def get_config(self) -> FrappeConfig:
        """Build the configuration from global options and FRAPPE_* variables."""
        return FrappeConfig.from_env(**self.options)

    def open_client(self) -> Frappe:
        """Create a client, logging in when only credentials are configured."""
        frappe = Frappe(self.get_config())
        if not frappe.is_authenticated:
            frappe.login()
        return frappe


pass_context = click.make_pass_decorator(FrappeContext, ensure=True)


def common_options(f):
    """Common options for all commands."""
    f = click.option(
        '-v', '--verbose',
        is_flag=True,
        help='Enable verbose output'
    )(f)
    f = click.option(
        '-q', '--quiet',
        is_flag=True,
        help='Suppress non-essential output'
    )(f)
    f = click.option(
        '-f', '--format',
        'output_format',
        type=click.Choice(['table', 'json']),
        default='table',
        help='Output format'
    )(f)
    return f


def _fail(error: FrappeError) -> None:
    """Print an error and exit with status 1."""
    if isinstance(error, FrappeAPIError):
        details = error.server_messages or None
        print_error(str(error), details)
    else:
        print_error(str(error), error.details)
    sys.exit(1)


def _json_option(value: Optional[str], name: str) -> Any:
    if value is None:
        return None
    try:
        return parse_json_argument(value)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint=name)


def _parse_order_by(value: Optional[str]) -> Optional[OrderBy]:
    if not value:
        return None
    parts = value.split()
    order = parts[1].lower() if len(parts) == 2 else 'asc'
    if len(parts) > 2 or order not in ('asc', 'desc'):
        raise click.BadParameter("Use 'FIELD' or 'FIELD asc|desc'", param_hint='--order-by')
    return OrderBy(parts[0], order)


# ============================================================================
# Main CLI Group
# ============================================================================

@click.group()
@click.version_option(version=__version__, prog_name=__prog_name__)
@click.option('--url', envvar='FRAPPE_URL', help='Site URL, e.g. https://erp.example.com')
@click.option('--username', '-u', envvar='FRAPPE_USERNAME', help='Username for cookie login')
@click.option('--password', '-p', envvar='FRAPPE_PASSWORD', help='Password for cookie login')
@click.option('--api-key', envvar='FRAPPE_API_KEY', help='API key for token authentication')
@click.option('--secret-key', envvar='FRAPPE_SECRET_KEY', help='API secret for token authentication')
@click.option('--timeout', '-t', type=int, envvar='FRAPPE_TIMEOUT', help=f'Request timeout in seconds (default: {DEFAULT_TIMEOUT})')
@click.option('--no-verify-ssl', is_flag=True, help='Disable SSL certificate verification')
@click.pass_context
def cli(
    ctx,
    url: Optional[str],
    username: Optional[str],
    password: Optional[str],
    api_key: Optional[str],
    secret_key: Optional[str],
    timeout: Optional[int],
    no_verify_ssl: bool,
):
    """
    Frappe CLI - Work with documents on a Frappe site.

    \b
    Quick Start:
      1. Point at a site:     export FRAPPE_URL=https://erp.example.com
      2. Authenticate:        export FRAPPE_API_KEY=... FRAPPE_SECRET_KEY=...
      3. List documents:      frappe list ToDo --fields name,status
      4. Fetch a document:    frappe get ToDo abc123

    \b
    Environment Variables:
      FRAPPE_URL                     - Site URL
      FRAPPE_USERNAME / PASSWORD     - Credentials for cookie login
      FRAPPE_API_KEY / SECRET_KEY    - Token authentication
      FRAPPE_TIMEOUT                 - Request timeout in seconds
      FRAPPE_VERIFY_SSL              - Set to 0 to skip certificate checks
    """
    obj = ctx.ensure_object(FrappeContext)
    obj.options = {
        'url': url,
        'username': username,
        'password': password,
        'api_key': api_key,
        'secret_key': secret_key,
        'timeout': timeout,
        'verify_ssl': False if no_verify_ssl else None,
    }


# ============================================================================
# Authentication
# ============================================================================

@cli.command('login')
@common_options
@pass_context
def login(ctx: FrappeContext, verbose: bool, quiet: bool, output_format: str):
    """
    Check that the configured credentials are accepted.

    \b
    Examples:
      frappe --url https://erp.example.com -u admin login
    """
    setup_logging(verbose, quiet)

    options = ctx.options
    if not options.get('password') and options.get('username') and not options.get('api_key'):
        options['password'] = click.prompt("Password", hide_input=True)

    try:
        config = ctx.get_config()
        if not quiet:
            print_info(f"Authenticating to {config.url}...")
        frappe = Frappe(config)
        if config.has_keys():
            # Token auth needs no login; verify with a cheap request instead
            frappe.db().get_count('User')
        else:
            frappe.login()
        print_success("Login successful!")
    except AuthenticationError as e:
        print_error(f"Login failed: {e}")
        sys.exit(1)
    except FrappeError as e:
        _fail(e)


# ============================================================================
# Document Commands
# ============================================================================

@cli.command('get')
@common_options
@click.argument('doctype')
@click.argument('name')
@pass_context
def get_doc(ctx: FrappeContext, verbose: bool, quiet: bool, output_format: str, doctype: str, name: str):
    """
    Get a document.

    \b
    Examples:
      frappe get ToDo abc123
      frappe get "Sales Invoice" SINV-0001 --format json
    """
    setup_logging(verbose, quiet)
    fmt = OutputFormat(output_format)

    try:
        with ctx.open_client() as frappe:
            doc = frappe.db().get_doc(doctype, name)
            print_record(doc or {}, fmt)
    except FrappeError as e:
        _fail(e)


@cli.command('list')
@common_options
@click.argument('doctype')
@click.option('--fields', help='Comma-separated fields to return')
@click.option('--filters', help='JSON filters, e.g. \'[["status","=","Open"]]\' or @file.json')
@click.option('--or-filters', help='JSON filters joined with OR')
@click.option('--order-by', help="Sort, e.g. 'creation desc'")
@click.option('--group-by', help='Field to group by')
@click.option('--limit', '-n', type=int, default=20, help='Maximum number of documents')
@click.option('--start', type=int, help='Offset of the first document')
@pass_context
def list_docs(
    ctx: FrappeContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    doctype: str,
    fields: Optional[str],
    filters: Optional[str],
    or_filters: Optional[str],
    order_by: Optional[str],
    group_by: Optional[str],
    limit: int,
    start: Optional[int],
):
    """
    List documents of a doctype.

    \b
    Examples:
      frappe list ToDo
      frappe list ToDo --fields name,status --order-by "creation desc" -n 5
      frappe list ToDo --filters '[["status","=","Open"]]' --format json
    """
    setup_logging(verbose, quiet)
    fmt = OutputFormat(output_format)

    args = GetDocListArgs(
        fields=[f.strip() for f in fields.split(',') if f.strip()] if fields else None,
        filters=_json_option(filters, '--filters'),
        or_filters=_json_option(or_filters, '--or-filters'),
        order_by=_parse_order_by(order_by),
        group_by=group_by,
        limit=limit,
        limit_start=start,
    )

    try:
        with ctx.open_client() as frappe:
            docs = frappe.db().get_doc_list(doctype, args) or []
            if not quiet and fmt != OutputFormat.JSON:
                click.echo(f"\n{doctype} ({len(docs)} shown):\n")
            print_records(docs, fmt)
    except FrappeError as e:
        _fail(e)


@cli.command('last')
@common_options
@click.argument('doctype')
@click.option('--filters', help='JSON filters or @file.json')
@click.option('--order-by', help="Sort (default: 'creation desc')")
@pass_context
def last_doc(
    ctx: FrappeContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    doctype: str,
    filters: Optional[str],
    order_by: Optional[str],
):
    """
    Get the most recently created document.

    \b
    Examples:
      frappe last ToDo
      frappe last ToDo --filters '[["status","=","Open"]]'
    """
    setup_logging(verbose, quiet)
    fmt = OutputFormat(output_format)

    args = GetLastDocArgs(
        filters=_json_option(filters, '--filters'),
        order_by=_parse_order_by(order_by),
    )

    try:
        with ctx.open_client() as frappe:
            doc = frappe.db().get_last_doc(doctype, args)
            if not doc:
                print_info(f"No {doctype} documents found.")
                return
            print_record(doc, fmt)
    except FrappeError as e:
        _fail(e)


@cli.command('count')
@common_options
@click.argument('doctype')
@click.option('--filters', help='JSON filters or @file.json')
@pass_context
def count_docs(
    ctx: FrappeContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    doctype: str,
    filters: Optional[str],
):
    """
    Count documents of a doctype.

    \b
    Examples:
      frappe count ToDo
      frappe count ToDo --filters '[["status","=","Open"]]'
    """
    setup_logging(verbose, quiet)
    fmt = OutputFormat(output_format)

    try:
        with ctx.open_client() as frappe:
            count = frappe.db().get_count(doctype, _json_option(filters, '--filters'))
            if fmt == OutputFormat.JSON:
                print_json({'doctype': doctype, 'count': count})
            else:
                click.echo(count)
    except FrappeError as e:
        _fail(e)


@cli.command('create')
@common_options
@click.argument('doctype')
@click.argument('values')
@pass_context
def create_doc(ctx: FrappeContext, verbose: bool, quiet: bool, output_format: str, doctype: str, values: str):
    """
    Create a document from a JSON object (inline or @file.json).

    \b
    Examples:
      frappe create ToDo '{"description": "Call back"}'
      frappe create ToDo @todo.json
    """
    setup_logging(verbose, quiet)
    fmt = OutputFormat(output_format)

    doc = _json_option(values, 'VALUES')
    if not isinstance(doc, dict):
        raise click.BadParameter("Expected a JSON object", param_hint='VALUES')
    doc['doctype'] = doctype

    try:
        with ctx.open_client() as frappe:
            created = frappe.db().create_doc(doc)
            if not quiet and fmt != OutputFormat.JSON:
                print_success(f"Created {doctype} {created.get('name')}")
            print_record(created, fmt)
    except FrappeError as e:
        _fail(e)


@cli.command('update')
@common_options
@click.argument('doctype')
@click.argument('name')
@click.argument('values')
@pass_context
def update_doc(
    ctx: FrappeContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    doctype: str,
    name: str,
    values: str,
):
    """
    Update fields of a document from a JSON object.

    \b
    Examples:
      frappe update ToDo abc123 '{"status": "Closed"}'
    """
    setup_logging(verbose, quiet)
    fmt = OutputFormat(output_format)

    value = _json_option(values, 'VALUES')
    if not isinstance(value, dict):
        raise click.BadParameter("Expected a JSON object", param_hint='VALUES')

    try:
        with ctx.open_client() as frappe:
            updated = frappe.db().update_doc(doctype, name, value)
            if not quiet and fmt != OutputFormat.JSON:
                print_success(f"Updated {doctype} {name}")
            print_record(updated, fmt)
    except FrappeError as e:
        _fail(e)


@cli.command('delete')
@common_options
@click.argument('doctype')
@click.argument('name')
@click.option('--yes', '-y', is_flag=True, help='Skip confirmation')
@pass_context
def delete_doc(
    ctx: FrappeContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    doctype: str,
    name: str,
    yes: bool,
):
    """
    Delete a document.

    \b
    Examples:
      frappe delete ToDo abc123
      frappe delete ToDo abc123 --yes
    """
    setup_logging(verbose, quiet)

    if not yes and not click.confirm(f"Delete {doctype} {name}?"):
        print_info("Cancelled.")
        return

    try:
        with ctx.open_client() as frappe:
            result = frappe.db().delete_doc(doctype, name)
            if OutputFormat(output_format) == OutputFormat.JSON:
                print_json(result)
            else:
                print_success(f"Deleted {doctype} {name}")
    except FrappeError as e:
        _fail(e)


@cli.command('submit')
@common_options
@click.argument('doctype')
@click.argument('name')
@pass_context
def submit_doc(ctx: FrappeContext, verbose: bool, quiet: bool, output_format: str, doctype: str, name: str):
    """Submit a document."""
    setup_logging(verbose, quiet)

    try:
        with ctx.open_client() as frappe:
            result = frappe.db().submit_doc(doctype, name)
            if OutputFormat(output_format) == OutputFormat.JSON:
                print_json(result)
            else:
                print_success(f"Submitted {doctype} {name}")
    except FrappeError as e:
        _fail(e)


@cli.command('cancel')
@common_options
@click.argument('doctype')
@click.argument('name')
@pass_context
def cancel_doc(ctx: FrappeContext, verbose: bool, quiet: bool, output_format: str, doctype: str, name: str):
    """Cancel a submitted document."""
    setup_logging(verbose, quiet)

    try:
        with ctx.open_client() as frappe:
            result = frappe.db().cancel_doc(doctype, name)
            if OutputFormat(output_format) == OutputFormat.JSON:
                print_json(result)
            else:
                print_success(f"Cancelled {doctype} {name}")
    except FrappeError as e:
        _fail(e)


@cli.command('rename')
@common_options
@click.argument('doctype')
@click.argument('old_name')
@click.argument('new_name')
@pass_context
def rename_doc(
    ctx: FrappeContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    doctype: str,
    old_name: str,
    new_name: str,
):
    """Rename a document."""
    setup_logging(verbose, quiet)

    try:
        with ctx.open_client() as frappe:
            result = frappe.db().rename_doc(doctype, old_name, new_name)
            if OutputFormat(output_format) == OutputFormat.JSON:
                print_json(result)
            else:
                print_success(f"Renamed {doctype} {old_name} to {result or new_name}")
    except FrappeError as e:
        _fail(e)


# ============================================================================
# Files
# ============================================================================

@cli.command('upload')
@common_options
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--private', is_flag=True, help='Upload as a private file')
@click.option('--folder', help='Target folder, e.g. Home/Attachments')
@click.option('--doctype', help='Attach to a document of this doctype')
@click.option('--docname', help='Attach to this document')
@click.option('--fieldname', help='Attach field on the document')
@pass_context
def upload_file(
    ctx: FrappeContext,
    verbose: bool,
    quiet: bool,
    output_format: str,
    file: Path,
    private: bool,
    folder: Optional[str],
    doctype: Optional[str],
    docname: Optional[str],
    fieldname: Optional[str],
):
    """
    Upload a file.

    \b
    Examples:
      frappe upload invoice.pdf --private
      frappe upload photo.jpg --doctype Item --docname ITEM-0001 --fieldname image
    """
    setup_logging(verbose, quiet)

    args = FileArgs(
        is_private=private,
        folder=folder,
        doctype=doctype,
        docname=docname,
        fieldname=fieldname,
    )

    try:
        with ctx.open_client() as frappe:
            if quiet or OutputFormat(output_format) == OutputFormat.JSON:
                result = frappe.file().upload(file, args)
            else:
                size = file.stat().st_size
                with click.progressbar(length=size, label=f"Uploading {file.name}") as bar:
                    def on_progress(loaded, total, event):
                        # total includes multipart framing; scale to the file size
                        done = int(size * event.fraction) if event.fraction is not None else loaded
                        bar.update(max(done - bar.pos, 0))
                    result = frappe.file().upload(file, args, on_progress=on_progress)

            if OutputFormat(output_format) == OutputFormat.JSON:
                print_json(result)
            else:
                uploaded = result.get('message') or {}
                print_success(f"Uploaded {uploaded.get('file_name', file.name)}")
                if uploaded.get('file_url'):
                    click.echo(f"  URL: {uploaded['file_url']}")
    except FrappeError as e:
        _fail(e)


# ============================================================================
# Entry Point
# ============================================================================

def main():
    """Main entry point for the CLI."""
    try:
        cli(auto_envvar_prefix='FRAPPE')
    except KeyboardInterrupt:
        click.echo("\nAborted.")
        sys.exit(130)
    except Exception as e:
        logger.exception("Unexpected error")
        print_error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
