"""
Output and logging helpers for the Frappe CLI.
"""

import json
import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import click


class OutputFormat(str, Enum):
    """Output formats for command results."""
    TABLE = "table"
    JSON = "json"


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure root logging for a CLI invocation."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger().setLevel(level)
    # urllib3 connection chatter is noise unless explicitly debugging
    logging.getLogger("urllib3").setLevel(logging.DEBUG if verbose else logging.WARNING)


def print_success(message: str) -> None:
    click.echo(click.style("✓ ", fg="green") + message)


def print_error(message: str, details: Optional[Any] = None) -> None:
    click.echo(click.style("✗ ", fg="red") + message, err=True)
    if details:
        if isinstance(details, (dict, list)):
            details = json.dumps(details, indent=2, default=str)
        click.echo(f"  {details}", err=True)


def print_info(message: str) -> None:
    click.echo(click.style("ℹ ", fg="blue") + message)


def print_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def print_table(headers: Sequence[str], rows: List[Sequence[Any]]) -> None:
    """Print rows as a plain aligned table."""
    cells = [[_cell(value) for value in row] for row in rows]
    widths = [len(h) for h in headers]
    for row in cells:
        for i, value in enumerate(row[:len(widths)]):
            widths[i] = max(widths[i], len(value))

    click.echo("  ".join(click.style(h.ljust(widths[i]), bold=True) for i, h in enumerate(headers)))
    click.echo("  ".join("-" * w for w in widths))
    for row in cells:
        click.echo("  ".join(value.ljust(widths[i]) for i, value in enumerate(row[:len(widths)])))


def print_records(records: List[Any], fmt: OutputFormat) -> None:
    """Print a list of documents as JSON or as a table of their keys."""
    if fmt == OutputFormat.JSON:
        print_json(records)
        return

    if not records:
        print_info("No documents found.")
        return

    if isinstance(records[0], dict):
        headers: List[str] = []
        for record in records:
            for key in record:
                if key not in headers:
                    headers.append(key)
        rows = [[record.get(h) for h in headers] for record in records]
    else:
        headers = [str(i) for i in range(max(len(r) for r in records))]
        rows = [list(r) for r in records]

    print_table(headers, rows)


def print_record(record: Dict[str, Any], fmt: OutputFormat) -> None:
    """Print one document as JSON or as field/value rows."""
    if fmt == OutputFormat.JSON:
        print_json(record)
        return
    print_table(["Field", "Value"], [[key, value] for key, value in record.items()])


def truncate_string(value: str, max_length: int = 60) -> str:
    """Truncate long strings with an ellipsis."""
    if len(value) <= max_length:
        return value
    return value[:max_length - 3] + "..."


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, (dict, list)):
        value = json.dumps(value, default=str)
    return truncate_string(str(value))


def parse_json_argument(value: str) -> Any:
    """
    Parse a JSON argument given inline or as ``@path/to/file.json``.

    Raises:
        ValueError: If the file cannot be read or the JSON is invalid
    """
    if value.startswith("@"):
        path = Path(value[1:])
        try:
            value = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ValueError(f"Cannot read file {path}: {e}")

    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}")
