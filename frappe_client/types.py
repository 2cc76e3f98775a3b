"""
Argument and event types for document queries and file uploads.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

# [field, operator, value], e.g. ["creation", ">", "2021-10-09"]
Filter = Sequence[Any]

SORT_ASC = "asc"
SORT_DESC = "desc"


@dataclass(frozen=True)
class OrderBy:
    """Sort specification for list queries."""

    field: str
    order: str = SORT_ASC

    def __post_init__(self):
        if self.order not in (SORT_ASC, SORT_DESC):
            raise ValueError(f"Sort order must be 'asc' or 'desc', got {self.order!r}")

    def to_param(self) -> str:
        """Render as the ``order_by`` query value."""
        return f"{self.field} {self.order}"


@dataclass
class GetLastDocArgs:
    """Query arguments accepted by ``get_last_doc``."""

    filters: Optional[List[Filter]] = None
    or_filters: Optional[List[Filter]] = None
    order_by: Optional[OrderBy] = None


@dataclass
class GetDocListArgs:
    """
    Query arguments for ``get_doc_list``.

    ``as_dict`` selects the result shape: a list of dicts when True, a list
    of value lists when False.
    """

    fields: Optional[List[str]] = None
    filters: Optional[List[Filter]] = None
    or_filters: Optional[List[Filter]] = None
    order_by: Optional[OrderBy] = None
    limit: Optional[int] = None
    limit_start: Optional[int] = None
    group_by: Optional[str] = None
    as_dict: bool = True


@dataclass
class FileArgs:
    """Form fields sent along with an uploaded file."""

    is_private: bool = False
    folder: Optional[str] = None
    file_url: Optional[str] = None
    doctype: Optional[str] = None
    docname: Optional[str] = None
    fieldname: Optional[str] = None
    other_data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UploadProgress:
    """Progress of a streaming upload."""

    loaded: int
    total: Optional[int] = None

    @property
    def fraction(self) -> Optional[float]:
        """Completed fraction in [0, 1], or None when the size is unknown."""
        if not self.total:
            return None
        return min(self.loaded / self.total, 1.0)

