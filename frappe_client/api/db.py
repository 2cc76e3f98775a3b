"""
Database API - Document CRUD and document commands.
"""

import json
import logging
from dataclasses import replace
from typing import Optional, Dict, Any, List
from urllib.parse import quote

from ._http import HTTPClient
from ..exceptions import UsageError
from ..types import Filter, GetDocListArgs, GetLastDocArgs, OrderBy, SORT_DESC

logger = logging.getLogger(__name__)

RPC_ENDPOINT = "/"


def resource_path(doctype: str, name: Optional[str] = None) -> str:
    """Build ``/api/resource/<doctype>[/<name>]`` with the name fully escaped."""
    path = f"/api/resource/{doctype}"
    if name is not None:
        path += "/" + quote(name, safe="")
    return path


class FrappeDB:
    """
    API for document operations.

    Handles:
    - Single documents (get, create, update, delete)
    - Lists and counts
    - Bulk insert and update
    - Submit, cancel and rename commands
    """

    def __init__(self, http: HTTPClient):
        """
        Initialize Database API.

        Args:
            http: Authenticated HTTP client
        """
        self._http = http

    def _command(self, cmd: str, error_message: str, use_remote_message: bool = True, **kwargs: Any) -> Dict[str, Any]:
        """POST a ``cmd`` call with its arguments and return the raw body."""
        logger.debug("Calling %s", cmd)
        return self._http.request(
            "POST",
            RPC_ENDPOINT,
            json_data={"cmd": cmd, **kwargs},
            error_message=error_message,
            use_remote_message=use_remote_message,
        )

    def get_doc(self, doctype: str, name: str = "") -> Dict[str, Any]:
        """
        Get a single document.

        Args:
            doctype: Document type
            name: Document name

        Returns:
            The document
        """
        result = self._http.request(
            "GET",
            resource_path(doctype, name or ""),
            error_message="There was an error while fetching the document.",
        )
        return result.get("data")

    def get_doc_list(self, doctype: str, args: Optional[GetDocListArgs] = None) -> List[Any]:
        """
        List documents of a doctype.

        Args:
            doctype: Document type
            args: Fields, filters, sorting, paging and grouping

        Returns:
            Documents as dicts (or value lists when ``as_dict`` is False)
        """
        params: Dict[str, Any] = {}

        if args:
            params = {
                "fields": json.dumps(args.fields) if args.fields is not None else None,
                "filters": json.dumps(args.filters) if args.filters is not None else None,
                "or_filters": json.dumps(args.or_filters) if args.or_filters is not None else None,
                "order_by": args.order_by.to_param() if args.order_by else "",
                "group_by": args.group_by,
                "limit": args.limit,
                "limit_start": args.limit_start,
                "as_dict": args.as_dict,
            }

        result = self._http.request(
            "GET",
            resource_path(doctype),
            params=params,
            error_message="There was an error while fetching the documents.",
        )
        return result.get("data")

    def create_doc(self, doc: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a document.

        Args:
            doc: Document values, including ``doctype``

        Returns:
            The created document
        """
        doctype = doc.get("doctype")
        if not doctype:
            raise UsageError("Document must have a doctype")

        result = self._http.request(
            "POST",
            resource_path(doctype),
            json_data=dict(doc),
            error_message="There was an error while creating the document.",
            use_remote_message=True,
        )
        return result.get("data")

    def create_many_docs(self, docs: List[Dict[str, Any]]) -> List[Any]:
        """Insert several documents in one call."""
        result = self._command(
            "frappe.client.insert_many",
            "There was an error while creating the documents.",
            docs=docs,
        )
        return result.get("data")

    def update_doc(self, doctype: str, name: Optional[str], value: Dict[str, Any]) -> Dict[str, Any]:
        """
        Update fields of a document.

        Args:
            doctype: Document type
            name: Document name
            value: Fields to change

        Returns:
            The updated document
        """
        if not name:
            raise UsageError(f"A document name is required to update {doctype}")

        result = self._http.request(
            "PUT",
            resource_path(doctype, name),
            json_data=dict(value),
            error_message="There was an error while updating the document.",
            use_remote_message=True,
        )
        return result.get("data")

    def update_many_docs(self, docs: List[Dict[str, Any]]) -> List[Any]:
        """Update several documents in one call."""
        result = self._command(
            "frappe.client.bulk_update",
            "There was an error while updating the documents.",
            docs=docs,
        )
        return result.get("data")

    def submit_doc(self, doctype: str, name: str) -> Dict[str, Any]:
        """Submit a document."""
        result = self._command(
            "frappe.client.submit",
            "There was an error while submitting the document.",
            doc={"doctype": doctype, "name": name},
        )
        return result.get("data")

    def cancel_doc(self, doctype: str, name: str) -> Dict[str, Any]:
        """Cancel a submitted document."""
        result = self._command(
            "frappe.client.cancel",
            "There was an error while cancelling the document.",
            doctype=doctype,
            name=name,
        )
        return result.get("data")

    def rename_doc(self, doctype: str, old_name: str, new_name: str) -> Any:
        """Rename a document."""
        result = self._command(
            "frappe.client.rename_doc",
            "There was an error while renaming the document.",
            doctype=doctype,
            old_name=old_name,
            new_name=new_name,
        )
        return result.get("data")

    def delete_doc(self, doctype: str, name: Optional[str] = None) -> Dict[str, Any]:
        """
        Delete a document.

        Returns:
            The whole response body (e.g. ``{"message": "ok"}``)
        """
        return self._command(
            "frappe.client.delete",
            "There was an error while deleting the document.",
            use_remote_message=False,
            doctype=doctype,
            name=name,
        )

    def get_count(
        self,
        doctype: str,
        filters: Optional[List[Filter]] = None,
        cache: bool = False,
        debug: bool = False,
    ) -> int:
        """
        Count documents of a doctype.

        Args:
            doctype: Document type
            filters: Optional filters
            cache: Let the server cache the count
            debug: Ask the server to print the query

        Returns:
            Number of matching documents
        """
        params: Dict[str, Any] = {
            "cmd": "frappe.client.get_count",
            "doctype": doctype,
            "filters": json.dumps(filters if filters is not None else []),
        }
        if cache:
            params["cache"] = cache
        if debug:
            params["debug"] = debug

        result = self._http.request(
            "GET",
            RPC_ENDPOINT,
            params=params,
            error_message="There was an error while getting the count.",
        )
        return result.get("message")

    def get_last_doc(self, doctype: str, args: Optional[GetLastDocArgs] = None) -> Dict[str, Any]:
        """
        Get the most recent document of a doctype.

        Sorted by ``creation`` descending unless ``args.order_by`` says
        otherwise. Makes a list call for the name, then fetches the full
        document.

        Returns:
            The document, or an empty dict when none exists
        """
        query = GetDocListArgs(order_by=OrderBy("creation", SORT_DESC))
        if args:
            overrides = {
                key: value
                for key, value in (
                    ("filters", args.filters),
                    ("or_filters", args.or_filters),
                    ("order_by", args.order_by),
                )
                if value is not None
            }
            query = replace(query, **overrides)

        docs = self.get_doc_list(doctype, replace(query, limit=1, fields=["name"]))
        if docs:
            return self.get_doc(doctype, docs[0]["name"])

        return {}
