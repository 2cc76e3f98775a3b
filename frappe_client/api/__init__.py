"""
Frappe API Client Package.

Structure:
    - client.py: Frappe facade (configuration, login, sub-client accessors)
    - _http.py: Common headers, authenticated HTTP client, error normalization
    - db.py: Document operations
    - files.py: File uploads

Usage:
    from frappe_client.api import Frappe

    frappe = Frappe(url="https://erp.example.com", username="admin", password="secret")
    frappe.login()
    todos = frappe.db().get_doc_list("ToDo")
"""

from ._http import HTTPClient, get_common_headers
from .client import Frappe
from .db import FrappeDB
from .files import FrappeUpload

__all__ = [
    # Main client
    "Frappe",
    # HTTP layer
    "HTTPClient",
    "get_common_headers",
    # Domain APIs
    "FrappeDB",
    "FrappeUpload",
]
