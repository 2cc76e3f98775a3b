"""
Files API - File uploads with progress reporting.
"""

import io
import logging
import os
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple, Union, Callable, Iterator

from urllib3 import encode_multipart_formdata

from ._http import HTTPClient
from ..exceptions import UsageError
from ..types import FileArgs, UploadProgress

logger = logging.getLogger(__name__)

DEFAULT_API_PATH = "upload_file"
CHUNK_SIZE = 8192

ProgressCallback = Callable[[int, Optional[int], UploadProgress], None]
FileInput = Union[str, Path, Tuple[str, Any]]


class ProgressReader:
    """
    Read-only stream over an upload body that reports progress.

    The callback runs on the sending thread after each chunk is handed to
    the transport. Errors raised by the callback are logged and ignored so
    they never interrupt the transfer.
    """

    def __init__(
        self,
        body: bytes,
        on_progress: Optional[ProgressCallback] = None,
        chunk_size: int = CHUNK_SIZE,
    ):
        self._stream = io.BytesIO(body)
        self._total = len(body)
        self._loaded = 0
        self._on_progress = on_progress
        self._chunk_size = chunk_size

    def __len__(self) -> int:
        return self._total

    def __iter__(self) -> Iterator[bytes]:
        while True:
            chunk = self.read(self._chunk_size)
            if not chunk:
                break
            yield chunk

    @property
    def loaded(self) -> int:
        return self._loaded

    def read(self, size: int = -1) -> bytes:
        chunk = self._stream.read(size)
        if chunk:
            self._loaded += len(chunk)
            self._notify()
        return chunk

    def _notify(self) -> None:
        if self._on_progress is None:
            return
        event = UploadProgress(loaded=self._loaded, total=self._total)
        try:
            self._on_progress(event.loaded, event.total, event)
        except Exception as e:
            logger.warning(f"Upload progress callback failed: {e}")


def read_file_input(file: FileInput) -> Tuple[str, bytes]:
    """
    Resolve the accepted file inputs to ``(filename, content)``.

    Accepts a path, a ``(filename, bytes)`` tuple, a ``(filename, file object)``
    tuple, or an open binary file with a ``name``.
    """
    if isinstance(file, (str, Path)):
        path = Path(file)
        if not path.is_file():
            raise UsageError(f"File not found: {path}")
        return path.name, path.read_bytes()

    if isinstance(file, tuple):
        if len(file) != 2:
            raise UsageError("File tuple must be (filename, content)")
        filename, content = file
        if hasattr(content, "read"):
            content = content.read()
        if isinstance(content, str):
            content = content.encode("utf-8")
        if not isinstance(content, (bytes, bytearray)):
            raise UsageError(f"Unsupported file content type: {type(content).__name__}")
        return filename, bytes(content)

    if hasattr(file, "read") and getattr(file, "name", None):
        return os.path.basename(file.name), file.read()

    raise UsageError(f"Unsupported file input: {type(file).__name__}")


def build_form_fields(filename: str, content: bytes, args: FileArgs) -> List[Tuple[str, Any]]:
    """
    Build the multipart fields for an upload, in send order.

    ``doctype``, ``docname`` and ``fieldname`` are attached only when both
    doctype and docname are given.
    """
    fields: List[Tuple[str, Any]] = [("file", (filename, content))]

    if args.is_private:
        fields.append(("is_private", "1"))
    if args.folder:
        fields.append(("folder", args.folder))
    if args.file_url:
        fields.append(("file_url", args.file_url))
    if args.doctype and args.docname:
        fields.append(("doctype", args.doctype))
        fields.append(("docname", args.docname))
        if args.fieldname:
            fields.append(("fieldname", args.fieldname))

    for key, value in (args.other_data or {}).items():
        if not isinstance(value, (str, bytes)):
            value = str(value)
        fields.append((key, value))

    return fields


class FrappeUpload:
    """API for uploading files."""

    def __init__(self, http: HTTPClient):
        """
        Initialize Files API.

        Args:
            http: Authenticated HTTP client
        """
        self._http = http

    def upload(
        self,
        file: FileInput,
        args: Optional[FileArgs] = None,
        on_progress: Optional[ProgressCallback] = None,
        api_path: str = DEFAULT_API_PATH,
    ) -> Dict[str, Any]:
        """
        Upload a file.

        Args:
            file: Path, ``(filename, content)`` tuple, or open binary file
            args: Form fields (privacy, folder, attachment target, extra data)
            on_progress: Called as ``on_progress(loaded, total, event)`` while sending
            api_path: Method name under ``/api/method/``

        Returns:
            Parsed response body (the created File document is under ``message``)
        """
        args = args or FileArgs()
        filename, content = read_file_input(file)

        body, content_type = encode_multipart_formdata(build_form_fields(filename, content, args))

        logger.debug(f"Uploading {filename} ({len(content)} bytes) to /api/method/{api_path}")

        return self._http.request(
            "POST",
            f"/api/method/{api_path}",
            data=ProgressReader(body, on_progress),
            headers={"Content-Type": content_type},
            error_message="There was an error while uploading the file.",
            use_remote_message=True,
            exc_type_fallback=False,
        )
