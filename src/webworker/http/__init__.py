"""
=============================================================================
HTTP PIPELINE STAGES
=============================================================================

The four stages every connection goes through, in order:

    request.py       RequestReader      bytes → resolved path
    mime_types.py    ContentClassifier  path  → content type
    response.py      HeaderWriter       content type → status line + headers
    response.py      ContentWriter      path  → body bytes

=============================================================================
"""

from .status_codes import HTTPStatus
from .request import RequestReader, read_request
from .mime_types import ContentClassifier, is_text_type, MIME_TYPES
from .response import (
    HeaderWriter,
    ContentWriter,
    Resource,
    format_http_date,
    ERROR_CONTENT_TYPE,
    NOT_FOUND_BODY,
    FORBIDDEN_BODY,
)

__all__ = [
    "HTTPStatus",
    "RequestReader",
    "read_request",
    "ContentClassifier",
    "is_text_type",
    "MIME_TYPES",
    "HeaderWriter",
    "ContentWriter",
    "Resource",
    "format_http_date",
    "ERROR_CONTENT_TYPE",
    "NOT_FOUND_BODY",
    "FORBIDDEN_BODY",
]
