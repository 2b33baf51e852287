"""
=============================================================================
CONTENT CLASSIFIER
=============================================================================

Derives the Content-Type header value from the resolved request path.

=============================================================================
HOW THE TYPE IS PROBED
=============================================================================

    ┌────────────────────────────────────────────────────────────────────┐
    │                    classify("./img/logo.png")                      │
    ├────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   1. Does the path exist?                                          │
    │         └── No  → log, return ""                                   │
    │                                                                     │
    │   2. Ask the platform MIME database (mimetypes)                    │
    │         └── Reads /etc/mime.types and the other files listed     │
    │             in mimetypes.knownfiles that exist on this host        │
    │         └── Seeded with MIME_TYPES below so common web types       │
    │             are the same on every host                             │
    │                                                                     │
    │   3. Nothing known for the extension?                              │
    │         └── log, return ""                                         │
    │                                                                     │
    └────────────────────────────────────────────────────────────────────┘

An empty content type is not an error: the header writer still emits the
field, just with no value.

The classification also decides how the body is sent. Text types go
through placeholder substitution, everything else is copied byte for byte
(see is_text_type).

=============================================================================
"""

import logging
import mimetypes
import os
from pathlib import Path
from typing import Mapping, Optional, Union


logger = logging.getLogger(__name__)


# =============================================================================
# MIME TYPE TABLE
# =============================================================================
#
# Extensions (lowercase, with dot) registered on top of the platform
# database. Covers what a small static site usually serves.
#
# =============================================================================

MIME_TYPES = {
    # Text
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".csv": "text/csv",

    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".webp": "image/webp",
    ".bmp": "image/bmp",

    # Fonts
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",

    # Documents and archives
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".wasm": "application/wasm",
}

# application/* types that are still human-readable text
TEXT_APPLICATION_TYPES = {
    "application/json",
    "application/xml",
    "application/javascript",
    "application/x-javascript",
    "image/svg+xml",
}


def is_text_type(mime_type: Optional[str]) -> bool:
    """
    Check if a MIME type represents text content.

    Parameters such as "; charset=utf-8" are ignored.

    Examples:
        >>> is_text_type("text/html")
        True
        >>> is_text_type("application/json; charset=utf-8")
        True
        >>> is_text_type("image/png")
        False
        >>> is_text_type("")
        False
    """
    if not mime_type:
        return False

    base = mime_type.split(";", 1)[0].strip().lower()
    if base.startswith("text/"):
        return True

    return base in TEXT_APPLICATION_TYPES


class ContentClassifier:
    """
    Maps a resolved path to a MIME type string.

    One instance can be shared by every worker: after construction the
    underlying database is only read.

    Usage:
        classifier = ContentClassifier()
        classifier.classify("./index.html")   # 'text/html'
        classifier.classify("./missing.png")  # ''
    """

    def __init__(self, extra_types: Mapping[str, str] = MIME_TYPES):
        """
        Args:
            extra_types: Extension to MIME type entries registered on top
                         of the platform database.
        """
        system_files = [f for f in mimetypes.knownfiles if os.path.isfile(f)]
        self._db = mimetypes.MimeTypes(system_files)
        for extension, mime_type in extra_types.items():
            self._db.add_type(mime_type, extension)

    def classify(self, path: Union[str, Path, None]) -> str:
        """
        Probe the content type of a path.

        Args:
            path: Resolved local path. Empty or None means no GET line
                  was seen.

        Returns:
            The MIME type, or "" if the path does not exist or its type
            is unknown. Never raises.
        """
        if not path or not os.path.exists(path):
            logger.warning(f"Content type probe failed, no such path: {path!r}")
            return ""

        try:
            mime_type, _encoding = self._db.guess_type(os.fspath(path), strict=False)
        except (TypeError, ValueError) as e:
            logger.warning(f"Content type probe failed for {path}: {e}")
            return ""

        if mime_type is None:
            logger.info(f"No content type known for {path}")
            return ""

        logger.debug(f"Content type of {path}: {mime_type}")
        return mime_type
