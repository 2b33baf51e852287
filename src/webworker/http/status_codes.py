"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The handful of status codes this server can answer with.

    ┌────────────────────────────────────────────────────────────────────┐
    │  200 OK          The requested file exists and is being sent      │
    │  403 Forbidden   The path resolves outside the document root      │
    │  404 Not Found   No readable file at the requested path           │
    └────────────────────────────────────────────────────────────────────┘

A request that is not a GET never resolves to a path, so it is answered
with 404 as well.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    Usable as integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200
    FORBIDDEN = 403
    NOT_FOUND = 404

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line:

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
}
