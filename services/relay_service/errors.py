"""
Error taxonomy for the relay.

Every failure is terminal for its request. Each subclass fixes the error
kind and the HTTP status the caller sees; ``message`` is what ends up in the
``{"error": ...}`` body.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for every failure the relay reports to its caller."""

    kind = "RelayError"
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidBody(RelayError):
    kind = "InvalidBody"
    status_code = 400

    def __init__(self, message: str = "Invalid request body") -> None:
        super().__init__(message)


class InvalidQuestion(RelayError):
    kind = "InvalidQuestion"
    status_code = 400

    def __init__(self, message: str = "Invalid question format or empty question") -> None:
        super().__init__(message)


class UpstreamUnreachable(RelayError):
    """No HTTP response was obtained from the upstream API."""

    kind = "UpstreamUnreachable"

    def __init__(self, cause: Exception) -> None:
        super().__init__(f"Error sending request: {str(cause) or type(cause).__name__}")
        self.cause = cause


class UpstreamError(RelayError):
    """The upstream answered with a non-2xx status; the status is passed through."""

    kind = "UpstreamError"

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        super().__init__(
            f"API returned non-2xx status: {status_code} {reason}\nBody: {body}"
        )
        self.status_code = status_code
        self.body = body


class MalformedUpstreamJSON(RelayError):
    kind = "MalformedUpstreamJSON"

    def __init__(self, detail: str) -> None:
        super().__init__(f"Error parsing JSON response: {detail}")


class UnexpectedUpstreamShape(RelayError):
    kind = "UnexpectedUpstreamShape"

    def __init__(self, message: str = "Unexpected response structure from API") -> None:
        super().__init__(message)
