"""Exception hierarchy for the actuator polling pipeline.

Every failure a single tick can hit derives from PilotError, so the ticker can
catch them at the tick boundary and keep the loop alive. Deliberate stops use
asyncio.CancelledError instead and are never reported as failures.

Typical usage example:
    from lmpilot.core.errors import TransportError

    try:
        reply = await client.chat(model, messages)
    except TransportError as e:
        log.warning("Endpoint returned %s: %s", e.status_code, e.body)
"""


class PilotError(Exception):
    """Base class for all pipeline failures."""


class ConfigurationError(PilotError):
    """Raised when settings are missing or invalid (e.g. blank model id)."""


class TransportError(PilotError):
    """Raised when the HTTP exchange fails.

    Attributes:
        status_code: HTTP status, or None for network-level errors.
        body: Response body or error text for diagnostics.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class RequestCancelledError(PilotError):
    """Raised when a request is aborted before completion.

    Attributes:
        reason: What aborted the request (e.g. "timeout").
    """

    def __init__(self, message: str, reason: str = "timeout") -> None:
        super().__init__(message)
        self.reason = reason


class MalformedResponseError(PilotError):
    """Raised when the completion JSON lacks choices/message/content."""

    def __init__(self, message: str, body: str = "") -> None:
        super().__init__(message)
        self.body = body


class ExtractionError(PilotError):
    """Raised when a reply contains no JSON-object-shaped substring."""

    def __init__(self, message: str, text: str = "") -> None:
        super().__init__(message)
        self.text = text


class CommandParseError(PilotError):
    """Raised when candidate command text is not valid JSON."""

    def __init__(self, message: str, text: str = "") -> None:
        super().__init__(message)
        self.text = text
