"""
Common exceptions for jamaid.

Every fatal error carries a one-line, user-facing message. The CLI prints
``str(error)`` and exits non-zero; nothing below is expected to reach the
user as a traceback.
"""

from typing import Optional


class JamaidError(Exception):
    """Base exception for all jamaid errors."""
    pass


class ConfigurationError(JamaidError):
    """Raised when required external configuration is missing or invalid."""
    pass


class SourceUnavailableError(ConfigurationError):
    """Raised when the structured endpoint has no URL configured."""
    pass


class SourceError(JamaidError):
    """Raised when the caller's input cannot be read or resolved."""
    pass


class TransportError(JamaidError):
    """Raised when a remote source cannot be reached or answers with an error."""
    pass


class NetworkError(TransportError):
    """Raised on DNS, connection and other connectivity failures."""
    pass


class EndpointTimeoutError(TransportError):
    """Raised when a remote request exceeds its configured timeout."""

    def __init__(self, message: str, timeout_ms: int):
        super().__init__(message)
        self.timeout_ms = timeout_ms


class EndpointResponseError(TransportError):
    """Raised when a remote endpoint answers with a non-success status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class PayloadValidationError(JamaidError):
    """Raised when a payload does not match the expected wire shape.

    ``path`` is the dotted location of the first violation, for example
    ``document.pages[0].diagram.edges[0].kind``.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class RenderError(JamaidError):
    """Raised when the external Mermaid rasterizer fails."""
    pass
