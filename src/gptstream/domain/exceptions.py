"""
Domain-level exceptions.

Everything raised before a stream is established derives from
GPTStreamError. Once a SessionHandle exists, failures only close the
token channel.
"""


class GPTStreamError(Exception):
    """Base exception for all gptstream errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "message": self.message,
            "details": self.details,
            "type": type(self).__name__,
        }


class ConfigError(GPTStreamError):
    """Configuration is missing or unreadable. Fatal, raised before any request."""
    pass


class RequestTimeoutError(GPTStreamError):
    """No response headers arrived within the header wait window."""

    def __init__(self, message: str, timeout: float, details: dict | None = None):
        super().__init__(message, details)
        self.timeout = timeout


class TransportError(GPTStreamError):
    """Connection, DNS or TLS failure while sending the request."""
    pass


class ProviderStatusError(TransportError):
    """The endpoint answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int, details: dict | None = None):
        super().__init__(message, details)
        self.status_code = status_code

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["status_code"] = self.status_code
        return result


class ProtocolError(GPTStreamError):
    """The response body ended before the metadata line."""
    pass


class MalformedContentError(GPTStreamError):
    """
    A delta line could not be decoded.

    Handled inside the line filter: the line becomes an empty token
    and the stream continues.
    """

    def __init__(self, message: str, line: str, details: dict | None = None):
        super().__init__(message, details)
        self.line = line
