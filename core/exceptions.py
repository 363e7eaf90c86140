"""Custom exception hierarchy for the products gateway."""


class GatewayError(Exception):
    """Base exception for all gateway errors."""


class ConfigurationError(GatewayError):
    """Raised when configuration is missing or invalid."""


class RequestTooLarge(GatewayError):
    """Inbound request body exceeds size limit."""


class InvalidJSON(GatewayError):
    """Inbound request body is declared as JSON but does not parse."""


class ResponseTooLarge(GatewayError):
    """Upstream response body exceeds size limit.

    Attributes:
        limit: Configured maximum body size in bytes
    """

    def __init__(self, limit: int) -> None:
        super().__init__(f"Upstream response body exceeds {limit} bytes")
        self.limit = limit
