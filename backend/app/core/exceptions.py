"""Domain exceptions mapped to HTTP responses.

Every exception carries the status code the API answers with; main.py renders
them as {"error": message}.
"""


class DashboardError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class NotFoundError(DashboardError):
    status_code = 404


class ValidationError(DashboardError):
    status_code = 400


class InvalidSymbolError(ValidationError):
    """Raised when a symbol has no quote from any configured provider."""

    def __init__(self, symbol: str):
        super().__init__(f"Unrecognized symbol: {symbol}")
        self.symbol = symbol


class ConcurrencyConflictError(DashboardError):
    """Raised when portfolio totals cannot be written without losing a concurrent update."""

    status_code = 409
