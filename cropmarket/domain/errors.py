"""
Typed failures returned by marketplace operations.

Each failure carries the HTTP status the API layer reports for it.
"""


class MarketplaceError(Exception):
    """Base class for all marketplace operation failures."""

    status_code = 500
    error = "Marketplace error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(MarketplaceError):
    """Referenced crop or interest does not exist."""
    status_code = 404
    error = "Not found"


class Forbidden(MarketplaceError):
    """Actor lacks rights for the operation."""
    status_code = 403
    error = "Forbidden"


class InvalidArgument(MarketplaceError):
    """Malformed or out-of-range input."""
    status_code = 400
    error = "Invalid request"


class Conflict(MarketplaceError):
    """Duplicate pending interest, or a concurrent update won the race."""
    status_code = 409
    error = "Conflict"


class InvalidTransition(MarketplaceError):
    """Status change not allowed from the interest's current state."""
    status_code = 409
    error = "Invalid status transition"
