class ContactLimitError(ValueError):
    """Raised when a user already has the maximum number of active family contacts."""


class InsufficientStockError(ValueError):
    """Raised when a taken or late dose exceeds the medication's remaining quantity."""
