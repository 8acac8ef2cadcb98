"""Custom exceptions for FabNStitch."""


class FabnstitchError(Exception):
    """Base exception for all domain errors."""

    pass


class NotFoundError(FabnstitchError):
    """Raised when a referenced row doesn't exist (or must not be revealed)."""

    def __init__(self, what: str = "Resource"):
        self.what = what
        super().__init__(f"{what} not found")


class OrderNotFoundError(NotFoundError):
    """Raised when an order id or order_id token doesn't resolve."""

    def __init__(self, order_ref=None):
        self.order_ref = order_ref
        super().__init__("Order")


class ForbiddenError(FabnstitchError):
    """Raised when the actor's role or ownership doesn't allow the operation."""

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class InvalidInputError(FabnstitchError):
    """Raised for malformed values the request schema can't catch."""

    pass


class ConflictError(FabnstitchError):
    """Raised when the operation conflicts with the current state of a row."""

    pass


class IllegalTransitionError(ConflictError):
    """Raised when the transition policy forbids a status change."""

    def __init__(self, current, target, role):
        self.current = current
        self.target = target
        self.role = role
        super().__init__(
            f"Cannot move order from '{_value(current)}' to '{_value(target)}' as {_value(role)}"
        )


class PersistenceError(FabnstitchError):
    """Raised when a write is rejected or the store is unavailable."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Database error during {operation}")


def _value(member) -> str:
    return getattr(member, "value", member)
