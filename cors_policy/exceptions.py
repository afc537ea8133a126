"""Exceptions raised while building a CORS policy."""


class PolicyConfigError(ValueError):
    """Raised when raw policy input cannot be turned into a ``PolicyConfig``."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message
