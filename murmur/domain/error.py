"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class RecordSourceError(DomainError):
    """Raised when a read or write against the record source fails.

    Wraps driver and transport errors so services only handle one type.
    """

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Record source {operation} failed: {reason}")
