"""Infrastructure layer errors."""


class AdapterError(Exception):
    """Base infrastructure error."""

    pass


class StorageError(AdapterError):
    """Object storage error."""

    pass
