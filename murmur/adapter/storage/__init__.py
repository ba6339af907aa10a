"""Object storage adapter for comment images."""

from .client import HttpImageStore, MockImageStore

__all__ = ["HttpImageStore", "MockImageStore"]
