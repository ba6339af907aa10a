"""Mock providers for testing."""

from .persistence import MockPersistenceProvider
from .storage import MockStorageProvider
from .container import build_test_container

__all__ = [
    "MockPersistenceProvider",
    "MockStorageProvider",
    "build_test_container",
]
