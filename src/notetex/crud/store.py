from __future__ import annotations
from abc import ABC, abstractmethod


class DocumentStore(ABC):
    """Named-document storage consumed by the conversion pipeline. Paths are '/'-separated."""

    @abstractmethod
    def read(self, path: str) -> str | None:
        """Return the document text, or None if absent. Raises ReadFailure on I/O errors."""
        raise NotImplementedError

    @abstractmethod
    def write(self, path: str, text: str) -> None:
        """Persist text completely or not at all. Raises WriteFailure."""
        raise NotImplementedError

    @abstractmethod
    def ensure_directory(self, path: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def list(self, path: str = '') -> list[str]:
        """Store paths of the documents under path, sorted."""
        raise NotImplementedError
