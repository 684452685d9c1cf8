# application/ports/token_store_port.py
# Port interface for the persisted token store.
# Domain layer: must not import infrastructure or adapter code.

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterator

from application.dto.token_dto import TokenRecord


class ITokenStore(ABC):
    """Snapshot store mapping token id → TokenRecord."""

    @abstractmethod
    def load(self) -> Dict[str, TokenRecord]:
        """Return the current snapshot. Missing or malformed data reads as empty."""
        ...

    @abstractmethod
    def save(self, tokens: Dict[str, TokenRecord]) -> None:
        """Replace the snapshot with *tokens*."""
        ...

    @abstractmethod
    def lock(self):
        """Return a context manager holding the store's single-writer lock."""
        ...

    @contextmanager
    def transaction(self) -> Iterator[Dict[str, TokenRecord]]:
        """
        Load, hand the mapping to the caller, and save it back, all under lock.

        Nothing is saved if the block raises or leaves the mapping unchanged.
        """
        with self.lock():
            tokens: Dict[str, TokenRecord] = self.load()
            before: Dict[str, TokenRecord] = dict(tokens)
            yield tokens
            if tokens != before:
                self.save(tokens)
