# infrastructure/store/memory_token_store.py
# Thread-safe in-memory token store. Holds a snapshot copy, so callers see the
# same load/save semantics as the JSON store without touching the disk.

from threading import Lock
from typing import Dict, Optional

from application.dto.token_dto import TokenRecord
from application.ports.token_store_port import ITokenStore


class MemoryTokenStore(ITokenStore):
    def __init__(self, tokens: Optional[Dict[str, TokenRecord]] = None) -> None:
        self._snapshot: Dict[str, TokenRecord] = dict(tokens or {})
        self._lock: Lock = Lock()
        self.saves: int = 0

    def load(self) -> Dict[str, TokenRecord]:
        return dict(self._snapshot)

    def save(self, tokens: Dict[str, TokenRecord]) -> None:
        self._snapshot = dict(tokens)
        self.saves += 1

    def lock(self) -> Lock:
        return self._lock
