# infrastructure/store/__init__.py
from .json_token_store import JsonTokenStore
from .memory_token_store import MemoryTokenStore

__all__ = [
    "JsonTokenStore",
    "MemoryTokenStore",
]
