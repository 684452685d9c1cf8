# infrastructure/store/json_token_store.py
# JSON-file token store with atomic snapshots.
# Thread-safe and process-safe: load-mutate-save runs under a threading.Lock
# plus an advisory flock on a sidecar "<db>.lock" file.

import fcntl
import json
import logging
import os
import re
import stat
import tempfile
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from threading import Lock
from typing import Dict, Iterator, Optional

from application.dto.token_dto import TokenRecord
from application.ports.token_store_port import ITokenStore
from onetime.errors import StoreCorruption, StoreLockTimeout, StoreReadError, StoreWriteError

logger = logging.getLogger("onetime.store")

# Persisted stand-in for "never activated"
UNSET_ACTIVATION: datetime = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Key names used by snapshots written by earlier releases
LEGACY_KEYS: Dict[str, str] = {
    "path":         "Path",
    "created_at":   "Created",
    "activated_at": "Activated",
}

# Fractional seconds of any precision, up to nanoseconds
_FRACTION_RE = re.compile(r"\.(\d+)")

DEFAULT_LOCK_TIMEOUT: float = 10.0
LOCK_POLL_INTERVAL: float = 0.05

# Mode of a newly created snapshot; an existing snapshot keeps its own
DEFAULT_FILE_MODE: int = 0o644

# One in-process lock per store file, shared by every JsonTokenStore instance
_path_locks: Dict[str, Lock] = {}
_path_locks_guard: Lock = Lock()


def _thread_lock_for(path: str) -> Lock:
    with _path_locks_guard:
        return _path_locks.setdefault(path, Lock())


# ── Serialization ────────────────────────────────────────────

def _format_time(value: Optional[datetime]) -> str:
    return (value or UNSET_ACTIVATION).isoformat()


def _parse_time(value, field: str) -> datetime:
    if not isinstance(value, str):
        raise StoreCorruption(f"{field} is not a timestamp: {value!r}")
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1).ljust(6, "0")[:6], value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise StoreCorruption(f"{field} is not a timestamp: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def record_to_json(record: TokenRecord) -> dict:
    return {
        "path":         record.path,
        "created_at":   _format_time(record.created_at),
        "activated_at": _format_time(record.activated_at),
    }


def record_from_json(token: str, data) -> TokenRecord:
    """Rebuild a record; raises StoreCorruption on any shape problem."""
    if not isinstance(data, dict):
        raise StoreCorruption(f"record {token!r} is not an object")
    for key, legacy in LEGACY_KEYS.items():
        if key not in data and legacy in data:
            data = {**data, key: data[legacy]}

    path = data.get("path")
    if not isinstance(path, str) or not path:
        raise StoreCorruption(f"record {token!r} has no path")

    created_at = _parse_time(data.get("created_at"), "created_at")

    activated_at: Optional[datetime] = None
    raw_activated = data.get("activated_at")
    if raw_activated is not None:
        activated_at = _parse_time(raw_activated, "activated_at")
        # Anything at or before the epoch year is the "unset" sentinel
        if activated_at.year <= UNSET_ACTIVATION.year:
            activated_at = None

    return TokenRecord(
        id=token,
        path=path,
        created_at=created_at,
        activated_at=activated_at,
    )


def tokens_from_json(text: str) -> Dict[str, TokenRecord]:
    try:
        payload = json.loads(text)
    except ValueError as exc:
        raise StoreCorruption(f"invalid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise StoreCorruption("top-level value is not an object")
    return {token: record_from_json(token, data) for token, data in payload.items()}


def tokens_to_json(tokens: Dict[str, TokenRecord]) -> str:
    payload = {token: record_to_json(record) for token, record in sorted(tokens.items())}
    return json.dumps(payload, indent=2)


# ── Store ────────────────────────────────────────────────────

class JsonTokenStore(ITokenStore):
    def __init__(self, path: str, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self.path: str = os.path.abspath(path)
        self.lock_path: str = self.path + ".lock"
        self.lock_timeout: float = lock_timeout
        self._thread_lock: Lock = _thread_lock_for(self.path)

    def load(self) -> Dict[str, TokenRecord]:
        """Read the snapshot. Missing → empty. Malformed → warning + empty.

        Raises StoreReadError when the file exists but cannot be read, so a
        transaction never overwrites records it could not see.
        """
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                text: str = f.read()
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.error("token store unreadable path=%s: %s", self.path, e)
            raise StoreReadError(f"cannot read token store '{self.path}': {e}") from e

        if not text.strip():
            return {}
        try:
            return tokens_from_json(text)
        except StoreCorruption as e:
            logger.warning("token store corrupt path=%s, treating as empty: %s", self.path, e)
            return {}

    def save(self, tokens: Dict[str, TokenRecord]) -> None:
        """Write to a temp file in the same directory, fsync, then rename over the snapshot."""
        directory: str = os.path.dirname(self.path)
        tmp_path: Optional[str] = None
        try:
            tmp_fd, tmp_path = tempfile.mkstemp(
                dir=directory,
                prefix=f".{os.path.basename(self.path)}.",
                suffix=".tmp",
            )
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                os.fchmod(f.fileno(), self._file_mode())
                f.write(tokens_to_json(tokens))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            logger.error("token store write failed path=%s: %s", self.path, e)
            raise StoreWriteError(f"cannot write token store '{self.path}': {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def _file_mode(self) -> int:
        try:
            return stat.S_IMODE(os.stat(self.path).st_mode)
        except FileNotFoundError:
            return DEFAULT_FILE_MODE

    @contextmanager
    def lock(self) -> Iterator[None]:
        """Hold the in-process lock and the cross-process flock, bounded by lock_timeout."""
        deadline: float = time.monotonic() + self.lock_timeout
        if not self._thread_lock.acquire(timeout=self.lock_timeout):
            raise StoreLockTimeout(f"timed out waiting for '{self.path}'")
        try:
            with open(self.lock_path, "a") as lock_file:
                self._flock(lock_file, deadline)
                try:
                    yield
                finally:
                    fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
        finally:
            self._thread_lock.release()

    def _flock(self, lock_file, deadline: float) -> None:
        while True:
            try:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                return
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    raise StoreLockTimeout(f"timed out waiting for '{self.lock_path}'")
                time.sleep(LOCK_POLL_INTERVAL)
