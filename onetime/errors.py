# onetime/errors.py
# Error taxonomy shared by the store, the lifecycle engine and the adapters.


class ShareError(Exception):
    """Base class for every error raised by the one-time share core."""


class ValidationError(ShareError):
    """Registration target is missing, a directory, or unreadable."""


class NotFound(ShareError):
    """Token cannot be served.

    The three causes are reported identically to the requester but keep a
    distinct *reason* for the operator log.
    """

    MISSING_TOKEN = "missing_token"
    MISSING_FILE  = "missing_file"
    EXPIRED       = "expired"

    def __init__(self, token: str, reason: str) -> None:
        super().__init__(f"token '{token}' not served ({reason})")
        self.token  = token
        self.reason = reason


class StoreCorruption(ShareError):
    """Persisted snapshot is unreadable or malformed."""


class StoreReadError(ShareError):
    """Snapshot exists but cannot be read (permissions, I/O error)."""


class StoreWriteError(ShareError):
    """Snapshot could not be written to disk."""


class StoreLockTimeout(ShareError):
    """Store lock could not be acquired in time."""


class FatalEntropyFailure(ShareError):
    """Random source failed; tokens would be predictable."""


class ConfigError(ShareError):
    """Configuration file missing or incomplete."""
