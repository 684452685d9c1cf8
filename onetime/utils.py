import os
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlsplit

from onetime.errors import ValidationError

# Display format for timestamps shown to the operator and on the landing page
DISPLAY_TIME_FORMAT: str = "%Y-%m-%d %H:%M:%S"

# Placeholder shown for a token that was never activated
NOT_ACTIVATED: str = "no"

SUPPORTED_SCHEMES: set[str] = {"http", "https"}


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# Validation helpers
def validate_share_path(path: str) -> str:
    """Return the absolute form of *path*, or raise if it cannot be shared."""
    # HIG: Clarity. The error names the problem AND the fix
    abs_path: str = os.path.abspath(path)
    if not os.path.exists(abs_path):
        raise ValidationError(
            f"Cannot find file: '{abs_path}'.\n" f"    → Check the path and try again."
        )
    if os.path.isdir(abs_path):
        raise ValidationError(
            f"Cannot send directories: '{abs_path}'.\n"
            f"    → Provide a path to a single file."
        )
    if not os.path.isfile(abs_path):
        raise ValidationError(
            f"Not a regular file: '{abs_path}'.\n"
            f"    → Only regular files can be shared."
        )
    if not os.access(abs_path, os.R_OK):
        raise ValidationError(
            f"File is not readable: '{abs_path}'.\n"
            f"    → Fix the file permissions and try again."
        )
    return abs_path


def validate_base_addr(base_addr: str) -> None:
    """Raise ValueError unless *base_addr* is an http(s) URL with a host."""
    parts = urlsplit(base_addr)
    if parts.scheme not in SUPPORTED_SCHEMES or not parts.netloc:
        raise ValueError(
            f"Unknown protocol in BASE_ADDR: '{base_addr}'.\n"
            f"    → Example: http://localhost:2500"
        )


# Formatting helpers

def pretty_size(size: int) -> str:
    """
    Comma-separate the digits of a byte count.

    Example: 10000000  →  '10,000,000'
    """
    return f"{size:,}"


def display_time(value: Optional[datetime]) -> str:
    """Local-time display of *value*, or 'no' when it is unset."""
    if value is None:
        return NOT_ACTIVATED
    return value.astimezone().strftime(DISPLAY_TIME_FORMAT)


def token_url(base_addr: str, token: str) -> str:
    """Landing page URL for *token* under *base_addr*."""
    return f"{base_addr.rstrip('/')}/{token}"


def listen_address(base_addr: str) -> tuple[str, int]:
    """
    Host and port the server binds to for *base_addr*.

    Example: https://example.org:8443  →  ('example.org', 8443)
    Example: http://localhost          →  ('localhost', 80)
    """
    validate_base_addr(base_addr)
    parts = urlsplit(base_addr)
    default_port: int = 443 if parts.scheme == "https" else 80
    return parts.hostname or "localhost", parts.port or default_port
