# application/dto/token_dto.py
# Token record and the value objects handed to the CLI and web adapters.

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional


class TokenState(str, Enum):
    """Lifecycle state of a token, computed at access time."""
    FRESH     = "fresh"       # never downloaded
    ACTIVATED = "activated"   # downloaded, still inside the validity window
    EXPIRED   = "expired"     # validity window elapsed


@dataclass(frozen=True)
class TokenRecord:
    """One shareable file. Only activated_at ever changes, and only once."""
    id: str
    path: str
    created_at: datetime
    activated_at: Optional[datetime] = None

    @property
    def is_activated(self) -> bool:
        return self.activated_at is not None

    def activate(self, when: datetime) -> "TokenRecord":
        """Return a copy stamped with *when*; an activated record is returned as-is."""
        if self.activated_at is not None:
            return self
        return replace(self, activated_at=when)


@dataclass
class ShareReceipt:
    """Result of registering a file, shown to the operator."""
    token: str
    name: str
    size: int
    pretty_size: str
    url: str


@dataclass
class TokenView:
    """Display row for one token in the listing."""
    token: str
    url: str
    path: str
    created: str
    activated: str
    validity: str
    state: TokenState


@dataclass
class LandingView:
    """Data rendered on the landing page of a token."""
    token: str
    name: str
    size: int
    pretty_size: str
    valid_until: Optional[str] = None


@dataclass
class DownloadDecision:
    """A download that may be served."""
    token: str
    path: str
    display_name: str
    activated_now: bool = False
