import logging
import os
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from application.dto.token_dto import (
    DownloadDecision,
    LandingView,
    ShareReceipt,
    TokenRecord,
    TokenState,
    TokenView,
)
from application.ports.token_store_port import ITokenStore
from onetime.config import DEFAULT_VALIDITY, Settings
from onetime.errors import NotFound
from onetime.tokens import DEFAULT_TOKEN_LENGTH, check_token_length, new_token_id
from onetime.utils import (
    display_time,
    pretty_size,
    token_url,
    utcnow,
    validate_share_path,
)

logger = logging.getLogger("onetime.lifecycle")

Clock = Callable[[], datetime]


def token_state(
    record: TokenRecord, now: datetime, validity: timedelta = DEFAULT_VALIDITY
) -> TokenState:
    """
    Classify *record* at time *now*.

    FRESH until the first download; ACTIVATED for *validity* after it
    (boundary included); EXPIRED afterwards.
    """
    if record.activated_at is None:
        return TokenState.FRESH
    if now - record.activated_at > validity:
        return TokenState.EXPIRED
    return TokenState.ACTIVATED


def valid_until(record: TokenRecord, validity: timedelta = DEFAULT_VALIDITY) -> Optional[datetime]:
    """Deadline of an activated token, None for a fresh one."""
    if record.activated_at is None:
        return None
    return record.activated_at + validity


class ShareService:
    """
    Token lifecycle: register, list, delete, purge, landing lookup, download.

    Every mutation is one load-mutate-save transaction on the store.

    Args:
        store:        Token store (JSON file in production, memory in tests).
        base_addr:    Public base URL used to build token links.
        validity:     Window after activation during which downloads succeed.
        token_length: Length of generated token ids.
        clock:        Returns the current aware datetime.
    """

    def __init__(
        self,
        store: ITokenStore,
        base_addr: str,
        validity: timedelta = DEFAULT_VALIDITY,
        token_length: int = DEFAULT_TOKEN_LENGTH,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.base_addr = base_addr.rstrip("/")
        self.validity = validity
        self.token_length = check_token_length(token_length)
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, store: ITokenStore, clock: Clock = utcnow) -> "ShareService":
        return cls(
            store=store,
            base_addr=settings.base_addr,
            validity=settings.validity,
            token_length=settings.token_length,
            clock=clock,
        )

    def state_of(self, record: TokenRecord) -> TokenState:
        return token_state(record, self.clock(), self.validity)

    # ── Management operations ────────────────────────────────

    def add(self, path: str) -> ShareReceipt:
        """Register *path* and return what the operator needs to hand out the link.

        Raises ValidationError (no mutation) if the path cannot be shared.
        """
        abs_path: str = validate_share_path(path)
        size: int = os.path.getsize(abs_path)

        with self.store.transaction() as tokens:
            token: str = new_token_id(tokens, self.token_length)
            tokens[token] = TokenRecord(
                id=token,
                path=abs_path,
                created_at=self.clock(),
            )

        logger.info("token=%s added path=%s", token, abs_path)
        return ShareReceipt(
            token=token,
            name=os.path.basename(abs_path),
            size=size,
            pretty_size=pretty_size(size),
            url=token_url(self.base_addr, token),
        )

    def remove(self, *token_ids: str) -> List[str]:
        """Delete each token if present; unknown ids are logged and skipped."""
        removed: List[str] = []
        with self.store.transaction() as tokens:
            for token in token_ids:
                if tokens.pop(token, None) is None:
                    logger.info("token=%s not found, nothing to remove", token)
                    continue
                removed.append(token)
        for token in removed:
            logger.info("token=%s removed", token)
        return removed

    def list(self) -> List[TokenView]:
        """All tokens with display fields, oldest first."""
        records = sorted(self.store.load().values(), key=lambda r: r.created_at)
        return [self._view(record) for record in records]

    def purge(self) -> List[str]:
        """Remove every expired token; fresh and still-valid tokens are untouched."""
        now: datetime = self.clock()
        with self.store.transaction() as tokens:
            expired: List[str] = [
                token for token, record in tokens.items()
                if token_state(record, now, self.validity) is TokenState.EXPIRED
            ]
            for token in expired:
                del tokens[token]
        for token in expired:
            logger.info("token=%s purged", token)
        return expired

    # ── Request-side operations ──────────────────────────────

    def landing(self, token: str) -> LandingView:
        """Read-only lookup for the landing page. Never activates the token."""
        record: Optional[TokenRecord] = self.store.load().get(token)
        if record is None:
            raise NotFound(token, NotFound.MISSING_TOKEN)
        try:
            size: int = os.stat(record.path).st_size
        except OSError:
            raise NotFound(token, NotFound.MISSING_FILE)

        deadline: Optional[datetime] = valid_until(record, self.validity)
        return LandingView(
            token=token,
            name=os.path.basename(record.path),
            size=size,
            pretty_size=pretty_size(size),
            valid_until=display_time(deadline) if deadline else None,
        )

    def download(self, token: str, activate: bool = True) -> DownloadDecision:
        """
        Decide whether *token* may be served and activate it on first use.

        The decision and the activation happen inside one store transaction,
        so two racing requests on a fresh token stamp it exactly once.
        With activate=False the same checks run read-only (HEAD requests).

        Raises NotFound for an unknown token, an expired token, or a missing
        backing file. None of these change the store.
        """
        if not activate:
            record: TokenRecord = self._servable(self.store.load(), token, self.clock())
            return DownloadDecision(
                token=token,
                path=record.path,
                display_name=os.path.basename(record.path),
            )

        with self.store.transaction() as tokens:
            now: datetime = self.clock()
            record = self._servable(tokens, token, now)
            activated_now: bool = not record.is_activated
            if activated_now:
                tokens[token] = record.activate(now)

        if activated_now:
            logger.info("token=%s activated", token)
        return DownloadDecision(
            token=token,
            path=record.path,
            display_name=os.path.basename(record.path),
            activated_now=activated_now,
        )

    # ── Private ──────────────────────────────────────────────

    def _servable(self, tokens: Dict[str, TokenRecord], token: str, now: datetime) -> TokenRecord:
        record: Optional[TokenRecord] = tokens.get(token)
        if record is None:
            raise NotFound(token, NotFound.MISSING_TOKEN)
        if token_state(record, now, self.validity) is TokenState.EXPIRED:
            raise NotFound(token, NotFound.EXPIRED)
        # A vanished file must not start the validity window
        if not os.path.isfile(record.path):
            raise NotFound(token, NotFound.MISSING_FILE)
        return record

    def _view(self, record: TokenRecord) -> TokenView:
        return TokenView(
            token=record.id,
            url=token_url(self.base_addr, record.id),
            path=record.path,
            created=display_time(record.created_at),
            activated=display_time(record.activated_at),
            validity=display_time(valid_until(record, self.validity)),
            state=self.state_of(record),
        )

    def snapshot(self) -> Dict[str, TokenRecord]:
        """Current records keyed by id (diagnostics and tests)."""
        return self.store.load()
