# onetime/printer.py
# HIG: Depth + Consistency. Centralized console output for the share CLI.

import os
import sys
from typing import Iterable, Optional

from application.dto.token_dto import ShareReceipt, TokenState, TokenView


class OutputPrinter:
    """
    Console formatter for the one-time share CLI.

    Results go to stdout as a title line followed by an aligned detail block.
    Errors always go to stderr, even in quiet mode. Color is optional and
    disabled by NO_COLOR.
    """

    SYMBOLS : dict[str, str] = {
        "success" : "✅",
        "error"   : "❌",
        "warning" : "⚠️ ",
        "info"    : "ℹ️ ",
        "hint"    : "→",
    }

    COLORS : dict[str, str] = {
        "green"  : "32",
        "red"    : "31",
        "yellow" : "33",
        "cyan"   : "36",
        "dim"    : "90",
    }

    # Listing color per token state
    STATE_COLORS : dict[TokenState, str] = {
        TokenState.FRESH     : "cyan",
        TokenState.ACTIVATED : "green",
        TokenState.EXPIRED   : "dim",
    }

    COL_WIDTH : int = 10  # Column alignment for detail blocks

    def __init__(self, quiet : bool = False, no_color : bool = False) -> None:
        self.quiet    : bool = quiet
        self.no_color : bool = no_color or bool(os.environ.get("NO_COLOR", ""))

    # ── Internal ─────────────────────────────────────────────────

    def _colorize(self, text : str, color : str) -> str:
        """Wrap *text* in the ANSI code for *color* unless color is disabled."""
        if self.no_color:
            return text
        return f"\033[{self.COLORS[color]}m{text}\033[0m"

    def _details(self, details : Iterable[tuple[str, str]]) -> None:
        for key, value in details:
            label : str = self._colorize(f"{key:>{self.COL_WIDTH}}", "dim")
            print(f"    {label}: {value}")

    # ── Messages ─────────────────────────────────────────────────

    def success(self, title : str, details : Optional[dict[str, str]] = None) -> None:
        if self.quiet:
            return
        symbol : str = self._colorize(self.SYMBOLS["success"], "green")
        print(f"\n{symbol}  {self._colorize(title, 'green')}")
        if details:
            self._details(details.items())

    def error(self, message : str, hint : Optional[str] = None) -> None:
        """Always printed, to stderr."""
        symbol : str = self._colorize(self.SYMBOLS["error"], "red")
        print(f"\n{symbol}  {self._colorize(message, 'red')}", file=sys.stderr)
        if hint:
            print(f"    {self._colorize(self.SYMBOLS['hint'] + ' ' + hint, 'cyan')}", file=sys.stderr)

    def warning(self, message : str, hint : Optional[str] = None) -> None:
        if self.quiet:
            return
        symbol : str = self._colorize(self.SYMBOLS["warning"], "yellow")
        print(f"\n{symbol} {self._colorize(message, 'yellow')}")
        if hint:
            print(f"    {self._colorize(self.SYMBOLS['hint'] + ' ' + hint, 'cyan')}")

    def info(self, message : str) -> None:
        if self.quiet:
            return
        symbol : str = self._colorize(self.SYMBOLS["info"], "cyan")
        print(f"{symbol} {message}")

    # ── Share output ─────────────────────────────────────────────

    def receipt(self, receipt : ShareReceipt) -> None:
        """Announce a newly registered file. Quiet mode prints the bare URL."""
        if self.quiet:
            print(receipt.url)
            return
        self.success(
            title="A file is ready for download",
            details={
                "Name" : receipt.name,
                "Size" : f"{receipt.pretty_size} bytes",
                "URL"  : receipt.url,
            },
        )

    def token_list(self, views : list[TokenView]) -> None:
        """Print one block per token."""
        if self.quiet:
            return
        if not views:
            self.info("No tokens registered.")
            return
        for view in views:
            state : str = self._colorize(view.state.value, self.STATE_COLORS[view.state])
            print(f"\n  {view.token}  [{state}]")
            self._details([
                ("url",       view.url),
                ("file",      view.path),
                ("created",   view.created),
                ("activated", view.activated),
                ("validity",  view.validity),
            ])
        print()

    def removed(self, token_ids : list[str], requested : Optional[list[str]] = None) -> None:
        """Report deleted tokens and any that were not found."""
        for token in token_ids:
            self.info(f"removing token: {token}")
        for token in requested or []:
            if token not in token_ids:
                self.warning(f"token not found: {token}")
