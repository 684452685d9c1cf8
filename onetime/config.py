# onetime/config.py
# Settings loaded from the JSON configuration file and passed explicitly to
# the store, the lifecycle engine and the web app.

import json
import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from onetime.errors import ConfigError
from onetime.tokens import DEFAULT_TOKEN_LENGTH, check_token_length
from onetime.utils import validate_base_addr

CONFIG_NAME: str = "onetime.json"
CONFIG_ENV_VAR: str = "ONETIME_CONFIG"

DEFAULT_VALIDITY: timedelta = timedelta(hours=4)

DEFAULT_CONFIG: dict[str, str] = {
    "TOKEN_DB":  "token.db",
    "LOG_FILE":  "onetime.log",
    "BASE_ADDR": "http://localhost:2500",
    "CRT":       "server.crt",
    "KEY":       "server.key",
}

REQUIRED_KEYS: tuple[str, ...] = ("TOKEN_DB", "LOG_FILE", "BASE_ADDR")

LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    token_db: str
    log_file: str
    base_addr: str
    crt: str = ""
    key: str = ""
    config_path: str = ""
    validity: timedelta = DEFAULT_VALIDITY
    token_length: int = DEFAULT_TOKEN_LENGTH

    @property
    def uses_tls(self) -> bool:
        return self.base_addr.startswith("https://")


def default_config_path() -> str:
    """--config is handled by the CLI; otherwise $ONETIME_CONFIG, else beside main.py."""
    from_env: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return os.path.abspath(from_env)
    here: str = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(here, CONFIG_NAME)


def _resolve(base_dir: str, value: str) -> str:
    """Relative paths in the config are taken relative to the config file."""
    if not value:
        return ""
    if os.path.isabs(value):
        return value
    return os.path.join(base_dir, value)


def _positive_int(value, default: int) -> int:
    """Parse int from config input, fall back to *default*, never raise."""
    try:
        v = int(value)
    except (TypeError, ValueError):
        return default
    return v if v > 0 else default


def _token_length(value, config_path: str) -> int:
    if value is None:
        return DEFAULT_TOKEN_LENGTH
    try:
        return check_token_length(int(value))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"TOKEN_LENGTH invalid in {config_path}: {exc}") from exc


def load_settings(path: Optional[str] = None) -> Settings:
    """Read and validate the configuration file. Raises ConfigError."""
    config_path: str = os.path.abspath(path) if path else default_config_path()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as exc:
        raise ConfigError(
            f"Config file not found: '{config_path}'.\n"
            f"    → Run 'onetime config' to create one."
        ) from exc
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Cannot read config file '{config_path}': {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file '{config_path}' must hold a JSON object.")

    for key in REQUIRED_KEYS:
        if not raw.get(key):
            raise ConfigError(f"{key} undefined in {config_path}")

    try:
        validate_base_addr(raw["BASE_ADDR"])
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc

    base_dir: str = os.path.dirname(config_path)
    token_length: int = _token_length(raw.get("TOKEN_LENGTH"), config_path)
    validity_s: int = _positive_int(
        raw.get("TOKEN_VALIDITY_SECONDS"), int(DEFAULT_VALIDITY.total_seconds())
    )
    return Settings(
        token_db=_resolve(base_dir, raw["TOKEN_DB"]),
        log_file=_resolve(base_dir, raw["LOG_FILE"]),
        base_addr=raw["BASE_ADDR"].rstrip("/"),
        crt=_resolve(base_dir, raw.get("CRT", "")),
        key=_resolve(base_dir, raw.get("KEY", "")),
        config_path=config_path,
        validity=timedelta(seconds=validity_s),
        token_length=token_length,
    )


def create_default_config(path: Optional[str] = None, force: bool = False) -> str:
    """Write the default configuration file and return its path."""
    config_path: str = os.path.abspath(path) if path else default_config_path()
    if os.path.exists(config_path) and not force:
        raise ConfigError(
            f"Config file already exists: '{config_path}'.\n"
            f"    → Edit it directly, or pass --force to overwrite."
        )
    try:
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(DEFAULT_CONFIG, f, indent=4)
            f.write("\n")
    except OSError as exc:
        raise ConfigError(f"Cannot create config file '{config_path}': {exc}") from exc
    return config_path


def configure_logging(log_file: Optional[str] = None, level: int = logging.INFO) -> None:
    """Log to stderr, and append to *log_file* when one is configured."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
