# onetime/tokens.py
# Token identifier generation.

import secrets
import string
from typing import Container

from onetime.errors import FatalEntropyFailure

TOKEN_ALPHABET: str = string.digits + string.ascii_lowercase
DEFAULT_TOKEN_LENGTH: int = 8
# Accepted range for configured id length; routes match up to MAX_TOKEN_LENGTH
MIN_TOKEN_LENGTH: int = 6
MAX_TOKEN_LENGTH: int = 64
MAX_GENERATE_ATTEMPTS: int = 5


def check_token_length(length: int) -> int:
    """Return *length* if ids of that size can be served, else raise ValueError."""
    if not MIN_TOKEN_LENGTH <= length <= MAX_TOKEN_LENGTH:
        raise ValueError(
            f"Token length must be between {MIN_TOKEN_LENGTH} and {MAX_TOKEN_LENGTH}. Got: {length}."
        )
    return length


def generate_token(length: int = DEFAULT_TOKEN_LENGTH) -> str:
    """Return *length* characters picked uniformly from TOKEN_ALPHABET.

    Raises FatalEntropyFailure when the OS random source is unavailable.
    """
    if length < 1:
        raise ValueError(f"Token length must be positive. Got: {length}.")
    try:
        return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))
    except (OSError, NotImplementedError) as exc:
        raise FatalEntropyFailure(f"random source failed: {exc}") from exc


def new_token_id(
    existing: Container[str],
    length: int = DEFAULT_TOKEN_LENGTH,
    attempts: int = MAX_GENERATE_ATTEMPTS,
) -> str:
    """Generate a token that is not already a key of *existing*."""
    for _ in range(attempts):
        token = generate_token(length)
        if token not in existing:
            return token
    # Repeated collisions at this alphabet size mean the source is not random.
    raise FatalEntropyFailure(f"{attempts} consecutive token collisions")
