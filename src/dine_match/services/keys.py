"""Join key generation."""

import re
import secrets
import string
from dataclasses import dataclass
from typing import Protocol

KEY_LENGTH = 4
KEY_ALPHABET = string.ascii_uppercase

_KEY_PATTERN = re.compile(rf"^[A-Z]{{{KEY_LENGTH}}}$")


class KeyGenerator(Protocol):
    """Interface for producing short human-shareable join keys."""

    def generate_key(self) -> str:
        """Return a new candidate key."""


@dataclass
class RandomKeyGenerator(KeyGenerator):
    """Generates fixed-length uppercase keys."""

    length: int = KEY_LENGTH
    alphabet: str = KEY_ALPHABET

    def generate_key(self) -> str:
        """Return a random key drawn from the alphabet."""
        return "".join(secrets.choice(self.alphabet) for _ in range(self.length))


def normalize_key(raw: str) -> str:
    """Normalize user input to the stored key form."""
    return raw.strip().upper()


def is_valid_key_format(raw: object) -> bool:
    """Return true when the value looks like a join key."""
    if not isinstance(raw, str) or not raw:
        return False
    return bool(_KEY_PATTERN.match(normalize_key(raw)))
