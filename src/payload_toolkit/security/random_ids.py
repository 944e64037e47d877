"""Unpredictable identifiers for stored file names."""

from __future__ import annotations

import secrets
from dataclasses import dataclass

RANDOM_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_+"


@dataclass(slots=True, frozen=True)
class RandomIdentifier:
    """Generate strings drawn uniformly from a fixed alphabet.

    Characters come from :func:`secrets.choice`, so generated names cannot be
    guessed by a client trying to collide with another upload.
    """

    alphabet: str = RANDOM_ALPHABET

    def generate(self, length: int) -> str:
        if length < 0:
            raise ValueError("length must not be negative")
        return "".join(secrets.choice(self.alphabet) for _ in range(length))


__all__ = ["RANDOM_ALPHABET", "RandomIdentifier"]
