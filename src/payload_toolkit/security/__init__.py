"""Security helpers (random identifiers)."""

from .random_ids import RANDOM_ALPHABET, RandomIdentifier

__all__ = ["RANDOM_ALPHABET", "RandomIdentifier"]
