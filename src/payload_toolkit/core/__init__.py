"""Core infrastructure (configuration) for payload-toolkit."""

from .config import IngestionConfig

__all__ = ["IngestionConfig"]
