"""Strict request-body decoders."""

from .json_reader import JSONReader, classify_decode_error, find_unknown_key

__all__ = ["JSONReader", "classify_decode_error", "find_unknown_key"]
