"""Service-to-service JSON push."""

from .client import RemoteResponse, push_json_to_remote

__all__ = ["RemoteResponse", "push_json_to_remote"]
