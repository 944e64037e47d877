"""HTTP-facing helpers: the response envelope and the error handler.

Routers live in :mod:`payload_toolkit.api.routes` and are mounted by
:func:`payload_toolkit.main.create_app`.
"""

from .errors import install_error_handlers
from .responses import JSON_MEDIA_TYPE, JSONEnvelope, JSONResponder

__all__ = ["JSON_MEDIA_TYPE", "JSONEnvelope", "JSONResponder", "install_error_handlers"]
