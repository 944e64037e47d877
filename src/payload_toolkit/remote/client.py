"""Outbound JSON notifications to other services."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ..api.responses import JSON_MEDIA_TYPE, JSONResponder
from ..ingest.ingest_errors import RemotePushError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


@dataclass(slots=True, frozen=True)
class RemoteResponse:
    """Status and raw body returned by the remote endpoint."""

    status_code: int
    body: bytes

    def json(self) -> Any:
        return json.loads(self.body)


async def push_json_to_remote(
    uri: str,
    data: Any,
    client: httpx.AsyncClient | None = None,
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> RemoteResponse:
    """POST ``data`` as JSON to ``uri``.

    Pass ``client`` to control the transport (tests use
    :class:`httpx.MockTransport`). Non-2xx statuses are returned, not raised;
    only transport failures raise :class:`RemotePushError`.
    """

    payload = JSONResponder().encode(data)
    headers = {"Content-Type": JSON_MEDIA_TYPE}
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout_seconds) as owned:
                response = await owned.post(uri, content=payload, headers=headers)
        else:
            response = await client.post(uri, content=payload, headers=headers)
    except httpx.HTTPError as exc:
        logger.warning("remote.push.failed", extra={"uri": uri, "error": str(exc)})
        raise RemotePushError(f"unable to reach {uri}: {exc}") from exc

    logger.info(
        "remote.push.completed",
        extra={"uri": uri, "status_code": response.status_code},
    )
    return RemoteResponse(status_code=response.status_code, body=response.content)


__all__ = ["RemoteResponse", "push_json_to_remote"]
