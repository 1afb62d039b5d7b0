"""GraphQL transport for the scene service.

Queries and mutations are POSTed as JSON with ``httpx``. Subscriptions use a
WebSocket speaking the ``graphql-transport-ws`` protocol, opened with the
``websockets`` client. Every failure surfaces as
:class:`~pyscenedit.errors.RemoteOperationError`.
"""

from __future__ import annotations

import itertools
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

import httpx
import websockets
from websockets.asyncio.client import connect as ws_connect

from .errors import RemoteOperationError
from .settings import Settings

logger = logging.getLogger(__name__)

GRAPHQL_WS_SUBPROTOCOL = "graphql-transport-ws"


def _error_message(errors: Any) -> str:
    if isinstance(errors, list) and errors:
        messages = [e.get("message", str(e)) if isinstance(e, dict) else str(e) for e in errors]
        return "; ".join(messages)
    return str(errors)


class GraphQLTransport:
    """Sends GraphQL documents to the scene service.

    One transport is shared by a whole editor session. ``http`` may be given
    to reuse an existing ``httpx.AsyncClient``.
    """

    def __init__(self, settings: Settings, http: Optional[httpx.AsyncClient] = None) -> None:
        self.settings = settings
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            timeout=settings.http_timeout,
            headers={"User-Agent": settings.USER_AGENT},
        )
        self._ids = itertools.count(1)

    async def execute(self, document: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a query or mutation and return its ``data`` object."""
        body: Dict[str, Any] = {"query": document}
        if variables:
            body["variables"] = variables
        try:
            resp = await self.http.post(self.settings.endpoint, json=body)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPStatusError as e:
            raise RemoteOperationError(f"HTTP {e.response.status_code} from {self.settings.endpoint}") from e
        except httpx.HTTPError as e:
            raise RemoteOperationError(f"Network error: {e}") from e
        except ValueError as e:
            raise RemoteOperationError("Malformed response from scene service") from e

        if not isinstance(payload, dict):
            raise RemoteOperationError("Malformed response from scene service")
        if payload.get("errors"):
            raise RemoteOperationError(_error_message(payload["errors"]))
        data = payload.get("data")
        if data is None:
            raise RemoteOperationError("Scene service returned no data")
        if not isinstance(data, dict):
            raise RemoteOperationError("Malformed response from scene service")
        return data

    async def subscribe(self, document: str,
                        variables: Optional[Dict[str, Any]] = None) -> AsyncIterator[Dict[str, Any]]:
        """Yield the ``data`` object of every event pushed for ``document``."""
        sub_id = str(next(self._ids))
        payload: Dict[str, Any] = {"query": document}
        if variables:
            payload["variables"] = variables
        url = self.settings.subscription_url
        try:
            async with ws_connect(url, subprotocols=[GRAPHQL_WS_SUBPROTOCOL],
                                  user_agent_header=self.settings.USER_AGENT) as ws:
                await ws.send(json.dumps({"type": "connection_init", "payload": {}}))
                ack = json.loads(await ws.recv())
                if not isinstance(ack, dict):
                    raise RemoteOperationError("Malformed subscription message")
                if ack.get("type") != "connection_ack":
                    raise RemoteOperationError(f"Subscription handshake refused: {ack.get('type')}")
                await ws.send(json.dumps({"id": sub_id, "type": "subscribe", "payload": payload}))
                logger.info(f"Subscribed ({sub_id}) on {url}")

                async for raw in ws:
                    msg = json.loads(raw)
                    if not isinstance(msg, dict):
                        raise RemoteOperationError("Malformed subscription message")
                    mtype = msg.get("type")
                    if mtype == "ping":
                        await ws.send(json.dumps({"type": "pong"}))
                    elif mtype == "next" and msg.get("id") == sub_id:
                        result = msg.get("payload") or {}
                        if not isinstance(result, dict):
                            raise RemoteOperationError("Malformed subscription message")
                        if result.get("errors"):
                            raise RemoteOperationError(_error_message(result["errors"]))
                        data = result.get("data") or {}
                        if not isinstance(data, dict):
                            raise RemoteOperationError("Malformed subscription message")
                        yield data
                    elif mtype == "error" and msg.get("id") == sub_id:
                        raise RemoteOperationError(_error_message(msg.get("payload")))
                    elif mtype == "complete" and msg.get("id") == sub_id:
                        logger.info(f"Subscription {sub_id} completed by server")
                        return
        except websockets.exceptions.WebSocketException as e:
            raise RemoteOperationError(f"Subscription connection lost: {e}") from e
        except OSError as e:
            raise RemoteOperationError(f"Network error: {e}") from e
        except ValueError as e:
            raise RemoteOperationError("Malformed subscription message") from e

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()
