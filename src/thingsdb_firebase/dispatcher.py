"""
Request dispatcher. Routes a MODULE_REQ package on its `handler` field and
answers it with exactly one response or error package.
"""

import asyncio
import logging
from typing import Any

from pydantic import ValidationError

from thingsdb_firebase.errors import BadDataError, ModuleError
from thingsdb_firebase.messaging import MessagingBridge
from thingsdb_firebase.models.protocol import Ex, Package
from thingsdb_firebase.models.request import (
    SEND_MESSAGE,
    SEND_MULTICAST_MESSAGE,
    HandlerSelector,
    MissingHandler,
    MulticastSend,
    MulticastSendRequest,
    Request,
    SendRequest,
    SingleSend,
    UnknownHandler,
)
from thingsdb_firebase.transport.codec import unpack_body
from thingsdb_firebase.transport.stdio import StdioTransport

logger = logging.getLogger(__name__)

UNPACK_FAILED = "Failed to unpack Firebase request"


def parse_request(data: bytes) -> Request:
    """Decode a request body once into one of the request variants."""
    try:
        body = unpack_body(data)
        if not isinstance(body, dict):
            raise BadDataError(UNPACK_FAILED)
        selector = HandlerSelector.model_validate(body)
    except (BadDataError, ValidationError):
        raise BadDataError(UNPACK_FAILED)

    if selector.handler is None:
        return MissingHandler()

    try:
        if selector.handler == SEND_MESSAGE:
            return SingleSend(request=SendRequest.model_validate(body))
        if selector.handler == SEND_MULTICAST_MESSAGE:
            return MulticastSend(request=MulticastSendRequest.model_validate(body))
    except ValidationError as e:
        raise BadDataError(f"{UNPACK_FAILED} ({_describe(e)})")

    return UnknownHandler(name=selector.handler)


def _describe(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "request"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class Dispatcher:
    def __init__(self, transport: StdioTransport, bridge: MessagingBridge):
        self._transport = transport
        self._bridge = bridge

    async def handle(self, pkg: Package) -> None:
        """Answer `pkg` with one response or error package.

        Only TransportError (raised by the writer) escapes.
        """
        try:
            result = await self._process(pkg.data)
        except ModuleError as e:
            self._transport.write_ex(pkg.pid, e.code, str(e))
            return
        except Exception as e:
            logger.exception(f"Unexpected error while handling request {pkg.pid}")
            self._transport.write_ex(pkg.pid, Ex.INTERNAL, f"Unexpected error ({e})")
            return
        self._transport.write_response(pkg.pid, result)

    async def _process(self, data: bytes) -> Any:
        req = parse_request(data)
        if isinstance(req, MissingHandler):
            raise BadDataError("Missing handler")
        if isinstance(req, SingleSend):
            return await asyncio.to_thread(self._bridge.send_message, req.request)
        if isinstance(req, MulticastSend):
            return await asyncio.to_thread(self._bridge.send_multicast_message, req.request)
        raise BadDataError(f"Unknown handler: {req.name}")
