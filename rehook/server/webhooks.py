"""Public webhook endpoint using aiohttp."""

from __future__ import annotations

import platform
import time
from datetime import timedelta

from aiohttp import web

from rehook import __version__
from rehook.config import ServerConfig
from rehook.dispatch.dispatcher import DispatchOutcome, Dispatcher
from rehook.errors import (
    DuplicateDeliveryError,
    ExternalAPIError,
    HookNotFoundError,
    PayloadError,
)
from rehook.models import Delivery
from rehook.server.base import HTTPServer
from rehook.utils.logging import get_logger

log = get_logger(__name__)


def status_for(outcome: DispatchOutcome) -> int:
    """HTTP status for a dispatch outcome. Any abort maps to a non-2xx code."""
    if outcome.committed:
        return 200
    error = outcome.error
    if isinstance(error, HookNotFoundError):
        return 404
    if isinstance(error, (PayloadError, DuplicateDeliveryError)):
        return 400
    if isinstance(error, ExternalAPIError):
        return 502
    return 500


class WebhookServer(HTTPServer):
    """Receives deliveries at ``/h/{id}`` and hands them to the dispatcher."""

    def __init__(self, config: ServerConfig, dispatcher: Dispatcher) -> None:
        super().__init__(config.bind, config.port)
        self._dispatcher = dispatcher
        self._started = time.monotonic()

    @property
    def server_name(self) -> str:
        return "webhook"

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/_status", self._handle_status)
        app.router.add_get("/h/{id}", self._handle_delivery)
        app.router.add_post("/h/{id}", self._handle_delivery)
        return app

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def _handle_delivery(self, request: web.Request) -> web.Response:
        delivery = Delivery(
            hook_id=request.match_info["id"],
            method=request.method,
            headers=dict(request.headers),
            body=await request.read(),
        )

        outcome = await self._dispatcher.dispatch(delivery)
        status = status_for(outcome)

        log.info(
            "delivery_handled",
            hook_id=delivery.hook_id,
            method=delivery.method,
            state=outcome.state.value,
            status=status,
        )
        return web.json_response(outcome.to_dict(), status=status)

    async def _handle_status(self, request: web.Request) -> web.Response:
        uptime = timedelta(seconds=int(time.monotonic() - self._started))
        lines = [
            "OK",
            f"rehook:\t{__version__}",
            f"python:\t{platform.python_version()}",
            f"uptime:\t{uptime}",
        ]
        return web.Response(text="\n".join(lines) + "\n")
