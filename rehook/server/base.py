"""Shared aiohttp listener lifecycle."""

from __future__ import annotations

from abc import ABC, abstractmethod

from aiohttp import web

from rehook.utils.logging import get_logger

log = get_logger(__name__)


class HTTPServer(ABC):
    def __init__(self, bind: str, port: int) -> None:
        self._bind = bind
        self._port = port
        self._runner: web.AppRunner | None = None

    @property
    @abstractmethod
    def server_name(self) -> str: ...

    @abstractmethod
    def build_app(self) -> web.Application: ...

    async def start(self) -> None:
        app = self.build_app()
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._bind, self._port)
        await site.start()
        log.info(f"{self.server_name}_server_started", bind=self._bind, port=self._port)

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
        log.info(f"{self.server_name}_server_stopped")
