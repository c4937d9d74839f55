"""rehook entry point. Wires everything together and serves webhooks."""

from __future__ import annotations

import asyncio
import signal
import sys

import click

from rehook import __version__
from rehook.components import build_registry
from rehook.config import Settings, apply_overrides, load_settings
from rehook.dispatch.dispatcher import Dispatcher
from rehook.github.client import client_factory
from rehook.hooks.store import HookStore
from rehook.server.admin import AdminServer
from rehook.server.webhooks import WebhookServer
from rehook.storage.engine import Store
from rehook.utils.logging import get_logger, setup_logging

log = get_logger(__name__)


class Rehook:
    """Main application orchestrator.

    Construction order matters: the component registry is built and frozen
    before either listener starts accepting requests.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

        self.store = Store(settings.get_db_path(), timeout=settings.storage.timeout)
        self.registry = build_registry(client_factory(settings.github))
        self.hooks = HookStore(self.store, self.registry)
        self.dispatcher = Dispatcher(self.store, self.hooks, self.registry)

        self.webhooks = WebhookServer(settings.server, self.dispatcher)
        self.admin = AdminServer(settings.server, self.hooks, self.registry)

    async def start(self) -> None:
        log.info(
            "rehook_starting",
            version=__version__,
            db=str(self.store.path),
            components=self.registry.names(),
        )
        await self.store.start()
        await self.hooks.init()
        await self.webhooks.start()
        await self.admin.start()
        log.info("rehook_ready")

    async def stop(self) -> None:
        log.info("rehook_stopping")
        await self.admin.stop()
        await self.webhooks.stop()
        await self.store.stop()
        log.info("rehook_stopped")


async def run(settings: Settings) -> None:
    app = Rehook(settings)

    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        log.info("shutdown_signal")
        stop_event.set()

    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, _signal_handler)

    await app.start()

    try:
        if sys.platform == "win32":
            while not stop_event.is_set():
                await asyncio.sleep(1)
        else:
            await stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        await app.stop()


@click.command()
@click.option("--config", "config_path", default=None, help="Path to config YAML file")
@click.option("--http", default=None, help="Public listen address for incoming webhooks, e.g. :9000")
@click.option("--admin", default=None, help="Private listen address for the admin API, e.g. :9001")
@click.option("--db", default=None, help="Database file to use")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.version_option(__version__, prog_name="rehook")
def cli(
    config_path: str | None,
    http: str | None,
    admin: str | None,
    db: str | None,
    log_level: str | None,
) -> None:
    """Receive webhooks and run them through configured components."""
    settings = load_settings(config_path)
    try:
        apply_overrides(settings, http=http, admin=admin, db=db, log_level=log_level)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e
    setup_logging(level=settings.log_level, json_output=settings.log_json)
    asyncio.run(run(settings))


if __name__ == "__main__":
    cli()
