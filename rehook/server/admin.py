"""Private JSON admin API for managing hooks and their components."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from aiohttp import web
from pydantic import BaseModel, Field, ValidationError

from rehook.components.registry import ComponentRegistry
from rehook.config import ServerConfig
from rehook.errors import (
    ConfigurationError,
    HookNotFoundError,
    RehookError,
    UnknownComponentError,
)
from rehook.hooks.store import HookStore
from rehook.models import Hook
from rehook.server.base import HTTPServer
from rehook.utils.logging import get_logger

log = get_logger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


class HookBody(BaseModel):
    id: str = ""
    name: str = ""


class AttachBody(BaseModel):
    type: str
    config: dict[str, str] = Field(default_factory=dict)


class ConfigBody(BaseModel):
    config: dict[str, str] = Field(default_factory=dict)


def _hook_dict(hook: Hook) -> dict[str, Any]:
    return {"id": hook.id, "name": hook.name, "components": hook.components}


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except HookNotFoundError as e:
        return _error(404, str(e))
    except (ConfigurationError, UnknownComponentError) as e:
        return _error(400, str(e))
    except ValidationError as e:
        return _error(400, f"invalid request body: {e.error_count()} error(s)")
    except RehookError as e:
        log.exception("admin_request_failed", path=request.path)
        return _error(500, str(e))


async def _body(request: web.Request, model: type[BaseModel]) -> Any:
    try:
        data = await request.json()
    except ValueError:
        raise web.HTTPBadRequest(text="Invalid JSON") from None
    return model.model_validate(data)


class AdminServer(HTTPServer):
    """CRUD over hooks and component bindings, delegating to the HookStore."""

    def __init__(
        self, config: ServerConfig, hooks: HookStore, registry: ComponentRegistry
    ) -> None:
        super().__init__(config.admin_bind, config.admin_port)
        self._hooks = hooks
        self._registry = registry

    @property
    def server_name(self) -> str:
        return "admin"

    def build_app(self) -> web.Application:
        app = web.Application(middlewares=[error_middleware])
        app.router.add_get("/hooks", self._list_hooks)
        app.router.add_post("/hooks", self._create_hook)
        app.router.add_get("/hooks/{id}", self._get_hook)
        app.router.add_put("/hooks/{id}", self._update_hook)
        app.router.add_get("/components", self._list_component_types)
        app.router.add_post("/hooks/{id}/components", self._attach_component)
        app.router.add_get("/hooks/{id}/components/{type}", self._get_component)
        app.router.add_put("/hooks/{id}/components/{type}", self._update_component)
        return app

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def _list_hooks(self, request: web.Request) -> web.Response:
        hooks = await self._hooks.list_hooks()
        return web.json_response([_hook_dict(h) for h in hooks])

    async def _create_hook(self, request: web.Request) -> web.Response:
        body: HookBody = await _body(request, HookBody)
        hook = await self._hooks.create(Hook(id=body.id, name=body.name))
        return web.json_response(_hook_dict(hook), status=201)

    async def _get_hook(self, request: web.Request) -> web.Response:
        hook = await self._hooks.get(request.match_info["id"])
        data = _hook_dict(hook)
        data["stats"] = await self._hooks.stats(hook.id)
        return web.json_response(data)

    async def _update_hook(self, request: web.Request) -> web.Response:
        body: HookBody = await _body(request, HookBody)
        hook = await self._hooks.update(Hook(id=request.match_info["id"], name=body.name))
        return web.json_response(_hook_dict(hook))

    # ------------------------------------------------------------------
    # Components
    # ------------------------------------------------------------------

    async def _list_component_types(self, request: web.Request) -> web.Response:
        types = []
        for type_name in self._registry.names():
            prototype = self._registry.lookup(type_name)
            types.append({
                "type": type_name,
                "name": prototype.name,
                "template": prototype.template,
            })
        return web.json_response(types)

    async def _attach_component(self, request: web.Request) -> web.Response:
        body: AttachBody = await _body(request, AttachBody)
        hook = await self._hooks.attach_component(
            request.match_info["id"], body.type, body.config
        )
        return web.json_response(_hook_dict(hook), status=201)

    async def _get_component(self, request: web.Request) -> web.Response:
        type_name = request.match_info["type"]
        prototype = self._registry.lookup(type_name)
        params = await self._hooks.component_params(request.match_info["id"], type_name)
        return web.json_response({
            "type": type_name,
            "name": prototype.name,
            "template": prototype.template,
            "params": params,
        })

    async def _update_component(self, request: web.Request) -> web.Response:
        body: ConfigBody = await _body(request, ConfigBody)
        hook_id = request.match_info["id"]
        type_name = request.match_info["type"]
        await self._hooks.update_component(hook_id, type_name, body.config)
        params = await self._hooks.component_params(hook_id, type_name)
        return web.json_response({"type": type_name, "params": params})
