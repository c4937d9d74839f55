"""Base component interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from rehook.errors import ConfigurationError
from rehook.models import Delivery, Hook, ProcessResult
from rehook.storage.namespace import Namespace


def option_key(hook: Hook, option: str) -> str:
    return f"{hook.id}-{option}"


class Component(ABC):
    """A pluggable processing unit attached to hooks.

    One instance (the prototype) serves every hook the type is attached to,
    concurrently. Implementations keep no per-hook state on ``self``: all of
    it lives in the Namespace passed to each call.
    """

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def template(self) -> str:
        """Identifier of the admin form used to configure this component."""
        ...

    @abstractmethod
    async def params(self, hook: Hook, ns: Namespace) -> dict[str, str]: ...

    @abstractmethod
    async def init(self, hook: Hook, params: dict[str, str], ns: Namespace) -> None: ...

    @abstractmethod
    async def process(self, hook: Hook, delivery: Delivery, ns: Namespace) -> ProcessResult: ...


class OptionsComponent(Component):
    """Component configured by a fixed set of string options.

    Options are stored as ``<hookID>-<option>`` keys in the binding namespace.
    Sub-namespaces named in ``namespaces`` are provisioned by ``init``.
    """

    type_name: str = ""
    options: tuple[str, ...] = ()
    required: tuple[str, ...] = ()
    namespaces: tuple[str, ...] = ()

    async def params(self, hook: Hook, ns: Namespace) -> dict[str, str]:
        result: dict[str, str] = {}
        for option in self.options:
            result[option] = await ns.get_str(option_key(hook, option)) or ""
        return result

    async def init(self, hook: Hook, params: dict[str, str], ns: Namespace) -> None:
        for option in self.required:
            if option not in params:
                raise ConfigurationError(f"{option} is required")
        for option in self.options:
            if option in params:
                await ns.put(option_key(hook, option), params[option])
        for child in self.namespaces:
            await ns.ensure_child(child)

    async def option(self, hook: Hook, ns: Namespace, option: str) -> str:
        """Read a required option at processing time."""
        value = await ns.get_str(option_key(hook, option))
        if value is None:
            raise ConfigurationError(f"{self.name} not initialized: {option} missing")
        return value

    def result(self, status: str = "processed", detail: str = "") -> ProcessResult:
        return ProcessResult(component=self.type_name, status=status, detail=detail)
