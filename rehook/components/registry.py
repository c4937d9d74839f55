"""Component registry.

Maps component type names to prototype instances. The registry is built and
frozen during startup, before any delivery is served, and is read-only from
then on.
"""

from __future__ import annotations

from rehook.components.base import Component
from rehook.errors import UnknownComponentError


class ComponentRegistry:
    """Registry of component prototypes.

    Example:
        registry = ComponentRegistry()
        registry.register("github-review-request", GitHubReviewRequest(api))
        registry.freeze()
        prototype = registry.lookup("github-review-request")
    """

    def __init__(self) -> None:
        self._components: dict[str, Component] = {}
        self._frozen = False

    def register(self, type_name: str, prototype: Component) -> None:
        """Register a prototype under a type name.

        Raises:
            RuntimeError: If the registry is frozen
            ValueError: If the type name is already registered
        """
        if self._frozen:
            raise RuntimeError(
                f"Cannot register '{type_name}': the component registry is frozen."
            )
        if type_name in self._components:
            raise ValueError(f"Component type '{type_name}' is already registered.")
        self._components[type_name] = prototype

    def freeze(self) -> None:
        self._frozen = True

    def lookup(self, type_name: str) -> Component:
        """Return the prototype for a type name.

        Raises:
            UnknownComponentError: If the type is not registered
        """
        try:
            return self._components[type_name]
        except KeyError:
            raise UnknownComponentError(type_name) from None

    def names(self) -> list[str]:
        """List all registered type names."""
        return sorted(self._components)
