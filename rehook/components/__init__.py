"""Pluggable webhook components."""

from __future__ import annotations

from rehook.components.base import Component, OptionsComponent
from rehook.components.registry import ComponentRegistry
from rehook.components.review_request import GitHubReviewRequest
from rehook.components.signed_off import GitHubSignedOffChecker
from rehook.components.validator import GitHubValidator
from rehook.github.client import ClientFactory

__all__ = [
    "Component",
    "ComponentRegistry",
    "GitHubReviewRequest",
    "GitHubSignedOffChecker",
    "GitHubValidator",
    "OptionsComponent",
    "build_registry",
]


def build_registry(api: ClientFactory) -> ComponentRegistry:
    """Register the built-in components and freeze the registry."""
    registry = ComponentRegistry()
    for component in (
        GitHubValidator(),
        GitHubSignedOffChecker(api),
        GitHubReviewRequest(api),
    ):
        registry.register(component.type_name, component)
    registry.freeze()
    return registry
