"""Tests for the component registry."""

import pytest

from rehook.components import (
    ComponentRegistry,
    GitHubReviewRequest,
    GitHubSignedOffChecker,
    GitHubValidator,
    build_registry,
)
from rehook.errors import UnknownComponentError


class TestComponentRegistry:
    def test_register_and_lookup(self, github):
        registry = ComponentRegistry()
        prototype = GitHubReviewRequest(github.factory)
        registry.register("github-review-request", prototype)
        assert registry.lookup("github-review-request") is prototype

    def test_unknown_type(self):
        registry = ComponentRegistry()
        with pytest.raises(UnknownComponentError) as exc:
            registry.lookup("nope")
        assert exc.value.type_name == "nope"

    def test_duplicate_registration_rejected(self):
        registry = ComponentRegistry()
        registry.register("github-validator", GitHubValidator())
        with pytest.raises(ValueError):
            registry.register("github-validator", GitHubValidator())

    def test_frozen_registry_rejects_registration(self):
        registry = ComponentRegistry()
        registry.freeze()
        with pytest.raises(RuntimeError):
            registry.register("github-validator", GitHubValidator())

    def test_build_registry(self, github):
        registry = build_registry(github.factory)
        assert registry.names() == [
            "github-review-request",
            "github-signed-off-checker",
            "github-validator",
        ]
        assert isinstance(registry.lookup("github-signed-off-checker"), GitHubSignedOffChecker)

    def test_prototype_labels(self, registry):
        checker = registry.lookup("github-signed-off-checker")
        assert checker.name == "Github Signed Off Checker"
        assert checker.template == "github-signed-off-checker"
        assert registry.lookup("github-review-request").name == "Github Review Request"

    def test_built_registry_is_frozen(self, github):
        registry = build_registry(github.factory)
        with pytest.raises(RuntimeError):
            registry.register("extra", GitHubValidator())
