"""GitHub event parsing and API client."""

from rehook.github.client import ClientFactory, GitHubAPI, GitHubClient, client_factory
from rehook.github.models import Commit, PullRequestRef, parse_pull_request_event

__all__ = [
    "ClientFactory",
    "Commit",
    "GitHubAPI",
    "GitHubClient",
    "PullRequestRef",
    "client_factory",
    "parse_pull_request_event",
]
