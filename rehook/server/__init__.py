"""HTTP listeners."""

from rehook.server.admin import AdminServer
from rehook.server.webhooks import WebhookServer, status_for

__all__ = [
    "AdminServer",
    "WebhookServer",
    "status_for",
]
