"""Typed records shared by the hook store, components and dispatcher."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any
from uuid import uuid4

from rehook.errors import StorageError


def new_hook_id() -> str:
    return uuid4().hex[:12]


@dataclass
class Hook:
    id: str = ""
    name: str = ""
    # Attached component types, in attachment (= execution) order
    components: list[str] = field(default_factory=list)

    def to_json(self) -> bytes:
        return json.dumps(asdict(self), sort_keys=True).encode("utf-8")

    @classmethod
    def from_json(cls, raw: bytes) -> Hook:
        try:
            data = json.loads(raw)
            return cls(
                id=str(data["id"]),
                name=str(data.get("name", "")),
                components=[str(c) for c in data.get("components", [])],
            )
        except (ValueError, KeyError, TypeError) as e:
            raise StorageError(f"corrupt hook record: {e}") from e


@dataclass
class Delivery:
    """One inbound request addressed to a hook."""

    hook_id: str
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return default

    def json(self) -> Any:
        return json.loads(self.body)


@dataclass
class ProcessResult:
    """Successful outcome of one component for one delivery."""

    component: str
    status: str = "processed"
    detail: str = ""

    @property
    def duplicate(self) -> bool:
        return self.status == "duplicate"

    def to_dict(self) -> dict[str, str]:
        return {"component": self.component, "status": self.status, "detail": self.detail}
