"""Provider-neutral completion types shared by every vendor client."""
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CompletionMessage:
    """One role-tagged message. name is the tool correlation id (only meaningful for role=tool)."""

    role: str
    content: str
    name: str | None = None


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description}
