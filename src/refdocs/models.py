"""Core refdocs data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

CATEGORIES = (
    "actor",
    "blueprint",
    "material",
    "animation",
    "input",
    "realtimemesh",
    "gameplay",
    "rendering",
    "networking",
)
DEFAULT_CATEGORY = "general"


@dataclass(slots=True)
class DocRecord:
    """One indexed reference document."""

    id: str
    title: str
    category: str
    source: str
    content: str
    entities: List[str] = field(default_factory=list)
    url: str = ""
    path: str = ""


@dataclass(slots=True)
class ClassReference:
    """Structured class summary derived from a document's markdown."""

    name: str
    parent: str = ""
    module: str = ""
    description: str = ""
    properties: List[str] = field(default_factory=list)
    functions: List[str] = field(default_factory=list)
    source: str = ""
    url: str = ""

    def as_dict(self) -> Dict[str, Any]:
        """Render the payload, leaving out optional fields that are empty."""
        payload: Dict[str, Any] = {"name": self.name}
        if self.parent:
            payload["parent"] = self.parent
        if self.module:
            payload["module"] = self.module
        payload["description"] = self.description
        if self.properties:
            payload["properties"] = list(self.properties)
        if self.functions:
            payload["functions"] = list(self.functions)
        if self.source:
            payload["source"] = self.source
        if self.url:
            payload["url"] = self.url
        return payload
