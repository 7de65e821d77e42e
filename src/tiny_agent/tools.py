"""Tool metadata for the system prompt.

Tools are only described to the model here; calling them is up to the host
application.
"""

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable


@dataclass
class ToolParameter:
    """A parameter for a tool."""
    name: str
    type: str
    description: str = ""
    required: bool = True
    default: Any = None


@dataclass
class Tool:
    """Definition of a tool the model may ask for."""
    name: str
    description: str
    parameters: list[ToolParameter] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for param in data["parameters"]:
            if param["default"] is None:
                del param["default"]
        return data


def format_tool_catalog(tools: str | Tool | dict | Iterable[Tool | dict] | None) -> str:
    """Serialize tool metadata to the JSON text placed in the Tools section.

    Strings are passed through unchanged so callers can supply their own
    JSON or prose; plain dicts are serialized as given. None or an empty
    catalog gives "", which the Tools section ignores.
    """
    if tools is None:
        return ""
    if isinstance(tools, str):
        return tools
    if isinstance(tools, (Tool, dict)):
        tools = [tools]
    catalog = [t.to_dict() if isinstance(t, Tool) else t for t in tools]
    if not catalog:
        return ""
    return json.dumps(catalog, indent=2, ensure_ascii=False)
