"""
Static tool catalog for the daemon MCP endpoint.

Each tool is a data row: its public descriptor plus a handler tag and, for the
fixed getters, the section key it reads. The catalog is built once at import
and never mutated.
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ToolKind(str, Enum):
    """Handler tag the dispatcher switches on."""

    SECTION = "section"
    AGGREGATE = "aggregate"
    DYNAMIC = "dynamic"


class ToolDescriptor(BaseModel):
    """Immutable MCP tool definition."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    inputSchema: Dict[str, Any]
    kind: ToolKind = Field(default=ToolKind.SECTION, exclude=True)
    section: Optional[str] = Field(default=None, exclude=True)

    def to_mcp(self) -> Dict[str, Any]:
        """Public descriptor as listed by tools/list."""
        return self.model_dump(mode="json")


def _no_arguments() -> Dict[str, Any]:
    return {"type": "object", "properties": {}, "required": []}


def _section_tool(name: str, section: str, description: str) -> ToolDescriptor:
    return ToolDescriptor(
        name=name,
        description=description,
        inputSchema=_no_arguments(),
        kind=ToolKind.SECTION,
        section=section,
    )


# Facet field name in get_all -> section key in the document
PROFILE_FACETS: "MappingProxyType[str, str]" = MappingProxyType(
    {
        "about": "ABOUT",
        "mission": "MISSION",
        "telos": "TELOS",
        "current_location": "CURRENT_LOCATION",
        "preferences": "PREFERENCES",
        "favorite_books": "FAVORITE_BOOKS",
        "favorite_movies": "FAVORITE_MOVIES",
        "favorite_podcasts": "FAVORITE_PODCASTS",
        "daily_routine": "DAILY_ROUTINE",
        "predictions": "PREDICTIONS",
        "projects": "PROJECTS",
    }
)

TOOLS: Tuple[ToolDescriptor, ...] = (
    _section_tool("get_about", "ABOUT", "Get basic information about the person"),
    _section_tool("get_mission", "MISSION", "Get the person's mission statement"),
    _section_tool(
        "get_telos", "TELOS", "Get the complete TELOS framework (Problems, Missions, Goals)"
    ),
    _section_tool("get_current_location", "CURRENT_LOCATION", "Get the person's current location"),
    _section_tool(
        "get_preferences", "PREFERENCES", "Get work style, tools, and general preferences"
    ),
    _section_tool("get_favorite_books", "FAVORITE_BOOKS", "Get list of recommended books"),
    _section_tool("get_favorite_movies", "FAVORITE_MOVIES", "Get list of recommended movies"),
    _section_tool(
        "get_favorite_podcasts", "FAVORITE_PODCASTS", "Get list of recommended podcasts"
    ),
    _section_tool("get_daily_routine", "DAILY_ROUTINE", "Get typical daily schedule and habits"),
    _section_tool("get_predictions", "PREDICTIONS", "Get future predictions with confidence levels"),
    _section_tool("get_projects", "PROJECTS", "Get list of active projects"),
    ToolDescriptor(
        name="get_all",
        description="Get all daemon data in one call",
        inputSchema=_no_arguments(),
        kind=ToolKind.AGGREGATE,
    ),
    ToolDescriptor(
        name="get_section",
        description="Get any section by name dynamically",
        inputSchema={
            "type": "object",
            "properties": {
                "section": {
                    "type": "string",
                    "description": "The section name to retrieve (e.g., 'ABOUT', 'MISSION', 'TELOS')",
                },
            },
            "required": ["section"],
        },
        kind=ToolKind.DYNAMIC,
    ),
)

TOOLS_BY_NAME: "MappingProxyType[str, ToolDescriptor]" = MappingProxyType(
    {tool.name: tool for tool in TOOLS}
)

# Fixed getter name -> section key
TOOL_SECTION_MAP: "MappingProxyType[str, str]" = MappingProxyType(
    {tool.name: tool.section for tool in TOOLS if tool.kind is ToolKind.SECTION}
)


def list_tool_descriptors() -> List[Dict[str, Any]]:
    """All public descriptors in catalog order."""
    return [tool.to_mcp() for tool in TOOLS]
