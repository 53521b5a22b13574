"""
Tool dispatch for tools/call.

Resolves a tool name against the static catalog and answers it from the
parsed section map. Application failures raise MCPError with transport
status 200; the reply carries the detail in its ``error`` field.
"""

import json
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from common.logging import get_logger
from .jsonrpc import ErrorKind, MCPError
from .tool_catalog import PROFILE_FACETS, TOOL_SECTION_MAP, TOOLS_BY_NAME, ToolKind

logger = get_logger(__name__)


def utc_timestamp() -> str:
    """Current time as ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ToolDispatcher:
    """Answers tools/call requests from a section map."""

    def __init__(self, clock: Optional[Callable[[], str]] = None):
        self._clock = clock or utc_timestamp

    def dispatch(
        self, tool_name: Any, arguments: Dict[str, Any], sections: Mapping[str, str]
    ) -> str:
        """
        Run a tool and return its text payload.

        Args:
            tool_name: Catalog name of the tool
            arguments: Tool arguments; anything but an object counts as empty
            sections: Section map parsed from the daemon document

        Returns:
            Text for the single content item of the tool result

        Raises:
            MCPError: TOOL_NOT_FOUND, INVALID_PARAMS or SECTION_NOT_FOUND
        """
        tool = TOOLS_BY_NAME.get(tool_name) if isinstance(tool_name, str) else None
        if tool is None:
            raise MCPError(ErrorKind.TOOL_NOT_FOUND, f"Tool not found: {tool_name}")

        if not isinstance(arguments, dict):
            arguments = {}

        if tool.kind is ToolKind.AGGREGATE:
            return self._get_all(sections)
        if tool.kind is ToolKind.DYNAMIC:
            return self._get_section(arguments, sections)
        return self._get_fixed_section(tool_name, sections)

    def _get_all(self, sections: Mapping[str, str]) -> str:
        all_data: Dict[str, str] = {
            field: sections.get(key) or "" for field, key in PROFILE_FACETS.items()
        }
        all_data["last_updated"] = self._clock()
        return json.dumps(all_data)

    def _get_section(self, arguments: Dict[str, Any], sections: Mapping[str, str]) -> str:
        requested = arguments.get("section")
        if requested is None or requested == "":
            raise MCPError(ErrorKind.INVALID_PARAMS, "Missing required parameter: section")
        if not isinstance(requested, str):
            raise MCPError(ErrorKind.INVALID_PARAMS, "Invalid params: section must be a string")

        section_name = requested.upper()
        if not sections.get(section_name):
            # A header with an empty body counts as missing
            logger.info(event="section_not_found", section=section_name)
            raise MCPError(
                ErrorKind.SECTION_NOT_FOUND,
                f"Section not found: {section_name}",
                data={"available_sections": list(sections.keys())},
            )

        return sections[section_name]

    def _get_fixed_section(self, tool_name: str, sections: Mapping[str, str]) -> str:
        section = TOOL_SECTION_MAP.get(tool_name)
        if section is None:
            raise MCPError(ErrorKind.TOOL_NOT_FOUND, f"Tool not found: {tool_name}")

        content = sections.get(section)
        if not content:
            # Placeholder text, not SECTION_NOT_FOUND
            return f"{section} section not available"
        return content
