"""
Section parser for the daemon document.

The document is a flat sequence of ``[SECTION_NAME]`` header lines, each
followed by free text up to the next header. Parsing is total: malformed
input yields an empty map or empty bodies, never an error.
"""

import re
from typing import Dict, List, Optional

SECTION_HEADER = re.compile(r"\[([A-Z_]+)\]")


def parse_sections(content: str) -> Dict[str, str]:
    """
    Split a daemon document into ``{SECTION_KEY: body}``.

    Lines before the first header are discarded. Bodies are joined with
    newlines and trimmed. A repeated header overwrites the earlier body but
    keeps its original position.
    """
    sections: Dict[str, str] = {}
    current_section: Optional[str] = None
    current_lines: List[str] = []

    for line in content.split("\n"):
        # CRLF documents leave a trailing \r on header lines
        header = SECTION_HEADER.fullmatch(line.rstrip("\r"))
        if header:
            if current_section is not None:
                sections[current_section] = "\n".join(current_lines).strip()
            current_section = header.group(1)
            current_lines = []
        elif current_section is not None:
            current_lines.append(line)

    if current_section is not None:
        sections[current_section] = "\n".join(current_lines).strip()

    return sections
