"""Status marker wire format.

Markers are inline tags appended to the accumulated response when a phase
starts, e.g.::

    <workflow-status agent="Planning Agent" state="in-progress">Thinking...</workflow-status>

Progress UIs parse them; the workflow core only writes them.
"""

import re
from typing import NamedTuple

STATUS_TAG = "workflow-status"
STATE_IN_PROGRESS = "in-progress"

PLANNING_AGENT = "Planning Agent"
ENHANCE_AGENT = "Enhance Agent"
BUILDING_AGENT = "Building Agent"
BACKEND_BUILDER = "Backend Builder"
FRONTEND_BUILDER = "Frontend Builder"

_MARKER_RE = re.compile(
    rf'<{STATUS_TAG} agent="(?P<agent>[^"]*)" state="(?P<state>[^"]*)">'
    rf"(?P<message>.*?)</{STATUS_TAG}>",
    re.DOTALL,
)
_ATTEMPT_RE = re.compile(r"Correcting Plan \(Attempt (\d+)\)")


class StatusMarker(NamedTuple):
    """Parsed status marker."""

    agent: str
    state: str
    message: str


def format_status_marker(agent: str, message: str, state: str = STATE_IN_PROGRESS) -> str:
    """Render a marker framed by blank lines so it never fuses with model output."""
    return f'\n\n<{STATUS_TAG} agent="{agent}" state="{state}">{message}</{STATUS_TAG}>\n\n'


def correction_attempt_message(attempt: int) -> str:
    """Status message for the N-th corrective planning pass (1-based)."""
    return f"Correcting Plan (Attempt {attempt})..."


def read_status_markers(text: str) -> list[StatusMarker]:
    """All markers in text, in order of appearance."""
    return [
        StatusMarker(m.group("agent"), m.group("state"), m.group("message"))
        for m in _MARKER_RE.finditer(text)
    ]


def correction_attempts(text: str) -> list[int]:
    """Attempt numbers of every correction marker in text, in order."""
    return [
        int(match.group(1))
        for marker in read_status_markers(text)
        if (match := _ATTEMPT_RE.search(marker.message))
    ]
