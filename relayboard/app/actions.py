# relayboard/app/actions.py
"""
Declarative host-facing definitions: config fields and the two board actions.

Option schemas follow the host's field vocabulary (number / dropdown /
textinput / text) so an adapter can hand them over unchanged.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

from relayboard.core.errors import UnknownActionError
from relayboard.protocol.commands import INDEX_MAX, INDEX_MIN, PERIOD_MAX_MS, PERIOD_MIN_MS
from relayboard.transport.tcp import DEFAULT_PORT

SET_RELAY_ACTION = "set_relay_single"
SET_OUTPUT_ACTION = "set_output_single"

REGEX_IP = (
    r"^((25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
    r"(25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$"
)

STATE_CHOICES = [
    {"id": "on", "label": "On"},
    {"id": "off", "label": "Off"},
]

INDEX_OPTION = {
    "type": "number",
    "label": "Index",
    "id": "index",
    "min": INDEX_MIN,
    "max": INDEX_MAX,
    "default": 1,
    "step": 1,
    "required": True,
}

STATE_OPTION = {
    "type": "dropdown",
    "label": "Select State",
    "id": "state",
    "default": "on",
    "choices": STATE_CHOICES,
}

PERIOD_OPTION = {
    "type": "number",
    "label": "On time (ms)",
    "id": "period",
    "min": PERIOD_MIN_MS,
    "max": PERIOD_MAX_MS,
    "default": 0,
    "step": 1,
    "required": True,
}

ACTIONS: Dict[str, Dict[str, Any]] = {
    SET_RELAY_ACTION: {
        "label": "Set Relay State",
        "options": [INDEX_OPTION, STATE_OPTION, PERIOD_OPTION],
    },
    SET_OUTPUT_ACTION: {
        "label": "Set Output State",
        "options": [INDEX_OPTION, STATE_OPTION],
    },
}

CONFIG_FIELDS: List[Dict[str, Any]] = [
    {
        "type": "text",
        "id": "info",
        "width": 12,
        "label": "Information",
        "value": (
            "This module controls DSXXX relay boards with raw TCP commands "
            f"on default port {DEFAULT_PORT}."
        ),
    },
    {
        "type": "textinput",
        "id": "host",
        "label": "Target IP",
        "width": 6,
        "regex": REGEX_IP,
    },
    {
        "type": "number",
        "id": "port",
        "label": "Target Port",
        "width": 6,
        "min": 1,
        "max": 65535,
        "default": DEFAULT_PORT,
    },
]


def resolve_options(action_id: str, options: Mapping[str, Any] | None) -> Dict[str, Any]:
    """
    Fill in defaults for missing options and normalise number fields.

    Range checks are left to the Command constructor; this only makes sure
    integral numbers from the host UI (5.0, "5", "5.0") arrive as ints.
    """
    action = ACTIONS.get(action_id)
    if action is None:
        raise UnknownActionError(
            f"Unknown action '{action_id}'.",
            hint=f"Known actions: {sorted(ACTIONS.keys())}",
            details={"action_id": action_id},
        )

    options = options or {}
    resolved: Dict[str, Any] = {}
    for field in action["options"]:
        value = options.get(field["id"], field.get("default"))
        if field["type"] == "number":
            value = _as_int(value)
        resolved[field["id"]] = value
    return resolved


def _as_int(value: Any) -> Any:
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return value
        return int(number) if number.is_integer() else value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
