"""Turn free-form model replies into actuator commands.

Models often wrap their JSON in prose or code fences and sometimes annotate
it with // comments. extract_json_object() finds the candidate object,
parse_command() decodes it leniently and clamps every field.

Typical usage example:
    from lmpilot.control.parser import extract_json_object, parse_command

    candidate = extract_json_object(reply)
    command = parse_command(candidate)
"""

import json
import logging
import math
from typing import Any

from lmpilot.control.actuator import FIELD_RANGES, ActuatorCommand
from lmpilot.core.errors import CommandParseError

logger = logging.getLogger(__name__)

# Accepted in addition to the wire names
FIELD_ALIASES = {"wheel_brakes": "wheelBrakes"}


def extract_json_object(text: str | None) -> str:
    """Return the span from the first '{' to the last '}' inclusive.

    This is a heuristic, not a parser: braces are not balanced, and the
    decoder downstream is the real validator.

    Args:
        text: Raw model reply.

    Returns:
        The candidate JSON object text, or "" when there is none.

    Examples:
        >>> extract_json_object('Sure! {"throttle": 1} Good luck.')
        '{"throttle": 1}'
        >>> extract_json_object("no braces here")
        ''
    """
    if not text or not text.strip():
        return ""

    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end < start:
        return ""
    return text[start : end + 1]


def strip_line_comments(text: str) -> str:
    """Truncate every line at its first // outside a string literal.

    Args:
        text: JSON-ish text.

    Returns:
        Text with line comments removed.

    Examples:
        >>> strip_line_comments('{"url": "http://x"} // note')
        '{"url": "http://x"} '
    """
    return "\n".join(_strip_line(line) for line in text.split("\n"))


def _strip_line(line: str) -> str:
    in_string = False
    escaped = False

    for i, ch in enumerate(line):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "/" and line.startswith("//", i):
            return line[:i]

    return line


def _field_value(data: dict[str, Any], wire_name: str) -> float:
    """Read one numeric field, treating absent or non-numeric values as 0."""
    value = data.get(wire_name)
    if wire_name not in data:
        for alias, target in FIELD_ALIASES.items():
            if target == wire_name and alias in data:
                value = data[alias]
                break

    # bool is an int subclass but never a meaningful actuator value
    if isinstance(value, bool) or not isinstance(value, int | float):
        if value is not None:
            logger.debug("Ignoring non-numeric %s value: %r", wire_name, value)
        return 0.0
    try:
        return float(value)
    except OverflowError:
        return math.copysign(math.inf, value)


def parse_command(json_text: str, strip_comments: bool = True) -> ActuatorCommand:
    """Decode a JSON object into a clamped ActuatorCommand.

    Missing, null and non-numeric fields are 0; unknown keys are ignored;
    out-of-range values are clamped, never rejected.

    Args:
        json_text: JSON object text, e.g. the output of extract_json_object().
        strip_comments: Remove // line comments before decoding.

    Returns:
        The clamped command.

    Raises:
        CommandParseError: If the text is not valid JSON or not an object.

    Examples:
        >>> parse_command('{"aileron": 2.0, "throttle": -0.5}').aileron
        1.0
    """
    text = strip_line_comments(json_text) if strip_comments else json_text

    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise CommandParseError(f"Invalid actuator JSON: {e}", text=json_text) from e

    if not isinstance(data, dict):
        raise CommandParseError(
            f"Actuator JSON must be an object, got {type(data).__name__}", text=json_text
        )

    return ActuatorCommand(
        **{name: _field_value(data, wire) for name, (wire, _, _) in FIELD_RANGES.items()}
    )


def try_parse_command(json_text: str, log_errors: bool = True) -> ActuatorCommand | None:
    """Parse a command, logging and returning None on failure.

    Args:
        json_text: JSON object text.
        log_errors: Log a warning with the offending input on failure.

    Returns:
        The clamped command, or None if the text could not be parsed.
    """
    try:
        return parse_command(json_text)
    except CommandParseError as e:
        if log_errors:
            logger.warning("Failed to parse actuator JSON: %s\nInput: %s", e, json_text)
        return None
