"""Tests for JSON extraction and command parsing."""

import logging

import pytest

from lmpilot.control.actuator import ActuatorCommand
from lmpilot.control.parser import (
    extract_json_object,
    parse_command,
    strip_line_comments,
    try_parse_command,
)
from lmpilot.core.errors import CommandParseError


class TestExtractJsonObject:
    """Tests for extract_json_object."""

    def test_extracts_object_from_prose(self) -> None:
        """Test extraction of an object surrounded by text."""
        assert extract_json_object('blah {"a":1} blah') == '{"a":1}'

    def test_no_braces(self) -> None:
        """Test that text without braces yields an empty string."""
        assert extract_json_object("no braces here") == ""

    def test_empty_and_none(self) -> None:
        """Test blank input."""
        assert extract_json_object("") == ""
        assert extract_json_object("   \n") == ""
        assert extract_json_object(None) == ""

    def test_closing_before_opening(self) -> None:
        """Test that '}' before '{' is not a candidate."""
        assert extract_json_object("} nothing {") == ""

    def test_code_fence(self) -> None:
        """Test extraction from a fenced code block."""
        reply = 'Here you go:\n```json\n{"throttle": 0.9}\n```\n'
        assert extract_json_object(reply) == '{"throttle": 0.9}'

    def test_spans_first_open_to_last_close(self) -> None:
        """Test that nested and multiple objects span first '{' to last '}'."""
        text = 'x {"a": {"b": 1}} y {"c": 2} z'
        assert extract_json_object(text) == '{"a": {"b": 1}} y {"c": 2}'


class TestStripLineComments:
    """Tests for strip_line_comments."""

    def test_strips_trailing_comment(self) -> None:
        """Test removal of a trailing // comment."""
        assert strip_line_comments('"a": 1, // roll') == '"a": 1, '

    def test_keeps_slashes_inside_strings(self) -> None:
        """Test that // inside a string literal is preserved."""
        line = '{"note": "see http://example.com"}'
        assert strip_line_comments(line) == line

    def test_escaped_quote_in_string(self) -> None:
        """Test that an escaped quote does not end the string."""
        line = '{"note": "say \\"//hi\\""} // tail'
        assert strip_line_comments(line) == '{"note": "say \\"//hi\\""} '

    def test_multiline(self) -> None:
        """Test that each line is handled independently."""
        text = '{\n"aileron": 0.5 // comment\n// whole line\n}'
        assert strip_line_comments(text) == '{\n"aileron": 0.5 \n\n}'


class TestParseCommand:
    """Tests for parse_command."""

    def test_empty_object_is_zero_command(self) -> None:
        """Test that {} yields the all-zero command."""
        assert parse_command("{}") == ActuatorCommand()

    def test_full_command(self) -> None:
        """Test parsing every field."""
        cmd = parse_command(
            '{"aileron": -0.2, "elevator": 0.3, "rudder": 0.1, '
            '"throttle": 0.75, "airbrake": 0.5, "wheelBrakes": 1}'
        )
        assert cmd == ActuatorCommand(
            aileron=-0.2,
            elevator=0.3,
            rudder=0.1,
            throttle=0.75,
            airbrake=0.5,
            wheel_brakes=1.0,
        )

    def test_comment_tolerance(self) -> None:
        """Test that // comments are ignored."""
        cmd = parse_command('{\n"aileron": 0.5 // comment\n}')
        assert cmd.aileron == 0.5

    def test_comments_kept_when_disabled(self) -> None:
        """Test that comment stripping can be turned off."""
        with pytest.raises(CommandParseError):
            parse_command('{\n"aileron": 0.5 // comment\n}', strip_comments=False)

    def test_clamps_out_of_range(self) -> None:
        """Test boundary clamping instead of rejection."""
        assert parse_command('{"aileron": 2.0}').aileron == 1.0
        assert parse_command('{"aileron": -2.0}').aileron == -1.0
        assert parse_command('{"throttle": -0.5}').throttle == 0.0

    def test_missing_and_unknown_fields(self) -> None:
        """Test that missing fields are zero and unknown keys ignored."""
        cmd = parse_command('{"throttle": 0.6, "flaps": 1.0, "comment": "climb"}')
        assert cmd == ActuatorCommand(throttle=0.6)

    def test_non_numeric_values_are_zero(self) -> None:
        """Test that null, strings, booleans and lists are treated as 0."""
        cmd = parse_command(
            '{"aileron": null, "elevator": "0.5", "rudder": true, "throttle": [1], "airbrake": 0.2}'
        )
        assert cmd == ActuatorCommand(airbrake=0.2)

    def test_nan_and_infinity(self) -> None:
        """Test the NaN and infinity policy."""
        cmd = parse_command('{"aileron": NaN, "throttle": Infinity, "rudder": -Infinity}')
        assert cmd.aileron == 0.0
        assert cmd.throttle == 1.0
        assert cmd.rudder == -1.0

    def test_huge_integer(self) -> None:
        """Test that integers too large for a float clamp to the bound."""
        assert parse_command('{"elevator": ' + "9" * 400 + "}").elevator == 1.0

    def test_snake_case_alias(self) -> None:
        """Test that wheel_brakes is accepted for wheelBrakes."""
        assert parse_command('{"wheel_brakes": 0.4}').wheel_brakes == 0.4

    def test_wire_name_wins_over_alias(self) -> None:
        """Test that wheelBrakes takes precedence when both are present."""
        assert parse_command('{"wheelBrakes": 0.9, "wheel_brakes": 0.1}').wheel_brakes == 0.9

    def test_null_wire_name_still_wins(self) -> None:
        """Test that a present but null wheelBrakes is not replaced by the alias."""
        assert parse_command('{"wheelBrakes": null, "wheel_brakes": 0.7}').wheel_brakes == 0.0

    @pytest.mark.parametrize("text", ['{"aileron": }', "{not json}", "", "{'aileron': 1}"])
    def test_invalid_json_raises(self, text: str) -> None:
        """Test that syntactically invalid text raises CommandParseError."""
        with pytest.raises(CommandParseError) as exc_info:
            parse_command(text)
        assert exc_info.value.text == text

    def test_non_object_raises(self) -> None:
        """Test that valid JSON which is not an object is rejected."""
        with pytest.raises(CommandParseError, match="must be an object"):
            parse_command("[1, 2, 3]")


class TestTryParseCommand:
    """Tests for try_parse_command."""

    def test_returns_command(self) -> None:
        """Test success path."""
        assert try_parse_command('{"rudder": 0.3}') == ActuatorCommand(rudder=0.3)

    def test_returns_none_and_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that failures return None with a warning."""
        with caplog.at_level(logging.WARNING, logger="lmpilot.control.parser"):
            assert try_parse_command("{oops}") is None
        assert "Failed to parse actuator JSON" in caplog.text

    def test_silent_when_logging_disabled(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that log_errors=False suppresses the warning."""
        with caplog.at_level(logging.WARNING, logger="lmpilot.control.parser"):
            assert try_parse_command("{oops}", log_errors=False) is None
        assert caplog.text == ""
