"""Tests for tool name matching against hook matchers."""

import pytest

from toolgate.hooks.matcher import matches_tool


def test_wildcard_matches_everything():
    assert matches_tool("*", "shell")
    assert matches_tool("*", "")
    assert matches_tool("*", "mcp__server__tool")


def test_exact_match_is_case_insensitive():
    assert matches_tool("shell", "shell")
    assert matches_tool("Shell", "SHELL")
    assert not matches_tool("shell", "shell_command")


@pytest.mark.parametrize(
    "tool_name, expected",
    [
        ("shell_command", True),
        ("shell", True),
        ("SHELL", True),
        ("local_shell", False),
    ],
)
def test_star_glob(tool_name, expected):
    assert matches_tool("shell*", tool_name) is expected


def test_question_mark_matches_single_character():
    assert matches_tool("read_?", "read_a")
    assert not matches_tool("read_?", "read_ab")
    assert not matches_tool("read_?", "read_")


def test_bracket_is_literal_in_glob():
    """A '[' in a glob pattern is matched as a literal character."""
    assert matches_tool("tool[1]*", "tool[1]_x")
    assert not matches_tool("tool[1]*", "tool1_x")


def test_bracket_without_glob_is_exact():
    assert matches_tool("tool[1]", "TOOL[1]")
    assert not matches_tool("tool[1]", "tool1")
