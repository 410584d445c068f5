"""Pattern matching for tool names against hook matchers."""

import fnmatch

_GLOB_CHARS = ("*", "?")


def matches_tool(pattern: str, tool_name: str) -> bool:
    """
    Match a tool name against a hook matcher pattern.

    Supports exact match, ``*`` wildcard and ``*``/``?`` glob patterns.
    Matching is case-insensitive. ``[`` has no special meaning.

    Args:
        pattern: Matcher from the hook rule
        tool_name: Name of the tool being called

    Returns:
        True if the rule applies to the tool
    """
    if pattern == "*":
        return True

    if any(c in pattern for c in _GLOB_CHARS):
        # Escape character classes so only * and ? act as wildcards
        glob = pattern.lower().replace("[", "[[]")
        return fnmatch.fnmatchcase(tool_name.lower(), glob)

    return pattern.lower() == tool_name.lower()
