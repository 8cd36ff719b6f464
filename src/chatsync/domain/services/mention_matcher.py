"""Mention matching."""

import re


def build_mention_pattern(display_name: str) -> re.Pattern[str]:
    """Build the pattern matching ``@<display_name>``.

    The name is matched literally (including internal whitespace) and must
    not be followed by a word character, so ``@Al`` does not match inside
    ``@Alice``.

    Args:
        display_name: Resolved display name.

    Returns:
        Compiled case-insensitive pattern.
    """
    return re.compile(rf"@{re.escape(display_name)}(?!\w)", re.IGNORECASE)


def is_mentioned(text: str, display_name: str) -> bool:
    """Check if text mentions the given display name.

    Callers must pass a display name resolved at evaluation time; a stale
    name produces false negatives.

    Args:
        text: Message text.
        display_name: Resolved display name of the user to look for.

    Returns:
        True if the text contains an ``@`` mention of the name.
    """
    if not text or "@" not in text:
        return False
    name = display_name.strip() if display_name else ""
    if not name:
        return False
    return build_mention_pattern(name).search(text) is not None
