"""
Prompt template variable extraction.

Variables are written as ``{name}`` inside a prompt. ``{{name}}`` is accepted
as well and yields the same variable.
"""

import re
from typing import List

VARIABLE_PATTERN = re.compile(r"\{([^{}]*)\}")
VALID_VARIABLE_PATTERN = re.compile(r"[A-Za-z_]+")

VARIABLE_ERROR_MESSAGE = "Variables must only contain letters and underscores (_)"


def extract_variables(prompt: str) -> List[str]:
    """
    Extract the distinct variables of a prompt.

    Args:
        prompt: Prompt text

    Returns:
        Variable names in order of first appearance, each listed once
    """
    if not prompt:
        return []

    seen = set()
    variables = []
    for match in VARIABLE_PATTERN.finditer(prompt):
        name = match.group(1)
        if name not in seen:
            seen.add(name)
            variables.append(name)
    return variables


def is_valid_variable(name: str) -> bool:
    """Check that a variable name only contains letters and underscores."""
    return bool(VALID_VARIABLE_PATTERN.fullmatch(name))


def invalid_variables(prompt: str) -> List[str]:
    """Return the variables of a prompt that break the naming rule."""
    return [name for name in extract_variables(prompt) if not is_valid_variable(name)]
