"""Allow-listed substitution of tokens and variables in session files."""

import re
from collections.abc import Mapping

# Placeholder replaced by the -r value anywhere in a session file
REPLACE_TOKEN = "++TMREPLACETAG++"

# Name under which the -r value is visible to ${NAME} references
REPLACE_VARIABLE = "REPLACE"

_BRACED_VARIABLE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")
_LONE_VARIABLE = re.compile(r"^\$(?:\{([A-Za-z_][A-Za-z0-9_]*)\}|([A-Za-z_][A-Za-z0-9_]*))$")


def replace_token(text: str, replacement: str | None) -> str:
    """Replace every :data:`REPLACE_TOKEN` in ``text``."""
    if replacement is None:
        return text
    return text.replace(REPLACE_TOKEN, replacement)


def substitute_variables(text: str, allowed: Mapping[str, str]) -> str:
    """Resolve ``${NAME}`` references whose name is in ``allowed``.

    Unknown names and unbraced ``$NAME`` forms are left untouched.
    """

    def _resolve(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in allowed:
            return allowed[name]
        return match.group(0)

    return _BRACED_VARIABLE.sub(_resolve, text)


def lone_variable(line: str) -> str | None:
    """Return the variable name if ``line`` is only ``$NAME`` or ``${NAME}``."""
    match = _LONE_VARIABLE.match(line.strip())
    if not match:
        return None
    return match.group(1) or match.group(2)
