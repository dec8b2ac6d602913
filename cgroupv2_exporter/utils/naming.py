"""
Metric and label name sanitizing.

cgroup directory names created by systemd are C-string escaped
(``system-getty\\x2d.slice``), so names are unescaped before invalid
characters are replaced.
"""

import re

# Escapes understood inside a double-quoted C/Go string literal
_ESCAPE_RE = re.compile(
    r"\\(x[0-9A-Fa-f]{2}|u[0-9A-Fa-f]{4}|U[0-9A-Fa-f]{8}|[0-7]{3}|[abfnrtv\\'\"])"
)

_SIMPLE_ESCAPES = {
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "v": "\v",
    "\\": "\\",
    "'": "'",
    '"': '"',
}

_INVALID_CHARS_RE = re.compile(r"[^a-zA-Z0-9_:]")
_UNDERSCORE_RUN_RE = re.compile(r"_+")


def _decode_escape(match: re.Match) -> str:
    escape = match.group(1)
    if escape in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[escape]
    if escape[0] in "xuU":
        return chr(int(escape[1:], 16))
    code = int(escape, 8)
    if code > 0xFF:
        raise ValueError(f"octal escape out of range: \\{escape}")
    return chr(code)


def unescape(value: str) -> str:
    """
    Decode backslash escape sequences in a string.

    Returns the original string unchanged when it contains an escape that
    cannot be decoded, a raw double quote or a newline.
    """
    if "\\" not in value:
        return value
    if '"' in value or "\n" in value:
        return value

    # Any backslash left over after removing valid escapes is malformed
    if "\\" in _ESCAPE_RE.sub("", value):
        return value

    try:
        return _ESCAPE_RE.sub(_decode_escape, value)
    except (ValueError, OverflowError):
        # Octal above \377 or code points beyond U+10FFFF
        return value


def sanitize_metric_name(name: str) -> str:
    """
    Convert an arbitrary string into a valid Prometheus name fragment.

    Escapes are decoded, characters outside ``[A-Za-z0-9_:]`` become
    underscores, runs of underscores are squeezed and leading/trailing
    underscores are stripped.

    Args:
        name: Raw name (file name, parsed key or directory name)

    Returns:
        Sanitized name, possibly empty
    """
    name = unescape(name)
    name = _INVALID_CHARS_RE.sub("_", name)
    name = _UNDERSCORE_RUN_RE.sub("_", name)
    return name.strip("_")
