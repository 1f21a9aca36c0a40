from __future__ import annotations

import keyword
import re


DEFAULT_MAX_LENGTH = 63
PLACEHOLDER = "x"

# A non-letter first character (after optional leading whitespace) gets a filler prefix.
_LEADING_NON_LETTER = re.compile(r"^\s*([^A-Za-z\s])")
# The character following an internal whitespace run is upper-cased (camel case).
_INNER_SPACE = re.compile(r"(?<=\S)\s+(\S)")
_SPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^A-Za-z0-9_]")


def is_valid_identifier(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> bool:
    return text.isidentifier() and not keyword.iskeyword(text) and len(text) <= max_length


def sanitize(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """
    Convert arbitrary header text into a usable field identifier.

    Legal identifiers are returned unchanged. Otherwise:
      - a non-letter first character is prefixed with 'x'
      - whitespace runs are removed, camel-casing the character that follows
      - anything outside [A-Za-z0-9_] is stripped
      - Python keywords become 'x' + Capitalized keyword
      - the result is truncated to max_length

    An input that strips down to nothing becomes 'x'.

    Example:
      sanitize("2 bad name!") -> "x2BadName"
    """
    text = "" if text is None else str(text)
    if is_valid_identifier(text, max_length):
        return text

    name = _LEADING_NON_LETTER.sub(lambda m: PLACEHOLDER + m.group(1), text, count=1)
    name = _INNER_SPACE.sub(lambda m: m.group(1).upper(), name)
    name = _SPACE.sub("", name)
    name = _NON_WORD.sub("", name)
    if not name:
        return PLACEHOLDER

    if keyword.iskeyword(name):
        name = PLACEHOLDER + name[0].upper() + name[1:]

    return name[: max(1, int(max_length))]
