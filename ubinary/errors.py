"""Exceptions raised while decoding ubinary containers.

All decode failures derive from :class:`UbinaryError`, itself a ``ValueError``,
so callers that treat malformed content as a ``ValueError`` keep working.

Unknown type codes are deliberately absent here: they never abort a decode and
surface as :class:`~ubinary.models.values.UnknownTypeCode` values instead.
"""
from __future__ import annotations

from typing import Optional


class UbinaryError(ValueError):
    """Base class for every ubinary decode failure."""


class BufferOverrun(UbinaryError):
    """A read needs more bytes than remain in the buffer."""

    def __init__(self, offset: int, expected: int, available: int):
        self.offset = int(offset)
        self.expected = int(expected)
        self.available = int(available)
        super().__init__(
            f"buffer overrun at offset {self.offset}: need {self.expected} bytes, {self.available} available"
        )


class MalformedHeader(UbinaryError):
    """The name/type queues do not describe the payload consistently."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.offset = offset
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)


class DuplicateFieldName(UbinaryError):
    """Two values would be stored under the same sanitized field name."""

    def __init__(self, name: str, context: str = ""):
        self.name = name
        self.context = context
        msg = f"duplicate field name '{name}'"
        if context:
            msg += f" in {context}"
        super().__init__(msg)


class EmptyInput(UbinaryError):
    """The buffer is empty and carries no tags."""

    def __init__(self, message: str = "empty buffer: nothing to decode"):
        super().__init__(message)
