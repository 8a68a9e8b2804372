"""Exception hierarchy for tailboard."""
from __future__ import annotations


class TailboardError(Exception):
    """Base class for every error raised by tailboard."""


class ConfigError(TailboardError):
    """The configuration file or overrides hold an unusable value."""


class SourceSetupError(TailboardError):
    """A source could not be attached at all (fatal for the process)."""


class StreamTerminated(TailboardError):
    """The external stream behind a source ended or failed."""

    def __init__(self, source: str, reason: str = "end of stream") -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class InvalidFilterExpression(TailboardError):
    """A filter expression does not compile as a regular expression."""

    def __init__(self, expression: str, message: str) -> None:
        super().__init__(f"invalid filter {expression!r}: {message}")
        self.expression = expression
        self.message = message


class EvictedLineReference(TailboardError, LookupError):
    """A line number is no longer (or not yet) held by the buffer."""

    def __init__(self, line_number: int) -> None:
        super().__init__(f"line {line_number} is not in the buffer")
        self.line_number = line_number
