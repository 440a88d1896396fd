"""
Errors raised while parsing capability scripts.
"""

from __future__ import annotations


class CapabilityScriptError(Exception):
    """A capability script could not be parsed.

    Attributes:
        line: 1-based line number the problem was found on, if known
        source: Name of the script resource, if known
    """

    def __init__(self, message: str, line: int | None = None, source: str | None = None):
        self.message = message
        self.line = line
        self.source = source
        super().__init__(str(self))

    def __str__(self) -> str:
        where = []
        if self.source:
            where.append(self.source)
        if self.line is not None:
            where.append(f"line {self.line}")
        if where:
            return f"{self.message} ({', '.join(where)})"
        return self.message


class ScriptStructureError(CapabilityScriptError):
    """Malformed header or block delimiters."""


class ScriptValueError(CapabilityScriptError, ValueError):
    """A value could not be converted to the type its keyword expects."""


class UnknownKeywordError(CapabilityScriptError):
    """Keyword not in the dispatch table; raised only by strict parsing."""
