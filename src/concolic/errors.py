from __future__ import annotations

from typing import Optional


class ConcolicError(Exception):
    """Base class for errors raised by the concolic core."""


class ParseError(ConcolicError, ValueError):
    """
    Raised when a serialized execution, path, predicate or expression is
    malformed or ends early. `lineno` is 1-based when known.
    """

    def __init__(self, message: str, lineno: Optional[int] = None):
        self.lineno = lineno
        if lineno is not None:
            message = f"line {lineno}: {message}"
        super().__init__(message)


class UndeclaredVariableError(ConcolicError, KeyError):
    """A constraint refers to a variable with no declared type or value."""

    def __init__(self, var: int, where: str = "var_types"):
        self.var = var
        super().__init__(f"x{var} is not present in {where}")

    def __str__(self) -> str:
        return self.args[0]
