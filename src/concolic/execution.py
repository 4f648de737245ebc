from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Union

from loguru import logger

from .constraints import SymbolicPredicate
from .errors import UndeclaredVariableError
from .path import SymbolicPath
from .types import VarType
from .wire import LineReader


class SymbolicExecution:
    """
    One recorded concrete run.

    - var_types: declared symbolic inputs, var id -> VarType
    - inputs: concrete value of each input in the run, var id -> value
    - path: branch log and path constraints (owned)

    Variable ids are dense, 0..n-1; the wire format writes them in id order
    and relies on that on the way back in.
    """

    __slots__ = ("var_types", "inputs", "path")

    def __init__(self, pre_allocate: bool = False):
        self.var_types: Dict[int, VarType] = {}
        self.inputs: Dict[int, int] = {}
        self.path = SymbolicPath(pre_allocate)

    def declare(self, var_type: VarType, value: int) -> int:
        """Register the next symbolic input and return its id."""
        var = len(self.var_types)
        self.var_types[var] = VarType(var_type)
        self.inputs[var] = value
        return var

    def swap(self, other: "SymbolicExecution") -> None:
        self.var_types, other.var_types = other.var_types, self.var_types
        self.inputs, other.inputs = other.inputs, self.inputs
        self.path.swap(other.path)

    def clear(self) -> None:
        self.var_types = {}
        self.inputs = {}
        self.path.clear()

    def negated_constraints(self, index: int) -> List[SymbolicPredicate]:
        """
        Constraint list that flips the `index`-th path constraint: every
        constraint before it, then a negated copy of it as the last element.
        """
        constraints = self.path.constraints
        if not 0 <= index < len(constraints):
            raise IndexError(f"constraint index {index} out of range")
        return constraints[:index] + [constraints[index].negated()]

    # --- wire format ---

    def serialize(self) -> str:
        parts = [f"{len(self.var_types)}\n"]
        for var in range(len(self.var_types)):
            if var not in self.var_types:
                raise UndeclaredVariableError(var, "var_types")
            if var not in self.inputs:
                raise UndeclaredVariableError(var, "inputs")
            parts.append(f"{int(self.var_types[var])} {self.inputs[var]}\n")
        parts.append(self.path.serialize())
        return "".join(parts)

    @classmethod
    def parse(cls, reader: LineReader) -> "SymbolicExecution":
        ex = cls()
        n_vars = reader.read_int("variable count")
        if n_vars < 0:
            raise reader.error(f"negative variable count {n_vars}")
        for var in range(n_vars):
            code, value = reader.read_ints(2, "type/value")
            try:
                ex.var_types[var] = VarType(code)
            except ValueError:
                raise reader.error(f"unknown type code {code}") from None
            ex.inputs[var] = value
        logger.debug(f"Parsed {n_vars} symbolic inputs")
        ex.path = SymbolicPath.parse(reader)
        return ex

    def dumps(self) -> str:
        return self.serialize()

    @classmethod
    def loads(cls, text: str) -> "SymbolicExecution":
        reader = LineReader(text)
        ex = cls.parse(reader)
        reader.expect_eof()
        return ex

    def save(self, path: Union[str, Path]) -> None:
        Path(path).write_text(self.serialize(), encoding="utf-8")

    @classmethod
    def load(cls, path: Union[str, Path]) -> "SymbolicExecution":
        with open(path, "r", encoding="utf-8") as f:
            reader = LineReader(f)
            ex = cls.parse(reader)
            reader.expect_eof()
        return ex

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SymbolicExecution):
            return NotImplemented
        return (
            self.var_types == other.var_types
            and self.inputs == other.inputs
            and self.path == other.path
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"SymbolicExecution(vars={len(self.var_types)}, path={self.path!r})"
