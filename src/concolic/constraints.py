from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Set

from .symexpr import SymbolicExpr
from .types import CompareOp
from .wire import LineReader


class SymbolicPredicate:
    """
    A path constraint `expr <op> 0`.

    The predicate owns its expression; `copy()` duplicates both.
    """

    __slots__ = ("op", "expr")

    def __init__(self, op: CompareOp = CompareOp.EQ, expr: Optional[SymbolicExpr] = None):
        self.op = CompareOp(op)
        self.expr = expr if expr is not None else SymbolicExpr(0)

    def copy(self) -> "SymbolicPredicate":
        return SymbolicPredicate(self.op, self.expr.copy())

    def negate(self) -> "SymbolicPredicate":
        self.op = self.op.negate()
        return self

    def negated(self) -> "SymbolicPredicate":
        return self.copy().negate()

    def append_vars(self, out: Set[int]) -> None:
        self.expr.append_vars(out)

    def vars(self) -> Set[int]:
        return self.expr.vars()

    def depends_on(self, var_set: Iterable[int]) -> bool:
        return self.expr.depends_on(var_set)

    def holds(self, assignment: Mapping[int, int]) -> bool:
        return self.op.holds(self.expr.evaluate(assignment))

    # --- text ---

    def append_to_string(self, out: List[str]) -> None:
        if self.op is CompareOp.NEQ:
            # no native disequality in the query syntax
            out.append(f"(not (= {self.expr.text} 0))")
        else:
            out.append(f"({self.op.symbol} {self.expr.text} 0)")

    @property
    def text(self) -> str:
        out: List[str] = []
        self.append_to_string(out)
        return out[0]

    def serialize(self) -> str:
        return f"{int(self.op)}\n" + self.expr.serialize()

    @classmethod
    def parse(cls, reader: LineReader) -> "SymbolicPredicate":
        code = reader.read_int("operator code")
        try:
            op = CompareOp(code)
        except ValueError:
            raise reader.error(f"unknown operator code {code}") from None
        return cls(op, SymbolicExpr.parse(reader))

    def equal(self, other: "SymbolicPredicate") -> bool:
        return self.op == other.op and self.expr == other.expr

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SymbolicPredicate):
            return NotImplemented
        return self.equal(other)

    __hash__ = None

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"SymbolicPredicate({self.op.name}, {self.expr.text!r})"
