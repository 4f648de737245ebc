from __future__ import annotations

import re
from abc import ABC
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple, Union

from .errors import ParseError, UndeclaredVariableError
from .wire import LineReader


class Node(ABC):
    """
    Base class for expression AST nodes.

    Backends and renderers pattern-match on the concrete subclasses.
    """
    pass


@dataclass(frozen=True, slots=True)
class Const(Node):
    value: int


@dataclass(frozen=True, slots=True)
class Var(Node):
    var: int


@dataclass(frozen=True, slots=True)
class BinOp(Node):
    """
    Binary arithmetic node: (op lhs rhs) with op one of
    "+", "-", "*", "div", "mod" (SMT-LIB integer semantics).
    """
    op: str
    lhs: Node
    rhs: Node


ARITH_OPS = ("+", "-", "*", "div", "mod")


def fold(
    node: Node,
    on_const: Callable[[int], Any],
    on_var: Callable[[int], Any],
    on_binop: Callable[[str, Any, Any], Any],
) -> Any:
    """
    Post-order fold over an expression tree.

    Iterative, since expressions accumulated over long loops can nest far
    deeper than the interpreter's recursion limit.
    """
    work: List[Tuple[Node, bool]] = [(node, False)]
    out: List[Any] = []
    while work:
        n, expanded = work.pop()
        match n:
            case Const(value):
                out.append(on_const(value))
            case Var(var):
                out.append(on_var(var))
            case BinOp(op, lhs, rhs):
                if expanded:
                    r = out.pop()
                    l = out.pop()
                    out.append(on_binop(op, l, r))
                else:
                    work.append((n, True))
                    work.append((rhs, False))
                    work.append((lhs, False))
            case _:
                raise NotImplementedError(f"Unsupported expression node: {n!r}")
    return out.pop()


def smt_div(a: int, b: int) -> int:
    # Euclidean: a == b*q + r with 0 <= r < |b|
    return (a - smt_mod(a, b)) // b


def smt_mod(a: int, b: int) -> int:
    return a % abs(b)


def render(node: Node) -> str:
    return fold(
        node,
        lambda c: str(c) if c >= 0 else f"(- {-c})",
        lambda v: f"x{v}",
        lambda op, l, r: f"({op} {l} {r})",
    )


def evaluate(node: Node, assignment: Mapping[int, int]) -> int:
    def var_value(v: int) -> int:
        try:
            return assignment[v]
        except KeyError:
            raise UndeclaredVariableError(v, "assignment") from None

    def binop(op: str, l: int, r: int) -> int:
        if op == "+":  return l + r
        if op == "-":  return l - r
        if op == "*":  return l * r
        if op == "div": return smt_div(l, r)
        if op == "mod": return smt_mod(l, r)
        raise NotImplementedError(f"Unknown binary op: {op}")

    return fold(node, lambda c: c, var_value, binop)


# --- linear summary -----------------------------------------------------------
#
# (const, coeff, linear, occurs): const is the value at the all-zero
# assignment, coeff the exact weights while linear, nominal weight 1 once a
# non-linear sub-term is involved. occurs is every variable left in the tree,
# so a variable cancelled out of the exact weights is weighted again once the
# expression goes non-linear.

Summary = Tuple[int, Dict[int, int], bool, FrozenSet[int]]

ZERO: Summary = (0, {}, True, frozenset())


def _nominal(const: int, occurs: FrozenSet[int]) -> Summary:
    return const, {v: 1 for v in occurs}, False, occurs


def _scale(s: Summary, k: int, occurs: FrozenSet[int]) -> Summary:
    const, coeff, linear, _ = s
    if not linear:
        # the tree may still divide by zero, so it stays the reference
        return _nominal(const * k, occurs)
    if k == 0:
        return 0, {}, True, occurs
    return const * k, {v: c * k for v, c in coeff.items()}, True, occurs


def combine(op: str, a: Summary, b: Summary) -> Summary:
    ac, acoeff, alin, aocc = a
    bc, bcoeff, blin, bocc = b
    occurs = aocc | bocc

    if op in ("+", "-"):
        sign = 1 if op == "+" else -1
        const = ac + sign * bc
        if alin and blin:
            coeff = dict(acoeff)
            for v, c in bcoeff.items():
                w = coeff.get(v, 0) + sign * c
                if w:
                    coeff[v] = w
                else:
                    coeff.pop(v, None)
            return const, coeff, True, occurs
        return _nominal(const, occurs)

    if op == "*":
        if alin and not acoeff:
            return _scale(b, ac, occurs)
        if blin and not bcoeff:
            return _scale(a, bc, occurs)
        return _nominal(ac * bc, occurs)

    if op in ("div", "mod"):
        divisor_known = blin and not bcoeff
        if divisor_known and bc == 0:
            raise ZeroDivisionError(f"{op} by constant zero")
        at_zero = 0
        if bc != 0:
            at_zero = smt_div(ac, bc) if op == "div" else smt_mod(ac, bc)
        if alin and not acoeff and divisor_known:
            return at_zero, {}, True, occurs
        if (op == "div" and divisor_known and alin
                and ac % bc == 0 and all(c % bc == 0 for c in acoeff.values())):
            return ac // bc, {v: c // bc for v, c in acoeff.items()}, True, occurs
        return _nominal(at_zero, occurs)

    raise NotImplementedError(f"Unknown binary op: {op}")


def summarize(node: Node) -> Summary:
    return fold(
        node,
        lambda c: (c, {}, True, frozenset()),
        lambda v: (0, {v: 1}, True, frozenset((v,))),
        combine,
    )


# --- prefix-text reader -------------------------------------------------------

_TOKEN = re.compile(r"\(|\)|[^\s()]+")
_VAR = re.compile(r"x(\d+)")
_INT = re.compile(r"-?\d+")


def read_sexpr(text: str) -> Node:
    """Read canonical prefix text, e.g. "(+ x3 (- 0 x7))", into a tree."""
    tokens = _TOKEN.findall(text)
    if not tokens:
        raise ParseError("empty expression")
    stack: List[List[Any]] = []
    result: Optional[Node] = None
    for tok in tokens:
        if result is not None:
            raise ParseError(f"trailing token {tok!r} in expression")
        if tok == "(":
            stack.append([])
            continue
        if tok == ")":
            if not stack:
                raise ParseError("unbalanced ')' in expression")
            node = _build(stack.pop())
        elif stack and not stack[-1] and tok in ARITH_OPS:
            stack[-1].append(tok)
            continue
        else:
            node = _atom(tok)
        if stack:
            stack[-1].append(node)
        else:
            result = node
    if stack or result is None:
        raise ParseError("unbalanced '(' in expression")
    return result


def _atom(tok: str) -> Node:
    m = _VAR.fullmatch(tok)
    if m:
        return Var(int(m.group(1)))
    if _INT.fullmatch(tok):
        return Const(int(tok))
    raise ParseError(f"unexpected token {tok!r} in expression")


def _build(items: List[Any]) -> Node:
    if not items or isinstance(items[0], Node):
        raise ParseError("expected an operator after '('")
    op, args = items[0], items[1:]
    if op == "-" and len(args) == 1:
        # negative literal "(- 5)"
        if isinstance(args[0], Const):
            return Const(-args[0].value)
        return BinOp("-", Const(0), args[0])
    if op not in ARITH_OPS or len(args) != 2:
        raise ParseError(f"malformed ({op} ...) node with {len(args)} operands")
    return BinOp(op, args[0], args[1])


# --- SymbolicExpr -------------------------------------------------------------

Operand = Union["SymbolicExpr", int]


class SymbolicExpr:
    """
    Arithmetic expression over symbolic input variables.

    The AST (`node`) is authoritative. `const` and `coeff` summarize it:
    `const` is the expression's value when every variable is zero, `coeff`
    maps every occurring variable to its weight. Weights are exact while the
    expression stays linear and nominal (1) once a non-linear term such as
    x0*x1 or x0 mod 3 is involved; see `is_linear`.
    """

    __slots__ = ("node", "const", "coeff", "_linear", "_occurs")

    def __init__(self, value: int = 0, var: Optional[int] = None):
        if var is None:
            self._reset(Const(value), (value, {}, True, frozenset()))
            return
        if var < 0:
            raise ValueError(f"variable ids are non-negative, got {var}")
        if value == 0:
            self._reset(Const(0), (0, {}, True, frozenset()))
        elif value == 1:
            self._reset(Var(var), (0, {var: 1}, True, frozenset((var,))))
        else:
            self._reset(BinOp("*", Var(var), Const(value)), (0, {var: value}, True, frozenset((var,))))

    @classmethod
    def from_node(cls, node: Node) -> "SymbolicExpr":
        expr = cls.__new__(cls)
        expr._reset(node, summarize(node))
        return expr

    def _reset(self, node: Node, summary: Summary) -> None:
        self.node = node
        self.const, self.coeff, self._linear, self._occurs = summary

    def copy(self) -> "SymbolicExpr":
        expr = SymbolicExpr.__new__(SymbolicExpr)
        expr.node = self.node
        expr.const = self.const
        expr.coeff = dict(self.coeff)
        expr._linear = self._linear
        expr._occurs = self._occurs
        return expr

    @property
    def is_linear(self) -> bool:
        return self._linear

    @property
    def is_concrete(self) -> bool:
        return not self.coeff

    def _summary(self) -> Summary:
        return self.const, self.coeff, self._linear, self._occurs

    # --- in-place algebra ---

    def _apply(self, op: str, other: Operand) -> "SymbolicExpr":
        if isinstance(other, SymbolicExpr):
            rhs = other
        elif isinstance(other, int):
            rhs = SymbolicExpr(other)
        else:
            raise TypeError(f"cannot combine SymbolicExpr with {type(other).__name__}")
        summary = combine(op, self._summary(), rhs._summary())
        if op == "*" and (self.is_zero() or rhs.is_zero()):
            self._reset(Const(0), (0, {}, True, frozenset()))
        else:
            self._reset(BinOp(op, self.node, rhs.node), summary)
        return self

    def is_zero(self) -> bool:
        return self._linear and not self.coeff and self.const == 0

    def __iadd__(self, other: Operand) -> "SymbolicExpr":
        return self._apply("+", other)

    def __isub__(self, other: Operand) -> "SymbolicExpr":
        return self._apply("-", other)

    def __imul__(self, other: Operand) -> "SymbolicExpr":
        return self._apply("*", other)

    def __ifloordiv__(self, other: Operand) -> "SymbolicExpr":
        return self._apply("div", other)

    def __imod__(self, other: Operand) -> "SymbolicExpr":
        return self._apply("mod", other)

    def negate(self) -> "SymbolicExpr":
        summary = combine("-", ZERO, self._summary())
        self._reset(BinOp("-", Const(0), self.node), summary)
        return self

    # --- value-returning algebra ---

    def __add__(self, other: Operand) -> "SymbolicExpr":
        return self.copy()._apply("+", other)

    def __sub__(self, other: Operand) -> "SymbolicExpr":
        return self.copy()._apply("-", other)

    def __mul__(self, other: Operand) -> "SymbolicExpr":
        return self.copy()._apply("*", other)

    def __floordiv__(self, other: Operand) -> "SymbolicExpr":
        return self.copy()._apply("div", other)

    def __mod__(self, other: Operand) -> "SymbolicExpr":
        return self.copy()._apply("mod", other)

    def __radd__(self, other: int) -> "SymbolicExpr":
        return SymbolicExpr(other)._apply("+", self)

    def __rsub__(self, other: int) -> "SymbolicExpr":
        return SymbolicExpr(other)._apply("-", self)

    def __rmul__(self, other: int) -> "SymbolicExpr":
        return SymbolicExpr(other)._apply("*", self)

    def __neg__(self) -> "SymbolicExpr":
        return self.copy().negate()

    # --- variables ---

    def append_vars(self, out: Set[int]) -> None:
        out.update(self.coeff)

    def vars(self) -> Set[int]:
        return set(self.coeff)

    def depends_on(self, var_set: Iterable[int]) -> bool:
        if not isinstance(var_set, (set, frozenset, dict)):
            var_set = set(var_set)
        return any(v in var_set for v in self.coeff)

    def evaluate(self, assignment: Mapping[int, int]) -> int:
        return evaluate(self.node, assignment)

    # --- text ---

    @property
    def text(self) -> str:
        return render(self.node)

    def append_to_string(self, out: List[str]) -> None:
        out.append(self.text)

    def serialize(self) -> str:
        return self.text + "\n"

    @classmethod
    def parse(cls, reader: LineReader) -> "SymbolicExpr":
        line = reader.next_line("expression")
        try:
            return cls.from_node(read_sexpr(line))
        except ParseError as e:
            raise reader.error(str(e)) from None
        except ZeroDivisionError as e:
            raise reader.error(f"{e} in expression") from None

    @classmethod
    def from_text(cls, text: str) -> "SymbolicExpr":
        return cls.from_node(read_sexpr(text))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SymbolicExpr):
            return NotImplemented
        return self.const == other.const and self.coeff.keys() == other.coeff.keys()

    __hash__ = None  # mutable

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"SymbolicExpr({self.text!r})"
