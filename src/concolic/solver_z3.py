from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

from loguru import logger
from z3 import Int, IntVal, Not, Solver as Z3Solver, Z3Exception, is_int_value, sat

from .config import SolverConfig
from .constraints import SymbolicPredicate
from .errors import UndeclaredVariableError
from .solver import Backend, Solution, register_backend
from .symexpr import SymbolicExpr, fold
from .types import CompareOp, VarType


@register_backend("z3")
class Z3Backend(Backend):
    """
    z3 integer-arithmetic backend.

    Each variable x<v> is an unbounded z3 Int constrained to its type's
    range. Linear expressions go through their structured form
    (const + sum of coeff * x); anything else is translated from the AST.
    Every non-constant div/mod divisor is asserted nonzero, so a model never
    divides by zero.
    """

    def __init__(self, config: Optional[SolverConfig] = None):
        self.config = config or SolverConfig()

    def solve(
        self,
        var_types: Mapping[int, VarType],
        constraints: Sequence[SymbolicPredicate],
    ) -> Optional[Solution]:
        xs = {v: Int(f"x{v}") for v in var_types}
        z3 = Z3Solver()
        if self.config.timeout_ms is not None:
            z3.set("timeout", self.config.timeout_ms)
        try:
            for v, t in var_types.items():
                z3.add(xs[v] >= t.min, xs[v] <= t.max)
            for c in constraints:
                divisors: List[object] = []
                z3.add(self._z3_pred(c, xs, divisors))
                for d in divisors:
                    z3.add(d != 0)
            result = z3.check()
        except Z3Exception as e:
            logger.warning(f"z3 failed: {e}")
            return None

        if result != sat:
            logger.debug(f"z3 check: {result}")
            return None
        model = z3.model()
        return {v: model.eval(x, model_completion=True).as_long() for v, x in xs.items()}

    def _z3_pred(self, pred: SymbolicPredicate, xs: Dict[int, object], divisors: List[object]):
        e = self._z3_expr(pred.expr, xs, divisors)
        match pred.op:
            case CompareOp.EQ:  return e == 0
            case CompareOp.NEQ: return Not(e == 0)
            case CompareOp.GT:  return e > 0
            case CompareOp.LE:  return e <= 0
            case CompareOp.LT:  return e < 0
            case CompareOp.GE:  return e >= 0
        raise NotImplementedError(f"Unknown comparison operator: {pred.op!r}")

    def _z3_expr(self, expr: SymbolicExpr, xs: Dict[int, object], divisors: List[object]):
        def var(v: int):
            try:
                return xs[v]
            except KeyError:
                raise UndeclaredVariableError(v) from None

        def binop(op: str, zl, zr):
            if op in ("div", "mod") and not is_int_value(zr):
                divisors.append(zr)
            return self._z3_binop(op, zl, zr)

        if expr.is_linear:
            e = IntVal(expr.const)
            for v, c in sorted(expr.coeff.items()):
                e = e + IntVal(c) * var(v)
            return e
        return fold(expr.node, IntVal, var, binop)

    @staticmethod
    def _z3_binop(op: str, zl, zr):
        if op == "+":   return zl + zr
        if op == "-":   return zl - zr
        if op == "*":   return zl * zr
        if op == "div": return zl / zr      # integer division on Ints
        if op == "mod": return zl % zr
        raise NotImplementedError(f"Unknown binary op: {op}")
