from __future__ import annotations

from enum import IntEnum


class VarType(IntEnum):
    """
    Declared numeric type of a symbolic input variable.

    The integer value is the type code used on the wire. Each type implies
    an inclusive [min, max] range the solver uses to bound its search.
    """
    U_CHAR = 0
    CHAR = 1
    U_SHORT = 2
    SHORT = 3
    U_INT = 4
    INT = 5
    U_LONG = 6
    LONG = 7
    U_LONG_LONG = 8
    LONG_LONG = 9

    @property
    def bits(self) -> int:
        return _BITS[self]

    @property
    def signed(self) -> bool:
        return self % 2 == 1

    @property
    def min(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    def contains(self, value: int) -> bool:
        return self.min <= value <= self.max


# LP64: long is 64 bits wide.
_BITS = {
    VarType.U_CHAR: 8,
    VarType.CHAR: 8,
    VarType.U_SHORT: 16,
    VarType.SHORT: 16,
    VarType.U_INT: 32,
    VarType.INT: 32,
    VarType.U_LONG: 64,
    VarType.LONG: 64,
    VarType.U_LONG_LONG: 64,
    VarType.LONG_LONG: 64,
}


class CompareOp(IntEnum):
    """Relational operator of a predicate `expr <op> 0`."""
    EQ = 0
    NEQ = 1
    GT = 2
    LE = 3
    LT = 4
    GE = 5

    def negate(self) -> "CompareOp":
        # complements are adjacent codes: EQ/NEQ, GT/LE, LT/GE
        return CompareOp(self ^ 1)

    @property
    def symbol(self) -> str:
        try:
            return _SYMBOLS[self]
        except KeyError:
            # NEQ is written as (not (= e 0))
            raise ValueError(f"{self.name} has no single-symbol form") from None

    def holds(self, value: int) -> bool:
        match self:
            case CompareOp.EQ:
                return value == 0
            case CompareOp.NEQ:
                return value != 0
            case CompareOp.GT:
                return value > 0
            case CompareOp.LE:
                return value <= 0
            case CompareOp.LT:
                return value < 0
            case CompareOp.GE:
                return value >= 0
        raise NotImplementedError(f"Unknown comparison operator: {self!r}")


_SYMBOLS = {
    CompareOp.EQ: "=",
    CompareOp.GT: ">",
    CompareOp.LE: "<=",
    CompareOp.LT: "<",
    CompareOp.GE: ">=",
}
