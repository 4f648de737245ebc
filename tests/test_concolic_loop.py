"""
One generate-execute-solve round for

    int x; CREST_int(x);
    if (x * x == 49) { ... }

run first with x = 0: the branch is not taken, so the recorded constraint is
x*x - 49 != 0. Flipping it must produce an input that takes the branch.
"""
from concolic import (
    CompareOp,
    ConstraintSolver,
    SymbolicExecution,
    SymbolicExpr,
    SymbolicPredicate,
    VarType,
)


def record_run(x_value):
    ex = SymbolicExecution(pre_allocate=True)
    x = ex.declare(VarType.INT, x_value)
    square = SymbolicExpr(1, x) * SymbolicExpr(1, x)
    square -= 49
    taken = x_value * x_value == 49
    op = CompareOp.EQ if taken else CompareOp.NEQ
    ex.path.push(0)
    ex.path.push(1 if taken else 2, SymbolicPredicate(op, square))
    return ex


def test_flip_square_branch_through_the_wire():
    first = record_run(0)
    wire = first.dumps()
    assert "1\n(- (* x0 x0) 49)\n" in wire

    ex = SymbolicExecution.loads(wire)
    constraints = ex.negated_constraints(0)
    assert constraints[-1].text == "(= (- (* x0 x0) 49) 0)"

    soln = ConstraintSolver().incremental_solve(ex.inputs, ex.var_types, constraints)
    assert soln is not None
    assert soln[0] in (7, -7)

    second = record_run(soln[0])
    assert list(second.path.branches) == [0, 1]
    assert second.path.constraints[0].op is CompareOp.EQ


def test_swap_hands_parsed_record_to_driver_slot():
    current = SymbolicExecution()
    parsed = SymbolicExecution.loads(record_run(3).dumps())
    current.swap(parsed)
    assert current.inputs == {0: 3}
    assert parsed.inputs == {}
