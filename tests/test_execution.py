import pytest

from concolic import (
    CompareOp,
    ParseError,
    SymbolicExecution,
    SymbolicExpr,
    SymbolicPredicate,
    UndeclaredVariableError,
    VarType,
)


def build_execution():
    ex = SymbolicExecution()
    x0 = ex.declare(VarType.INT, 3)
    x1 = ex.declare(VarType.U_CHAR, 200)
    ex.path.push(1)
    ex.path.push(2, SymbolicPredicate(CompareOp.NEQ, SymbolicExpr(1, x0) - 49))
    ex.path.push(3, SymbolicPredicate(CompareOp.GT, SymbolicExpr(1, x1) + SymbolicExpr(2, x0)))
    return ex


WIRE = (
    "2\n"
    "5 3\n"
    "0 200\n"
    "3\n"
    "1 2 3\n"
    "2\n"
    "1 2\n"
    "1\n"
    "(- x0 49)\n"
    "2\n"
    "(+ x1 (* x0 2))\n"
)


def test_declare_assigns_dense_ids():
    ex = SymbolicExecution()
    assert ex.declare(VarType.CHAR, -1) == 0
    assert ex.declare(VarType.LONG, 5) == 1
    assert ex.var_types == {0: VarType.CHAR, 1: VarType.LONG}
    assert ex.inputs == {0: -1, 1: 5}


def test_serialize_layout():
    assert build_execution().serialize() == WIRE


def test_round_trip():
    ex = build_execution()
    back = SymbolicExecution.loads(ex.dumps())
    assert back == ex
    assert back.var_types == {0: VarType.INT, 1: VarType.U_CHAR}
    assert back.inputs == {0: 3, 1: 200}
    assert back.path.constraints[1].expr.coeff == {0: 2, 1: 1}


def test_save_and_load(tmp_path):
    ex = build_execution()
    target = tmp_path / "szd_execution"
    ex.save(target)
    assert target.read_text(encoding="utf-8") == WIRE
    assert SymbolicExecution.load(target) == ex


@pytest.mark.parametrize(
    "text",
    [
        "",
        "1\n",
        "1\n12 0\n0\n\n0\n\n",           # unknown type code
        "1\n5\n0\n\n0\n\n",              # missing value
        "1\n5 1 2\n0\n\n0\n\n",          # extra field
        "1\n5 1\n0\n\n0\n\nextra\n",     # trailing data
        "-2\n",
    ],
)
def test_parse_failures(text):
    with pytest.raises(ParseError):
        SymbolicExecution.loads(text)


def test_trailing_blank_lines_are_accepted():
    assert SymbolicExecution.loads(WIRE + "\n\n") == build_execution()


def test_serialize_requires_dense_ids():
    ex = SymbolicExecution()
    ex.var_types = {0: VarType.INT, 2: VarType.INT}
    ex.inputs = {0: 1, 2: 2}
    with pytest.raises(UndeclaredVariableError):
        ex.serialize()


def test_swap_transfers_everything():
    a = build_execution()
    b = SymbolicExecution(pre_allocate=True)
    a.swap(b)
    assert a.var_types == {} and a.inputs == {} and len(a.path) == 0
    assert b == build_execution()
    b.clear()
    assert b == SymbolicExecution()


def test_negated_constraints():
    ex = build_execution()
    flipped = ex.negated_constraints(1)
    assert len(flipped) == 2
    assert flipped[0] is ex.path.constraints[0]
    assert flipped[1].op is CompareOp.LE
    assert ex.path.constraints[1].op is CompareOp.GT

    assert [c.op for c in ex.negated_constraints(0)] == [CompareOp.EQ]
    with pytest.raises(IndexError):
        ex.negated_constraints(2)
