import pytest

from concolic import CompareOp, ParseError, SymbolicExpr, SymbolicPath, SymbolicPredicate
from concolic.wire import LineReader


def pred(op, v, c=0):
    return SymbolicPredicate(op, SymbolicExpr(1, v) + c)


def scenario_path():
    path = SymbolicPath()
    path.push(10)
    path.push(11, pred(CompareOp.GT, 0))
    path.push(12)
    path.push(13, pred(CompareOp.EQ, 1, -4))
    path.push(14)
    return path


def test_push_records_positions():
    path = scenario_path()
    assert list(path.branches) == [10, 11, 12, 13, 14]
    assert path.constraint_positions == [1, 3]
    assert len(path.constraints) == 2
    assert len(path) == 5


def test_push_without_constraint_is_plain_branch():
    path = SymbolicPath()
    path.push(7, None)
    assert list(path.branches) == [7]
    assert path.constraints == [] and path.constraint_positions == []


def test_round_trip_keeps_branches_and_positions():
    path = scenario_path()
    back = SymbolicPath.parse(LineReader(path.serialize()))
    assert list(back.branches) == [10, 11, 12, 13, 14]
    assert back.constraint_positions == [1, 3]
    assert back == path


def test_serialized_layout():
    path = SymbolicPath()
    path.push(10)
    path.push(11, pred(CompareOp.EQ, 0))
    assert path.serialize() == "2\n10 11\n1\n1\n0\n(+ x0 0)\n"


def test_empty_path_round_trip():
    path = SymbolicPath()
    assert path.serialize() == "0\n\n0\n\n"
    assert SymbolicPath.parse(LineReader(path.serialize())) == path


def test_parse_does_not_double_count():
    text = "3\n5 6 7\n1\n2\n0\n(+ x0 0)\n"
    path = SymbolicPath.parse(LineReader(text))
    assert list(path.branches) == [5, 6, 7]
    assert path.constraint_positions == [2]


@pytest.mark.parametrize(
    "text",
    [
        "3\n5 6\n0\n\n",                          # too few branch ids
        "2\n5 6 7\n0\n\n",                        # too many branch ids
        "2\n5 x\n0\n\n",                          # non-integer id
        "3\n5 6 7\n2\n2 1\n0\nx0\n0\nx0\n",       # positions out of order
        "3\n5 6 7\n2\n1 1\n0\nx0\n0\nx0\n",       # repeated position
        "3\n5 6 7\n1\n3\n0\nx0\n",                # position past the end
        "3\n5 6 7\n2\n0 1\n0\nx0\n",              # missing predicate
        "3\n5 6 7\n",                             # truncated
        "-1\n\n0\n\n",                            # negative count
        "1\n99999999999999999999\n0\n\n",         # out of 64-bit range
    ],
)
def test_parse_failures(text):
    with pytest.raises(ParseError):
        SymbolicPath.parse(LineReader(text))


def test_constraints_upto():
    path = scenario_path()
    assert path.constraints_upto(1) == []
    assert path.constraints_upto(2) == [path.constraints[0]]
    assert path.constraints_upto(5) == path.constraints


def test_swap_and_clear():
    a = scenario_path()
    b = SymbolicPath(pre_allocate=True)
    constraints = a.constraints
    a.swap(b)
    assert len(a) == 0 and a.constraints == []
    assert list(b.branches) == [10, 11, 12, 13, 14]
    assert b.constraints is constraints
    assert a.pre_allocate and not b.pre_allocate

    b.clear()
    assert len(b) == 0 and b.constraints == [] and b.constraint_positions == []
    b.push(1, pred(CompareOp.LT, 0))
    assert b.constraint_positions == [0]
