from .config import SolverConfig, configure_logging
from .constraints import SymbolicPredicate
from .errors import ConcolicError, ParseError, UndeclaredVariableError
from .execution import SymbolicExecution
from .path import SymbolicPath
from .solver import Backend, ConstraintSolver, dependent_vars, incremental_solve, make_backend, register_backend
from .solver_z3 import Z3Backend
from .symexpr import SymbolicExpr
from .types import CompareOp, VarType

__all__ = [
    "Backend",
    "CompareOp",
    "ConcolicError",
    "ConstraintSolver",
    "ParseError",
    "SolverConfig",
    "SymbolicExecution",
    "SymbolicExpr",
    "SymbolicPath",
    "SymbolicPredicate",
    "UndeclaredVariableError",
    "VarType",
    "Z3Backend",
    "configure_logging",
    "dependent_vars",
    "incremental_solve",
    "make_backend",
    "register_backend",
]
