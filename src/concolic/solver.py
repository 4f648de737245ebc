from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict, deque
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Set

from loguru import logger

from .config import SolverConfig
from .constraints import SymbolicPredicate
from .errors import UndeclaredVariableError
from .types import VarType

Solution = Dict[int, int]


class Backend(ABC):
    """
    Decision procedure interface.

    `solve` declares one bounded integer per variable in `var_types`,
    asserts every predicate and checks satisfiability. It returns a value
    for every declared variable, or None when the system is unsatisfiable
    or the backend could not decide it.
    """

    @abstractmethod
    def solve(
        self,
        var_types: Mapping[int, VarType],
        constraints: Sequence[SymbolicPredicate],
    ) -> Optional[Solution]:
        ...


_BACKENDS: Dict[str, Callable[[SolverConfig], Backend]] = {}


def register_backend(name: str):
    def decorator(factory):
        _BACKENDS[name] = factory
        return factory
    return decorator


def make_backend(config: Optional[SolverConfig] = None) -> Backend:
    config = config or SolverConfig()
    try:
        factory = _BACKENDS[config.backend]
    except KeyError:
        raise ValueError(
            f"Unknown solver backend {config.backend!r}, known: {sorted(_BACKENDS)}"
        ) from None
    return factory(config)


def dependent_vars(
    var_types: Mapping[int, VarType],
    constraints: Sequence[SymbolicPredicate],
) -> Dict[int, VarType]:
    """
    Variables connected to the last constraint.

    Two variables are adjacent when they occur in the same constraint; the
    result is the connected component reachable from the variables of
    `constraints[-1]`, each mapped to its declared type.
    """
    if not constraints:
        raise ValueError("dependent_vars needs at least one constraint")

    depends: Dict[int, Set[int]] = defaultdict(set)
    for c in constraints:
        vs = c.vars()
        for v in vs:
            depends[v].update(vs)

    def declared(v: int) -> VarType:
        try:
            return var_types[v]
        except KeyError:
            raise UndeclaredVariableError(v) from None

    relevant: Dict[int, VarType] = {}
    queue: deque[int] = deque()
    for v in sorted(constraints[-1].vars()):
        relevant[v] = declared(v)
        queue.append(v)

    while queue:
        v = queue.popleft()
        for w in depends[v]:
            if w not in relevant:
                relevant[w] = declared(w)
                queue.append(w)
    return relevant


class ConstraintSolver:
    """
    Computes the inputs for the next concrete run.

    The backend only ever sees the slice of the path constraints that is
    connected to the branch being flipped; every other variable keeps the
    value it had in the previous run.
    """

    def __init__(self, config: Optional[SolverConfig] = None, backend: Optional[Backend] = None):
        self.config = config or SolverConfig()
        self.backend = backend if backend is not None else make_backend(self.config)

    def solve(
        self,
        var_types: Mapping[int, VarType],
        constraints: Sequence[SymbolicPredicate],
    ) -> Optional[Solution]:
        if self.config.log_queries:
            for c in constraints:
                logger.debug(f"assert {c.text}")
        soln = self.backend.solve(var_types, constraints)
        if self.config.debug:
            logger.debug(
                f"solve: {len(var_types)} vars, {len(constraints)} constraints -> "
                f"{'sat' if soln is not None else 'no solution'}"
            )
        return soln

    def incremental_solve(
        self,
        old_solution: Mapping[int, int],
        var_types: Mapping[int, VarType],
        constraints: Sequence[SymbolicPredicate],
    ) -> Optional[Solution]:
        """
        Solve `constraints`, whose last element is the newly added one.

        Returns None when the slice is unsatisfiable or the backend fails.
        """
        relevant = dependent_vars(var_types, constraints)
        # variable-free constraints cannot be sliced away: a false one makes
        # the whole system unsatisfiable
        sliced: List[SymbolicPredicate] = [
            c for c in constraints if c.depends_on(relevant) or c.expr.is_concrete
        ]
        logger.debug(
            f"incremental_solve: {len(relevant)} dependent vars, "
            f"{len(sliced)}/{len(constraints)} constraints"
        )

        soln = self.solve(relevant, sliced)
        if soln is None:
            return None

        all_vars: Set[int] = set()
        for c in constraints:
            c.append_vars(all_vars)
        for v in sorted(all_vars):
            if v in relevant:
                continue
            try:
                soln[v] = old_solution[v]
            except KeyError:
                raise UndeclaredVariableError(v, "old_solution") from None
        return soln


def incremental_solve(
    old_solution: Mapping[int, int],
    var_types: Mapping[int, VarType],
    constraints: Sequence[SymbolicPredicate],
    backend: Optional[Backend] = None,
) -> Optional[Solution]:
    return ConstraintSolver(backend=backend).incremental_solve(old_solution, var_types, constraints)
