from __future__ import annotations

from array import array
from typing import List, Optional

from loguru import logger

from .constraints import SymbolicPredicate
from .wire import LineReader, join_ints


class SymbolicPath:
    """
    Branch decisions of one concrete run, in execution order.

    Only some decisions carry a constraint; `constraint_positions[i]` is the
    index in `branches` of the decision that produced `constraints[i]`.
    Positions are strictly increasing and the two lists have equal length.
    """

    __slots__ = ("branches", "constraints", "constraint_positions", "pre_allocate")

    def __init__(self, pre_allocate: bool = False):
        self.branches = array("q")
        self.constraints: List[SymbolicPredicate] = []
        self.constraint_positions: List[int] = []
        # capacity hint only; array and list growth is amortized
        self.pre_allocate = pre_allocate

    def push(self, branch_id: int, constraint: Optional[SymbolicPredicate] = None) -> None:
        if constraint is not None:
            self.constraints.append(constraint)
            self.constraint_positions.append(len(self.branches))
        self.branches.append(branch_id)

    def constraints_upto(self, index: int) -> List[SymbolicPredicate]:
        """Constraints recorded strictly before branch `index`."""
        return [c for c, pos in zip(self.constraints, self.constraint_positions) if pos < index]

    def swap(self, other: "SymbolicPath") -> None:
        self.branches, other.branches = other.branches, self.branches
        self.constraints, other.constraints = other.constraints, self.constraints
        self.constraint_positions, other.constraint_positions = (
            other.constraint_positions,
            self.constraint_positions,
        )
        self.pre_allocate, other.pre_allocate = other.pre_allocate, self.pre_allocate

    def clear(self) -> None:
        self.branches = array("q")
        self.constraints = []
        self.constraint_positions = []

    def __len__(self) -> int:
        return len(self.branches)

    def serialize(self) -> str:
        parts = [
            f"{len(self.branches)}\n",
            join_ints(self.branches) + "\n",
            f"{len(self.constraints)}\n",
            join_ints(self.constraint_positions) + "\n",
        ]
        parts.extend(c.serialize() for c in self.constraints)
        return "".join(parts)

    @classmethod
    def parse(cls, reader: LineReader) -> "SymbolicPath":
        path = cls()
        n_branches = reader.read_int("branch count")
        if n_branches < 0:
            raise reader.error(f"negative branch count {n_branches}")
        try:
            path.branches = array("q", reader.read_ints(n_branches, "branch id"))
        except OverflowError:
            raise reader.error("branch id out of 64-bit range") from None

        n_constraints = reader.read_int("constraint count")
        if n_constraints < 0:
            raise reader.error(f"negative constraint count {n_constraints}")
        positions = reader.read_ints(n_constraints, "constraint position")
        prev = -1
        for pos in positions:
            if pos <= prev or pos >= n_branches:
                raise reader.error(f"constraint position {pos} out of order or out of range")
            prev = pos
        path.constraint_positions = positions

        path.constraints = [SymbolicPredicate.parse(reader) for _ in range(n_constraints)]
        logger.debug(f"Parsed path: {n_branches} branches, {n_constraints} constraints")
        return path

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SymbolicPath):
            return NotImplemented
        return (
            self.branches == other.branches
            and self.constraint_positions == other.constraint_positions
            and self.constraints == other.constraints
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"SymbolicPath(branches={len(self.branches)}, constraints={len(self.constraints)})"
