"""Rank-1 constraint system.

A constraint is <a, z> * <b, z> = <c, z> for linear combinations a, b, c over
the full assignment z = (1, instance..., witness...).

Linear combinations are dicts {variable key: coefficient}. Keys are ints:
instance variable k has key k (key 0 is the constant ONE), witness variable j
has key ~j (= -j - 1). Both assignments always carry values; there is no
separate setup mode. The constraint *shape* is fixed by the synthesis code
path, not by the values, so synthesising with placeholder data yields the same
matrices as synthesising with real data.
"""

from contextlib import contextmanager
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from foldsigs.primitives.field import FR_MODULUS

LinearCombination = Dict[int, int]
SparseRow = Dict[int, int]

ONE = 0
"""Key of the constant-one instance variable."""


class AllocationMode(Enum):
    """How a native value enters the constraint system.

    CONSTANT: baked into linear combinations, no variable allocated
    INPUT: public instance variable
    WITNESS: private, prover-supplied variable
    """
    CONSTANT = "constant"
    INPUT = "input"
    WITNESS = "witness"


class ConstraintSystem:
    """Mutable constraint system with a full assignment."""

    def __init__(self):
        self.instance_assignment: List[int] = [1]
        self.witness_assignment: List[int] = []
        self.a: List[LinearCombination] = []
        self.b: List[LinearCombination] = []
        self.c: List[LinearCombination] = []
        self.labels: List[str] = []
        self._namespace: List[str] = []
        self._label = ""

    # --- Allocation ---

    def new_input_variable(self, value: int) -> int:
        self.instance_assignment.append(value % FR_MODULUS)
        return len(self.instance_assignment) - 1

    def new_witness_variable(self, value: int) -> int:
        self.witness_assignment.append(value % FR_MODULUS)
        return ~(len(self.witness_assignment) - 1)

    def enforce_constraint(self, a: LinearCombination, b: LinearCombination, c: LinearCombination) -> None:
        """Add <a,z> * <b,z> = <c,z>. The dicts must not be mutated afterwards."""
        self.a.append(a)
        self.b.append(b)
        self.c.append(c)
        self.labels.append(self._label)

    @contextmanager
    def namespace(self, name: str) -> Iterator[None]:
        """Label every constraint emitted inside the block with a '/'-joined path."""
        self._namespace.append(name)
        self._label = "/".join(self._namespace)
        try:
            yield
        finally:
            self._namespace.pop()
            self._label = "/".join(self._namespace)

    # --- Sizes ---

    @property
    def num_constraints(self) -> int:
        return len(self.a)

    @property
    def num_instance_variables(self) -> int:
        """Instance variables including the constant ONE."""
        return len(self.instance_assignment)

    @property
    def num_witness_variables(self) -> int:
        return len(self.witness_assignment)

    # --- Evaluation ---

    def assigned_value(self, key: int) -> int:
        return self.instance_assignment[key] if key >= 0 else self.witness_assignment[~key]

    def eval_lc(self, lc: LinearCombination) -> int:
        inst, wit = self.instance_assignment, self.witness_assignment
        acc = 0
        for key, coeff in lc.items():
            acc += coeff * (inst[key] if key >= 0 else wit[~key])
        return acc % FR_MODULUS

    def which_is_unsatisfied(self) -> Optional[int]:
        """Index of the first violated constraint, or None if all hold."""
        p = FR_MODULUS
        for i, (a, b, c) in enumerate(zip(self.a, self.b, self.c)):
            if (self.eval_lc(a) * self.eval_lc(b) - self.eval_lc(c)) % p:
                return i
        return None

    def is_satisfied(self) -> bool:
        return self.which_is_unsatisfied() is None

    # --- Export ---

    def to_matrices(self) -> Tuple[List[SparseRow], List[SparseRow], List[SparseRow]]:
        """Sparse A, B, C over columns (1, instance..., witness...)."""
        n_inst = self.num_instance_variables

        def column(key: int) -> int:
            return key if key >= 0 else n_inst + ~key

        def rows(lcs: List[LinearCombination]) -> List[SparseRow]:
            return [{column(k): v for k, v in lc.items()} for lc in lcs]

        return rows(self.a), rows(self.b), rows(self.c)
