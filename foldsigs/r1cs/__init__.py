"""R1CS - constraint system, allocation modes, field and boolean variables."""

from foldsigs.r1cs.boolean import Boolean, enforce_le_bits
from foldsigs.r1cs.constraint_system import ONE, AllocationMode, ConstraintSystem, LinearCombination
from foldsigs.r1cs.fp_var import FpVar

__all__ = [
    "ConstraintSystem",
    "AllocationMode",
    "LinearCombination",
    "ONE",
    "FpVar",
    "Boolean",
    "enforce_le_bits",
]
