"""Base class for allocatable in-circuit values."""

from abc import ABC, abstractmethod
from typing import Any

from foldsigs.r1cs import AllocationMode, ConstraintSystem


class AllocVar(ABC):
    """In-circuit counterpart of a native value.

    Subclasses map one native type onto circuit variables. The mapping must be
    shape-deterministic: two native values of the same type allocate the same
    number of variables and emit the same constraints, whatever their content.
    """

    @classmethod
    @abstractmethod
    def new_variable(cls, cs: ConstraintSystem, native: Any, mode: AllocationMode) -> "AllocVar":
        """Allocate native in cs under mode.

        Raises:
            AllocationError: If native is malformed
        """
        pass

    @classmethod
    def new_witness(cls, cs: ConstraintSystem, native: Any) -> "AllocVar":
        return cls.new_variable(cs, native, AllocationMode.WITNESS)

    @classmethod
    def new_constant(cls, cs: ConstraintSystem, native: Any) -> "AllocVar":
        return cls.new_variable(cs, native, AllocationMode.CONSTANT)
