"""Field-element variables.

An FpVar is a linear combination over constraint-system variables together
with its assigned value. Constants carry no constraint system (cs is None) and
their linear combination only references ONE; arithmetic between constants
never emits constraints. Additions and scalings are free; each product of two
non-constant operands allocates one witness and one constraint.
"""

from typing import TYPE_CHECKING, List, Optional, Union

import numpy as np

from foldsigs.errors import AllocationError, SynthesisError
from foldsigs.primitives.field import FR_MODULUS, FR_MODULUS_BITS, field_inv
from foldsigs.r1cs.constraint_system import ONE, AllocationMode, ConstraintSystem, LinearCombination

if TYPE_CHECKING:
    from foldsigs.r1cs.boolean import Boolean

_P = FR_MODULUS


def _lc_add(x: LinearCombination, y: LinearCombination, scale: int = 1) -> LinearCombination:
    """x + scale*y with zero coefficients dropped."""
    out = dict(x)
    for key, coeff in y.items():
        v = (out.get(key, 0) + scale * coeff) % _P
        if v:
            out[key] = v
        else:
            out.pop(key, None)
    return out


def _lc_scale(x: LinearCombination, scale: int) -> LinearCombination:
    scale %= _P
    if scale == 0:
        return {}
    return {key: coeff * scale % _P for key, coeff in x.items()}


def _const_lc(value: int) -> LinearCombination:
    value %= _P
    return {ONE: value} if value else {}


def check_native_field(value) -> int:
    """Validate a native field value for allocation.

    Raises:
        AllocationError: If the value is not an integer in [0, r)
    """
    if isinstance(value, np.ndarray) and value.ndim == 0:
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise AllocationError(f"field value must be an integer, got {type(value).__name__}")
    value = int(value)
    if not 0 <= value < _P:
        raise AllocationError("field value out of range [0, r)")
    return value


class FpVar:
    """Variable or constant over Fr."""

    __slots__ = ("cs", "lc", "value")

    def __init__(self, cs: Optional[ConstraintSystem], lc: LinearCombination, value: int):
        self.cs = cs
        self.lc = lc
        self.value = value % _P

    # --- Construction ---

    @classmethod
    def constant(cls, value: int) -> "FpVar":
        return cls(None, _const_lc(value), value)

    @classmethod
    def zero(cls) -> "FpVar":
        return cls.constant(0)

    @classmethod
    def one(cls) -> "FpVar":
        return cls.constant(1)

    @classmethod
    def new_variable(cls, cs: ConstraintSystem, value, mode: AllocationMode) -> "FpVar":
        """Allocate a native field value."""
        value = check_native_field(value)
        if mode is AllocationMode.CONSTANT:
            return cls.constant(value)
        if mode is AllocationMode.INPUT:
            key = cs.new_input_variable(value)
        else:
            key = cs.new_witness_variable(value)
        return cls(cs, {key: 1}, value)

    @classmethod
    def new_witness(cls, cs: ConstraintSystem, value) -> "FpVar":
        return cls.new_variable(cs, value, AllocationMode.WITNESS)

    @classmethod
    def new_input(cls, cs: ConstraintSystem, value) -> "FpVar":
        return cls.new_variable(cs, value, AllocationMode.INPUT)

    def is_constant(self) -> bool:
        return self.cs is None

    def _join(self, other: "FpVar") -> Optional[ConstraintSystem]:
        if self.cs is not None and other.cs is not None and self.cs is not other.cs:
            raise SynthesisError("operands belong to different constraint systems")
        return self.cs if self.cs is not None else other.cs

    # --- Linear operations ---

    def __add__(self, other: Union["FpVar", int]) -> "FpVar":
        if isinstance(other, int):
            return FpVar(self.cs, _lc_add(self.lc, _const_lc(other)), self.value + other)
        return FpVar(self._join(other), _lc_add(self.lc, other.lc), self.value + other.value)

    __radd__ = __add__

    def __neg__(self) -> "FpVar":
        return FpVar(self.cs, _lc_scale(self.lc, -1), -self.value)

    def __sub__(self, other: Union["FpVar", int]) -> "FpVar":
        if isinstance(other, int):
            return FpVar(self.cs, _lc_add(self.lc, _const_lc(-other)), self.value - other)
        return FpVar(self._join(other), _lc_add(self.lc, other.lc, -1), self.value - other.value)

    def __rsub__(self, other: int) -> "FpVar":
        return (-self) + other

    def mul_by_constant(self, c: int) -> "FpVar":
        return FpVar(self.cs if c % _P else None, _lc_scale(self.lc, c), self.value * c)

    # --- Multiplicative operations ---

    def __mul__(self, other: Union["FpVar", int]) -> "FpVar":
        if isinstance(other, int):
            return self.mul_by_constant(other)
        if other.is_constant():
            return self.mul_by_constant(other.value)
        if self.is_constant():
            return other.mul_by_constant(self.value)
        cs = self._join(other)
        product = FpVar.new_witness(cs, self.value * other.value % _P)
        cs.enforce_constraint(self.lc, other.lc, product.lc)
        return product

    __rmul__ = __mul__

    def square(self) -> "FpVar":
        return self * self

    def inverse(self) -> "FpVar":
        """Multiplicative inverse; unsatisfiable when the value is zero."""
        if self.is_constant():
            if self.value == 0:
                raise SynthesisError("inverse of constant zero")
            return FpVar.constant(field_inv(self.value))
        inv = FpVar.new_witness(self.cs, field_inv(self.value))
        self.cs.enforce_constraint(self.lc, inv.lc, {ONE: 1})
        return inv

    def mul_by_inverse(self, denominator: "FpVar") -> "FpVar":
        """self / denominator with a single constraint result * den = self.

        The caller guarantees the denominator is non-zero for every valid
        assignment. A zero denominator yields a zero witness, not an exception.
        """
        if denominator.is_constant():
            if denominator.value == 0:
                raise SynthesisError("division by constant zero")
            return self.mul_by_constant(field_inv(denominator.value))
        cs = self._join(denominator)
        result = FpVar.new_witness(cs, self.value * field_inv(denominator.value) % _P)
        cs.enforce_constraint(result.lc, denominator.lc, self.lc)
        return result

    # --- Comparisons ---

    def enforce_equal(self, other: Union["FpVar", int]) -> None:
        if isinstance(other, int):
            other = FpVar.constant(other)
        diff = self - other
        if diff.is_constant():
            if diff.value != 0:
                raise SynthesisError("enforce_equal on two different constants")
            return
        diff.cs.enforce_constraint(diff.lc, {ONE: 1}, {})

    def is_eq(self, other: Union["FpVar", int]) -> "Boolean":
        """Boolean wire that is true iff self == other.

        diff * inv = 1 - eq and diff * eq = 0 force eq to be boolean and
        correct for any assignment of inv.
        """
        from foldsigs.r1cs.boolean import Boolean

        if isinstance(other, int):
            other = FpVar.constant(other)
        diff = self - other
        if diff.is_constant():
            return Boolean.constant(diff.value == 0)
        cs = diff.cs
        equal = diff.value == 0
        eq = Boolean(cs, {cs.new_witness_variable(int(equal)): 1}, equal)
        inv = FpVar.new_witness(cs, field_inv(diff.value))
        cs.enforce_constraint(diff.lc, inv.lc, _lc_add({ONE: 1}, eq.lc, -1))
        cs.enforce_constraint(diff.lc, eq.lc, {})
        return eq

    def to_bits_le(self) -> List["Boolean"]:
        """Canonical little-endian decomposition into FR_MODULUS_BITS booleans.

        Enforces both that the bits recompose to self and that they encode a
        value below r, so the decomposition is unique.
        """
        from foldsigs.r1cs.boolean import Boolean, enforce_le_bits

        if self.is_constant():
            return [Boolean.constant(bool((self.value >> i) & 1)) for i in range(FR_MODULUS_BITS)]
        bits = Boolean.new_bits_le(self.cs, self.value, FR_MODULUS_BITS, AllocationMode.WITNESS)
        recomposed: LinearCombination = {}
        for i, bit in enumerate(bits):
            recomposed = _lc_add(recomposed, bit.lc, 1 << i)
        self.cs.enforce_constraint(_lc_add(recomposed, self.lc, -1), {ONE: 1}, {})
        enforce_le_bits(bits, _P - 1)
        return bits

    def __repr__(self) -> str:
        kind = "const" if self.is_constant() else "var"
        return f"FpVar({kind}, value={self.value})"


__all__ = ["FpVar", "check_native_field"]
