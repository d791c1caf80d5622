"""Boolean variables and bit-level gadgets."""

from typing import List, Optional, Sequence

from foldsigs.errors import AllocationError, SynthesisError
from foldsigs.primitives.field import FR_MODULUS
from foldsigs.r1cs.constraint_system import ONE, AllocationMode, ConstraintSystem, LinearCombination
from foldsigs.r1cs.fp_var import FpVar, _lc_add, _lc_scale


class Boolean:
    """A 0/1 wire. Constants carry cs=None."""

    __slots__ = ("cs", "lc", "value")

    TRUE: "Boolean"
    FALSE: "Boolean"

    def __init__(self, cs: Optional[ConstraintSystem], lc: LinearCombination, value: bool):
        self.cs = cs
        self.lc = lc
        self.value = bool(value)

    @classmethod
    def constant(cls, value: bool) -> "Boolean":
        return cls.TRUE if value else cls.FALSE

    def is_constant(self) -> bool:
        return self.cs is None

    @classmethod
    def new_variable(cls, cs: ConstraintSystem, value: bool, mode: AllocationMode) -> "Boolean":
        """Allocate a bit; non-constant bits get a booleanity constraint b * (1 - b) = 0."""
        if mode is AllocationMode.CONSTANT:
            return cls.constant(value)
        v = int(bool(value))
        key = cs.new_input_variable(v) if mode is AllocationMode.INPUT else cs.new_witness_variable(v)
        cs.enforce_constraint({key: 1}, {ONE: 1, key: FR_MODULUS - 1}, {})
        return cls(cs, {key: 1}, bool(value))

    @classmethod
    def new_witness(cls, cs: ConstraintSystem, value: bool) -> "Boolean":
        return cls.new_variable(cs, value, AllocationMode.WITNESS)

    @classmethod
    def new_bits_le(cls, cs: ConstraintSystem, value: int, width: int, mode: AllocationMode) -> List["Boolean"]:
        """Allocate the little-endian bits of value, exactly width of them.

        Raises:
            AllocationError: If value is negative or needs more than width bits
        """
        if value < 0 or value.bit_length() > width:
            raise AllocationError(f"value does not fit in {width} bits")
        return [cls.new_variable(cs, bool((value >> i) & 1), mode) for i in range(width)]

    # --- Logic ---

    def not_(self) -> "Boolean":
        if self.is_constant():
            return Boolean.constant(not self.value)
        return Boolean(self.cs, _lc_add({ONE: 1}, self.lc, -1), not self.value)

    def and_(self, other: "Boolean") -> "Boolean":
        if self.is_constant():
            return other if self.value else Boolean.FALSE
        if other.is_constant():
            return self if other.value else Boolean.FALSE
        cs = self.cs
        result = self.value and other.value
        key = cs.new_witness_variable(int(result))
        cs.enforce_constraint(self.lc, other.lc, {key: 1})
        return Boolean(cs, {key: 1}, result)

    def or_(self, other: "Boolean") -> "Boolean":
        return self.not_().and_(other.not_()).not_()

    @staticmethod
    def kary_and(bits: Sequence["Boolean"]) -> "Boolean":
        acc = Boolean.TRUE
        for bit in bits:
            acc = acc.and_(bit)
        return acc

    @staticmethod
    def enforce_nand(bits: Sequence["Boolean"]) -> None:
        """Enforce that not all of bits are true."""
        live = []
        for bit in bits:
            if bit.is_constant():
                if not bit.value:
                    return
            else:
                live.append(bit)
        if not live:
            raise SynthesisError("enforce_nand on all-true constants")
        if len(live) == 1:
            live[0].enforce_equal(Boolean.FALSE)
            return
        head = Boolean.kary_and(live[:-1])
        head.cs.enforce_constraint(head.lc, live[-1].lc, {})

    # --- Equality and selection ---

    def enforce_equal(self, other: "Boolean") -> None:
        diff = _lc_add(self.lc, other.lc, -1)
        cs = self.cs if self.cs is not None else other.cs
        if cs is None:
            if self.value != other.value:
                raise SynthesisError("enforce_equal on two different constant booleans")
            return
        cs.enforce_constraint(diff, {ONE: 1}, {})

    def to_fp_var(self) -> FpVar:
        return FpVar(self.cs, dict(self.lc), int(self.value))

    def select(self, if_true: FpVar, if_false: FpVar) -> FpVar:
        """if_true when self holds, else if_false.

        One constraint cond * (t - f) = r - f, or none when cond is constant.
        """
        if self.is_constant():
            return if_true if self.value else if_false
        cs = self.cs
        diff = if_true - if_false
        if diff.is_constant():
            # linear in cond: f + cond * (t - f)
            scaled = _lc_scale(self.lc, diff.value)
            return FpVar(cs, _lc_add(if_false.lc, scaled), if_false.value + int(self.value) * diff.value)
        chosen = if_true if self.value else if_false
        result = FpVar.new_witness(cs, chosen.value)
        cs.enforce_constraint(self.lc, diff.lc, _lc_add(result.lc, if_false.lc, -1))
        return result

    def __repr__(self) -> str:
        kind = "const" if self.is_constant() else "var"
        return f"Boolean({kind}, {self.value})"


Boolean.TRUE = Boolean(None, {ONE: 1}, True)
Boolean.FALSE = Boolean(None, {}, False)


def enforce_le_bits(bits_le: Sequence[Boolean], bound: int) -> None:
    """Enforce that the little-endian bits encode an integer <= bound.

    Walks the bits from the most significant end. Runs of ones in the bound
    are AND-ed together with the previous run; at each zero bit of the bound,
    the candidate bit may only be set if an earlier run already broke. Costs
    one constraint per zero bit of bound plus the run products.
    """
    width = len(bits_le)
    if bound.bit_length() > width:
        return
    last_run = Boolean.TRUE
    current_run: List[Boolean] = []
    for i in reversed(range(width)):
        bit = bits_le[i]
        if (bound >> i) & 1:
            current_run.append(bit)
        else:
            if current_run:
                current_run.append(last_run)
                last_run = Boolean.kary_and(current_run)
                current_run = []
            Boolean.enforce_nand([bit, last_run])


__all__ = ["Boolean", "enforce_le_bits"]
