"""In-circuit twisted Edwards points.

Addition follows the complete formula

    beta  = x1*y2            gamma = y1*x2
    delta = (y1 - a*x1) * (x2 + y2)
    tau   = beta * gamma
    x3 = (beta + gamma) / (1 + d*tau)
    y3 = (delta + a*beta - gamma) / (1 - d*tau)

which costs six constraints for two variable operands and fewer when one of
them is constant. The denominators never vanish on the curve, so the same
constraints serve every input, the identity included.
"""

from typing import List, Sequence

from foldsigs.errors import AllocationError, SynthesisError
from foldsigs.primitives.edwards import BABYJUBJUB, EdwardsPoint, TwistedEdwardsCurve
from foldsigs.r1cs import AllocationMode, Boolean, ConstraintSystem, FpVar


class EdwardsVar:
    """Affine point variable (x, y) on a fixed curve."""

    def __init__(self, x: FpVar, y: FpVar, curve: TwistedEdwardsCurve = BABYJUBJUB):
        self.x = x
        self.y = y
        self.curve = curve

    # --- Construction ---

    @classmethod
    def constant(cls, point: EdwardsPoint) -> "EdwardsVar":
        return cls(FpVar.constant(point.x), FpVar.constant(point.y), point.curve)

    @classmethod
    def zero(cls, curve: TwistedEdwardsCurve = BABYJUBJUB) -> "EdwardsVar":
        return cls.constant(EdwardsPoint.identity(curve))

    @classmethod
    def new_variable(cls, cs: ConstraintSystem, point: EdwardsPoint, mode: AllocationMode) -> "EdwardsVar":
        """Allocate a point of the prime-order subgroup.

        Non-constant modes allocate Q = P / cofactor, enforce Q on the curve
        and return cofactor * Q via repeated doubling. Any on-curve Q lands in
        the prime-order subgroup after multiplication by the cofactor, so the
        result is constrained to the subgroup without a full scalar
        multiplication. Cofactor must be a power of two.

        Raises:
            AllocationError: If the point is off the curve or outside the subgroup
        """
        curve = point.curve
        if not point.is_on_curve():
            raise AllocationError(f"point ({point.x}, {point.y}) is not on {curve.name}")
        if mode is AllocationMode.CONSTANT:
            return cls.constant(point)
        if not point.is_in_prime_subgroup():
            raise AllocationError(f"point ({point.x}, {point.y}) is not in the prime-order subgroup")
        cofactor = curve.cofactor
        if cofactor & (cofactor - 1):
            raise SynthesisError(f"cofactor {cofactor} is not a power of two")

        q = point * pow(cofactor, -1, curve.order)
        qx = FpVar.new_variable(cs, q.x, mode)
        qy = FpVar.new_variable(cs, q.y, mode)
        result = cls(qx, qy, curve)
        result.enforce_on_curve()
        for _ in range(cofactor.bit_length() - 1):
            result = result.double()
        return result

    def enforce_on_curve(self) -> None:
        """a*x^2 + y^2 = 1 + d*x^2*y^2 (three constraints)."""
        c = self.curve
        x2 = self.x.square()
        y2 = self.y.square()
        lhs = x2.mul_by_constant(c.a) + y2 - 1
        x2.cs.enforce_constraint(x2.mul_by_constant(c.d).lc, y2.lc, lhs.lc)

    # --- Group law ---

    def is_constant(self) -> bool:
        return self.x.is_constant() and self.y.is_constant()

    def __add__(self, other: "EdwardsVar") -> "EdwardsVar":
        c = self.curve
        if self.is_constant() and other.is_constant():
            return EdwardsVar.constant(self.value + other.value)
        x1, y1, x2, y2 = self.x, self.y, other.x, other.y
        beta = x1 * y2
        gamma = y1 * x2
        delta = (y1 - x1.mul_by_constant(c.a)) * (x2 + y2)
        tau = beta * gamma
        d_tau = tau.mul_by_constant(c.d)
        x3 = (beta + gamma).mul_by_inverse(d_tau + 1)
        y3 = (delta + beta.mul_by_constant(c.a) - gamma).mul_by_inverse(1 - d_tau)
        return EdwardsVar(x3, y3, c)

    def negate(self) -> "EdwardsVar":
        return EdwardsVar(-self.x, self.y, self.curve)

    __neg__ = negate

    def __sub__(self, other: "EdwardsVar") -> "EdwardsVar":
        return self + other.negate()

    def double(self) -> "EdwardsVar":
        return self + self

    def scalar_mul_le(self, bits: Sequence[Boolean]) -> "EdwardsVar":
        """sum_i bits[i] * 2^i * self, by double-and-add with selects."""
        result = EdwardsVar.zero(self.curve)
        base = self
        for i, bit in enumerate(bits):
            added = result + base
            result = EdwardsVar(bit.select(added.x, result.x), bit.select(added.y, result.y), self.curve)
            if i + 1 < len(bits):
                base = base.double()
        return result

    # --- Comparison and export ---

    def is_eq(self, other: "EdwardsVar") -> Boolean:
        return self.x.is_eq(other.x).and_(self.y.is_eq(other.y))

    def enforce_equal(self, other: "EdwardsVar") -> None:
        self.x.enforce_equal(other.x)
        self.y.enforce_equal(other.y)

    def to_constraint_field(self) -> List[FpVar]:
        return [self.x, self.y]

    @property
    def value(self) -> EdwardsPoint:
        return EdwardsPoint(self.x.value, self.y.value, self.curve)

    def __repr__(self) -> str:
        return f"EdwardsVar(x={self.x.value}, y={self.y.value})"
