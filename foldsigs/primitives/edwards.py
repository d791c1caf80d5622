"""Twisted Edwards curves over Fr and the BabyJubJub instance.

a*x^2 + y^2 = 1 + d*x^2*y^2

With a a square and d a non-square in the base field, the addition law below
is complete: it has no exceptional cases, which is what lets the in-circuit
version (gadgets.edwards) emit the same constraints for every input.

Points are affine and immutable. Scalar multiplication runs in extended
coordinates (X:Y:T:Z), x = X/Z, y = Y/Z, T = XY/Z.
"""

from dataclasses import dataclass
from typing import Tuple

from foldsigs.primitives.field import FR_MODULUS


@dataclass(frozen=True)
class TwistedEdwardsCurve:
    """Curve parameters.

    Attributes:
        name: Human-readable curve name
        base_modulus: Modulus of the coordinate field (must be the constraint field)
        a, d: Curve coefficients
        generator: Affine (x, y) of a generator of the prime-order subgroup
        order: Prime order of that subgroup (the signature scalar field)
        cofactor: Full group order / order
    """
    name: str
    base_modulus: int
    a: int
    d: int
    generator: Tuple[int, int]
    order: int
    cofactor: int

    def is_on_curve(self, x: int, y: int) -> bool:
        p = self.base_modulus
        x2, y2 = x * x % p, y * y % p
        return (self.a * x2 + y2 - 1 - self.d * x2 * y2) % p == 0


BABYJUBJUB = TwistedEdwardsCurve(
    name="BabyJubJub",
    base_modulus=FR_MODULUS,
    a=168700,
    d=168696,
    generator=(
        5299619240641551281634865583518297030282874472190772894086521144482721001553,
        16950150798460657717958625567821834550301663161624707787222815936182638968203,
    ),
    order=2736030358979909402780800718157159386076813972158567259200215660948447373041,
    cofactor=8,
)


# --- Extended-coordinate arithmetic (internal) ---

def _ext_add(curve: TwistedEdwardsCurve, P, Q):
    p = curve.base_modulus
    X1, Y1, T1, Z1 = P
    X2, Y2, T2, Z2 = Q
    A = X1 * X2 % p
    B = Y1 * Y2 % p
    C = curve.d * T1 % p * T2 % p
    D = Z1 * Z2 % p
    E = ((X1 + Y1) * (X2 + Y2) - A - B) % p
    F = (D - C) % p
    G = (D + C) % p
    H = (B - curve.a * A) % p
    return (E * F % p, G * H % p, E * H % p, F * G % p)


def _ext_mul(curve: TwistedEdwardsCurve, x: int, y: int, k: int):
    result = (0, 1, 0, 1)
    base = (x, y, x * y % curve.base_modulus, 1)
    while k:
        if k & 1:
            result = _ext_add(curve, result, base)
        base = _ext_add(curve, base, base)
        k >>= 1
    return result


def _to_affine(curve: TwistedEdwardsCurve, P) -> Tuple[int, int]:
    p = curve.base_modulus
    X, Y, _, Z = P
    z_inv = pow(Z, -1, p)
    return X * z_inv % p, Y * z_inv % p


@dataclass(frozen=True)
class EdwardsPoint:
    """Affine point on a twisted Edwards curve."""
    x: int
    y: int
    curve: TwistedEdwardsCurve = BABYJUBJUB

    @classmethod
    def identity(cls, curve: TwistedEdwardsCurve = BABYJUBJUB) -> "EdwardsPoint":
        """The neutral element (0, 1)."""
        return cls(0, 1, curve)

    @classmethod
    def generator(cls, curve: TwistedEdwardsCurve = BABYJUBJUB) -> "EdwardsPoint":
        return cls(curve.generator[0], curve.generator[1], curve)

    def is_identity(self) -> bool:
        return self.x == 0 and self.y == 1

    def is_on_curve(self) -> bool:
        p = self.curve.base_modulus
        if not (0 <= self.x < p and 0 <= self.y < p):
            return False
        return self.curve.is_on_curve(self.x, self.y)

    def is_in_prime_subgroup(self) -> bool:
        """True iff the point is on the curve and order * P == identity."""
        return self.is_on_curve() and (self * self.curve.order).is_identity()

    def __add__(self, other: "EdwardsPoint") -> "EdwardsPoint":
        c = self.curve
        P = (self.x, self.y, self.x * self.y % c.base_modulus, 1)
        Q = (other.x, other.y, other.x * other.y % c.base_modulus, 1)
        return EdwardsPoint(*_to_affine(c, _ext_add(c, P, Q)), c)

    def __neg__(self) -> "EdwardsPoint":
        return EdwardsPoint((-self.x) % self.curve.base_modulus, self.y, self.curve)

    def __sub__(self, other: "EdwardsPoint") -> "EdwardsPoint":
        return self + (-other)

    def __mul__(self, k: int) -> "EdwardsPoint":
        if k < 0:
            return (-self) * (-k)
        c = self.curve
        return EdwardsPoint(*_to_affine(c, _ext_mul(c, self.x, self.y, k)), c)

    __rmul__ = __mul__

    def double(self) -> "EdwardsPoint":
        return self + self
