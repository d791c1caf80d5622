"""Non-hiding Pedersen vector commitments over BN254 G1.

    commit(v) = sum_i v_i * G_i

G1 has prime order r, so commitments are to vectors over Fr and are
additively homomorphic, which is what folding needs:
commit(v1 + c*v2) = commit(v1) + c*commit(v2).

Generators come from try-and-increment hash-to-curve over a seed, so nobody
knows discrete-log relations between them and the verifier can rebuild the key
from (seed, size) alone.

Group points are py_ecc optimized_bn128 points (projective FQ triples), and
all group arithmetic, including the bucketed multi-scalar multiplication, goes
through its add/double. Generators are stored as affine int pairs.
"""

import hashlib
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from py_ecc.optimized_bn128 import FQ, Z1, add, b, double, eq, field_modulus, is_inf, is_on_curve, multiply, normalize

from foldsigs.primitives.field import FR_MODULUS

G1Point = Tuple[FQ, FQ, FQ]
AffineInt = Tuple[int, int]

PEDERSEN_DOMAIN = b"foldsigs/pedersen/bn254-g1"
SEED_BYTES = 32

_Q = field_modulus
_B = int(b.n)


# --- Hash to curve ---

def _hash_to_g1(seed: bytes, index: int) -> AffineInt:
    """Try-and-increment: x = H(seed, index, ctr), y = sqrt(x^3 + 3).

    q = 3 mod 4, so a square root is v^((q+1)/4) when one exists.
    """
    ctr = 0
    while True:
        digest = hashlib.sha512(
            PEDERSEN_DOMAIN + seed + index.to_bytes(8, "little") + ctr.to_bytes(4, "little")
        ).digest()
        x = int.from_bytes(digest, "little") % _Q
        rhs = (x * x * x + _B) % _Q
        y = pow(rhs, (_Q + 1) // 4, _Q)
        if y * y % _Q == rhs:
            # canonical sign: the smaller root
            return x, min(y, _Q - y)
        ctr += 1


# --- Multi-scalar multiplication (py_ecc group law) ---

def _to_g1(base: AffineInt) -> G1Point:
    return (FQ(base[0]), FQ(base[1]), FQ.one())


def _window_bits(n: int) -> int:
    if n < 32:
        return 3
    return min(16, max(4, n.bit_length() - 3))


def msm(bases: Sequence[AffineInt], scalars: Sequence[int]) -> G1Point:
    """Multi-scalar multiplication sum_i scalars[i] * bases[i] (Pippenger buckets).

    Zero scalars are skipped and unit scalars are summed directly; witness
    vectors are dominated by boolean entries, so this removes most of the work.

    Args:
        bases: Affine generator coordinates as ints
        scalars: Integers, reduced mod r

    Returns:
        py_ecc optimized_bn128 point
    """
    if len(scalars) > len(bases):
        raise ValueError(f"{len(scalars)} scalars but only {len(bases)} bases")

    acc: G1Point = Z1
    big: List[Tuple[int, G1Point]] = []
    for s, base in zip(scalars, bases):
        s %= FR_MODULUS
        if s == 0:
            continue
        if s == 1:
            acc = add(acc, _to_g1(base))
        else:
            big.append((s, _to_g1(base)))

    if big:
        c = _window_bits(len(big))
        mask = (1 << c) - 1
        n_windows = (FR_MODULUS.bit_length() + c - 1) // c
        window_sums: G1Point = Z1
        for w in reversed(range(n_windows)):
            for _ in range(c):
                window_sums = double(window_sums)
            shift = w * c
            buckets: List[G1Point] = [Z1] * mask
            for s, point in big:
                idx = (s >> shift) & mask
                if idx:
                    buckets[idx - 1] = add(buckets[idx - 1], point)
            running: G1Point = Z1
            total: G1Point = Z1
            for bucket in reversed(buckets):
                running = add(running, bucket)
                total = add(total, running)
            window_sums = add(window_sums, total)
        acc = add(acc, window_sums)

    return _normalized(acc)


def _normalized(point: G1Point) -> G1Point:
    """Projective point rescaled to Z = 1 (infinity stays Z1)."""
    if is_inf(point):
        return Z1
    x, y = normalize(point)
    return (x, y, FQ.one())


# --- Commitment scheme ---

@dataclass
class PedersenParams:
    """Commitment key: the seed and the affine generators it expands to."""
    seed: bytes
    generators: List[AffineInt] = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.generators)


class Pedersen:
    """Non-hiding Pedersen commitment scheme (stateless)."""

    @staticmethod
    def setup(rng: np.random.Generator, size: int) -> PedersenParams:
        """Sample a seed from rng and derive size generators."""
        return Pedersen.from_seed(rng.bytes(SEED_BYTES), size)

    @staticmethod
    def from_seed(seed: bytes, size: int) -> PedersenParams:
        if size < 0:
            raise ValueError(f"commitment key size must be non-negative, got {size}")
        return PedersenParams(seed=bytes(seed), generators=[_hash_to_g1(seed, i) for i in range(size)])

    @staticmethod
    def commit(params: PedersenParams, vector: Sequence[int]) -> G1Point:
        if len(vector) > params.size:
            raise ValueError(f"vector of length {len(vector)} exceeds commitment key size {params.size}")
        return msm(params.generators, vector)


# --- Group helpers (py_ecc) ---

def g1_add(p1: G1Point, p2: G1Point) -> G1Point:
    return add(p1, p2)


def g1_mul(point: G1Point, scalar: int) -> G1Point:
    scalar %= FR_MODULUS
    if scalar == 0 or is_inf(point):
        return Z1
    return multiply(point, scalar)


def g1_eq(p1: G1Point, p2: G1Point) -> bool:
    return eq(p1, p2)


def g1_to_affine_ints(point: G1Point) -> Optional[AffineInt]:
    """(x, y) as ints, or None for the point at infinity."""
    if is_inf(point):
        return None
    x, y = normalize(point)
    return int(x.n), int(y.n)


def g1_from_affine_ints(xy: Optional[AffineInt]) -> G1Point:
    """Inverse of g1_to_affine_ints.

    Raises:
        ValueError: If the coordinates are out of range or not on the curve
    """
    if xy is None:
        return Z1
    x, y = xy
    if not (0 <= x < _Q and 0 <= y < _Q):
        raise ValueError("G1 coordinate out of range")
    point = (FQ(x), FQ(y), FQ.one())
    if not is_on_curve(point, b):
        raise ValueError("point is not on BN254 G1")
    return point
