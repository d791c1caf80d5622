"""Relaxed R1CS and the folding operations over it.

A relaxed instance (comm_W, comm_E, u, x) with witness (W, E) is satisfied when

    (A.Z) o (B.Z) = u * (C.Z) + E,    Z = (u, x, W)

and comm_W, comm_E open to W, E. A plain R1CS instance is the special case
u = 1, E = 0. Two instances fold with a challenge r:

    T  = AZ1 o BZ2 + AZ2 o BZ1 - u1*CZ2 - u2*CZ1
    W  = W1 + r*W2          E = E1 + r*T + r^2*E2
    u  = u1 + r*u2          x = x1 + r*x2
    comm_W = comm_W1 + r*comm_W2
    comm_E = comm_E1 + r*comm_T + r^2*comm_E2
"""

import hashlib
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from py_ecc.optimized_bn128 import Z1

from foldsigs.primitives.field import FR_MODULUS
from foldsigs.primitives.pedersen import G1Point, Pedersen, PedersenParams, g1_add, g1_eq, g1_mul
from foldsigs.primitives.transcript import PoseidonTranscript
from foldsigs.r1cs import ConstraintSystem

SparseMatrix = List[dict]


@dataclass
class R1CSShape:
    """Sparse constraint matrices over columns (1 | x | W).

    Attributes:
        num_constraints: Rows of A, B, C
        num_io: Public inputs, excluding the constant column
        num_vars: Witness variables
    """
    num_constraints: int
    num_io: int
    num_vars: int
    A: SparseMatrix
    B: SparseMatrix
    C: SparseMatrix

    @classmethod
    def from_constraint_system(cls, cs: ConstraintSystem) -> "R1CSShape":
        A, B, C = cs.to_matrices()
        return cls(
            num_constraints=cs.num_constraints,
            num_io=cs.num_instance_variables - 1,
            num_vars=cs.num_witness_variables,
            A=A, B=B, C=C,
        )

    def same_shape(self, other: "R1CSShape") -> bool:
        return (
            self.num_constraints == other.num_constraints
            and self.num_io == other.num_io
            and self.num_vars == other.num_vars
            and self.A == other.A
            and self.B == other.B
            and self.C == other.C
        )

    def digest(self) -> int:
        """Hash of the shape, reduced into Fr."""
        h = hashlib.blake2b(digest_size=64)
        h.update(f"{self.num_constraints}:{self.num_io}:{self.num_vars}".encode())
        for name, matrix in (("A", self.A), ("B", self.B), ("C", self.C)):
            h.update(name.encode())
            for i, row in enumerate(matrix):
                for col, coeff in sorted(row.items()):
                    h.update(f"{i},{col},{coeff};".encode())
        return int.from_bytes(h.digest(), "little") % FR_MODULUS

    def multiply_vec(self, z: Sequence[int]) -> Tuple[List[int], List[int], List[int]]:
        """(A.z, B.z, C.z) over Fr, as lists of canonical ints.

        Like the folding helpers below, this works on plain ints rather than
        FF arrays: galois stores a 254-bit field with object dtype, which adds
        per-element overhead on vectors the size of the witness.
        """
        if len(z) != 1 + self.num_io + self.num_vars:
            raise ValueError(f"z has {len(z)} entries, expected {1 + self.num_io + self.num_vars}")
        p = FR_MODULUS

        def mul(matrix: SparseMatrix) -> List[int]:
            return [sum(coeff * z[col] for col, coeff in row.items()) % p for row in matrix]

        return mul(self.A), mul(self.B), mul(self.C)


# --- Instances and witnesses ---

@dataclass
class RelaxedR1CSInstance:
    """Committed relaxed instance."""
    comm_W: G1Point
    comm_E: G1Point
    u: int
    x: List[int]

    @classmethod
    def from_r1cs(cls, comm_W: G1Point, x: Sequence[int]) -> "RelaxedR1CSInstance":
        """Plain R1CS instance: u = 1, E = 0."""
        return cls(comm_W=comm_W, comm_E=Z1, u=1, x=[v % FR_MODULUS for v in x])

    def equals(self, other: "RelaxedR1CSInstance") -> bool:
        return (
            g1_eq(self.comm_W, other.comm_W)
            and g1_eq(self.comm_E, other.comm_E)
            and self.u % FR_MODULUS == other.u % FR_MODULUS
            and [v % FR_MODULUS for v in self.x] == [v % FR_MODULUS for v in other.x]
        )


@dataclass
class RelaxedR1CSWitness:
    W: List[int]
    E: List[int]

    @classmethod
    def from_r1cs(cls, W: Sequence[int], num_constraints: int) -> "RelaxedR1CSWitness":
        return cls(W=list(W), E=[0] * num_constraints)


def relaxed_z(U: RelaxedR1CSInstance, W: RelaxedR1CSWitness) -> List[int]:
    return [U.u] + list(U.x) + list(W.W)


def which_is_unsatisfied_relaxed(shape: R1CSShape, U: RelaxedR1CSInstance,
                                 W: RelaxedR1CSWitness) -> Optional[int]:
    """Index of the first row where AZ o BZ != u*CZ + E, or None.

    Raises:
        ValueError: If the instance or witness has the wrong dimensions
    """
    if len(U.x) != shape.num_io:
        raise ValueError(f"instance has {len(U.x)} public inputs, expected {shape.num_io}")
    if len(W.W) != shape.num_vars:
        raise ValueError(f"witness has {len(W.W)} variables, expected {shape.num_vars}")
    if len(W.E) != shape.num_constraints:
        raise ValueError(f"error vector has {len(W.E)} entries, expected {shape.num_constraints}")
    p = FR_MODULUS
    az, bz, cz = shape.multiply_vec(relaxed_z(U, W))
    u = U.u
    for i, (a, b, c, e) in enumerate(zip(az, bz, cz, W.E)):
        if (a * b - u * c - e) % p:
            return i
    return None


def is_sat_relaxed(shape: R1CSShape, U: RelaxedR1CSInstance, W: RelaxedR1CSWitness) -> bool:
    return which_is_unsatisfied_relaxed(shape, U, W) is None


def commitments_open(params: PedersenParams, U: RelaxedR1CSInstance, W: RelaxedR1CSWitness) -> bool:
    return (
        g1_eq(Pedersen.commit(params, W.W), U.comm_W)
        and g1_eq(Pedersen.commit(params, W.E), U.comm_E)
    )


# --- Folding ---

# Vectors are lists of ints in [0, r), matching Pedersen.commit and the proof
# JSON; see R1CSShape.multiply_vec for why they are not FF arrays.

def compute_cross_term(shape: R1CSShape, U1: RelaxedR1CSInstance, W1: RelaxedR1CSWitness,
                       U2: RelaxedR1CSInstance, W2: RelaxedR1CSWitness) -> List[int]:
    """T = AZ1 o BZ2 + AZ2 o BZ1 - u1*CZ2 - u2*CZ1."""
    p = FR_MODULUS
    az1, bz1, cz1 = shape.multiply_vec(relaxed_z(U1, W1))
    az2, bz2, cz2 = shape.multiply_vec(relaxed_z(U2, W2))
    u1, u2 = U1.u, U2.u
    return [
        (a1 * b2 + a2 * b1 - u1 * c2 - u2 * c1) % p
        for a1, b1, c1, a2, b2, c2 in zip(az1, bz1, cz1, az2, bz2, cz2)
    ]


def fold_instances(U1: RelaxedR1CSInstance, U2: RelaxedR1CSInstance, comm_T: G1Point,
                   r: int) -> RelaxedR1CSInstance:
    p = FR_MODULUS
    r %= p
    r2 = r * r % p
    if len(U1.x) != len(U2.x):
        raise ValueError(f"cannot fold instances with {len(U1.x)} and {len(U2.x)} public inputs")
    return RelaxedR1CSInstance(
        comm_W=g1_add(U1.comm_W, g1_mul(U2.comm_W, r)),
        comm_E=g1_add(g1_add(U1.comm_E, g1_mul(comm_T, r)), g1_mul(U2.comm_E, r2)),
        u=(U1.u + r * U2.u) % p,
        x=[(a + r * b) % p for a, b in zip(U1.x, U2.x)],
    )


def fold_witnesses(W1: RelaxedR1CSWitness, W2: RelaxedR1CSWitness, T: Sequence[int],
                   r: int) -> RelaxedR1CSWitness:
    p = FR_MODULUS
    r %= p
    r2 = r * r % p
    return RelaxedR1CSWitness(
        W=[(a + r * b) % p for a, b in zip(W1.W, W2.W)],
        E=[(e1 + r * t + r2 * e2) % p for e1, t, e2 in zip(W1.E, T, W2.E)],
    )


def absorb_instance(transcript: PoseidonTranscript, U: RelaxedR1CSInstance) -> None:
    transcript.absorb_point(U.comm_W)
    transcript.absorb_point(U.comm_E)
    transcript.absorb_field(U.u)
    transcript.absorb_fields(U.x)


def fold_challenge(transcript: PoseidonTranscript, pp_hash: int, U: RelaxedR1CSInstance,
                   u: RelaxedR1CSInstance, comm_T: G1Point) -> int:
    """Fiat-Shamir challenge binding the parameters, both instances and comm_T."""
    transcript.absorb_field(pp_hash)
    absorb_instance(transcript, U)
    absorb_instance(transcript, u)
    transcript.absorb_point(comm_T)
    return transcript.get_challenge()
