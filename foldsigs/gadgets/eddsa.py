"""EdDSA verification gadget."""

from typing import Sequence, Tuple

from foldsigs.gadgets.edwards import EdwardsVar
from foldsigs.gadgets.poseidon import PoseidonSpongeVar
from foldsigs.primitives.edwards import EdwardsPoint
from foldsigs.primitives.poseidon import PoseidonConfig
from foldsigs.r1cs import Boolean, ConstraintSystem, FpVar, enforce_le_bits


def eddsa_verify(
    cs: ConstraintSystem,
    config: PoseidonConfig,
    public_key: EdwardsVar,
    signature: Tuple[EdwardsVar, Sequence[Boolean]],
    message: FpVar,
) -> Boolean:
    """Boolean wire that holds iff (R, s) is a valid signature on message.

    Recomputes k = Poseidon(R.x, R.y, A.x, A.y, msg) in-circuit and compares
    R with s*G - k*A. The s bits are additionally constrained to encode a
    value below the subgroup order, matching the native verifier's range
    check; an out-of-range s therefore leaves the system unsatisfied instead
    of yielding a false wire.

    Args:
        cs: Constraint system the wires belong to
        config: Poseidon parameters used for the challenge
        public_key: A, allocated in the prime-order subgroup
        signature: (R, little-endian bits of s)
        message: Signed field element

    Returns:
        Boolean wire
    """
    r, s_bits = signature
    curve = public_key.curve
    enforce_le_bits(s_bits, curve.order - 1)

    sponge = PoseidonSpongeVar(cs, config)
    sponge.absorb(r.to_constraint_field() + public_key.to_constraint_field() + [message])
    k = sponge.squeeze_field_elements(1)[0]

    k_a = public_key.scalar_mul_le(k.to_bits_le())
    s_g = EdwardsVar.constant(EdwardsPoint.generator(curve)).scalar_mul_le(s_bits)
    return r.is_eq(s_g - k_a)
