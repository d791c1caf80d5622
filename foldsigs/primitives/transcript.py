"""Fiat-Shamir transcript over a Poseidon sponge.

Field elements are absorbed as-is. G1 points live over Fq, which is larger
than Fr, so their affine coordinates are split into 128-bit limbs before
absorption; an infinity flag precedes the limbs.
"""

from typing import Iterable

from foldsigs.primitives.field import FieldLike, to_field_int
from foldsigs.primitives.pedersen import G1Point, g1_to_affine_ints
from foldsigs.primitives.poseidon import PoseidonConfig, PoseidonSponge

LIMB_BITS = 128
_LIMB_MASK = (1 << LIMB_BITS) - 1


class PoseidonTranscript:
    """Absorb-then-squeeze transcript.

    Example:
        transcript = PoseidonTranscript(config)
        transcript.absorb_field(pp_hash)
        transcript.absorb_point(comm_T)
        r = transcript.get_challenge()
    """

    def __init__(self, config: PoseidonConfig):
        self.sponge = PoseidonSponge(config)

    def absorb_field(self, value: FieldLike) -> None:
        self.sponge.absorb([to_field_int(value)])

    def absorb_fields(self, values: Iterable[FieldLike]) -> None:
        self.sponge.absorb([to_field_int(v) for v in values])

    def absorb_point(self, point: G1Point) -> None:
        xy = g1_to_affine_ints(point)
        if xy is None:
            self.sponge.absorb([1, 0, 0, 0, 0])
            return
        x, y = xy
        self.sponge.absorb([0, x & _LIMB_MASK, x >> LIMB_BITS, y & _LIMB_MASK, y >> LIMB_BITS])

    def get_challenge(self) -> int:
        return self.sponge.squeeze_field_elements(1)[0]
