"""Primitives - native field, hash, curve, signature and commitment building blocks."""

from foldsigs.primitives.eddsa import PublicKey, Signature, SigningKey
from foldsigs.primitives.edwards import BABYJUBJUB, EdwardsPoint, TwistedEdwardsCurve
from foldsigs.primitives.field import (
    FF,
    FR_MODULUS,
    FR_MODULUS_BITS,
    field_inv,
    from_bits_le,
    to_bits_le,
    to_field_int,
)
from foldsigs.primitives.pedersen import Pedersen, PedersenParams, msm
from foldsigs.primitives.poseidon import (
    PoseidonConfig,
    PoseidonSponge,
    poseidon_canonical_config,
    poseidon_hash,
    poseidon_permute,
)
from foldsigs.primitives.transcript import PoseidonTranscript

__all__ = [
    # Field
    "FF",
    "FR_MODULUS",
    "FR_MODULUS_BITS",
    "to_field_int",
    "field_inv",
    "to_bits_le",
    "from_bits_le",
    # Poseidon
    "PoseidonConfig",
    "PoseidonSponge",
    "poseidon_canonical_config",
    "poseidon_hash",
    "poseidon_permute",
    # Curve
    "TwistedEdwardsCurve",
    "EdwardsPoint",
    "BABYJUBJUB",
    # Signatures
    "SigningKey",
    "PublicKey",
    "Signature",
    # Commitments
    "Pedersen",
    "PedersenParams",
    "msm",
    # Transcript
    "PoseidonTranscript",
]
