"""Gadgets - in-circuit Poseidon, twisted Edwards points and EdDSA verification."""

from foldsigs.gadgets.eddsa import eddsa_verify
from foldsigs.gadgets.edwards import EdwardsVar
from foldsigs.gadgets.poseidon import PoseidonSpongeVar, poseidon_permute_var

__all__ = [
    "PoseidonSpongeVar",
    "poseidon_permute_var",
    "EdwardsVar",
    "eddsa_verify",
]
