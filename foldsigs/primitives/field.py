"""BN254 scalar field Fr, the constraint field of every circuit in this package.

FF is the galois field class, used for sampling, validation and the small
matrix algebra of Poseidon parameter generation. Hot paths (constraint
synthesis, witness arithmetic, multi-scalar multiplication) work on plain
Python ints reduced modulo FR_MODULUS; the helpers below convert between the
two representations.

FF is built with a known primitive element and verify=False: factoring p - 1
for a 254-bit prime to find one would otherwise dominate import time.
"""

from typing import Iterable, List, Union

import galois
import numpy as np

# --- Field Construction ---

FR_MODULUS = 21888242871839275222246405745257275088548364400416034343698204186575808495617

FR_MODULUS_BITS = FR_MODULUS.bit_length()
"""Bit length of Fr (254). Fixed width of every scalar bit decomposition."""

FR_GENERATOR = 5

FF = galois.GF(FR_MODULUS, primitive_element=FR_GENERATOR, verify=False)
"""Prime field GF(r), r = order of the BN254 G1 group."""

FieldLike = Union[int, np.integer, np.ndarray]


# --- Conversions ---

def to_field_int(value: FieldLike) -> int:
    """Return the canonical integer representative of a field value.

    Args:
        value: Python int (any sign, reduced mod r) or galois FF scalar

    Returns:
        Integer in [0, r)
    """
    if isinstance(value, np.ndarray):
        if value.ndim != 0:
            raise ValueError(f"expected a scalar field element, got shape {value.shape}")
        return int(value)
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise ValueError(f"expected an integer field element, got {type(value).__name__}")
    return int(value) % FR_MODULUS


def field_inv(value: int) -> int:
    """Multiplicative inverse in Fr, with 0 mapped to 0."""
    value %= FR_MODULUS
    if value == 0:
        return 0
    return pow(value, -1, FR_MODULUS)


def to_bits_le(value: int, width: int = FR_MODULUS_BITS) -> List[bool]:
    """Little-endian bit decomposition of a non-negative integer.

    Raises:
        ValueError: If value is negative or does not fit in width bits
    """
    if value < 0 or value.bit_length() > width:
        raise ValueError(f"value does not fit in {width} bits")
    return [bool((value >> i) & 1) for i in range(width)]


def from_bits_le(bits: Iterable[bool]) -> int:
    """Inverse of to_bits_le."""
    acc = 0
    for i, bit in enumerate(bits):
        if bit:
            acc |= 1 << i
    return acc
