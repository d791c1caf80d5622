"""EdDSA over a twisted Edwards curve with a Poseidon challenge.

Signing key expansion and nonce derivation use BLAKE2b-512; the challenge
k = Poseidon(R.x, R.y, A.x, A.y, msg) is computed over the curve's base field,
which is the constraint field, so the verifier can recompute it in-circuit.

    sign:   r = H(prefix || msg) mod n,  R = r*G,  s = r + k*x mod n
    verify: s*G == R + k*A
"""

import hashlib
from dataclasses import dataclass

import numpy as np

from foldsigs.primitives.edwards import BABYJUBJUB, EdwardsPoint, TwistedEdwardsCurve
from foldsigs.primitives.field import FR_MODULUS_BITS
from foldsigs.primitives.poseidon import PoseidonConfig, poseidon_hash

SECRET_KEY_BYTES = 32
FIELD_BYTES = (FR_MODULUS_BITS + 7) // 8


def _blake2b(*chunks: bytes) -> bytes:
    h = hashlib.blake2b(digest_size=64)
    for chunk in chunks:
        h.update(chunk)
    return h.digest()


def _challenge(config: PoseidonConfig, r: EdwardsPoint, pk: EdwardsPoint, message: int) -> int:
    return poseidon_hash(config, [r.x, r.y, pk.x, pk.y, message])


@dataclass(frozen=True)
class Signature:
    """EdDSA signature: commitment point r and response scalar s."""
    r: EdwardsPoint
    s: int

    @classmethod
    def identity(cls, curve: TwistedEdwardsCurve = BABYJUBJUB) -> "Signature":
        """Placeholder (identity, 0), used to synthesize a batch before real inputs exist."""
        return cls(EdwardsPoint.identity(curve), 0)


@dataclass(frozen=True)
class PublicKey:
    """Verification key A = x*G."""
    point: EdwardsPoint

    @classmethod
    def identity(cls, curve: TwistedEdwardsCurve = BABYJUBJUB) -> "PublicKey":
        return cls(EdwardsPoint.identity(curve))

    def verify(self, config: PoseidonConfig, message: int, signature: Signature) -> bool:
        """Check s*G == R + k*A.

        Malformed inputs (points off the curve, s out of range) are rejected
        rather than raising.
        """
        A, R = self.point, signature.r
        curve = A.curve
        if not (A.is_on_curve() and R.is_on_curve()):
            return False
        if not 0 <= signature.s < curve.order:
            return False
        k = _challenge(config, R, A, message)
        lhs = EdwardsPoint.generator(curve) * signature.s
        return lhs == R + A * k


class SigningKey:
    """EdDSA secret key.

    The 32-byte secret is expanded with BLAKE2b-512: the first half, clamped,
    is the secret scalar x; the second half is the nonce prefix.
    """

    def __init__(self, secret: bytes, curve: TwistedEdwardsCurve = BABYJUBJUB):
        if len(secret) != SECRET_KEY_BYTES:
            raise ValueError(f"secret key must be {SECRET_KEY_BYTES} bytes, got {len(secret)}")
        self.curve = curve
        self._x, self._prefix = self._expand(secret, curve)
        self._public_key = PublicKey(EdwardsPoint.generator(curve) * self._x)

    @staticmethod
    def _expand(secret: bytes, curve: TwistedEdwardsCurve):
        h = _blake2b(secret)
        x_bytes = bytearray(h[:32])
        x_bytes[0] &= 248
        x_bytes[31] &= 127
        x_bytes[31] |= 64
        x = int.from_bytes(x_bytes, "little") % curve.order
        return x, h[32:]

    @classmethod
    def generate(cls, rng: np.random.Generator, curve: TwistedEdwardsCurve = BABYJUBJUB) -> "SigningKey":
        """Draw a fresh key from rng."""
        return cls(rng.bytes(SECRET_KEY_BYTES), curve)

    def public_key(self) -> PublicKey:
        return self._public_key

    def sign(self, config: PoseidonConfig, message: int) -> Signature:
        """Sign a field element."""
        order = self.curve.order
        r = int.from_bytes(_blake2b(self._prefix, message.to_bytes(FIELD_BYTES, "little")), "little") % order
        R = EdwardsPoint.generator(self.curve) * r
        k = _challenge(config, R, self._public_key.point, message)
        s = (r + k * self._x) % order
        return Signature(R, s)
