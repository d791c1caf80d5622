"""External inputs of the signature-folding step.

Each step consumes a batch of exactly sigs_per_step entries
(message, public key, signature). The native side is plain frozen
dataclasses; the circuit side allocates

    message -> FpVar
    public key, sig.r -> EdwardsVar (prime-order subgroup)
    sig.s -> FR_MODULUS_BITS little-endian Booleans

The s width is the field bit length for every entry of every batch, so the
step shape never depends on the signatures being folded.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from foldsigs.errors import AllocationError
from foldsigs.gadgets.edwards import EdwardsVar
from foldsigs.primitives.eddsa import PublicKey, Signature
from foldsigs.primitives.edwards import BABYJUBJUB, EdwardsPoint, TwistedEdwardsCurve
from foldsigs.primitives.field import FR_MODULUS_BITS
from foldsigs.r1cs import AllocationMode, Boolean, ConstraintSystem, FpVar

from .base import AllocVar

SIG_S_BITS = FR_MODULUS_BITS


# --- Native side ---

@dataclass(frozen=True)
class ExtInp:
    """One signature check: message, signer key and signature."""
    message: int
    public_key: PublicKey
    signature: Signature

    @classmethod
    def default(cls, curve: TwistedEdwardsCurve = BABYJUBJUB) -> "ExtInp":
        """Identity entry (0, identity key, (identity, 0)), a well-formed shape placeholder."""
        return cls(0, PublicKey.identity(curve), Signature.identity(curve))


@dataclass(frozen=True)
class VecExtInp:
    """Fixed-size batch of entries for one step."""
    entries: Tuple[ExtInp, ...]

    def __post_init__(self):
        object.__setattr__(self, "entries", tuple(self.entries))

    @classmethod
    def default(cls, sigs_per_step: int, curve: TwistedEdwardsCurve = BABYJUBJUB) -> "VecExtInp":
        return cls(tuple(ExtInp.default(curve) for _ in range(sigs_per_step)))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ExtInp]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> ExtInp:
        return self.entries[index]


# --- Circuit side ---

def _check_point(point, curve: TwistedEdwardsCurve, what: str) -> EdwardsPoint:
    if not isinstance(point, EdwardsPoint):
        raise AllocationError(f"{what} must be an EdwardsPoint, got {type(point).__name__}")
    if point.curve != curve:
        raise AllocationError(f"{what} is on {point.curve.name}, expected {curve.name}")
    return point


class ExtInpVar(AllocVar):
    """Circuit variables of one entry."""

    def __init__(self, message: FpVar, public_key: EdwardsVar, sig_r: EdwardsVar, sig_s: List[Boolean]):
        self.message = message
        self.public_key = public_key
        self.sig_r = sig_r
        self.sig_s = sig_s

    @classmethod
    def default(cls, curve: TwistedEdwardsCurve = BABYJUBJUB) -> "ExtInpVar":
        """Constant identity entry with a full-width all-false s."""
        return cls(
            FpVar.zero(),
            EdwardsVar.zero(curve),
            EdwardsVar.zero(curve),
            [Boolean.FALSE] * SIG_S_BITS,
        )

    @classmethod
    def new_variable(cls, cs: ConstraintSystem, native: ExtInp, mode: AllocationMode,
                     curve: TwistedEdwardsCurve = BABYJUBJUB) -> "ExtInpVar":
        """Allocate one entry.

        Raises:
            AllocationError: If the message is not in [0, r), a point is off
                the curve or outside the prime-order subgroup, or s is negative
                or wider than SIG_S_BITS
        """
        if not isinstance(native, ExtInp):
            raise AllocationError(f"expected ExtInp, got {type(native).__name__}")
        if not isinstance(native.public_key, PublicKey) or not isinstance(native.signature, Signature):
            raise AllocationError("entry must carry a PublicKey and a Signature")
        pk = _check_point(native.public_key.point, curve, "public key")
        r = _check_point(native.signature.r, curve, "signature r")
        s = native.signature.s
        if isinstance(s, bool) or not isinstance(s, int):
            raise AllocationError(f"signature s must be an integer, got {type(s).__name__}")

        message = FpVar.new_variable(cs, native.message, mode)
        public_key = EdwardsVar.new_variable(cs, pk, mode)
        sig_r = EdwardsVar.new_variable(cs, r, mode)
        sig_s = Boolean.new_bits_le(cs, s, SIG_S_BITS, mode)
        return cls(message, public_key, sig_r, sig_s)


class VecExtInpVar(AllocVar):
    """Circuit variables of a whole batch."""

    def __init__(self, entries: List[ExtInpVar]):
        self.entries = entries

    @classmethod
    def default(cls, sigs_per_step: int, curve: TwistedEdwardsCurve = BABYJUBJUB) -> "VecExtInpVar":
        return cls([ExtInpVar.default(curve) for _ in range(sigs_per_step)])

    @classmethod
    def new_variable(cls, cs: ConstraintSystem, native: VecExtInp, mode: AllocationMode,
                     sigs_per_step: Optional[int] = None,
                     curve: TwistedEdwardsCurve = BABYJUBJUB) -> "VecExtInpVar":
        """Allocate a batch, entries in order.

        Args:
            sigs_per_step: Expected batch length; None accepts any length

        Raises:
            AllocationError: On a batch of the wrong length or a malformed entry
        """
        if not isinstance(native, VecExtInp):
            raise AllocationError(f"expected VecExtInp, got {type(native).__name__}")
        if sigs_per_step is not None and len(native) != sigs_per_step:
            raise AllocationError(f"batch has {len(native)} entries, expected {sigs_per_step}")
        entries = []
        for j, entry in enumerate(native):
            with cs.namespace(f"ext_inp_{j}"):
                entries.append(ExtInpVar.new_variable(cs, entry, mode, curve))
        return cls(entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ExtInpVar]:
        return iter(self.entries)
