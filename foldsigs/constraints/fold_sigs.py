"""Signature-folding step circuit.

State is a single running count. Each step verifies a fixed-size batch of
EdDSA signatures and adds one per entry:

    z_{i+1}[0] = z_i[0] + sigs_per_step

Every verification result is enforced true as a hard constraint, so a single
invalid signature makes the whole step unsatisfiable. There is no soft path:
the count only moves when every signature in the batch checks out.
"""

from dataclasses import dataclass
from typing import List

from foldsigs.errors import ConstructionError, SynthesisError
from foldsigs.gadgets.eddsa import eddsa_verify
from foldsigs.primitives.edwards import BABYJUBJUB, EdwardsPoint, TwistedEdwardsCurve
from foldsigs.primitives.field import FR_MODULUS
from foldsigs.primitives.poseidon import PoseidonConfig
from foldsigs.r1cs import AllocationMode, Boolean, ConstraintSystem, FpVar
from foldsigs.witness import VecExtInp, VecExtInpVar

from .base import FCircuit

STATE_LEN = 1


@dataclass(frozen=True)
class FoldSigsConfig:
    """Construction parameters of FoldSigsStepCircuit.

    Attributes:
        poseidon_config: Sponge parameters of the EdDSA challenge hash
        sigs_per_step: Batch size, fixed for the whole run
        curve: Signature curve; its base field must be the constraint field
    """
    poseidon_config: PoseidonConfig
    sigs_per_step: int
    curve: TwistedEdwardsCurve = BABYJUBJUB


class FoldSigsStepCircuit(FCircuit):
    """Verify sigs_per_step signatures per step and count them."""

    def __init__(self, config: FoldSigsConfig):
        self.config = config

    @classmethod
    def new(cls, config: FoldSigsConfig) -> "FoldSigsStepCircuit":
        """Validate config and build the circuit.

        Raises:
            ConstructionError: On a negative batch size, a curve over another
                field, a non power-of-two cofactor or an invalid Poseidon config
        """
        n = config.sigs_per_step
        if isinstance(n, bool) or not isinstance(n, int) or n < 0:
            raise ConstructionError(f"sigs_per_step must be a non-negative integer, got {n!r}")
        curve = config.curve
        if curve.base_modulus != FR_MODULUS:
            raise ConstructionError(f"{curve.name} is not defined over the constraint field")
        if curve.cofactor < 1 or curve.cofactor & (curve.cofactor - 1):
            raise ConstructionError(f"{curve.name} cofactor {curve.cofactor} is not a power of two")
        if not EdwardsPoint.generator(curve).is_in_prime_subgroup():
            raise ConstructionError(f"{curve.name} generator is not in the prime-order subgroup")
        config.poseidon_config.validate(FR_MODULUS)
        return cls(config)

    @property
    def sigs_per_step(self) -> int:
        return self.config.sigs_per_step

    def state_len(self) -> int:
        return STATE_LEN

    def circuit_params(self):
        return ("FoldSigs", self.config.sigs_per_step, self.config.curve, self.config.poseidon_config)

    def default_external_inputs(self) -> VecExtInp:
        return VecExtInp.default(self.config.sigs_per_step, self.config.curve)

    def allocate_external_inputs(self, cs: ConstraintSystem, external_inputs: VecExtInp,
                                 mode: AllocationMode) -> VecExtInpVar:
        return VecExtInpVar.new_variable(cs, external_inputs, mode, self.config.sigs_per_step, self.config.curve)

    def generate_step_constraints(self, cs: ConstraintSystem, i: int, z_i: List[FpVar],
                                  external_inputs: VecExtInpVar) -> List[FpVar]:
        """Verify every entry of the batch and return [z_i[0] + sigs_per_step].

        The step index i does not enter the relation.

        Raises:
            SynthesisError: On a state of the wrong length or a batch of the wrong size
        """
        if len(z_i) != STATE_LEN:
            raise SynthesisError(f"state has {len(z_i)} elements, expected {STATE_LEN}")
        if len(external_inputs) != self.config.sigs_per_step:
            raise SynthesisError(
                f"batch has {len(external_inputs)} entries, expected {self.config.sigs_per_step}"
            )

        count = z_i[0]
        for j, entry in enumerate(external_inputs):
            with cs.namespace(f"sig_{j}"):
                valid = eddsa_verify(
                    cs,
                    self.config.poseidon_config,
                    entry.public_key,
                    (entry.sig_r, entry.sig_s),
                    entry.message,
                )
                valid.enforce_equal(Boolean.TRUE)
            count = count + 1
        return [count]
