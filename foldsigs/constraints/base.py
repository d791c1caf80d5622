"""Base class for step circuits.

A step circuit defines the relation F(z_i, ext_i) -> z_{i+1} that the folding
engine proves once per step. The engine only relies on this interface:

    circuit = SomeStepCircuit.new(config)
    z_vars = [FpVar.new_input(cs, v) for v in z_i]
    ext_vars = circuit.allocate_external_inputs(cs, ext_i, AllocationMode.WITNESS)
    z_next_vars = circuit.generate_step_constraints(cs, i, z_vars, ext_vars)
"""

from abc import ABC, abstractmethod
from typing import Any, Hashable, List

from foldsigs.r1cs import AllocationMode, ConstraintSystem, FpVar


class FCircuit(ABC):
    """Per-step relation. Used by prover and verifier setup alike.

    The constraint shape must depend only on the construction config, never on
    the state or external-input values, so every step folds against the same
    R1CS shape.
    """

    @classmethod
    @abstractmethod
    def new(cls, config: Any) -> "FCircuit":
        """Build the circuit.

        Raises:
            ConstructionError: If config is incompatible with the constraint field
        """
        pass

    @abstractmethod
    def state_len(self) -> int:
        """Length of the state vector z."""
        pass

    @abstractmethod
    def circuit_params(self) -> Hashable:
        """Value that identifies the constraint shape (compared across preprocess/init/prove)."""
        pass

    @abstractmethod
    def default_external_inputs(self) -> Any:
        """Well-formed placeholder external inputs used to derive the shape."""
        pass

    @abstractmethod
    def allocate_external_inputs(self, cs: ConstraintSystem, external_inputs: Any, mode: AllocationMode) -> Any:
        """Allocate native external inputs.

        Raises:
            AllocationError: If external_inputs is malformed
        """
        pass

    @abstractmethod
    def generate_step_constraints(self, cs: ConstraintSystem, i: int, z_i: List[FpVar],
                                  external_inputs: Any) -> List[FpVar]:
        """Emit the step constraints and return the next-state variables.

        Raises:
            SynthesisError: If the field/curve layer fails
        """
        pass
