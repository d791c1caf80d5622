"""Step circuits.

Each step circuit implements FCircuit: a fixed-shape relation
F(z_i, ext_i) -> z_{i+1} that the folding engine proves once per step.
"""

from .base import FCircuit
from .fold_sigs import STATE_LEN, FoldSigsConfig, FoldSigsStepCircuit

# Registry mapping circuit names to step-circuit classes
STEP_CIRCUIT_REGISTRY: dict[str, type[FCircuit]] = {
    "FoldSigs": FoldSigsStepCircuit,
}


def get_step_circuit(name: str) -> type[FCircuit]:
    """Look up a step-circuit class by name.

    Raises:
        KeyError: If no circuit is registered under name
    """
    if name in STEP_CIRCUIT_REGISTRY:
        return STEP_CIRCUIT_REGISTRY[name]
    raise KeyError(
        f"No step circuit '{name}'. "
        f"Available: {list(STEP_CIRCUIT_REGISTRY.keys())}"
    )


__all__ = [
    "FCircuit",
    "FoldSigsConfig",
    "FoldSigsStepCircuit",
    "STATE_LEN",
    "STEP_CIRCUIT_REGISTRY",
    "get_step_circuit",
]
