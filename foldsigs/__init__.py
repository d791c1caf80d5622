"""foldsigs - fold batches of EdDSA signature checks through a Nova-style IVC.

The step circuit (constraints.FoldSigsStepCircuit) verifies a fixed-size batch
of BabyJubJub EdDSA signatures per step and keeps a running count; the folding
engine (protocol.Nova) accumulates the steps into one relaxed R1CS instance.
"""

from foldsigs.constraints import FoldSigsConfig, FoldSigsStepCircuit
from foldsigs.driver import FlowConfig, FlowResult, full_flow, gen_signatures
from foldsigs.errors import (
    AllocationError,
    ConstraintUnsatisfied,
    ConstructionError,
    FoldSigsError,
    PreprocessError,
    ProveError,
    SynthesisError,
    VerifyError,
)
from foldsigs.protocol import IVCProof, Nova, PreprocessorParam
from foldsigs.witness import ExtInp, VecExtInp

__version__ = "0.1.0"

__all__ = [
    "FoldSigsConfig",
    "FoldSigsStepCircuit",
    "ExtInp",
    "VecExtInp",
    "Nova",
    "PreprocessorParam",
    "IVCProof",
    "FlowConfig",
    "FlowResult",
    "full_flow",
    "gen_signatures",
    # Errors
    "FoldSigsError",
    "ConstructionError",
    "SynthesisError",
    "AllocationError",
    "PreprocessError",
    "ProveError",
    "ConstraintUnsatisfied",
    "VerifyError",
]
