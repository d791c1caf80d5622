"""Protocol - relaxed R1CS, Nova-style folding and IVC proofs."""

from .nova import Nova, PreprocessorParam, ProverParams, VerifierParams, synthesize_step
from .proof import IVCProof, load_proof, proof_from_json, proof_to_json, save_proof, validate_proof_structure
from .r1cs import (
    R1CSShape,
    RelaxedR1CSInstance,
    RelaxedR1CSWitness,
    compute_cross_term,
    fold_instances,
    fold_witnesses,
    is_sat_relaxed,
)

__all__ = [
    # Folding engine
    "Nova",
    "PreprocessorParam",
    "ProverParams",
    "VerifierParams",
    "synthesize_step",
    # Proof
    "IVCProof",
    "proof_to_json",
    "proof_from_json",
    "save_proof",
    "load_proof",
    "validate_proof_structure",
    # Relaxed R1CS
    "R1CSShape",
    "RelaxedR1CSInstance",
    "RelaxedR1CSWitness",
    "compute_cross_term",
    "fold_instances",
    "fold_witnesses",
    "is_sat_relaxed",
]
