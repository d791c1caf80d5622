"""IVC proof data structures and serialization."""

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from py_ecc.optimized_bn128 import Z1

from foldsigs.errors import VerifyError
from foldsigs.primitives.field import FR_MODULUS
from foldsigs.primitives.pedersen import G1Point, g1_from_affine_ints, g1_to_affine_ints
from foldsigs.protocol.r1cs import R1CSShape, RelaxedR1CSInstance, RelaxedR1CSWitness

# --- Type Aliases ---
StepCommitment = Tuple[G1Point, Optional[G1Point]]  # (comm_W of the step, comm_T of its fold)


# --- Proof Data Structures ---

@dataclass
class IVCProof:
    """Folding proof that i steps were applied to z_0.

    Attributes:
        i: Number of steps folded
        z_0: Initial state
        z_i: Final state
        states: Public state chain z_0, ..., z_i; step k has public inputs
                states[k] || states[k+1]
        step_commitments: Per step, the witness commitment and the cross-term
                          commitment of its fold (None for step 0, which seeds
                          the running instance)
        running_instance: Accumulated relaxed instance
        running_witness: Opening of running_instance
    """
    i: int
    z_0: List[int]
    z_i: List[int]
    states: List[List[int]] = field(default_factory=list)
    step_commitments: List[StepCommitment] = field(default_factory=list)
    running_instance: Optional[RelaxedR1CSInstance] = None
    running_witness: Optional[RelaxedR1CSWitness] = None


# --- JSON Serialization ---

def _point_to_json(point: Optional[G1Point]) -> Optional[List[str]]:
    if point is None:
        return None
    xy = g1_to_affine_ints(point)
    if xy is None:
        return ["0", "0"]
    return [str(xy[0]), str(xy[1])]


def _point_from_json(data: Optional[List[str]]) -> Optional[G1Point]:
    if data is None:
        return None
    x, y = (int(v) for v in data)
    if x == 0 and y == 0:
        return Z1
    return g1_from_affine_ints((x, y))


def _ints_to_json(values: List[int]) -> List[str]:
    return [str(v) for v in values]


def _ints_from_json(data: List[str]) -> List[int]:
    values = [int(v) for v in data]
    for v in values:
        if not 0 <= v < FR_MODULUS:
            raise ValueError("field element out of range")
    return values


def proof_to_json(proof: IVCProof) -> dict[str, Any]:
    """Convert IVC proof to a JSON-serializable dictionary (ints as decimal strings)."""
    U, W = proof.running_instance, proof.running_witness
    return {
        "i": str(proof.i),
        "z_0": _ints_to_json(proof.z_0),
        "z_i": _ints_to_json(proof.z_i),
        "states": [_ints_to_json(z) for z in proof.states],
        "step_commitments": [
            {"comm_W": _point_to_json(comm_w), "comm_T": _point_to_json(comm_t)}
            for comm_w, comm_t in proof.step_commitments
        ],
        "running_instance": {
            "comm_W": _point_to_json(U.comm_W),
            "comm_E": _point_to_json(U.comm_E),
            "u": str(U.u),
            "x": _ints_to_json(U.x),
        },
        "running_witness": {
            "W": _ints_to_json(W.W),
            "E": _ints_to_json(W.E),
        },
    }


def proof_from_json(data: dict[str, Any]) -> IVCProof:
    """Inverse of proof_to_json.

    Raises:
        VerifyError: If fields are missing, values are out of range or a point
            is not on BN254 G1
    """
    try:
        ri, rw = data["running_instance"], data["running_witness"]
        return IVCProof(
            i=int(data["i"]),
            z_0=_ints_from_json(data["z_0"]),
            z_i=_ints_from_json(data["z_i"]),
            states=[_ints_from_json(z) for z in data["states"]],
            step_commitments=[
                (_point_from_json(c["comm_W"]), _point_from_json(c["comm_T"]))
                for c in data["step_commitments"]
            ],
            running_instance=RelaxedR1CSInstance(
                comm_W=_point_from_json(ri["comm_W"]),
                comm_E=_point_from_json(ri["comm_E"]),
                u=_ints_from_json([ri["u"]])[0],
                x=_ints_from_json(ri["x"]),
            ),
            running_witness=RelaxedR1CSWitness(
                W=_ints_from_json(rw["W"]),
                E=_ints_from_json(rw["E"]),
            ),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise VerifyError(f"malformed proof: {e}") from e


def save_proof(proof: IVCProof, path: str) -> None:
    with open(path, "w") as f:
        json.dump(proof_to_json(proof), f)


def load_proof(path: str) -> IVCProof:
    """Load IVC proof from JSON file."""
    with open(path) as f:
        data = json.load(f)
    return proof_from_json(data)


# --- Validation ---

def validate_proof_structure(proof: IVCProof, shape: R1CSShape, state_len: int) -> list[str]:
    """Validate that proof dimensions match the folded step shape."""
    errors = []

    if proof.i < 1:
        errors.append(f"Proof covers {proof.i} steps, expected at least 1")
    if len(proof.states) != proof.i + 1:
        errors.append(f"Expected {proof.i + 1} states, got {len(proof.states)}")
    for k, z in enumerate(proof.states):
        if len(z) != state_len:
            errors.append(f"State {k} has length {len(z)}, expected {state_len}")
    if len(proof.z_0) != state_len or len(proof.z_i) != state_len:
        errors.append(f"z_0 and z_i must have length {state_len}")
    if len(proof.step_commitments) != proof.i:
        errors.append(f"Expected {proof.i} step commitments, got {len(proof.step_commitments)}")
    for k, (comm_w, comm_t) in enumerate(proof.step_commitments):
        if comm_w is None:
            errors.append(f"Step {k} has no witness commitment")
        if k == 0 and comm_t is not None:
            errors.append("Step 0 must not carry a cross-term commitment")
        if k > 0 and comm_t is None:
            errors.append(f"Step {k} has no cross-term commitment")

    U, W = proof.running_instance, proof.running_witness
    if U is None or W is None:
        errors.append("Proof has no running instance")
        return errors
    if U.comm_W is None or U.comm_E is None:
        errors.append("Running instance is missing a commitment")
    if len(U.x) != shape.num_io:
        errors.append(f"Running instance has {len(U.x)} public inputs, expected {shape.num_io}")
    if len(W.W) != shape.num_vars:
        errors.append(f"Running witness has {len(W.W)} variables, expected {shape.num_vars}")
    if len(W.E) != shape.num_constraints:
        errors.append(f"Running error vector has {len(W.E)} entries, expected {shape.num_constraints}")

    return errors
