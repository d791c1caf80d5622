"""Nova-style folding engine.

Each step synthesises the augmented step relation

    public inputs  x = z_i || z_{i+1}
    witness        everything the step circuit allocates
    constraints    F(z_i, ext_i) == z_{i+1}

commits to the witness with Pedersen, and folds the resulting plain R1CS
instance into a running relaxed instance. Step 0 seeds the running instance;
every later step adds a cross-term commitment and a Poseidon Fiat-Shamir
challenge.

The proof carries the public state chain and the per-step commitments. The
verifier re-derives every challenge, re-folds the step instances (group
operations only) and checks the final relaxed instance against its opening
once. Folding is sound because every commitment enters the transcript before
the challenge that combines it.
"""

import hashlib
from dataclasses import dataclass
from typing import Any, Hashable, List, Optional, Sequence, Tuple

import numpy as np

from foldsigs.constraints.base import FCircuit
from foldsigs.errors import (
    AllocationError,
    ConstraintUnsatisfied,
    ConstructionError,
    PreprocessError,
    ProveError,
    SynthesisError,
    VerifyError,
)
from foldsigs.primitives.field import FR_MODULUS
from foldsigs.primitives.pedersen import G1Point, Pedersen, PedersenParams
from foldsigs.primitives.poseidon import PoseidonConfig
from foldsigs.primitives.transcript import PoseidonTranscript
from foldsigs.protocol.proof import IVCProof, validate_proof_structure
from foldsigs.protocol.r1cs import (
    R1CSShape,
    RelaxedR1CSInstance,
    RelaxedR1CSWitness,
    commitments_open,
    compute_cross_term,
    fold_challenge,
    fold_instances,
    fold_witnesses,
    which_is_unsatisfied_relaxed,
)
from foldsigs.r1cs import AllocationMode, ConstraintSystem, FpVar
from foldsigs.r1cs.fp_var import check_native_field


# --- Parameters ---

@dataclass
class PreprocessorParam:
    """Inputs of Nova.preprocess."""
    poseidon_config: PoseidonConfig
    f_circuit: FCircuit


@dataclass
class ProverParams:
    """Prover-side folding parameters, shared read-only across steps.

    Attributes:
        poseidon_config: Transcript sponge parameters
        cs_params: Pedersen key, size max(num_vars, num_constraints)
        shape: R1CS shape of the augmented step relation
        circuit_params: Step circuit identity the shape was derived from
        state_len: Length of z
        pp_hash: Digest of all of the above, absorbed first by every challenge
    """
    poseidon_config: PoseidonConfig
    cs_params: PedersenParams
    shape: R1CSShape
    circuit_params: Hashable
    state_len: int
    pp_hash: int


@dataclass
class VerifierParams:
    poseidon_config: PoseidonConfig
    cs_params: PedersenParams
    shape: R1CSShape
    circuit_params: Hashable
    state_len: int
    pp_hash: int


def _pp_hash(poseidon_config: PoseidonConfig, cs_params: PedersenParams, shape: R1CSShape) -> int:
    h = hashlib.blake2b(digest_size=64)
    h.update(shape.digest().to_bytes(32, "little"))
    h.update(cs_params.seed)
    h.update(cs_params.size.to_bytes(8, "little"))
    h.update(repr((
        poseidon_config.full_rounds,
        poseidon_config.partial_rounds,
        poseidon_config.alpha,
        poseidon_config.rate,
        poseidon_config.capacity,
        poseidon_config.ark,
        poseidon_config.mds,
    )).encode())
    return int.from_bytes(h.digest(), "little") % FR_MODULUS


# --- Step synthesis ---

def synthesize_step(f_circuit: FCircuit, i: int, z_i: Sequence[int],
                    external_inputs: Any) -> Tuple[ConstraintSystem, List[int]]:
    """Build the augmented step relation for one step.

    Returns:
        (constraint system, z_{i+1} values)

    Raises:
        AllocationError: If z_i or external_inputs are malformed
        SynthesisError: If the step circuit fails
    """
    cs = ConstraintSystem()
    with cs.namespace("z_i"):
        z_vars = [FpVar.new_input(cs, v) for v in z_i]
    with cs.namespace("external_inputs"):
        ext_vars = f_circuit.allocate_external_inputs(cs, external_inputs, AllocationMode.WITNESS)
    with cs.namespace("step"):
        out = f_circuit.generate_step_constraints(cs, i, z_vars, ext_vars)
    if len(out) != len(z_vars):
        raise SynthesisError(f"step circuit returned {len(out)} state elements, expected {len(z_vars)}")
    with cs.namespace("z_next"):
        z_next_vars = [FpVar.new_input(cs, v.value) for v in out]
        for produced, allocated in zip(out, z_next_vars):
            produced.enforce_equal(allocated)
    return cs, [v.value for v in z_next_vars]


# --- Engine ---

class Nova:
    """Running folding instance for one IVC run.

    Single-writer: prove_step mutates the instance and must not be called
    concurrently on the same object.

    Example:
        pp, vp = Nova.preprocess(rng, PreprocessorParam(poseidon_config, f_circuit))
        nova = Nova.init(pp, f_circuit, [0])
        for batch in batches:
            nova.prove_step(rng, batch)
        assert Nova.verify(vp, nova.ivc_proof())
    """

    def __init__(self, pp: ProverParams, f_circuit: FCircuit, z_0: List[int]):
        self.pp = pp
        self.f_circuit = f_circuit
        self.i = 0
        self.z_0 = list(z_0)
        self.z_i = list(z_0)
        self.states: List[List[int]] = [list(z_0)]
        self.step_commitments: List[Tuple[G1Point, Optional[G1Point]]] = []
        self.U: Optional[RelaxedR1CSInstance] = None
        self.W: Optional[RelaxedR1CSWitness] = None

    @staticmethod
    def preprocess(rng: np.random.Generator, prep_param: PreprocessorParam) -> Tuple[ProverParams, VerifierParams]:
        """Derive the step shape and the commitment key.

        The shape comes from synthesising one step over default external
        inputs and an all-zero state; the constraints emitted never depend on
        those values.

        Raises:
            PreprocessError: If the config is invalid or synthesis fails
        """
        f_circuit = prep_param.f_circuit
        try:
            prep_param.poseidon_config.validate()
            state_len = f_circuit.state_len()
            cs, _ = synthesize_step(f_circuit, 0, [0] * state_len, f_circuit.default_external_inputs())
            shape = R1CSShape.from_constraint_system(cs)
            cs_params = Pedersen.setup(rng, max(shape.num_vars, shape.num_constraints))
        except (ConstructionError, SynthesisError, ValueError) as e:
            raise PreprocessError(f"preprocessing failed: {e}") from e

        pp_hash = _pp_hash(prep_param.poseidon_config, cs_params, shape)
        common = dict(
            poseidon_config=prep_param.poseidon_config,
            cs_params=cs_params,
            shape=shape,
            circuit_params=f_circuit.circuit_params(),
            state_len=state_len,
            pp_hash=pp_hash,
        )
        return ProverParams(**common), VerifierParams(**common)

    @classmethod
    def init(cls, pp: ProverParams, f_circuit: FCircuit, z_0: Sequence[int]) -> "Nova":
        """Start a run at step 0.

        Raises:
            PreprocessError: If f_circuit or z_0 do not match the parameters
            AllocationError: If an element of z_0 is not a field element
        """
        if f_circuit.circuit_params() != pp.circuit_params:
            raise PreprocessError("step circuit does not match the preprocessed parameters")
        if f_circuit.state_len() != pp.state_len:
            raise PreprocessError(f"circuit state length {f_circuit.state_len()} != {pp.state_len}")
        if len(z_0) != pp.state_len:
            raise PreprocessError(f"z_0 has length {len(z_0)}, expected {pp.state_len}")
        return cls(pp, f_circuit, [check_native_field(v) for v in z_0])

    def prove_step(self, rng: Optional[np.random.Generator], external_inputs: Any,
                   other_instances: Optional[Any] = None) -> None:
        """Prove one step and fold it into the running instance.

        Every check runs before any state changes, so a failing step leaves
        the instance exactly at the last completed step. rng is accepted for
        interface compatibility; commitments are non-hiding.

        Raises:
            AllocationError: If external_inputs are malformed
            ConstraintUnsatisfied: If the step relation does not hold
            ProveError: On any other step failure
        """
        if other_instances is not None:
            raise ProveError("Nova does not fold other instances")
        step = self.i
        pp = self.pp

        try:
            cs, z_next = synthesize_step(self.f_circuit, step, self.z_i, external_inputs)
        except AllocationError:
            raise
        except SynthesisError as e:
            raise ProveError(f"step {step}: synthesis failed: {e}") from e

        shape = R1CSShape.from_constraint_system(cs)
        if not pp.shape.same_shape(shape):
            raise ProveError(f"step {step}: constraint shape differs from the preprocessed shape")

        bad = cs.which_is_unsatisfied()
        if bad is not None:
            raise ConstraintUnsatisfied(step, bad, cs.labels[bad])

        x = cs.instance_assignment[1:]
        w = cs.witness_assignment
        comm_w = Pedersen.commit(pp.cs_params, w)
        u_step = RelaxedR1CSInstance.from_r1cs(comm_w, x)
        w_step = RelaxedR1CSWitness.from_r1cs(w, pp.shape.num_constraints)

        if self.U is None:
            new_U, new_W, comm_t = u_step, w_step, None
        else:
            T = compute_cross_term(pp.shape, self.U, self.W, u_step, w_step)
            comm_t = Pedersen.commit(pp.cs_params, T)
            r = fold_challenge(PoseidonTranscript(pp.poseidon_config), pp.pp_hash, self.U, u_step, comm_t)
            new_U = fold_instances(self.U, u_step, comm_t, r)
            new_W = fold_witnesses(self.W, w_step, T, r)

        self.U, self.W = new_U, new_W
        self.step_commitments.append((comm_w, comm_t))
        self.states.append(list(z_next))
        self.z_i = list(z_next)
        self.i = step + 1

    def state(self) -> List[int]:
        return list(self.z_i)

    def ivc_proof(self) -> IVCProof:
        """Proof covering every completed step.

        Raises:
            ProveError: Before the first step
        """
        if self.i == 0:
            raise ProveError("no step has been proven")
        return IVCProof(
            i=self.i,
            z_0=list(self.z_0),
            z_i=list(self.z_i),
            states=[list(z) for z in self.states],
            step_commitments=list(self.step_commitments),
            running_instance=RelaxedR1CSInstance(
                comm_W=self.U.comm_W, comm_E=self.U.comm_E, u=self.U.u, x=list(self.U.x)
            ),
            running_witness=RelaxedR1CSWitness(W=list(self.W.W), E=list(self.W.E)),
        )

    @staticmethod
    def verify(vp: VerifierParams, proof: IVCProof) -> bool:
        """Verify an IVC proof.

        Returns:
            True if proof is valid, False otherwise

        Raises:
            VerifyError: If the proof is structurally malformed for vp
        """
        errors = validate_proof_structure(proof, vp.shape, vp.state_len)
        if errors:
            raise VerifyError("; ".join(errors))

        print("Verifying state chain")
        if proof.states[0] != proof.z_0 or proof.states[-1] != proof.z_i:
            print("ERROR: State chain does not connect z_0 to z_i")
            return False

        print("Re-folding step instances")
        U: Optional[RelaxedR1CSInstance] = None
        for k in range(proof.i):
            comm_w, comm_t = proof.step_commitments[k]
            u_k = RelaxedR1CSInstance.from_r1cs(comm_w, proof.states[k] + proof.states[k + 1])
            if U is None:
                U = u_k
                continue
            r = fold_challenge(PoseidonTranscript(vp.poseidon_config), vp.pp_hash, U, u_k, comm_t)
            U = fold_instances(U, u_k, comm_t, r)
        if not U.equals(proof.running_instance):
            print("ERROR: Running instance does not match the folded step instances")
            return False

        print("Verifying commitment openings")
        try:
            opened = commitments_open(vp.cs_params, proof.running_instance, proof.running_witness)
        except ValueError as e:
            raise VerifyError(f"malformed running witness: {e}") from e
        if not opened:
            print("ERROR: Running witness does not open the running instance commitments")
            return False

        print("Verifying relaxed R1CS")
        bad = which_is_unsatisfied_relaxed(vp.shape, proof.running_instance, proof.running_witness)
        if bad is not None:
            print(f"ERROR: Relaxed R1CS not satisfied at constraint {bad}")
            return False

        return True


__all__ = [
    "PreprocessorParam",
    "ProverParams",
    "VerifierParams",
    "Nova",
    "synthesize_step",
]
