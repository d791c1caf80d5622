"""Tests for IVC proof serialization and structural validation."""

import json

import pytest
from py_ecc.optimized_bn128 import G1, Z1, eq, multiply, normalize

from foldsigs.errors import VerifyError
from foldsigs.primitives.field import FR_MODULUS
from foldsigs.protocol import (
    IVCProof,
    R1CSShape,
    RelaxedR1CSInstance,
    RelaxedR1CSWitness,
    load_proof,
    proof_from_json,
    proof_to_json,
    save_proof,
    validate_proof_structure,
)

SHAPE = R1CSShape(num_constraints=2, num_io=2, num_vars=3, A=[{}, {}], B=[{}, {}], C=[{}, {}])


def _proof() -> IVCProof:
    return IVCProof(
        i=2,
        z_0=[0],
        z_i=[2],
        states=[[0], [1], [2]],
        step_commitments=[(multiply(G1, 3), None), (multiply(G1, 5), multiply(G1, 7))],
        running_instance=RelaxedR1CSInstance(multiply(G1, 11), Z1, 9, [4, FR_MODULUS - 1]),
        running_witness=RelaxedR1CSWitness([1, 2, 3], [0, 5]),
    )


class TestJson:

    def test_integers_are_decimal_strings(self):
        data = proof_to_json(_proof())
        assert data["i"] == "2"
        assert data["z_i"] == ["2"]
        assert data["running_instance"]["x"] == ["4", str(FR_MODULUS - 1)]
        assert data["running_witness"]["E"] == ["0", "5"]

    def test_points(self):
        data = proof_to_json(_proof())
        assert data["step_commitments"][0]["comm_T"] is None
        x, y = normalize(multiply(G1, 3))
        assert data["step_commitments"][0]["comm_W"] == [str(x.n), str(y.n)]
        # point at infinity
        assert data["running_instance"]["comm_E"] == ["0", "0"]

    def test_round_trip(self):
        proof = _proof()
        back = proof_from_json(json.loads(json.dumps(proof_to_json(proof))))
        assert back.i == proof.i
        assert back.states == proof.states
        assert back.step_commitments[0][1] is None
        assert eq(back.step_commitments[1][1], multiply(G1, 7))
        assert back.running_instance.equals(proof.running_instance)
        assert back.running_witness == proof.running_witness

    def test_file_round_trip(self, tmp_path):
        path = tmp_path / "proof.json"
        save_proof(_proof(), str(path))
        assert load_proof(str(path)).z_i == [2]

    def test_missing_field(self):
        data = proof_to_json(_proof())
        del data["running_witness"]
        with pytest.raises(VerifyError, match="malformed"):
            proof_from_json(data)

    def test_out_of_range_element(self):
        data = proof_to_json(_proof())
        data["z_i"] = [str(FR_MODULUS)]
        with pytest.raises(VerifyError):
            proof_from_json(data)

    def test_point_off_curve(self):
        data = proof_to_json(_proof())
        data["step_commitments"][0]["comm_W"] = ["1", "1"]
        with pytest.raises(VerifyError, match="not on BN254"):
            proof_from_json(data)

    def test_non_numeric(self):
        data = proof_to_json(_proof())
        data["i"] = "two"
        with pytest.raises(VerifyError):
            proof_from_json(data)


class TestStructure:

    def test_well_formed(self):
        assert validate_proof_structure(_proof(), SHAPE, 1) == []

    def test_zero_steps(self):
        proof = _proof()
        proof.i = 0
        errors = validate_proof_structure(proof, SHAPE, 1)
        assert any("at least 1" in e for e in errors)

    def test_state_lengths(self):
        proof = _proof()
        proof.states[1] = [1, 1]
        errors = validate_proof_structure(proof, SHAPE, 1)
        assert errors == ["State 1 has length 2, expected 1"]

    def test_cross_term_placement(self):
        proof = _proof()
        proof.step_commitments = [(G1, G1), (G1, None)]
        errors = validate_proof_structure(proof, SHAPE, 1)
        assert "Step 0 must not carry a cross-term commitment" in errors
        assert "Step 1 has no cross-term commitment" in errors

    def test_missing_running_instance(self):
        proof = _proof()
        proof.running_instance = None
        assert validate_proof_structure(proof, SHAPE, 1) == ["Proof has no running instance"]

    def test_dimension_mismatch(self):
        proof = _proof()
        proof.running_witness.E = [0]
        proof.running_instance.x = [0]
        errors = validate_proof_structure(proof, SHAPE, 1)
        assert len(errors) == 2
