"""Tests for Pedersen commitments and the Poseidon transcript."""

import numpy as np
import pytest
from py_ecc.optimized_bn128 import G1, Z1, add, b, curve_order, eq, is_on_curve, multiply

from foldsigs.primitives.field import FF, FR_MODULUS
from foldsigs.primitives.pedersen import (
    Pedersen,
    g1_add,
    g1_from_affine_ints,
    g1_mul,
    g1_to_affine_ints,
    msm,
)
from foldsigs.primitives.transcript import PoseidonTranscript


@pytest.fixture(scope="module")
def params():
    return Pedersen.from_seed(b"\x01" * 32, 40)


def _naive_commit(params, vector):
    acc = Z1
    for v, base in zip(vector, params.generators):
        if v % FR_MODULUS:
            acc = add(acc, multiply(g1_from_affine_ints(base), v % FR_MODULUS))
    return acc


class TestPedersen:

    def test_generators_on_curve(self, params):
        for base in params.generators:
            assert is_on_curve(g1_from_affine_ints(base), b)

    def test_generators_deterministic_from_seed(self, params):
        again = Pedersen.from_seed(b"\x01" * 32, 40)
        assert again.generators == params.generators
        other = Pedersen.from_seed(b"\x02" * 32, 40)
        assert other.generators != params.generators

    def test_setup_draws_seed_from_rng(self):
        p1 = Pedersen.setup(np.random.default_rng(5), 3)
        p2 = Pedersen.setup(np.random.default_rng(5), 3)
        assert p1.seed == p2.seed and p1.generators == p2.generators

    def test_commit_matches_naive(self, params):
        vector = [0, 1, 1, 0, 2, FR_MODULUS - 1, 123456789 ** 3, 1, 0, 7]
        assert eq(Pedersen.commit(params, vector), _naive_commit(params, vector))

    def test_commit_large_vector_matches_naive(self, params):
        rng = np.random.default_rng(3)
        vector = [int.from_bytes(rng.bytes(32), "little") % FR_MODULUS for _ in range(40)]
        assert eq(Pedersen.commit(params, vector), _naive_commit(params, vector))

    def test_zero_vector_commits_to_infinity(self, params):
        assert eq(Pedersen.commit(params, [0] * 10), Z1)
        assert eq(Pedersen.commit(params, []), Z1)

    def test_homomorphic(self, params):
        v1 = [3, 0, 1, 5, 9]
        v2 = [1, 1, 0, 2, FR_MODULUS - 4]
        c = 77
        folded = [(a + c * x) % FR_MODULUS for a, x in zip(v1, v2)]
        lhs = Pedersen.commit(params, folded)
        rhs = g1_add(Pedersen.commit(params, v1), g1_mul(Pedersen.commit(params, v2), c))
        assert eq(lhs, rhs)

    def test_vector_too_long(self, params):
        with pytest.raises(ValueError, match="exceeds commitment key size"):
            Pedersen.commit(params, [1] * 41)

    def test_negative_size(self):
        with pytest.raises(ValueError):
            Pedersen.from_seed(b"\x00" * 32, -1)


def test_scalar_field_is_g1_order() -> None:
    assert curve_order == FR_MODULUS


def test_msm_single_scalar() -> None:
    base = g1_to_affine_ints(G1)
    assert eq(msm([base], [5]), multiply(G1, 5))
    assert eq(msm([base], [FR_MODULUS + 5]), multiply(G1, 5))


def test_msm_repeated_base_and_normalized_output() -> None:
    base = g1_to_affine_ints(multiply(G1, 9))
    result = msm([base] * 4, [2, 3, 1, FR_MODULUS - 1])
    assert eq(result, multiply(G1, 9 * 5))
    assert result[2].n == 1
    assert eq(msm([base, base], [4, FR_MODULUS - 4]), Z1)


def test_affine_round_trip_and_infinity() -> None:
    point = multiply(G1, 42)
    assert eq(g1_from_affine_ints(g1_to_affine_ints(point)), point)
    assert g1_to_affine_ints(Z1) is None
    assert eq(g1_from_affine_ints(None), Z1)
    assert eq(g1_mul(point, 0), Z1)
    assert eq(g1_mul(point, FR_MODULUS), Z1)


def test_off_curve_coordinates_rejected() -> None:
    with pytest.raises(ValueError, match="not on BN254 G1"):
        g1_from_affine_ints((1, 1))


class TestPoseidonTranscript:

    def test_deterministic(self, poseidon_config):
        def run():
            t = PoseidonTranscript(poseidon_config)
            t.absorb_field(11)
            t.absorb_point(multiply(G1, 3))
            t.absorb_fields([1, 2, 3])
            return t.get_challenge()
        assert run() == run()

    def test_binds_every_input(self, poseidon_config):
        def run(field, point):
            t = PoseidonTranscript(poseidon_config)
            t.absorb_field(field)
            t.absorb_point(point)
            return t.get_challenge()
        base = run(11, multiply(G1, 3))
        assert run(12, multiply(G1, 3)) != base
        assert run(11, multiply(G1, 4)) != base
        assert run(11, Z1) != base

    def test_challenge_in_field(self, poseidon_config):
        t = PoseidonTranscript(poseidon_config)
        t.absorb_field(FR_MODULUS + 3)
        assert 0 <= t.get_challenge() < FR_MODULUS

    def test_field_values_reduced_and_typed(self, poseidon_config):
        def run(values):
            t = PoseidonTranscript(poseidon_config)
            t.absorb_fields(values)
            return t.get_challenge()
        assert run([FF(5), FR_MODULUS + 7]) == run([5, 7])
        with pytest.raises(ValueError):
            PoseidonTranscript(poseidon_config).absorb_field(1.5)
