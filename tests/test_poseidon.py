"""Tests for Poseidon parameters, permutation and sponge."""

from dataclasses import replace

import pytest

from foldsigs.errors import ConstructionError
from foldsigs.primitives.field import FR_MODULUS
from foldsigs.primitives.poseidon import (
    GrainLFSR,
    PoseidonSponge,
    poseidon_hash,
    poseidon_permute,
)


class TestPoseidonConfig:

    def test_canonical_shape(self, poseidon_config):
        assert poseidon_config.rate == 4
        assert poseidon_config.capacity == 1
        assert poseidon_config.alpha == 5
        assert poseidon_config.full_rounds == 8
        assert poseidon_config.partial_rounds == 60
        assert len(poseidon_config.ark) == 68
        assert all(len(row) == 5 for row in poseidon_config.ark)
        assert len(poseidon_config.mds) == 5

    def test_canonical_validates(self, poseidon_config):
        poseidon_config.validate(FR_MODULUS)

    def test_rejects_non_permutation_sbox(self, poseidon_config):
        # gcd(3, r - 1) != 1 for BN254
        with pytest.raises(ConstructionError):
            replace(poseidon_config, alpha=3).validate()

    def test_rejects_odd_full_rounds(self, poseidon_config):
        bad = replace(poseidon_config, full_rounds=7, ark=poseidon_config.ark[:67])
        with pytest.raises(ConstructionError):
            bad.validate()

    def test_rejects_wrong_ark_length(self, poseidon_config):
        with pytest.raises(ConstructionError):
            replace(poseidon_config, ark=poseidon_config.ark[:-1]).validate()

    def test_rejects_out_of_range_constant(self, poseidon_config):
        ark = (tuple([FR_MODULUS] * 5),) + poseidon_config.ark[1:]
        with pytest.raises(ConstructionError):
            replace(poseidon_config, ark=ark).validate()

    def test_rejects_singular_mds(self, poseidon_config):
        ones = tuple(tuple([1] * 5) for _ in range(5))
        with pytest.raises(ConstructionError):
            replace(poseidon_config, mds=ones).validate()

    def test_rejects_zero_capacity(self, poseidon_config):
        with pytest.raises(ConstructionError):
            replace(poseidon_config, capacity=0, rate=5).validate()


def test_grain_lfsr_is_deterministic() -> None:
    a = GrainLFSR(False, 254, 5, 8, 60).get_field_elements_rejection_sampling(3, FR_MODULUS)
    b = GrainLFSR(False, 254, 5, 8, 60).get_field_elements_rejection_sampling(3, FR_MODULUS)
    assert a == b
    assert all(0 <= v < FR_MODULUS for v in a)
    c = GrainLFSR(False, 254, 5, 8, 57).get_field_elements_rejection_sampling(3, FR_MODULUS)
    assert a != c


def test_permute_rejects_wrong_width(poseidon_config) -> None:
    with pytest.raises(ValueError):
        poseidon_permute(poseidon_config, [0, 0, 0])


def test_permute_is_not_identity(poseidon_config) -> None:
    out = poseidon_permute(poseidon_config, [0] * 5)
    assert out != [0] * 5
    assert all(0 <= v < FR_MODULUS for v in out)


def test_hash_matches_manual_sponge(poseidon_config) -> None:
    elements = [1, 2, 3, 4, 5]
    state = poseidon_permute(poseidon_config, [0, 1, 2, 3, 4])
    state[1] = (state[1] + 5) % FR_MODULUS
    state = poseidon_permute(poseidon_config, state)
    assert poseidon_hash(poseidon_config, elements) == state[1]


def test_hash_separates_inputs(poseidon_config) -> None:
    assert poseidon_hash(poseidon_config, [1, 2]) != poseidon_hash(poseidon_config, [2, 1])
    assert poseidon_hash(poseidon_config, [1]) != poseidon_hash(poseidon_config, [1, 0])


def test_sponge_squeeze_past_rate(poseidon_config) -> None:
    sponge = PoseidonSponge(poseidon_config)
    sponge.absorb([42])
    out = sponge.squeeze_field_elements(6)
    assert len(out) == 6
    assert len(set(out)) == 6

    again = PoseidonSponge(poseidon_config)
    again.absorb([42])
    assert again.squeeze_field_elements(4) + again.squeeze_field_elements(2) == out


def test_sponge_absorb_after_squeeze(poseidon_config) -> None:
    sponge = PoseidonSponge(poseidon_config)
    sponge.absorb([1])
    first = sponge.squeeze_field_elements(1)
    sponge.absorb([2])
    second = sponge.squeeze_field_elements(1)
    assert first != second
