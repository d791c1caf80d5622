"""
Pytest configuration for foldsigs tests.

Poseidon constant generation runs the Grain LFSR bit by bit, so the canonical
config is built once per session and shared.
"""

import numpy as np
import pytest

from foldsigs.primitives.poseidon import poseidon_canonical_config


@pytest.fixture(scope="session")
def poseidon_config():
    return poseidon_canonical_config()


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


def make_batch(poseidon_config, sigs_per_step: int, seed: int = 7, message: int = 12345):
    """One valid batch of sigs_per_step signatures."""
    from foldsigs.driver import gen_signatures

    return gen_signatures(np.random.default_rng(seed), poseidon_config, 1, sigs_per_step, message)[0]


def tamper_message(batch, index: int = 0):
    """Copy of batch whose entry `index` claims a different message."""
    from foldsigs.witness import ExtInp, VecExtInp

    entries = list(batch.entries)
    e = entries[index]
    entries[index] = ExtInp(e.message + 1, e.public_key, e.signature)
    return VecExtInp(tuple(entries))
