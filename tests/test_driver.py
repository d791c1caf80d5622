"""End-to-end tests of the IVC driver.

The full-size runs take minutes; they are skipped unless FOLDSIGS_SLOW is set.
"""

import json
import os

import numpy as np
import pytest

from foldsigs.driver import FlowConfig, full_flow, gen_signatures, setup, verifier_params_for
from foldsigs.errors import ConstraintUnsatisfied
from foldsigs.protocol import Nova

from tests.conftest import tamper_message

slow = pytest.mark.skipif(not os.environ.get("FOLDSIGS_SLOW"), reason="set FOLDSIGS_SLOW=1 to run")


class TestFlowConfig:

    def test_defaults(self):
        config = FlowConfig()
        assert (config.n_steps, config.sigs_per_step, config.seed, config.message) == (5, 10, 0, 12345)

    def test_from_dict(self):
        config = FlowConfig.from_dict({"n_steps": "3", "sigs_per_step": 2})
        assert config.n_steps == 3 and config.sigs_per_step == 2

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown"):
            FlowConfig.from_dict({"steps": 3})

    @pytest.mark.parametrize("data", [{"n_steps": 0}, {"sigs_per_step": -1}])
    def test_invalid_values(self, data):
        with pytest.raises(ValueError):
            FlowConfig.from_dict(data)

    @pytest.mark.parametrize("value", [2.7, "2.7", True, None, [2]])
    def test_non_integral_values_rejected(self, value):
        with pytest.raises(ValueError, match="sigs_per_step must be an integer"):
            FlowConfig.from_dict({"sigs_per_step": value})

    def test_integral_float_accepted(self):
        assert FlowConfig.from_dict({"n_steps": 4.0}).n_steps == 4

    def test_from_json(self, tmp_path):
        path = tmp_path / "flow.json"
        path.write_text(json.dumps({"n_steps": 2, "sigs_per_step": 1, "seed": 9}))
        config = FlowConfig.from_json(str(path))
        assert config == FlowConfig(n_steps=2, sigs_per_step=1, seed=9)


class TestGenSignatures:

    def test_batches(self, poseidon_config):
        batches = gen_signatures(np.random.default_rng(0), poseidon_config, 2, 3)
        assert len(batches) == 2
        assert all(len(b) == 3 for b in batches)
        for batch in batches:
            for entry in batch:
                assert entry.message == 12345
                assert entry.public_key.verify(poseidon_config, entry.message, entry.signature)

    def test_fresh_key_per_signature(self, poseidon_config):
        (batch,) = gen_signatures(np.random.default_rng(0), poseidon_config, 1, 3)
        keys = {entry.public_key for entry in batch}
        assert len(keys) == 3


class TestFullFlow:

    def test_small_run(self, capsys):
        result = full_flow(FlowConfig(n_steps=2, sigs_per_step=1, seed=3))
        assert result.verified
        assert result.final_state == [2]
        assert result.proof.i == 2
        assert {"preprocess", "prove_step_0", "prove_step_1", "all_steps", "verify"} <= set(result.timings)
        out = capsys.readouterr().out
        assert "SIGS PER SECOND" in out
        assert "Nova::verify: True" in out

    def test_empty_batches(self):
        result = full_flow(FlowConfig(n_steps=3, sigs_per_step=0))
        assert result.verified
        assert result.final_state == [0]

    def test_verifier_params_rebuilt_from_seed(self):
        result = full_flow(FlowConfig(n_steps=1, sigs_per_step=1, seed=5))
        assert Nova.verify(verifier_params_for(1, 5), result.proof)
        assert not Nova.verify(verifier_params_for(1, 6), result.proof)


@slow
@pytest.mark.slow
@pytest.mark.parametrize("sigs_per_step,expected", [(10, 50), (50, 250)])
def test_full_size_runs(sigs_per_step, expected) -> None:
    result = full_flow(FlowConfig(n_steps=5, sigs_per_step=sigs_per_step))
    assert result.verified
    assert result.final_state == [expected]


@slow
@pytest.mark.slow
def test_invalid_signature_at_step_three(poseidon_config) -> None:
    config = FlowConfig(n_steps=5, sigs_per_step=10)
    f_circuit, pp, vp = setup(config, np.random.default_rng(0), poseidon_config)
    batches = gen_signatures(np.random.default_rng(1), poseidon_config, 5, 10)
    batches[3] = tamper_message(batches[3], index=4)

    nova = Nova.init(pp, f_circuit, [0])
    for i in range(3):
        nova.prove_step(None, batches[i])
    with pytest.raises(ConstraintUnsatisfied) as exc_info:
        nova.prove_step(None, batches[3])
    assert exc_info.value.step == 3
    assert "sig_4" in exc_info.value.label
    assert nova.state() == [30]
    assert Nova.verify(vp, nova.ivc_proof())
