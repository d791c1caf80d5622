"""In-circuit Poseidon sponge.

Same absorb/squeeze state machine as primitives.poseidon.PoseidonSponge, so a
transcript built natively and one built in-circuit squeeze identical values.
Round constants and MDS multiplication are linear and free; every S-box on a
non-constant lane costs one constraint per multiplication in the exponent
chain (3 for alpha = 5).
"""

from typing import List, Sequence

from foldsigs.primitives.poseidon import PoseidonConfig
from foldsigs.r1cs import ConstraintSystem, FpVar


def _pow(v: FpVar, exponent: int) -> FpVar:
    """v^exponent by left-to-right square-and-multiply."""
    result = v
    for bit in bin(exponent)[3:]:
        result = result.square()
        if bit == "1":
            result = result * v
    return result


def poseidon_permute_var(config: PoseidonConfig, state: List[FpVar]) -> List[FpVar]:
    half_full = config.full_rounds // 2
    for r in range(config.full_rounds + config.partial_rounds):
        state = [v + c for v, c in zip(state, config.ark[r])]
        if r < half_full or r >= half_full + config.partial_rounds:
            state = [_pow(v, config.alpha) for v in state]
        else:
            state[0] = _pow(state[0], config.alpha)
        new_state = []
        for row in config.mds:
            acc = FpVar.zero()
            for m, v in zip(row, state):
                acc = acc + v.mul_by_constant(m)
            new_state.append(acc)
        state = new_state
    return state


class PoseidonSpongeVar:
    """Duplex sponge over FpVar lanes."""

    def __init__(self, cs: ConstraintSystem, config: PoseidonConfig):
        self.cs = cs
        self.config = config
        self.state: List[FpVar] = [FpVar.zero() for _ in range(config.width)]
        self.absorbing = True
        self.index = 0

    def permute(self) -> None:
        self.state = poseidon_permute_var(self.config, self.state)

    def absorb(self, elements: Sequence[FpVar]) -> None:
        if not elements:
            return
        rate, cap = self.config.rate, self.config.capacity
        if not self.absorbing:
            self.absorbing = True
            self.index = 0
        for elem in elements:
            if self.index == rate:
                self.permute()
                self.index = 0
            pos = cap + self.index
            self.state[pos] = self.state[pos] + elem
            self.index += 1

    def squeeze_field_elements(self, n: int) -> List[FpVar]:
        rate, cap = self.config.rate, self.config.capacity
        if self.absorbing:
            self.permute()
            self.absorbing = False
            self.index = 0
        out = []
        for _ in range(n):
            if self.index == rate:
                self.permute()
                self.index = 0
            out.append(self.state[cap + self.index])
            self.index += 1
        return out
