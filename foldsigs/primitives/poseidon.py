"""Poseidon permutation and duplex sponge over Fr.

Round constants and the MDS matrix are derived with the Grain LFSR of the
Poseidon paper, so a configuration is fully determined by
(prime bits, rate, full rounds, partial rounds).

The sponge state is laid out [capacity | rate]: elements are absorbed into and
squeezed from state[capacity:]. The absorb/squeeze state machine here and in
gadgets.poseidon must stay identical, since the EdDSA challenge is computed
natively by the signer and in-circuit by the verifier gadget.
"""

from dataclasses import dataclass
from functools import lru_cache
from math import gcd
from typing import List, Sequence

import numpy as np

from foldsigs.errors import ConstructionError
from foldsigs.primitives.field import FF, FR_MODULUS, FR_MODULUS_BITS

# Canonical parameters: t = 5, x^5 S-box
CANONICAL_RATE = 4
CANONICAL_CAPACITY = 1
CANONICAL_ALPHA = 5
CANONICAL_FULL_ROUNDS = 8
CANONICAL_PARTIAL_ROUNDS = 60


@dataclass(frozen=True)
class PoseidonConfig:
    """Poseidon parameters.

    Attributes:
        full_rounds: Number of rounds applying the S-box to the whole state (even)
        partial_rounds: Number of rounds applying the S-box to state[0] only
        alpha: S-box exponent
        ark: Round constants, one row of width rate+capacity per round
        mds: (rate+capacity) x (rate+capacity) mixing matrix
        rate: Elements absorbed/squeezed per permutation
        capacity: Elements never directly touched by absorb/squeeze
    """
    full_rounds: int
    partial_rounds: int
    alpha: int
    ark: tuple
    mds: tuple
    rate: int
    capacity: int

    @property
    def width(self) -> int:
        return self.rate + self.capacity

    def validate(self, modulus: int = FR_MODULUS) -> None:
        """Check the parameters are usable over GF(modulus).

        Raises:
            ConstructionError: On any dimension, range or algebraic mismatch
        """
        t = self.width
        if self.rate < 1 or self.capacity < 1:
            raise ConstructionError(f"rate and capacity must be positive, got {self.rate}/{self.capacity}")
        if self.full_rounds <= 0 or self.full_rounds % 2:
            raise ConstructionError(f"full_rounds must be positive and even, got {self.full_rounds}")
        if self.partial_rounds < 0:
            raise ConstructionError(f"partial_rounds must be non-negative, got {self.partial_rounds}")
        if self.alpha < 3 or gcd(self.alpha, modulus - 1) != 1:
            raise ConstructionError(f"S-box x^{self.alpha} is not a permutation of GF(p)")
        if len(self.ark) != self.full_rounds + self.partial_rounds:
            raise ConstructionError(
                f"expected {self.full_rounds + self.partial_rounds} rows of round constants, got {len(self.ark)}"
            )
        if any(len(row) != t for row in self.ark):
            raise ConstructionError(f"every round-constant row must have {t} entries")
        if len(self.mds) != t or any(len(row) != t for row in self.mds):
            raise ConstructionError(f"MDS matrix must be {t}x{t}")
        for row in (*self.ark, *self.mds):
            for v in row:
                if not isinstance(v, int) or not 0 <= v < modulus:
                    raise ConstructionError("Poseidon constant out of field range")
        if modulus == FR_MODULUS and np.linalg.matrix_rank(FF([list(row) for row in self.mds])) != t:
            raise ConstructionError("MDS matrix is singular")


# --- Grain LFSR ---

class GrainLFSR:
    """80-bit Grain LFSR used to derive Poseidon constants.

    The 80 initial bits encode the field type, S-box type, prime size, state
    width and round counts, followed by thirty ones; the first 160 outputs are
    discarded.
    """

    def __init__(self, is_sbox_inverse: bool, prime_num_bits: int, state_len: int,
                 num_full_rounds: int, num_partial_rounds: int):
        self.prime_num_bits = prime_num_bits
        state = [False] * 80
        state[1] = True  # prime field
        state[5] = is_sbox_inverse
        self._write(state, 6, 17, prime_num_bits)
        self._write(state, 18, 29, state_len)
        self._write(state, 30, 39, num_full_rounds)
        self._write(state, 40, 49, num_partial_rounds)
        for i in range(50, 80):
            state[i] = True
        self.state = state
        self.head = 0
        for _ in range(160):
            self._update()

    @staticmethod
    def _write(state: List[bool], lo: int, hi: int, value: int) -> None:
        for i in range(hi, lo - 1, -1):
            state[i] = bool(value & 1)
            value >>= 1

    def _update(self) -> bool:
        s, h = self.state, self.head
        new_bit = (s[(h + 62) % 80] ^ s[(h + 51) % 80] ^ s[(h + 38) % 80]
                   ^ s[(h + 23) % 80] ^ s[(h + 13) % 80] ^ s[h])
        s[h] = new_bit
        self.head = (h + 1) % 80
        return new_bit

    def get_bits(self, num_bits: int) -> List[bool]:
        """Self-shrinking output: emit the second bit of each pair whose first bit is 1."""
        res = []
        for _ in range(num_bits):
            first = self._update()
            while not first:
                self._update()
                first = self._update()
            res.append(self._update())
        return res

    def _next_int(self) -> int:
        # first output bit is the most significant
        acc = 0
        for bit in self.get_bits(self.prime_num_bits):
            acc = (acc << 1) | int(bit)
        return acc

    def get_field_elements_rejection_sampling(self, n: int, modulus: int) -> List[int]:
        res = []
        while len(res) < n:
            v = self._next_int()
            if v < modulus:
                res.append(v)
        return res

    def get_field_elements_mod_p(self, n: int, modulus: int) -> List[int]:
        return [self._next_int() % modulus for _ in range(n)]


def find_poseidon_ark_and_mds(prime_bits: int, rate: int, full_rounds: int,
                              partial_rounds: int, modulus: int = FR_MODULUS):
    """Derive round constants and a Cauchy MDS matrix from the Grain LFSR.

    Returns:
        (ark, mds) as tuples of tuples of ints
    """
    t = rate + 1
    lfsr = GrainLFSR(False, prime_bits, t, full_rounds, partial_rounds)
    ark = tuple(
        tuple(lfsr.get_field_elements_rejection_sampling(t, modulus))
        for _ in range(full_rounds + partial_rounds)
    )
    xs = FF(lfsr.get_field_elements_mod_p(t, modulus))
    ys = FF(lfsr.get_field_elements_mod_p(t, modulus))
    # mds[i][j] = 1 / (x_i + y_j)
    cauchy = (xs[:, np.newaxis] + ys[np.newaxis, :]) ** -1
    mds = tuple(tuple(int(v) for v in row) for row in cauchy)
    return ark, mds


@lru_cache(maxsize=None)
def poseidon_canonical_config() -> PoseidonConfig:
    """Default Poseidon configuration over Fr (rate 4, capacity 1, alpha 5, 8 + 60 rounds)."""
    ark, mds = find_poseidon_ark_and_mds(
        FR_MODULUS_BITS, CANONICAL_RATE, CANONICAL_FULL_ROUNDS, CANONICAL_PARTIAL_ROUNDS
    )
    return PoseidonConfig(
        full_rounds=CANONICAL_FULL_ROUNDS,
        partial_rounds=CANONICAL_PARTIAL_ROUNDS,
        alpha=CANONICAL_ALPHA,
        ark=ark,
        mds=mds,
        rate=CANONICAL_RATE,
        capacity=CANONICAL_CAPACITY,
    )


# --- Permutation ---

def poseidon_permute(config: PoseidonConfig, state: Sequence[int]) -> List[int]:
    """Apply the Poseidon permutation to a state of width rate+capacity."""
    p = FR_MODULUS
    t = config.width
    if len(state) != t:
        raise ValueError(f"state must have {t} elements, got {len(state)}")
    alpha = config.alpha
    half_full = config.full_rounds // 2
    state = [v % p for v in state]

    for r in range(config.full_rounds + config.partial_rounds):
        ark = config.ark[r]
        state = [(v + c) % p for v, c in zip(state, ark)]
        if r < half_full or r >= half_full + config.partial_rounds:
            state = [pow(v, alpha, p) for v in state]
        else:
            state[0] = pow(state[0], alpha, p)
        state = [sum(m * v for m, v in zip(row, state)) % p for row in config.mds]
    return state


# --- Sponge ---

class PoseidonSponge:
    """Duplex sponge over the Poseidon permutation."""

    def __init__(self, config: PoseidonConfig):
        self.config = config
        self.state = [0] * config.width
        self.absorbing = True
        self.index = 0  # next rate position to absorb into or squeeze from

    def permute(self) -> None:
        self.state = poseidon_permute(self.config, self.state)

    def absorb(self, elements: Sequence[int]) -> None:
        """Absorb field elements (ints, reduced mod r)."""
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
            self.state[pos] = (self.state[pos] + elem) % FR_MODULUS
            self.index += 1

    def squeeze_field_elements(self, n: int) -> List[int]:
        """Squeeze n field elements."""
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


def poseidon_hash(config: PoseidonConfig, elements: Sequence[int]) -> int:
    """Absorb elements into a fresh sponge and squeeze one element."""
    sponge = PoseidonSponge(config)
    sponge.absorb(list(elements))
    return sponge.squeeze_field_elements(1)[0]
