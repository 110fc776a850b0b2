"""Foldable linear codes.

A foldable code is fixed by a base code and one twiddle vector per level. A
message of length 2^m is encoded recursively from its halves:

    Enc(l || r) = (Enc(l) + T * Enc(r)) || (Enc(l) - T * Enc(r))

where T is the twiddle vector whose length is half the output length, and the
base code (message length 1) is the repetition code of length c = 1 / rate.
Position j of the output pairs with position j + N/2, and the pair can be
folded with a challenge into the half-length codeword of the folded message
(see protocol.fold).

Code families differ only in their twiddles:
    REED_SOLOMON     T[j] = w_N^j for a primitive N-th root of unity w_N.
                     The result is an RS code of rate 2^-blowup_bits.
    RANDOM_FOLDABLE  T[j] pseudorandom and nonzero, derived from a public seed.
                     Works over any odd prime field.
"""

import hashlib
import logging
from enum import Enum
from typing import Dict

from basefold_spec.errors import EncodingLengthError
from basefold_spec.primitives.field import (
    batch_inverse,
    get_roots_of_unity,
    is_power_of_two,
    log2,
    two_adicity,
)

logger = logging.getLogger(__name__)


class CodeFamily(Enum):
    REED_SOLOMON = "reed_solomon"
    RANDOM_FOLDABLE = "random_foldable"


# --- Twiddle Builders ---

def _reed_solomon_twiddles(field: type, half_length: int, seed: bytes):
    """First half of the 2*half_length-th roots of unity."""
    del seed
    return get_roots_of_unity(field, log2(half_length) + 1, count=half_length)


def _random_twiddles(field: type, half_length: int, seed: bytes):
    """Nonzero pseudorandom twiddles, one SHA3-512 call per element."""
    p = field.order
    prefix = seed + half_length.to_bytes(8, "big")
    values = []
    for j in range(half_length):
        digest = hashlib.sha3_512(prefix + j.to_bytes(8, "big")).digest()
        values.append(int.from_bytes(digest, "big") % (p - 1) + 1)
    return field(values)


_TWIDDLE_BUILDERS = {
    CodeFamily.REED_SOLOMON: _reed_solomon_twiddles,
    CodeFamily.RANDOM_FOLDABLE: _random_twiddles,
}


# --- Foldable Code ---

class FoldableCode:
    """Encoder for a foldable linear code over `field`.

    Capabilities used by the rest of the protocol: encode, the fold pairing
    scalars (twiddles / inverse_twiddles), rate and relative_distance.
    """

    def __init__(
        self,
        field: type,
        num_vars: int,
        blowup_bits: int = 1,
        family: CodeFamily = CodeFamily.REED_SOLOMON,
        seed: bytes = b"basefold",
    ) -> None:
        if num_vars < 0:
            raise ValueError(f"num_vars must be non-negative, got {num_vars}")
        if blowup_bits < 1:
            raise ValueError(f"blowup_bits must be at least 1, got {blowup_bits}")
        family = CodeFamily(family)
        if family is CodeFamily.REED_SOLOMON and num_vars + blowup_bits > two_adicity(field):
            raise EncodingLengthError(
                f"GF({field.order}) supports Reed-Solomon codewords up to 2^{two_adicity(field)}, "
                f"need 2^{num_vars + blowup_bits}"
            )

        self.field = field
        self.num_vars = num_vars
        self.blowup_bits = blowup_bits
        self.family = family
        self.seed = seed

        self.inv_two = field(2) ** -1

        # Level l folds codewords of length c * 2^(l+1); twiddles have length c * 2^l.
        self._twiddles: Dict[int, object] = {}
        self._inv_twiddles: Dict[int, object] = {}
        builder = _TWIDDLE_BUILDERS[family]
        for level in range(num_vars):
            half = self.blowup << level
            tw = builder(field, half, seed)
            self._twiddles[half] = tw
            self._inv_twiddles[half] = batch_inverse(tw)

        logger.debug(
            "built %s code over GF(%d): k=%d n=%d",
            family.value, field.order, self.message_length, self.codeword_length,
        )

    @classmethod
    def reed_solomon(cls, field: type, num_vars: int, blowup_bits: int = 1) -> "FoldableCode":
        return cls(field, num_vars, blowup_bits, CodeFamily.REED_SOLOMON)

    @classmethod
    def random(
        cls, field: type, num_vars: int, blowup_bits: int = 1, seed: bytes = b"basefold"
    ) -> "FoldableCode":
        return cls(field, num_vars, blowup_bits, CodeFamily.RANDOM_FOLDABLE, seed)

    # --- Parameters ---

    @property
    def blowup(self) -> int:
        """Inverse rate c; also the base (repetition) codeword length."""
        return 1 << self.blowup_bits

    @property
    def message_length(self) -> int:
        return 1 << self.num_vars

    @property
    def codeword_length(self) -> int:
        return self.message_length * self.blowup

    @property
    def rate(self) -> float:
        return 1.0 / self.blowup

    @property
    def relative_distance(self) -> float:
        """1 - rate. Exact for Reed-Solomon; the designed distance for random
        foldable codes, met with high probability over the seed for large fields."""
        return 1.0 - self.rate

    def encoded_length(self, message_length: int) -> int:
        return message_length * self.blowup

    def twiddles(self, half_length: int):
        """Pairing scalars T for codewords of length 2 * half_length."""
        try:
            return self._twiddles[half_length]
        except KeyError:
            raise EncodingLengthError(
                f"no fold level for codeword length {2 * half_length}"
            ) from None

    def inverse_twiddles(self, half_length: int):
        try:
            return self._inv_twiddles[half_length]
        except KeyError:
            raise EncodingLengthError(
                f"no fold level for codeword length {2 * half_length}"
            ) from None

    # --- Encoding ---

    def encode(self, message):
        """Encode a message of length 2^j (j <= num_vars) to length c * 2^j."""
        k = len(message)
        if not is_power_of_two(k) or k > self.message_length:
            raise EncodingLengthError(
                f"message length {k} not a power of two in [1, {self.message_length}]"
            )
        if not isinstance(message, self.field):
            message = self.field([int(v) for v in message])

        # Row b holds Enc(message[b]) for the repetition base code. Each pass
        # merges rows 2i and 2i+1 into one codeword of twice the width.
        c = self.blowup
        rows = self.field.Zeros((k, c))
        rows[:] = message[:, None]
        width = c
        while rows.shape[0] > 1:
            t = self._twiddles[width]
            left = rows[0::2]
            right = rows[1::2] * t
            merged = self.field.Zeros((rows.shape[0] // 2, 2 * width))
            merged[:, :width] = left + right
            merged[:, width:] = left - right
            rows = merged
            width *= 2
        return rows[0]
