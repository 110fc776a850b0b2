"""Fiat-Shamir transcript over a SHA3-256 hash chain.

The transcript is an explicit object threaded through prover and verifier
calls. Each absorption replaces the chaining state with
H(0x00 || state || tag || len || data); each squeeze reads output blocks
H(0x01 || state || counter). A squeeze is only allowed after at least one
absorption since the previous squeeze, which enforces "every commitment before
the challenge that depends on it".
"""

import hashlib
from typing import List, Sequence, Union

from basefold_spec.errors import TranscriptOrderError

_ABSORB = b"\x00"
_SQUEEZE = b"\x01"

_TAG_INTS = b"I"
_TAG_BYTES = b"B"


class Transcript:
    """Fiat-Shamir transcript producing field challenges and query indices.

    Attributes:
        modulus: Prime of the challenge field
        state: Current 32-byte chaining value
        pending: Absorptions since the last squeeze
        out_cursor: Output blocks read since the last absorption
    """

    def __init__(self, modulus: int, domain: bytes = b"basefold-pcs"):
        if modulus <= 2:
            raise ValueError(f"modulus must be an odd prime, got {modulus}")
        self.modulus = modulus
        self.elem_size = (modulus.bit_length() + 7) // 8
        self.state = hashlib.sha3_256(domain).digest()
        self.pending = 0
        self.out_cursor = 0

    # --- Absorption ---

    def put(self, input_data: Union[Sequence[int], bytes]) -> None:
        """Absorb field elements (ints) or an opaque byte string (e.g. a root)."""
        if isinstance(input_data, (bytes, bytearray)):
            self._absorb(_TAG_BYTES, bytes(input_data))
            return
        encoded = b"".join(
            (int(x) % self.modulus).to_bytes(self.elem_size, "big") for x in input_data
        )
        self._absorb(_TAG_INTS, encoded)

    def _absorb(self, tag: bytes, data: bytes) -> None:
        h = hashlib.sha3_256(_ABSORB)
        h.update(self.state)
        h.update(tag)
        h.update(len(data).to_bytes(8, "big"))
        h.update(data)
        self.state = h.digest()
        self.pending += 1
        self.out_cursor = 0

    # --- Squeezing ---

    def _next_block(self) -> bytes:
        h = hashlib.sha3_256(_SQUEEZE)
        h.update(self.state)
        h.update(self.out_cursor.to_bytes(8, "big"))
        self.out_cursor += 1
        return h.digest()

    def _begin_squeeze(self, what: str) -> None:
        if self.pending == 0:
            raise TranscriptOrderError(
                f"{what} requested without a new commitment absorbed since the last challenge"
            )

    def _end_squeeze(self) -> None:
        # Ratchet so later absorptions also bind what was squeezed.
        self._absorb(_SQUEEZE, self.out_cursor.to_bytes(8, "big"))
        self.pending = 0

    def get_field(self) -> int:
        """Squeeze one field element in [0, modulus)."""
        self._begin_squeeze("challenge")
        # 512 bits reduced mod p: bias at most p / 2^512
        value = int.from_bytes(self._next_block() + self._next_block(), "big") % self.modulus
        self._end_squeeze()
        return value

    def get_permutations(self, n: int, n_bits: int) -> List[int]:
        """Generate n values, each using n_bits bits, in [0, 2^n_bits).

        Used to derive query indices.
        """
        self._begin_squeeze("query indices")
        result = []
        block = 0
        bits_left = 0
        for _ in range(n):
            a = 0
            for j in range(n_bits):
                if bits_left == 0:
                    block = int.from_bytes(self._next_block(), "little")
                    bits_left = 256
                a |= (block & 1) << j
                block >>= 1
                bits_left -= 1
            result.append(a)
        self._end_squeeze()
        return result

    def get_state(self) -> bytes:
        """Current chaining value (does not count as a squeeze)."""
        return self.state
