"""Codeword folding, per-round commitment and query position mapping."""

from typing import Tuple

from basefold_spec.errors import EncodingLengthError, IndexOutOfRange
from basefold_spec.primitives.field import is_power_of_two, to_ints
from basefold_spec.primitives.merkle_tree import MerkleRoot, MerkleTree
from basefold_spec.protocol.codes import FoldableCode


class FoldEngine:
    """Folding of foldable-code codewords.

    A codeword of length N pairs position i with i + N/2. For a codeword of
    Enc(l || r) the pair is (x, y) = (Enc(l)_i + t_i Enc(r)_i, Enc(l)_i - t_i Enc(r)_i),
    so a = (x + y)/2 and b = (x - y)/(2 t_i) recover Enc(l)_i and Enc(r)_i, and
    a + r (b - a) is position i of Enc(fold_message(l, r, challenge)).
    """

    @staticmethod
    def combine(x, y, challenge, t_inv, inv_two):
        """Fold one pair (or arrays of pairs) with the challenge.

        The prover's whole-codeword fold and the verifier's pointwise check
        both go through this function.
        """
        a = (x + y) * inv_two
        b = (x - y) * inv_two * t_inv
        return a + challenge * (b - a)

    @staticmethod
    def fold(code: FoldableCode, codeword, challenge):
        """Fold a codeword of length N into one of length N/2."""
        n = len(codeword)
        if n < 2 or not is_power_of_two(n):
            raise EncodingLengthError(f"cannot fold codeword of length {n}")
        half = n // 2
        r = code.field(int(challenge))
        return FoldEngine.combine(
            codeword[:half],
            codeword[half:],
            r,
            code.inverse_twiddles(half),
            code.inv_two,
        )

    @staticmethod
    def merkelize(codeword, tree: MerkleTree) -> MerkleRoot:
        """Commit a codeword; leaf p holds the fold pair (w[p], w[p + N/2])."""
        n = len(codeword)
        half = n // 2
        values = to_ints(codeword)
        source = []
        for p in range(half):
            source.append(values[p])
            source.append(values[p + half])
        tree.merkelize(source, height=half, width=2)
        return tree.get_root()

    @staticmethod
    def query_pair(position: int, length: int) -> Tuple[int, bool]:
        """Map a position of a length-`length` codeword to (leaf index, is_upper)."""
        if position < 0 or position >= length:
            raise IndexOutOfRange(f"position {position} out of range [0, {length})")
        half = length // 2
        return position % half, position >= half

    @staticmethod
    def fold_positions(query_index: int, codeword_length: int, num_rounds: int):
        """Leaf index opened at each round for one query.

        The query index names a position of the round-1 codeword, which is
        leaf `query_index` of round 0. Each later round opens the leaf holding
        the previous round's folded position.
        """
        half = codeword_length // 2
        if query_index < 0 or query_index >= half:
            raise IndexOutOfRange(f"query index {query_index} out of range [0, {half})")
        leaves = []
        position = query_index
        length = codeword_length
        for _ in range(num_rounds):
            half = length // 2
            position %= half
            leaves.append(position)
            length = half
        return leaves
