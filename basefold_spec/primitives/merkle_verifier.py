"""Merkle tree verification abstraction.

The verifier never holds full vectors, only roots. MerkleVerifier binds a root
to the tree shape it was committed with, so a query can be checked from the
leaf row and its sibling path alone.
"""

from dataclasses import dataclass
from typing import List

from basefold_spec.errors import IndexOutOfRange
from basefold_spec.primitives.merkle_tree import HASH_SIZE, Digest, MerkleRoot, verify_path


# --- Configuration ---


@dataclass(frozen=True)
class MerkleConfig:
    """Merkle tree configuration for verification.

    Attributes:
        arity: Tree branching factor (2, 3, or 4)
        height: Number of leaves
        elem_size: Bytes per serialized field element
    """

    arity: int
    height: int
    elem_size: int

    @property
    def n_siblings(self) -> int:
        """Number of sibling levels in each query proof."""
        levels = 0
        n = self.height
        while n > 1:
            n = (n + self.arity - 1) // self.arity
            levels += 1
        return levels

    @property
    def siblings_per_level(self) -> int:
        return self.arity - 1

    @property
    def proof_size(self) -> int:
        """Bytes of sibling digests per query."""
        return self.n_siblings * self.siblings_per_level * HASH_SIZE


# --- Verifier Class ---


class MerkleVerifier:
    """Checks leaf openings against one committed root.

    Usage:
        verifier = MerkleVerifier(root, MerkleConfig(arity=2, height=8, elem_size=8))
        for idx, leaf, path in openings:
            if not verifier.verify_query(idx, leaf, path):
                return False
    """

    def __init__(self, root: MerkleRoot, config: MerkleConfig) -> None:
        self.root = root
        self.config = config

    def verify_query(
        self, query_index: int, leaf_values: List[int], siblings: List[List[Digest]]
    ) -> bool:
        """Verify one opening.

        Raises:
            IndexOutOfRange: if query_index is not a leaf of this tree; that is
                a bug in query sampling, not a property of the proof
        """
        if query_index < 0 or query_index >= self.config.height:
            raise IndexOutOfRange(
                f"query index {query_index} out of range [0, {self.config.height})"
            )
        if len(siblings) != self.config.n_siblings:
            return False
        return verify_path(
            self.root,
            siblings,
            query_index,
            leaf_values,
            self.config.arity,
            self.config.elem_size,
        )
