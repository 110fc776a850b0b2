"""Merkle tree commitment using SHA3-256."""

import hashlib
from dataclasses import dataclass, field
from typing import List, Sequence

from basefold_spec.errors import IndexOutOfRange

# --- Constants ---

HASH_SIZE = 32
ZERO_DIGEST = bytes(HASH_SIZE)

_LEAF_PREFIX = b"\x00"
_NODE_PREFIX = b"\x01"

# --- Type Aliases ---

Digest = bytes
MerkleRoot = bytes
LeafData = List[int]


# --- Hashing ---

def hash_leaf(leaf: Sequence[int], elem_size: int) -> Digest:
    """Digest of one leaf row; elements are fixed-width big-endian."""
    h = hashlib.sha3_256(_LEAF_PREFIX)
    for value in leaf:
        h.update(int(value).to_bytes(elem_size, "big"))
    return h.digest()


def hash_children(children: Sequence[Digest]) -> Digest:
    """Digest of an internal node from its ordered children."""
    h = hashlib.sha3_256(_NODE_PREFIX)
    for child in children:
        h.update(child)
    return h.digest()


# --- Data Classes ---

@dataclass
class QueryProof:
    """Leaf values at a query index plus the Merkle authentication path.

    Attributes:
        v: Leaf row (width field elements, as ints)
        mp: Sibling digests per level, leaf to root; each level holds
            (arity - 1) digests in child order with the queried child removed
    """
    v: List[int] = field(default_factory=list)
    mp: List[List[Digest]] = field(default_factory=list)


# --- Merkle Tree ---

class MerkleTree:
    """Variable-arity Merkle tree over rows of field elements.

    Nodes are stored level by level in one flat list: the leaf digests first,
    then each parent level. Levels whose size is not a multiple of the arity
    are padded with ZERO_DIGEST so every parent has exactly `arity` children.
    """

    def __init__(self, arity: int = 2, elem_size: int = 8):
        if arity not in [2, 3, 4]:
            raise ValueError(f"arity must be 2, 3, or 4, got {arity}")
        if elem_size <= 0:
            raise ValueError(f"elem_size must be positive, got {elem_size}")

        self.arity = arity
        self.elem_size = elem_size

        self.height = 0
        self.width = 0
        self.nodes: List[Digest] = []
        self.source_data: List[int] = []

    # --- Core Operations ---

    def merkelize(self, source: LeafData, height: int, width: int) -> None:
        """Build the tree from flattened leaf data (height rows of width ints)."""
        if len(source) != height * width:
            raise ValueError(
                f"source has {len(source)} elements, expected {height} x {width}"
            )
        if self.nodes:
            raise ValueError("tree already built; use a fresh MerkleTree per commitment")

        self.height = height
        self.width = width
        self.source_data = [int(x) for x in source]

        if height == 0:
            return

        self.nodes = [
            hash_leaf(self.source_data[i * width:(i + 1) * width], self.elem_size)
            for i in range(height)
        ]

        pending = height
        next_index = 0
        while pending > 1:
            extra_zeros = (self.arity - (pending % self.arity)) % self.arity
            self.nodes.extend([ZERO_DIGEST] * extra_zeros)

            next_n = (pending + (self.arity - 1)) // self.arity
            for i in range(next_n):
                start = next_index + i * self.arity
                self.nodes.append(hash_children(self.nodes[start:start + self.arity]))

            next_index += pending + extra_zeros
            pending = next_n

    def get_root(self) -> MerkleRoot:
        """Return the Merkle root commitment."""
        if not self.nodes:
            return ZERO_DIGEST
        return self.nodes[-1]

    def get_leaf(self, idx: int) -> LeafData:
        self._check_index(idx)
        return self.source_data[idx * self.width:(idx + 1) * self.width]

    def get_group_proof(self, idx: int) -> List[List[Digest]]:
        """Sibling digests per level for the leaf at `idx`."""
        self._check_index(idx)
        proof: List[List[Digest]] = []
        self._collect_proof_siblings(proof, idx, 0, self.height)
        return proof

    def get_query_proof(self, idx: int) -> QueryProof:
        """Leaf values and authentication path for the leaf at `idx`."""
        return QueryProof(v=self.get_leaf(idx), mp=self.get_group_proof(idx))

    def verify_group_proof(
        self,
        root: MerkleRoot,
        proof: List[List[Digest]],
        idx: int,
        leaf_data: LeafData,
    ) -> bool:
        """Verify a Merkle proof for a leaf of this tree's shape."""
        self._check_index(idx)
        return verify_path(root, proof, idx, leaf_data, self.arity, self.elem_size)

    # --- Proof Size Utilities ---

    def get_merkle_proof_length(self) -> int:
        """Number of levels in a Merkle proof."""
        levels = 0
        n = self.height
        while n > 1:
            n = (n + self.arity - 1) // self.arity
            levels += 1
        return levels

    def get_merkle_proof_size(self) -> int:
        """Total size of a Merkle proof in bytes."""
        return self.get_merkle_proof_length() * (self.arity - 1) * HASH_SIZE

    # --- Internal Helpers ---

    def _check_index(self, idx: int) -> None:
        if idx < 0 or idx >= self.height:
            raise IndexOutOfRange(f"leaf index {idx} out of range [0, {self.height})")

    def _collect_proof_siblings(
        self,
        proof: List[List[Digest]],
        idx: int,
        offset: int,
        n: int,
    ) -> None:
        """Recursively collect sibling digests, one list per level."""
        if n <= 1:
            return

        curr_idx = idx % self.arity
        si = idx - curr_idx
        proof.append([
            self.nodes[offset + si + i] for i in range(self.arity) if i != curr_idx
        ])

        extra_zeros = (self.arity - (n % self.arity)) % self.arity
        next_n = (n + (self.arity - 1)) // self.arity
        self._collect_proof_siblings(proof, idx // self.arity, offset + n + extra_zeros, next_n)


def verify_path(
    root: MerkleRoot,
    proof: List[List[Digest]],
    idx: int,
    leaf_data: LeafData,
    arity: int,
    elem_size: int,
) -> bool:
    """Recompute the root from a leaf and its sibling path."""
    computed = hash_leaf(leaf_data, elem_size)

    for level_siblings in proof:
        if len(level_siblings) != arity - 1:
            return False
        curr_idx = idx % arity
        idx //= arity
        children = list(level_siblings)
        children.insert(curr_idx, computed)
        computed = hash_children(children)

    return idx == 0 and computed == root
