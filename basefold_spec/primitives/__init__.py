"""Primitives - Low-level cryptographic and mathematical building blocks."""

from basefold_spec.primitives.field import (
    BABYBEAR_PRIME,
    GOLDILOCKS_PRIME,
    batch_inverse,
    element_size,
    get_field,
    get_root_of_unity,
    get_roots_of_unity,
    two_adicity,
)
from basefold_spec.primitives.merkle_tree import (
    HASH_SIZE,
    Digest,
    LeafData,
    MerkleRoot,
    MerkleTree,
    QueryProof,
)
from basefold_spec.primitives.merkle_verifier import MerkleConfig, MerkleVerifier
from basefold_spec.primitives.polynomial import (
    MultilinearPolynomial,
    eq_eval,
    eq_table,
    fold_message,
)
from basefold_spec.primitives.transcript import Transcript

__all__ = [
    # Field
    "BABYBEAR_PRIME",
    "GOLDILOCKS_PRIME",
    "batch_inverse",
    "element_size",
    "get_field",
    "get_root_of_unity",
    "get_roots_of_unity",
    "two_adicity",
    # Merkle
    "HASH_SIZE",
    "Digest",
    "LeafData",
    "MerkleConfig",
    "MerkleRoot",
    "MerkleTree",
    "MerkleVerifier",
    "QueryProof",
    # Polynomial
    "MultilinearPolynomial",
    "eq_eval",
    "eq_table",
    "fold_message",
    # Transcript
    "Transcript",
]
