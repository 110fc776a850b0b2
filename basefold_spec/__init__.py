"""
Basefold PCS Python Specification

A Python implementation of a multilinear polynomial commitment scheme built on
foldable linear codes (Basefold).

This package provides:
- Prime field arithmetic (via galois)
- Multilinear polynomials in evaluation form
- Foldable codes: Reed-Solomon and random foldable twiddles
- SHA3-256 Merkle tree commitments
- Fiat-Shamir transcript
- Fold rounds, query checks and optional sumcheck evaluation claims
- Basefold PCS wrapper

Usage:
    from basefold_spec import BasefoldConfig, BasefoldPcs, MultilinearPolynomial, Transcript

    config = BasefoldConfig(num_vars=10, n_queries=64, blowup_bits=2)
    pcs = BasefoldPcs(config)
    poly = MultilinearPolynomial.random(config.field, 10)
    proof = pcs.prove(poly, Transcript(config.field_modulus), point=z)
    result = pcs.verify(proof, Transcript(config.field_modulus), point=z, value=y)
"""

from basefold_spec.errors import (
    BasefoldError,
    EncodingLengthError,
    IndexOutOfRange,
    ProverStateError,
    TranscriptOrderError,
)
from basefold_spec.primitives import (
    BABYBEAR_PRIME,
    GOLDILOCKS_PRIME,
    MerkleTree,
    MultilinearPolynomial,
    Transcript,
    get_field,
)
from basefold_spec.protocol import (
    BasefoldConfig,
    BasefoldPcs,
    BasefoldProof,
    BasefoldProver,
    CodeFamily,
    FoldableCode,
    FoldEngine,
    RejectReason,
    VerificationResult,
    Verifier,
    query_acceptance_bound,
    verify_openings,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "BasefoldError",
    "EncodingLengthError",
    "IndexOutOfRange",
    "ProverStateError",
    "TranscriptOrderError",
    # Primitives
    "BABYBEAR_PRIME",
    "GOLDILOCKS_PRIME",
    "MerkleTree",
    "MultilinearPolynomial",
    "Transcript",
    "get_field",
    # Protocol
    "BasefoldConfig",
    "BasefoldPcs",
    "BasefoldProof",
    "BasefoldProver",
    "CodeFamily",
    "FoldableCode",
    "FoldEngine",
    "RejectReason",
    "VerificationResult",
    "Verifier",
    "query_acceptance_bound",
    "verify_openings",
]
