"""Protocol - Basefold encoding, folding, proving and verification."""

from basefold_spec.protocol.codes import CodeFamily, FoldableCode
from basefold_spec.protocol.fold import FoldEngine
from basefold_spec.protocol.pcs import BasefoldConfig, BasefoldPcs, query_acceptance_bound
from basefold_spec.protocol.proof import BasefoldProof, FoldRound, QueryOpening, RoundOpening
from basefold_spec.protocol.prover import BasefoldProver, ProverState
from basefold_spec.protocol.verifier import (
    RejectReason,
    VerificationResult,
    Verifier,
    check_query,
    verify_openings,
)

__all__ = [
    "BasefoldConfig",
    "BasefoldPcs",
    "BasefoldProof",
    "BasefoldProver",
    "CodeFamily",
    "FoldEngine",
    "FoldRound",
    "FoldableCode",
    "ProverState",
    "QueryOpening",
    "RejectReason",
    "RoundOpening",
    "VerificationResult",
    "Verifier",
    "check_query",
    "query_acceptance_bound",
    "verify_openings",
]
