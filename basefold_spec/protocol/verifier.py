"""Basefold verification.

Three layers:
    check_query      the per-query acceptance predicate: Merkle openings at every
                     round and the fold relation between consecutive rounds
    verify_openings  shape checks plus check_query over all sampled indices
    Verifier         interactive driver that derives challenges and query
                     indices from a Transcript and tracks sumcheck claims

Cryptographic failures never raise. Every path ends in a VerificationResult;
only usage errors (transcript order, query index outside the committed range)
raise.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from basefold_spec.errors import TranscriptOrderError
from basefold_spec.primitives.field import element_size, log2
from basefold_spec.primitives.merkle_tree import MerkleRoot
from basefold_spec.primitives.merkle_verifier import MerkleConfig, MerkleVerifier
from basefold_spec.primitives.transcript import Transcript
from basefold_spec.protocol import sumcheck
from basefold_spec.protocol.codes import FoldableCode
from basefold_spec.protocol.fold import FoldEngine
from basefold_spec.protocol.proof import QueryOpening

logger = logging.getLogger(__name__)


# --- Results ---

class RejectReason(Enum):
    MERKLE_VERIFICATION_FAILURE = "merkle_verification_failure"
    FOLD_CONSISTENCY_FAILURE = "fold_consistency_failure"
    SUMCHECK_FAILURE = "sumcheck_failure"
    SHAPE_MISMATCH = "shape_mismatch"
    QUERY_MISMATCH = "query_mismatch"
    COMMITMENT_MISMATCH = "commitment_mismatch"


@dataclass(frozen=True)
class VerificationResult:
    """Accept/Reject outcome. Truthy iff accepted."""
    accepted: bool
    reason: Optional[RejectReason] = None
    round_index: Optional[int] = None
    query_index: Optional[int] = None
    detail: str = ""

    def __bool__(self) -> bool:
        return self.accepted

    @classmethod
    def accept(cls) -> "VerificationResult":
        return cls(accepted=True)

    @classmethod
    def reject(
        cls,
        reason: RejectReason,
        detail: str = "",
        round_index: Optional[int] = None,
        query_index: Optional[int] = None,
    ) -> "VerificationResult":
        result = cls(False, reason, round_index, query_index, detail)
        logger.warning(
            "reject: %s (round=%s, query=%s) %s",
            reason.value, round_index, query_index, detail,
        )
        return result


# --- Per-Query Predicate ---

def check_query(
    code: FoldableCode,
    roots: Sequence[MerkleRoot],
    challenges: Sequence[int],
    final_value: int,
    query_index: int,
    opening: QueryOpening,
    merkle_arity: int = 2,
) -> Optional[VerificationResult]:
    """Check one query at every round. Returns None if it passes.

    Round i opens leaf p_i = (fold pair of the codeword committed by roots[i]).
    The value folded from round i must equal the opened value at the matching
    side of round i+1's pair, and after the last round it must equal
    final_value (the base codeword is the repetition of the final scalar).
    """
    field = code.field
    num_rounds = code.num_vars
    p = field.order

    if opening.index != query_index:
        return VerificationResult.reject(
            RejectReason.QUERY_MISMATCH,
            f"opening answers index {opening.index}",
            query_index=query_index,
        )
    if len(opening.rounds) != num_rounds:
        return VerificationResult.reject(
            RejectReason.SHAPE_MISMATCH,
            f"{len(opening.rounds)} round openings, expected {num_rounds}",
            query_index=query_index,
        )

    leaves = FoldEngine.fold_positions(query_index, code.codeword_length, num_rounds)
    elem_size = element_size(field)
    length = code.codeword_length
    expected = None

    for i, (rnd, leaf) in enumerate(zip(opening.rounds, leaves)):
        half = length // 2
        if rnd.leaf_index != leaf:
            return VerificationResult.reject(
                RejectReason.QUERY_MISMATCH,
                f"opened leaf {rnd.leaf_index}, expected {leaf}",
                round_index=i, query_index=query_index,
            )
        if len(rnd.values) != 2 or any(not 0 <= int(v) < p for v in rnd.values):
            return VerificationResult.reject(
                RejectReason.SHAPE_MISMATCH,
                "leaf must hold two field elements",
                round_index=i, query_index=query_index,
            )

        merkle = MerkleVerifier(roots[i], MerkleConfig(merkle_arity, half, elem_size))
        if not merkle.verify_query(leaf, rnd.values, rnd.path):
            return VerificationResult.reject(
                RejectReason.MERKLE_VERIFICATION_FAILURE,
                "path does not reconstruct root",
                round_index=i, query_index=query_index,
            )

        x, y = field(int(rnd.values[0])), field(int(rnd.values[1]))
        if expected is not None:
            _, upper = FoldEngine.query_pair(leaves[i - 1], length)
            opened = y if upper else x
            if opened != expected:
                return VerificationResult.reject(
                    RejectReason.FOLD_CONSISTENCY_FAILURE,
                    f"folded value {int(expected)} != opened {int(opened)}",
                    round_index=i - 1, query_index=query_index,
                )

        expected = FoldEngine.combine(
            x, y, field(int(challenges[i])), code.inverse_twiddles(half)[leaf], code.inv_two
        )
        length = half

    if expected != field(int(final_value)):
        return VerificationResult.reject(
            RejectReason.FOLD_CONSISTENCY_FAILURE,
            f"last fold {int(expected)} != final value {int(final_value)}",
            round_index=num_rounds - 1, query_index=query_index,
        )
    return None


def verify_openings(
    code: FoldableCode,
    roots: Sequence[MerkleRoot],
    challenges: Sequence[int],
    final_value: int,
    query_indices: Sequence[int],
    openings: Sequence[QueryOpening],
    merkle_arity: int = 2,
) -> VerificationResult:
    """Accept iff the shapes match the public parameters and every query passes."""
    num_rounds = code.num_vars
    if len(roots) != num_rounds:
        return VerificationResult.reject(
            RejectReason.SHAPE_MISMATCH, f"{len(roots)} roots, expected {num_rounds}"
        )
    if len(challenges) != num_rounds:
        return VerificationResult.reject(
            RejectReason.SHAPE_MISMATCH, f"{len(challenges)} challenges, expected {num_rounds}"
        )
    if len(openings) != len(query_indices):
        return VerificationResult.reject(
            RejectReason.SHAPE_MISMATCH,
            f"{len(openings)} openings for {len(query_indices)} queries",
        )
    if not 0 <= int(final_value) < code.field.order:
        return VerificationResult.reject(
            RejectReason.SHAPE_MISMATCH, "final value is not a field element"
        )

    for q, opening in zip(query_indices, openings):
        failure = check_query(
            code, roots, challenges, final_value, q, opening, merkle_arity
        )
        if failure is not None:
            return failure

    logger.debug("accepted %d queries over %d rounds", len(query_indices), num_rounds)
    return VerificationResult.accept()


# --- Interactive Verifier ---

class Verifier:
    """Verifier side of one session, driven message by message.

    Usage:
        verifier = Verifier(code, transcript, n_queries=4)
        root = prover.commit(poly)
        for i in range(code.num_vars):
            verifier.receive_commitment(root)
            root = prover.fold(i, verifier.challenge())
        indices = verifier.receive_final(prover.finalize())
        result = verifier.receive_openings(prover.answer(indices))
    """

    def __init__(
        self,
        code: FoldableCode,
        transcript: Transcript,
        n_queries: int,
        merkle_arity: int = 2,
        point: Optional[Sequence[int]] = None,
        value: Optional[int] = None,
    ) -> None:
        if n_queries <= 0:
            raise ValueError("n_queries must be positive")
        if (point is None) != (value is None):
            raise ValueError("point and value must be given together")
        if point is not None and len(point) != code.num_vars:
            raise ValueError(
                f"point has {len(point)} coordinates, code has {code.num_vars} variables"
            )
        self.code = code
        self.field = code.field
        self.transcript = transcript
        self.n_queries = n_queries
        self.merkle_arity = merkle_arity
        self.point = list(point) if point is not None else None

        self.roots: List[MerkleRoot] = []
        self.challenges: List[int] = []
        self.sumcheck_evals: List[List[int]] = []
        self.final_value: Optional[int] = None
        self.query_indices: List[int] = []
        self.result: Optional[VerificationResult] = None

        self._claim = self.field(int(value)) if value is not None else None

    @property
    def num_rounds(self) -> int:
        return self.code.num_vars

    @property
    def rejected(self) -> bool:
        return self.result is not None and not self.result.accepted

    # --- Protocol Messages ---

    def receive_commitment(self, root: MerkleRoot) -> None:
        """Absorb the root committing the codeword of the next round."""
        if len(self.roots) != len(self.challenges) or len(self.roots) >= self.num_rounds:
            raise TranscriptOrderError(
                f"unexpected commitment: {len(self.roots)} roots, {len(self.challenges)} challenges"
            )
        self.transcript.put(root)
        self.roots.append(root)

    def receive_sumcheck(self, evals: Sequence[int]) -> Optional[VerificationResult]:
        """Check h(0) + h(1) against the running claim and absorb h."""
        if self.point is None:
            raise TranscriptOrderError("sumcheck message in a session without evaluation point")
        round_index = len(self.challenges)
        if len(self.roots) != round_index + 1 or len(self.sumcheck_evals) != round_index:
            raise TranscriptOrderError(f"unexpected sumcheck message for round {round_index}")
        if self.rejected:
            return self.result

        if len(evals) != sumcheck.DEGREE + 1 or any(
            not 0 <= int(e) < self.field.order for e in evals
        ):
            self.result = VerificationResult.reject(
                RejectReason.SHAPE_MISMATCH, "malformed round polynomial", round_index=round_index
            )
            return self.result
        h0, h1 = self.field(int(evals[0])), self.field(int(evals[1]))
        if h0 + h1 != self._claim:
            self.result = VerificationResult.reject(
                RejectReason.SUMCHECK_FAILURE, "h(0) + h(1) != claim", round_index=round_index
            )
            return self.result

        self.transcript.put([int(e) for e in evals])
        self.sumcheck_evals.append([int(e) for e in evals])
        return None

    def challenge(self) -> int:
        """Derive the fold challenge of the current round."""
        round_index = len(self.challenges)
        if len(self.roots) <= round_index:
            raise TranscriptOrderError(
                f"challenge for round {round_index} requested before its commitment"
            )
        if self.point is not None and len(self.sumcheck_evals) <= round_index:
            raise TranscriptOrderError(
                f"challenge for round {round_index} requested before its sumcheck message"
            )
        r = self.transcript.get_field()
        self.challenges.append(r)
        if self.point is not None and not self.rejected:
            self._claim = sumcheck.interpolate(
                self.field, self.sumcheck_evals[round_index], self.field(r)
            )
        return r

    def receive_final(self, final_value: int) -> List[int]:
        """Absorb the final scalar and sample the query indices."""
        if len(self.challenges) != self.num_rounds or self.final_value is not None:
            raise TranscriptOrderError(
                f"final value after {len(self.challenges)} of {self.num_rounds} rounds"
            )
        self.final_value = int(final_value)
        self.transcript.put([self.final_value])

        if self.point is not None and not self.rejected:
            if not 0 <= self.final_value < self.field.order:
                self.result = VerificationResult.reject(
                    RejectReason.SHAPE_MISMATCH, "final value is not a field element"
                )
            else:
                expected = sumcheck.final_claim(
                    self.field, self.point, self.challenges, self.final_value
                )
                if expected != self._claim:
                    self.result = VerificationResult.reject(
                        RejectReason.SUMCHECK_FAILURE,
                        "final claim != final value * eq(point, challenges)",
                    )

        n_bits = log2(self.code.codeword_length // 2)
        self.query_indices = self.transcript.get_permutations(self.n_queries, n_bits)
        return list(self.query_indices)

    def receive_openings(self, openings: Sequence[QueryOpening]) -> VerificationResult:
        """Check the prover's answers to the sampled queries."""
        if self.final_value is None:
            raise TranscriptOrderError("openings received before the final value")
        if self.rejected:
            return self.result
        self.result = verify_openings(
            self.code,
            self.roots,
            self.challenges,
            self.final_value,
            self.query_indices,
            openings,
            self.merkle_arity,
        )
        return self.result
