"""Basefold Polynomial Commitment Scheme (non-interactive, Fiat-Shamir)."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

import galois

from basefold_spec.primitives.field import GOLDILOCKS_PRIME, get_field, log2
from basefold_spec.primitives.merkle_tree import MerkleRoot
from basefold_spec.primitives.polynomial import MultilinearPolynomial
from basefold_spec.primitives.transcript import Transcript
from basefold_spec.protocol.codes import CodeFamily, FoldableCode
from basefold_spec.protocol.proof import BasefoldProof
from basefold_spec.protocol.prover import BasefoldProver
from basefold_spec.protocol.verifier import RejectReason, VerificationResult, Verifier

logger = logging.getLogger(__name__)


# --- Configuration ---

@dataclass
class BasefoldConfig:
    """Basefold PCS parameters.

    Fields:
        num_vars: Number of polynomial variables m (message length 2^m)
        n_queries: Number of query positions t
        blowup_bits: log2 of the inverse code rate
        field_modulus: Prime p of the base field
        code_family: "reed_solomon" or "random_foldable"
        code_seed: Public seed for random foldable twiddles
        merkle_arity: Merkle tree branching factor (2, 3 or 4)
    """
    num_vars: int
    n_queries: int
    blowup_bits: int = 1
    field_modulus: int = GOLDILOCKS_PRIME
    code_family: str = CodeFamily.REED_SOLOMON.value
    code_seed: str = "basefold"
    merkle_arity: int = 2

    def __post_init__(self):
        if self.num_vars < 1:
            raise ValueError(f"num_vars must be at least 1, got {self.num_vars}")
        if self.n_queries < 1:
            raise ValueError(f"n_queries must be at least 1, got {self.n_queries}")
        if self.blowup_bits < 1:
            raise ValueError(f"blowup_bits must be at least 1, got {self.blowup_bits}")
        if self.merkle_arity not in [2, 3, 4]:
            raise ValueError(f"merkle_arity must be 2, 3, or 4, got {self.merkle_arity}")
        if self.field_modulus <= 2 or not galois.is_prime(self.field_modulus):
            raise ValueError(f"field_modulus must be an odd prime, got {self.field_modulus}")
        valid = [f.value for f in CodeFamily]
        if self.code_family not in valid:
            raise ValueError(f"code_family must be one of {valid}, got {self.code_family!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BasefoldConfig':
        """Build from a parsed JSON object.

        Example JSON structure:
        {
          "numVars": 10,
          "nQueries": 64,
          "blowupBits": 2,
          "fieldModulus": 18446744069414584321,
          "codeFamily": "reed_solomon",
          "codeSeed": "basefold",
          "merkleArity": 2
        }
        """
        return cls(
            num_vars=data['numVars'],
            n_queries=data['nQueries'],
            blowup_bits=data.get('blowupBits', 1),
            field_modulus=data.get('fieldModulus', GOLDILOCKS_PRIME),
            code_family=data.get('codeFamily', CodeFamily.REED_SOLOMON.value),
            code_seed=data.get('codeSeed', 'basefold'),
            merkle_arity=data.get('merkleArity', 2),
        )

    @classmethod
    def from_json(cls, path: str) -> 'BasefoldConfig':
        """Load from a JSON file (see from_dict for the layout)."""
        with open(path, 'r') as f:
            data = json.load(f)
        return cls.from_dict(data)

    @property
    def field(self) -> type:
        return get_field(self.field_modulus)

    def build_code(self) -> FoldableCode:
        return FoldableCode(
            self.field,
            self.num_vars,
            self.blowup_bits,
            CodeFamily(self.code_family),
            self.code_seed.encode(),
        )


def query_acceptance_bound(delta: float, n_queries: int) -> float:
    """Probability that n_queries uniform queries all miss a delta fraction of bad positions."""
    if not 0.0 <= delta <= 1.0:
        raise ValueError(f"delta must be in [0, 1], got {delta}")
    if n_queries < 0:
        raise ValueError(f"n_queries must be non-negative, got {n_queries}")
    return (1.0 - delta) ** n_queries


# --- Basefold PCS ---

class BasefoldPcs:
    """Basefold PCS: commit, prove (optionally an evaluation), verify.

    Transcript order:
        public parameters [, point, value]
        per round i: root_i [, h_i(0), h_i(1), h_i(2)], squeeze r_i
        final value, squeeze query indices
    """

    def __init__(self, config: BasefoldConfig):
        self.config = config
        self.field = config.field
        self.code = config.build_code()

    def commit(self, poly: MultilinearPolynomial) -> MerkleRoot:
        """Commitment to `poly`: the root of its encoded evaluation vector."""
        return BasefoldProver(self.code, self.config.merkle_arity).commit(poly)

    def prove(
        self,
        poly: MultilinearPolynomial,
        transcript: Transcript,
        point: Optional[Sequence[int]] = None,
    ) -> BasefoldProof:
        """Generate a proof: commit, fold rounds, finalize, answer queries."""
        cfg = self.config
        self._check_transcript(transcript)
        prover = BasefoldProver(self.code, cfg.merkle_arity)

        root = prover.commit(poly)
        evaluation = prover.evaluation_claim(point) if point is not None else None
        self._bind_public(transcript, point, evaluation)

        # --- Commit-Fold Loop ---
        roots = []
        sumcheck_evals = []
        for i in range(self.code.num_vars):
            roots.append(root)
            transcript.put(root)
            if point is not None:
                evals = prover.sumcheck_message()
                sumcheck_evals.append(evals)
                transcript.put(evals)
            challenge = transcript.get_field()
            root = prover.fold(i, challenge)

        # --- Finalize and Query ---
        final_value = prover.finalize()
        transcript.put([final_value])
        query_indices = transcript.get_permutations(cfg.n_queries, self._query_bits)
        openings = prover.answer(query_indices)

        logger.debug(
            "proved %d rounds, %d queries, final value %d",
            self.code.num_vars, len(query_indices), final_value,
        )
        return BasefoldProof(
            roots=roots,
            sumcheck_evals=sumcheck_evals,
            final_value=final_value,
            evaluation=evaluation,
            query_indices=query_indices,
            openings=openings,
        )

    def verify(
        self,
        proof: BasefoldProof,
        transcript: Transcript,
        point: Optional[Sequence[int]] = None,
        value: Optional[int] = None,
        commitment: Optional[MerkleRoot] = None,
    ) -> VerificationResult:
        """Replay the transcript and check every query.

        With point and value the proof must also certify f(point) = value.
        With commitment the proof must open that commitment.
        """
        if (point is None) != (value is None):
            raise ValueError("point and value must be given together")
        self._check_transcript(transcript)
        m = self.code.num_vars

        if commitment is not None and proof.commitment != commitment:
            return VerificationResult.reject(
                RejectReason.COMMITMENT_MISMATCH, "proof opens a different commitment"
            )
        if len(proof.roots) != m:
            return VerificationResult.reject(
                RejectReason.SHAPE_MISMATCH, f"{len(proof.roots)} roots, expected {m}"
            )
        expected_sumcheck = m if point is not None else 0
        if len(proof.sumcheck_evals) != expected_sumcheck:
            return VerificationResult.reject(
                RejectReason.SHAPE_MISMATCH,
                f"{len(proof.sumcheck_evals)} sumcheck messages, expected {expected_sumcheck}",
            )

        verifier = Verifier(
            self.code, transcript, self.config.n_queries, self.config.merkle_arity,
            point=point, value=value,
        )
        self._bind_public(transcript, point, value)

        for i in range(m):
            verifier.receive_commitment(proof.roots[i])
            if point is not None:
                failure = verifier.receive_sumcheck(proof.sumcheck_evals[i])
                if failure is not None:
                    return failure
            verifier.challenge()

        query_indices = verifier.receive_final(proof.final_value)
        if verifier.rejected:
            return verifier.result
        if list(proof.query_indices) != query_indices:
            return VerificationResult.reject(
                RejectReason.QUERY_MISMATCH, "query indices do not match the transcript"
            )
        return verifier.receive_openings(proof.openings)

    # --- Internal Helpers ---

    @property
    def _query_bits(self) -> int:
        return log2(self.code.codeword_length // 2)

    def _check_transcript(self, transcript: Transcript) -> None:
        if transcript.modulus != self.field.order:
            raise ValueError(
                f"transcript modulus {transcript.modulus} does not match GF({self.field.order})"
            )

    def _bind_public(
        self, transcript: Transcript, point: Optional[Sequence[int]], value: Optional[int]
    ) -> None:
        cfg = self.config
        family_tag = list(CodeFamily).index(self.code.family)
        transcript.put([cfg.num_vars, cfg.blowup_bits, cfg.n_queries, cfg.merkle_arity, family_tag])
        transcript.put(cfg.code_seed.encode())
        if point is not None:
            transcript.put([int(z) for z in point])
            transcript.put([int(value)])
