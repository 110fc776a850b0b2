"""Tests for query checks and the interactive verifier."""

import random

import pytest

from basefold_spec.errors import IndexOutOfRange, TranscriptOrderError
from basefold_spec.primitives.field import element_size
from basefold_spec.primitives.merkle_tree import MerkleTree
from basefold_spec.primitives.polynomial import MultilinearPolynomial
from basefold_spec.primitives.transcript import Transcript
from basefold_spec.protocol.codes import FoldableCode
from basefold_spec.protocol.fold import FoldEngine
from basefold_spec.protocol.pcs import query_acceptance_bound
from basefold_spec.protocol.prover import BasefoldProver
from basefold_spec.protocol.verifier import (
    RejectReason,
    VerificationResult,
    Verifier,
    check_query,
    verify_openings,
)

CHALLENGES = [3, 5, 2]
QUERIES = [0, 3, 5, 7]


def _run(code, poly, challenges, merkle_arity=2):
    """Drive an honest prover with fixed challenges up to finalize."""
    prover = BasefoldProver(code, merkle_arity)
    prover.commit(poly)
    for i, r in enumerate(challenges):
        prover.fold(i, r)
    prover.finalize()
    return prover


def _recommit(prover, round_index, codeword) -> None:
    """Replace a round's codeword with a different, freshly committed vector."""
    tree = MerkleTree(arity=prover.merkle_arity, elem_size=element_size(prover.field))
    FoldEngine.merkelize(codeword, tree)
    prover.codewords[round_index] = codeword
    prover.trees[round_index] = tree


@pytest.fixture
def example(gf97):
    """m = 3 over GF(97), message [1..8], rate 1/2 (codeword length 16)."""
    code = FoldableCode.reed_solomon(gf97, 3, 1)
    poly = MultilinearPolynomial(gf97, [1, 2, 3, 4, 5, 6, 7, 8])
    return code, poly, _run(code, poly, CHALLENGES)


class TestEndToEndExample:
    """Fixed-challenge run of the three fold rounds."""

    def test_accept(self, example) -> None:
        code, _, prover = example
        result = verify_openings(
            code, prover.roots, CHALLENGES, prover.final_value, QUERIES, prover.answer(QUERIES)
        )
        assert result
        assert result.accepted
        assert result.reason is None

    def test_every_query_index_accepted(self, example) -> None:
        code, _, prover = example
        indices = list(range(code.codeword_length // 2))
        result = verify_openings(
            code, prover.roots, CHALLENGES, prover.final_value, indices, prover.answer(indices)
        )
        assert result

    def test_stale_leaf_data(self, example) -> None:
        """Opened value changed after commitment: Merkle path no longer matches."""
        code, _, prover = example
        source = prover.trees[0].source_data
        source[2 * 3] = (source[2 * 3] + 1) % 97
        result = verify_openings(
            code, prover.roots, CHALLENGES, prover.final_value, QUERIES, prover.answer(QUERIES)
        )
        assert not result
        assert result.reason is RejectReason.MERKLE_VERIFICATION_FAILURE
        assert result.round_index == 0
        assert result.query_index == 3

    def test_inconsistent_round_codeword(self, example, gf97) -> None:
        """Round-1 codeword committed honestly but not the fold of round 0."""
        code, _, prover = example
        _recommit(prover, 1, prover.codewords[1] + gf97(1))
        result = verify_openings(
            code, prover.roots, CHALLENGES, prover.final_value, QUERIES, prover.answer(QUERIES)
        )
        assert not result
        assert result.reason is RejectReason.FOLD_CONSISTENCY_FAILURE
        assert result.round_index == 0

    def test_wrong_final_value(self, example) -> None:
        code, _, prover = example
        result = verify_openings(
            code, prover.roots, CHALLENGES, (prover.final_value + 1) % 97,
            QUERIES, prover.answer(QUERIES),
        )
        assert not result
        assert result.reason is RejectReason.FOLD_CONSISTENCY_FAILURE
        assert result.round_index == 2

    def test_final_value_not_in_field(self, example) -> None:
        code, _, prover = example
        result = verify_openings(
            code, prover.roots, CHALLENGES, 97, QUERIES, prover.answer(QUERIES)
        )
        assert result.reason is RejectReason.SHAPE_MISMATCH


class TestShapeChecks:

    def test_missing_root(self, example) -> None:
        code, _, prover = example
        result = verify_openings(
            code, prover.roots[:-1], CHALLENGES, prover.final_value, QUERIES, prover.answer(QUERIES)
        )
        assert result.reason is RejectReason.SHAPE_MISMATCH

    def test_missing_challenge(self, example) -> None:
        code, _, prover = example
        result = verify_openings(
            code, prover.roots, CHALLENGES[:2], prover.final_value, QUERIES, prover.answer(QUERIES)
        )
        assert result.reason is RejectReason.SHAPE_MISMATCH

    def test_missing_opening(self, example) -> None:
        code, _, prover = example
        result = verify_openings(
            code, prover.roots, CHALLENGES, prover.final_value, QUERIES, prover.answer(QUERIES[:3])
        )
        assert result.reason is RejectReason.SHAPE_MISMATCH

    def test_swapped_roots(self, example) -> None:
        code, _, prover = example
        roots = [prover.roots[1], prover.roots[0], prover.roots[2]]
        result = verify_openings(
            code, roots, CHALLENGES, prover.final_value, QUERIES, prover.answer(QUERIES)
        )
        assert result.reason is RejectReason.MERKLE_VERIFICATION_FAILURE

    def test_opening_for_other_index(self, example) -> None:
        code, _, prover = example
        openings = prover.answer([0, 3, 5, 6])
        result = verify_openings(
            code, prover.roots, CHALLENGES, prover.final_value, QUERIES, openings
        )
        assert result.reason is RejectReason.QUERY_MISMATCH
        assert result.query_index == 7

    def test_wrong_leaf_index(self, example) -> None:
        code, _, prover = example
        openings = prover.answer(QUERIES)
        openings[1].rounds[1].leaf_index = 0
        result = verify_openings(
            code, prover.roots, CHALLENGES, prover.final_value, QUERIES, openings
        )
        assert result.reason is RejectReason.QUERY_MISMATCH
        assert result.round_index == 1

    def test_value_out_of_field(self, example) -> None:
        code, _, prover = example
        openings = prover.answer(QUERIES)
        openings[0].rounds[0].values = [97, 0]
        result = verify_openings(
            code, prover.roots, CHALLENGES, prover.final_value, QUERIES, openings
        )
        assert result.reason is RejectReason.SHAPE_MISMATCH

    def test_dropped_round(self, example) -> None:
        code, _, prover = example
        openings = prover.answer(QUERIES)
        openings[2].rounds.pop()
        result = verify_openings(
            code, prover.roots, CHALLENGES, prover.final_value, QUERIES, openings
        )
        assert result.reason is RejectReason.SHAPE_MISMATCH
        assert result.query_index == 5

    def test_query_index_out_of_range_raises(self, example) -> None:
        code, _, prover = example
        openings = prover.answer([0])
        openings[0].index = 8
        with pytest.raises(IndexOutOfRange):
            verify_openings(code, prover.roots, CHALLENGES, prover.final_value, [8], openings)


class TestRoundCounts:

    @pytest.mark.parametrize("num_vars", [1, 4, 10])
    @pytest.mark.parametrize("merkle_arity", [2, 3, 4])
    def test_honest_accept(self, babybear, num_vars: int, merkle_arity: int) -> None:
        code = FoldableCode.reed_solomon(babybear, num_vars, 1)
        poly = MultilinearPolynomial.random(babybear, num_vars, seed=num_vars)
        challenges = [1000 + 7 * i for i in range(num_vars)]
        prover = _run(code, poly, challenges, merkle_arity)
        queries = sorted({(13 * i) % (code.codeword_length // 2) for i in range(8)})
        result = verify_openings(
            code, prover.roots, challenges, prover.final_value, queries,
            prover.answer(queries), merkle_arity,
        )
        assert result
        assert len(prover.roots) == num_vars
        assert prover.final_value == int(poly.evaluate(challenges[::-1]))


class TestSoundness:
    """Empirical query rejection against a corrupted first codeword."""

    @pytest.mark.parametrize("delta", [0.125, 0.25, 0.5])
    def test_rejection_rate(self, babybear, delta: float) -> None:
        num_vars = 6
        code = FoldableCode.reed_solomon(babybear, num_vars, 1)
        poly = MultilinearPolynomial.random(babybear, num_vars, seed=1)
        challenges = [101 + i for i in range(num_vars)]
        prover = _run(code, poly, challenges)

        half = code.codeword_length // 2
        corrupted = set(range(0, half, int(1 / delta)))
        bad = prover.codewords[0].copy()
        for p in corrupted:
            bad[p] = bad[p] + babybear(1)
        _recommit(prover, 0, bad)

        accepted = set()
        for q in range(half):
            failure = check_query(
                code, prover.roots, challenges, prover.final_value, q, prover.answer([q])[0]
            )
            if failure is None:
                accepted.add(q)

        # Honest pairs always pass; a corrupted pair passes only if its fold
        # is blind to the change, which happens for at most one twiddle.
        assert accepted >= set(range(half)) - corrupted
        assert len(accepted & corrupted) <= 1
        single = len(accepted) / half
        assert single <= (1 - delta) + 1 / half

        rng = random.Random(7)
        for t in [1, 2, 4, 8]:
            trials = 2000
            passes = sum(
                all(rng.randrange(half) in accepted for _ in range(t)) for _ in range(trials)
            )
            bound = query_acceptance_bound(delta - 1 / half, t)
            assert passes / trials <= bound + 0.05


class TestInteractiveVerifier:
    """Transcript-driven session."""

    def _session(self, babybear, point=None, value=None):
        code = FoldableCode.reed_solomon(babybear, 4, 2)
        poly = MultilinearPolynomial.random(babybear, 4, seed=3)
        prover = BasefoldProver(code)
        transcript = Transcript(babybear.order)
        verifier = Verifier(code, transcript, n_queries=6, point=point, value=value)
        return code, poly, prover, verifier

    def test_accept(self, babybear) -> None:
        code, poly, prover, verifier = self._session(babybear)
        root = prover.commit(poly)
        for i in range(code.num_vars):
            verifier.receive_commitment(root)
            root = prover.fold(i, verifier.challenge())
        indices = verifier.receive_final(prover.finalize())
        assert len(indices) == 6
        assert all(0 <= q < code.codeword_length // 2 for q in indices)
        result = verifier.receive_openings(prover.answer(indices))
        assert result

    def test_accept_with_evaluation(self, babybear) -> None:
        point = [5, 6, 7, 8]
        value = int(MultilinearPolynomial.random(babybear, 4, seed=3).evaluate(point))
        code, poly, prover, verifier = self._session(babybear, point=point, value=value)
        root = prover.commit(poly)
        assert prover.evaluation_claim(point) == value
        for i in range(code.num_vars):
            verifier.receive_commitment(root)
            assert verifier.receive_sumcheck(prover.sumcheck_message()) is None
            root = prover.fold(i, verifier.challenge())
        indices = verifier.receive_final(prover.finalize())
        assert not verifier.rejected
        assert verifier.receive_openings(prover.answer(indices))

    def test_wrong_evaluation_rejected(self, babybear) -> None:
        point = [5, 6, 7, 8]
        value = int(MultilinearPolynomial.random(babybear, 4, seed=3).evaluate(point))
        _, poly, prover, verifier = self._session(
            babybear, point=point, value=(value + 1) % babybear.order
        )
        root = prover.commit(poly)
        prover.evaluation_claim(point)
        verifier.receive_commitment(root)
        result = verifier.receive_sumcheck(prover.sumcheck_message())
        assert result is not None
        assert result.reason is RejectReason.SUMCHECK_FAILURE
        assert verifier.rejected

    def test_challenge_before_commitment(self, babybear) -> None:
        _, _, _, verifier = self._session(babybear)
        with pytest.raises(TranscriptOrderError):
            verifier.challenge()

    def test_two_commitments_in_one_round(self, babybear) -> None:
        _, poly, prover, verifier = self._session(babybear)
        root = prover.commit(poly)
        verifier.receive_commitment(root)
        with pytest.raises(TranscriptOrderError):
            verifier.receive_commitment(root)

    def test_challenge_before_sumcheck(self, babybear) -> None:
        _, poly, prover, verifier = self._session(babybear, point=[1, 2, 3, 4], value=0)
        verifier.receive_commitment(prover.commit(poly))
        with pytest.raises(TranscriptOrderError):
            verifier.challenge()

    def test_final_too_early(self, babybear) -> None:
        _, poly, prover, verifier = self._session(babybear)
        verifier.receive_commitment(prover.commit(poly))
        verifier.challenge()
        with pytest.raises(TranscriptOrderError):
            verifier.receive_final(0)

    def test_point_requires_value(self, babybear) -> None:
        code = FoldableCode.reed_solomon(babybear, 2, 1)
        with pytest.raises(ValueError):
            Verifier(code, Transcript(babybear.order), n_queries=2, point=[1, 2])


class TestVerificationResult:

    def test_truthiness(self) -> None:
        assert VerificationResult.accept()
        assert not VerificationResult.reject(RejectReason.SHAPE_MISMATCH)

    def test_reject_logged(self, caplog) -> None:
        with caplog.at_level("WARNING", logger="basefold_spec.protocol.verifier"):
            VerificationResult.reject(RejectReason.SUMCHECK_FAILURE, "detail", round_index=2)
        assert "sumcheck_failure" in caplog.text
        assert "round=2" in caplog.text
