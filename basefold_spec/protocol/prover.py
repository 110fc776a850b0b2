"""Basefold prover state machine.

    INIT --commit--> COMMITTED --fold(0)--> FOLDING --fold(i)--> ... --finalize--> FINALIZED
        --answer--> ANSWERING

The prover keeps every committed codeword and its Merkle tree in an arena
indexed by round, so query answers always come from the vectors it committed.
"""

import logging
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from basefold_spec.errors import EncodingLengthError, ProverStateError
from basefold_spec.primitives.field import element_size
from basefold_spec.primitives.merkle_tree import MerkleRoot, MerkleTree
from basefold_spec.primitives.polynomial import MultilinearPolynomial, eq_table, fold_message
from basefold_spec.protocol import sumcheck
from basefold_spec.protocol.codes import FoldableCode
from basefold_spec.protocol.fold import FoldEngine
from basefold_spec.protocol.proof import FoldRound, QueryOpening, RoundOpening

logger = logging.getLogger(__name__)


class ProverState(Enum):
    INIT = "init"
    COMMITTED = "committed"
    FOLDING = "folding"
    FINALIZED = "finalized"
    ANSWERING = "answering"


class BasefoldProver:
    """Prover side of one proof session. Not reusable across sessions."""

    def __init__(self, code: FoldableCode, merkle_arity: int = 2) -> None:
        if code.num_vars < 1:
            raise ValueError("the fold protocol needs at least one variable")
        self.code = code
        self.field = code.field
        self.merkle_arity = merkle_arity
        self.state = ProverState.INIT

        self.codewords: List = []
        self.trees: List[MerkleTree] = []
        self.fold_rounds: List[FoldRound] = []
        self.base_codeword = None
        self.final_value: Optional[int] = None

        self._message = None
        self._eq = None

    # --- Properties ---

    @property
    def num_rounds(self) -> int:
        return self.code.num_vars

    @property
    def round(self) -> int:
        """Index of the next fold round."""
        return len(self.fold_rounds)

    @property
    def roots(self) -> List[MerkleRoot]:
        return [tree.get_root() for tree in self.trees]

    # --- Commit ---

    def commit(self, poly: MultilinearPolynomial) -> MerkleRoot:
        """Encode the polynomial's evaluation vector and commit to it."""
        self._require(ProverState.INIT, "commit")
        if poly.field is not self.field:
            raise ValueError("polynomial and code are defined over different fields")
        if poly.num_vars != self.code.num_vars:
            raise EncodingLengthError(
                f"polynomial has {poly.num_vars} variables, code expects {self.code.num_vars}"
            )
        codeword = self.code.encode(poly.evaluations)
        root = self._commit_codeword(codeword)
        self._message = poly.evaluations.copy()
        self.state = ProverState.COMMITTED
        logger.debug("committed codeword of length %d, root %s", len(codeword), root.hex())
        return root

    def evaluation_claim(self, point: Sequence[int]) -> int:
        """Start an evaluation proof at `point`; returns y = f(point)."""
        self._require(ProverState.COMMITTED, "evaluation_claim")
        if self._eq is not None:
            raise ProverStateError("evaluation point already set")
        if len(point) != self.num_rounds:
            raise ValueError(
                f"point has {len(point)} coordinates, polynomial has {self.num_rounds} variables"
            )
        self._eq = eq_table(self.field, point)
        return int(np.add.reduce(self._message * self._eq))

    def sumcheck_message(self) -> List[int]:
        """Round polynomial evaluations [h(0), h(1), h(2)] for the next fold round."""
        self._require_folding("sumcheck_message")
        if self._eq is None:
            raise ProverStateError("no evaluation point; call evaluation_claim first")
        evals = sumcheck.round_evaluations(self.field, self._message, self._eq)
        return [int(e) for e in evals]

    # --- Fold ---

    def fold(self, round_index: int, challenge: int) -> Optional[MerkleRoot]:
        """Fold the current codeword with `challenge` and commit the result.

        Returns the new root, or None once the base codeword is reached.
        """
        self._require_folding("fold")
        if round_index < self.round:
            raise ProverStateError(f"round {round_index} already folded")
        if round_index > self.round:
            raise ProverStateError(
                f"round {round_index} out of order, expected round {self.round}"
            )

        r = self.field(int(challenge))
        current = self.codewords[-1]
        folded = FoldEngine.fold(self.code, current, r)
        self.fold_rounds.append(FoldRound(round_index, int(challenge), len(current)))

        half = len(self._message) // 2
        self._message = fold_message(self._message[:half], self._message[half:], r)
        if self._eq is not None:
            self._eq = fold_message(self._eq[:half], self._eq[half:], r)
        self.state = ProverState.FOLDING

        logger.debug("round %d folded %d -> %d", round_index, len(current), len(folded))
        if self.round < self.num_rounds:
            return self._commit_codeword(folded)
        self.base_codeword = folded
        return None

    def finalize(self) -> int:
        """Emit the final scalar: the message after all folds."""
        self._require(ProverState.FOLDING, "finalize")
        if self.round != self.num_rounds:
            raise ProverStateError(
                f"finalize after {self.round} of {self.num_rounds} fold rounds"
            )
        self.final_value = int(self._message[0])
        self.state = ProverState.FINALIZED
        return self.final_value

    # --- Answer ---

    def answer(self, query_indices: Sequence[int]) -> List[QueryOpening]:
        """Open the fold pair of every round for each query index."""
        if self.state not in (ProverState.FINALIZED, ProverState.ANSWERING):
            raise ProverStateError(f"answer called in state {self.state.value}")
        self.state = ProverState.ANSWERING
        return [self._open(q) for q in query_indices]

    def _open(self, query_index: int) -> QueryOpening:
        leaves = FoldEngine.fold_positions(
            query_index, self.code.codeword_length, self.num_rounds
        )
        rounds = [
            RoundOpening(
                leaf_index=leaf,
                values=tree.get_leaf(leaf),
                path=tree.get_group_proof(leaf),
            )
            for tree, leaf in zip(self.trees, leaves)
        ]
        return QueryOpening(index=query_index, rounds=rounds)

    # --- Internal Helpers ---

    def _commit_codeword(self, codeword) -> MerkleRoot:
        tree = MerkleTree(arity=self.merkle_arity, elem_size=element_size(self.field))
        root = FoldEngine.merkelize(codeword, tree)
        self.codewords.append(codeword)
        self.trees.append(tree)
        return root

    def _require(self, state: ProverState, action: str) -> None:
        if self.state is not state:
            raise ProverStateError(
                f"{action} requires state {state.value}, prover is {self.state.value}"
            )

    def _require_folding(self, action: str) -> None:
        if self.state not in (ProverState.COMMITTED, ProverState.FOLDING):
            raise ProverStateError(f"{action} called in state {self.state.value}")
        if self.round >= self.num_rounds:
            raise ProverStateError(f"{action}: all {self.num_rounds} rounds already folded")
