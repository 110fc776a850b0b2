"""Protocol records: fold rounds, query openings and the full proof.

Field values are stored as plain ints; galois arrays stay inside the prover
and verifier.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from basefold_spec.primitives.merkle_tree import Digest, MerkleRoot


@dataclass(frozen=True)
class FoldRound:
    """One fold step: codeword of input_length folded with challenge."""
    index: int
    challenge: int
    input_length: int

    @property
    def output_length(self) -> int:
        return self.input_length // 2


@dataclass
class RoundOpening:
    """Fold pair opened at one round.

    Attributes:
        leaf_index: Pair index p; the leaf holds positions p and p + N/2
        values: [w[p], w[p + N/2]]
        path: Merkle siblings per level for the leaf
    """
    leaf_index: int
    values: List[int] = field(default_factory=list)
    path: List[List[Digest]] = field(default_factory=list)


@dataclass
class QueryOpening:
    """All per-round openings answering one query index."""
    index: int
    rounds: List[RoundOpening] = field(default_factory=list)


@dataclass
class BasefoldProof:
    """Non-interactive proof.

    roots[0] is the polynomial commitment; roots[i] commits the round-i
    codeword. sumcheck_evals is empty unless an evaluation point was opened.
    """
    roots: List[MerkleRoot] = field(default_factory=list)
    sumcheck_evals: List[List[int]] = field(default_factory=list)
    final_value: int = 0
    evaluation: Optional[int] = None
    query_indices: List[int] = field(default_factory=list)
    openings: List[QueryOpening] = field(default_factory=list)

    @property
    def commitment(self) -> Optional[MerkleRoot]:
        return self.roots[0] if self.roots else None

    @property
    def num_rounds(self) -> int:
        return len(self.roots)
