"""Multilinear polynomials in evaluation form.

A polynomial in m variables is stored as its 2^m evaluations over the Boolean
hypercube. Index bit k holds the value of variable X_k, so the top variable
X_{m-1} splits the vector into a left half (X_{m-1} = 0) and a right half
(X_{m-1} = 1). Folding always binds the top variable first.
"""

from typing import Sequence

from basefold_spec.errors import EncodingLengthError
from basefold_spec.primitives.field import is_power_of_two, log2


def fold_message(left, right, challenge):
    """Bind the top variable of (left || right) to `challenge`.

    Computes (1 - r) * left + r * right, the evaluation vector of
    f(X_0, ..., X_{m-2}, r).
    """
    return left + challenge * (right - left)


def eq_table(field: type, point: Sequence[int]):
    """Evaluations of eq(point, b) for every b in {0,1}^m.

    eq(z, b) = prod_k (z_k * b_k + (1 - z_k) * (1 - b_k)).
    """
    table = field.Ones(1)
    one = field(1)
    for z_k in point:
        z = field(int(z_k))
        nxt = field.Zeros(2 * len(table))
        nxt[:len(table)] = table * (one - z)
        nxt[len(table):] = table * z
        table = nxt
    return table


def eq_eval(field: type, z: Sequence[int], x: Sequence[int]):
    """Single evaluation eq(z, x) for arbitrary field points z and x."""
    if len(z) != len(x):
        raise ValueError(f"eq needs points of equal length, got {len(z)} and {len(x)}")
    one = field(1)
    acc = field(1)
    for z_k, x_k in zip(z, x):
        zf, xf = field(int(z_k)), field(int(x_k))
        acc = acc * (zf * xf + (one - zf) * (one - xf))
    return acc


class MultilinearPolynomial:
    """Multilinear polynomial given by its hypercube evaluations."""

    def __init__(self, field: type, evaluations) -> None:
        n = len(evaluations)
        if not is_power_of_two(n):
            raise EncodingLengthError(
                f"evaluation vector length {n} is not a power of two"
            )
        self.field = field
        if isinstance(evaluations, field):
            self.evaluations = evaluations.copy()
        else:
            self.evaluations = field([int(v) for v in evaluations])
        self.num_vars = log2(n)

    @classmethod
    def random(cls, field: type, num_vars: int, seed: int = None) -> "MultilinearPolynomial":
        return cls(field, field.Random(1 << num_vars, seed=seed))

    def __len__(self) -> int:
        return len(self.evaluations)

    def evaluate(self, point: Sequence[int]):
        """Evaluate the multilinear extension at `point` (point[k] binds X_k)."""
        if len(point) != self.num_vars:
            raise ValueError(
                f"point has {len(point)} coordinates, polynomial has {self.num_vars} variables"
            )
        values = self.evaluations
        for k in reversed(range(self.num_vars)):
            half = len(values) // 2
            values = fold_message(values[:half], values[half:], self.field(int(point[k])))
        return values[0]

    def fold(self, challenge) -> "MultilinearPolynomial":
        """Bind the top variable, returning a polynomial in one fewer variable."""
        if self.num_vars == 0:
            raise EncodingLengthError("cannot fold a constant polynomial")
        half = len(self.evaluations) // 2
        r = self.field(int(challenge))
        return MultilinearPolynomial(
            self.field,
            fold_message(self.evaluations[:half], self.evaluations[half:], r),
        )
