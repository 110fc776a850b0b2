"""Sumcheck rounds run in lock-step with codeword folding.

To prove f(z) = y the prover runs sumcheck on sum_b f(b) * eq(z, b), binding
the top variable each round with the same challenge that folds the codeword.
Each round sends h(0), h(1), h(2) of the degree-2 round polynomial.
"""

from typing import List, Sequence

import numpy as np

from basefold_spec.primitives.polynomial import eq_eval

DEGREE = 2


def round_evaluations(field: type, f_evals, eq_evals) -> List:
    """[h(0), h(1), h(2)] for h(X) = sum_b' f(b', X) * eq(b', X) over the top variable X."""
    half = len(f_evals) // 2
    f_lo, f_hi = f_evals[:half], f_evals[half:]
    e_lo, e_hi = eq_evals[:half], eq_evals[half:]
    two = field(2)
    f_two = two * f_hi - f_lo
    e_two = two * e_hi - e_lo
    return [
        np.add.reduce(f_lo * e_lo),
        np.add.reduce(f_hi * e_hi),
        np.add.reduce(f_two * e_two),
    ]


def interpolate(field: type, evals: Sequence, r):
    """Evaluate the degree-2 polynomial through (0, e0), (1, e1), (2, e2) at r."""
    e0, e1, e2 = (field(int(e)) for e in evals)
    one, two = field(1), field(2)
    inv_two = two ** -1
    l0 = (r - one) * (r - two) * inv_two
    l1 = -(r * (r - two))
    l2 = r * (r - one) * inv_two
    return e0 * l0 + e1 * l1 + e2 * l2


def final_claim(field: type, point: Sequence[int], challenges: Sequence[int], final_value):
    """Expected last sumcheck claim: final_value * eq(point, bound point).

    Challenge i binds variable X_{m-1-i}.
    """
    bound = list(reversed([int(c) for c in challenges]))
    return field(int(final_value)) * eq_eval(field, point, bound)
