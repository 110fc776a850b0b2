"""Prime fields GF(p) backed by galois.

Every protocol object carries its field class explicitly; there is no module
level "current field". galois caches field classes, and get_field adds a thin
lru_cache on top so repeated configs resolve to the same class object.
"""

from functools import lru_cache
from typing import List

import galois
import numpy as np

from basefold_spec.errors import EncodingLengthError

# --- Field Construction ---

GOLDILOCKS_PRIME = 0xFFFFFFFF00000001
"""p = 2^64 - 2^32 + 1, 2-adicity 32."""

BABYBEAR_PRIME = 15 * (1 << 27) + 1
"""p = 15 * 2^27 + 1, 2-adicity 27. Fits native int64 arithmetic in galois."""


@lru_cache(maxsize=None)
def get_field(prime: int = GOLDILOCKS_PRIME) -> type:
    """Return the galois field class GF(prime)."""
    if prime == 2:
        raise ValueError("folding divides by 2; characteristic 2 is not supported")
    return galois.GF(prime)


def two_adicity(field: type) -> int:
    """Largest s such that 2^s divides p - 1."""
    order = field.order - 1
    s = 0
    while order % 2 == 0:
        order //= 2
        s += 1
    return s


# --- Roots of Unity ---

def get_root_of_unity(field: type, n_bits: int):
    """Primitive 2^n_bits-th root of unity in `field`.

    Raises:
        EncodingLengthError: if 2^n_bits does not divide p - 1
    """
    if n_bits < 0 or n_bits > two_adicity(field):
        raise EncodingLengthError(
            f"GF({field.order}) has no primitive 2^{n_bits}-th root of unity"
        )
    n = 1 << n_bits
    return field.primitive_element ** ((field.order - 1) // n)


def get_roots_of_unity(field: type, n_bits: int, count: int = 0):
    """First `count` powers of the primitive 2^n_bits-th root (all of them if 0)."""
    omega = get_root_of_unity(field, n_bits)
    n = count if count > 0 else 1 << n_bits
    roots = field.Ones(n)
    for i in range(1, n):
        roots[i] = roots[i - 1] * omega
    return roots


# --- Montgomery Batch Inversion ---

def batch_inverse(values):
    """Montgomery batch inversion for a galois array.

    Converts N field inversions into 3N-3 multiplications + 1 inversion.

    Raises:
        ZeroDivisionError: if any element is zero
    """
    n = len(values)
    if n == 0:
        return values
    if n == 1:
        return values ** -1

    field_type = type(values)

    cumprods = field_type.Zeros(n)
    cumprods[0] = values[0]
    for i in range(1, n):
        cumprods[i] = cumprods[i - 1] * values[i]

    inv_total = cumprods[n - 1] ** -1

    results = field_type.Zeros(n)
    z = inv_total
    for i in range(n - 1, 0, -1):
        results[i] = z * cumprods[i - 1]
        z = z * values[i]
    results[0] = z

    return results


# --- Hashing Boundary Helpers ---

def element_size(field: type) -> int:
    """Bytes needed to serialize one element of `field`."""
    return (field.order.bit_length() + 7) // 8


def to_ints(values) -> List[int]:
    """Flatten a galois array (or scalar) into plain Python ints."""
    return [int(v) for v in np.asarray(values.view(np.ndarray)).ravel()]


def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def log2(size: int) -> int:
    """log2 of a power of two."""
    if not is_power_of_two(size):
        raise EncodingLengthError(f"length {size} is not a power of two")
    return size.bit_length() - 1
