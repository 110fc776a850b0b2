"""Pytest configuration: shared field fixtures for basefold_spec tests."""

import pytest

from basefold_spec.primitives.field import BABYBEAR_PRIME, GOLDILOCKS_PRIME, get_field


@pytest.fixture(scope="session")
def gf97() -> type:
    """GF(97): 2-adicity 5, small enough to reason about by hand."""
    return get_field(97)


@pytest.fixture(scope="session")
def babybear() -> type:
    return get_field(BABYBEAR_PRIME)


@pytest.fixture(scope="session")
def goldilocks() -> type:
    return get_field(GOLDILOCKS_PRIME)
