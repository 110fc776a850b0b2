"""Tests for the Fiat-Shamir transcript."""

import pytest

from basefold_spec.errors import TranscriptOrderError
from basefold_spec.primitives.field import BABYBEAR_PRIME
from basefold_spec.primitives.transcript import Transcript


class TestTranscriptOrdering:
    """Challenges may only follow fresh absorptions."""

    def test_squeeze_before_absorb(self) -> None:
        with pytest.raises(TranscriptOrderError):
            Transcript(97).get_field()

    def test_two_challenges_without_commitment(self) -> None:
        t = Transcript(97)
        t.put(b"root")
        t.get_field()
        with pytest.raises(TranscriptOrderError):
            t.get_field()

    def test_permutations_need_absorb(self) -> None:
        t = Transcript(97)
        t.put([1])
        t.get_field()
        with pytest.raises(TranscriptOrderError):
            t.get_permutations(4, 3)

    def test_get_state_is_not_a_squeeze(self) -> None:
        t = Transcript(97)
        t.put([1, 2, 3])
        t.get_state()
        t.get_field()

    @pytest.mark.parametrize("modulus", [0, 1, 2])
    def test_invalid_modulus(self, modulus: int) -> None:
        with pytest.raises(ValueError):
            Transcript(modulus)


class TestTranscriptOutputs:
    """Determinism, domain separation and output ranges."""

    def _challenges(self, items, modulus=BABYBEAR_PRIME):
        t = Transcript(modulus)
        out = []
        for item in items:
            t.put(item)
            out.append(t.get_field())
        return out

    def test_deterministic(self) -> None:
        items = [b"root-0", [5, 6, 7], b"root-1"]
        assert self._challenges(items) == self._challenges(items)

    def test_depends_on_history(self) -> None:
        a = self._challenges([b"root-0", b"root-1"])
        b = self._challenges([b"root-X", b"root-1"])
        assert a[0] != b[0]
        assert a[1] != b[1]

    def test_bytes_and_ints_are_separated(self) -> None:
        a = Transcript(97)
        b = Transcript(97)
        a.put(b"\x01")
        b.put([1])
        assert a.get_state() != b.get_state()

    def test_domain_separation(self) -> None:
        a = Transcript(97, domain=b"a")
        b = Transcript(97, domain=b"b")
        assert a.get_state() != b.get_state()

    def test_field_range(self) -> None:
        t = Transcript(97)
        for i in range(200):
            t.put([i])
            assert 0 <= t.get_field() < 97

    @pytest.mark.parametrize("n,n_bits", [(1, 1), (8, 5), (64, 11), (300, 3)])
    def test_permutations_range(self, n: int, n_bits: int) -> None:
        t = Transcript(BABYBEAR_PRIME)
        t.put(b"final")
        indices = t.get_permutations(n, n_bits)
        assert len(indices) == n
        assert all(0 <= i < (1 << n_bits) for i in indices)

    def test_permutations_deterministic(self) -> None:
        a = Transcript(97)
        b = Transcript(97)
        a.put([42])
        b.put([42])
        assert a.get_permutations(16, 6) == b.get_permutations(16, 6)
