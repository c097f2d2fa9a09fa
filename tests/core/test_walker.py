from __future__ import annotations

import random
from collections import Counter
from fractions import Fraction

import pytest

from src.core.walker import WalkerTable


def test_probabilities_are_exact() -> None:
    table = WalkerTable([1, 3])
    assert table.probability(0) == Fraction(1, 4)
    assert table.probability(1) == Fraction(3, 4)


def test_zero_weight_is_never_drawn() -> None:
    table = WalkerTable([0, 5, 0], random.Random(1))
    assert {table.next() for _ in range(500)} == {1}


def test_same_seed_same_sequence() -> None:
    a = WalkerTable([2, 7, 1, 4], random.Random(42))
    b = WalkerTable([2, 7, 1, 4], random.Random(42))
    assert [a.next() for _ in range(200)] == [b.next() for _ in range(200)]


def test_draw_frequencies_follow_weights() -> None:
    table = WalkerTable([1, 1, 2], random.Random(3))
    n = 20_000
    counts = Counter(table.next() for _ in range(n))
    assert abs(counts[2] / n - 0.5) < 0.03
    assert abs(counts[0] / n - 0.25) < 0.03


@pytest.mark.parametrize("weights", [[], [0, 0], [1, -1], [True, 2], [1.5]])
def test_invalid_weights_rejected(weights) -> None:
    with pytest.raises(ValueError):
        WalkerTable(weights)
