from __future__ import annotations

import importlib.util
import random
from fractions import Fraction

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given, settings

from src.core.walker import WalkerTable

weights_st = st.lists(st.integers(min_value=0, max_value=1_000), min_size=1, max_size=30).filter(lambda ws: sum(ws) > 0)


@settings(max_examples=200, deadline=None)
@given(weights=weights_st)
def test_table_probabilities_match_weights(weights) -> None:
    table = WalkerTable(weights)
    total = sum(weights)
    for i, w in enumerate(weights):
        assert table.probability(i) == Fraction(w, total)


@settings(max_examples=100, deadline=None)
@given(weights=weights_st, seed=st.integers(min_value=0, max_value=2**32))
def test_draws_only_positive_weights(weights, seed) -> None:
    table = WalkerTable(weights, random.Random(seed))
    for _ in range(50):
        assert weights[table.next()] > 0
