"""Walker/Vose alias table for O(1) weighted draws."""

from __future__ import annotations

import random
from fractions import Fraction
from typing import List, Optional, Sequence


class WalkerTable:
    """
    Alias table built from non-negative integer weights.

    Probabilities are kept as exact fractions so the same weights always
    produce the same table. Draws consume exactly two values from the
    supplied ``random.Random``; reproducibility therefore only depends on the
    rng seed.
    """

    def __init__(self, weights: Sequence[int], rng: Optional[random.Random] = None) -> None:
        if not weights:
            raise ValueError("weights must be non-empty")
        for w in weights:
            if isinstance(w, bool) or not isinstance(w, int) or w < 0:
                raise ValueError(f"weights must be non-negative integers, got {w!r}")
        total = sum(weights)
        if total == 0:
            raise ValueError("at least one weight must be positive")

        n = len(weights)
        self._rng = rng if rng is not None else random.Random()
        self._weights = list(weights)
        self._prob: List[Fraction] = [Fraction(0)] * n
        self._alias: List[int] = list(range(n))

        scaled = [Fraction(w * n, total) for w in weights]
        small = [i for i, p in enumerate(scaled) if p < 1]
        large = [i for i, p in enumerate(scaled) if p >= 1]
        while small and large:
            s = small.pop()
            g = large.pop()
            self._prob[s] = scaled[s]
            self._alias[s] = g
            scaled[g] = scaled[g] + scaled[s] - 1
            if scaled[g] < 1:
                small.append(g)
            else:
                large.append(g)
        for i in large + small:
            self._prob[i] = Fraction(1)

    def __len__(self) -> int:
        return len(self._weights)

    @property
    def weights(self) -> List[int]:
        return list(self._weights)

    def next(self) -> int:
        column = self._rng.randrange(len(self._prob))
        if self._rng.random() < self._prob[column]:
            return column
        return self._alias[column]

    def probability(self, index: int) -> Fraction:
        """Exact probability that ``next()`` returns ``index``."""
        n = len(self._prob)
        p = self._prob[index] / n
        for column in range(n):
            if self._alias[column] == index and column != index:
                p += (1 - self._prob[column]) / n
        return p
