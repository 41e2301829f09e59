from __future__ import annotations

import bisect
import hashlib
import itertools
import random
from typing import Sequence


def derive_stream_seed(master_seed: int, stream_name: str) -> int:
    """Derive a deterministic child RNG seed from (master_seed, stream_name)."""
    digest = hashlib.sha256(f"{master_seed}:{stream_name}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False)


class WeightedSampler:
    """Cumulative-weight index sampler; weights are fixed at construction."""

    def __init__(self, weights: Sequence[float]) -> None:
        if not weights:
            raise ValueError("weights must not be empty")
        for index, weight in enumerate(weights):
            if weight < 0:
                raise ValueError(f"weights[{index}] must be >= 0")
        self._cumulative = list(itertools.accumulate(float(weight) for weight in weights))
        self.total = self._cumulative[-1]
        if self.total <= 0:
            raise ValueError("weights must have a positive sum")

    def __len__(self) -> int:
        return len(self._cumulative)

    def sample(self, rng: random.Random) -> int:
        point = rng.random() * self.total
        # bisect_right skips zero-weight entries, which share the previous cumulative value
        return min(bisect.bisect_right(self._cumulative, point), len(self._cumulative) - 1)
