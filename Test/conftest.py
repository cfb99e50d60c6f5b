import random

import pytest


def _clustered(centers, per_center, spread, rng):
    return [[c + (rng.random() - 0.5) * spread for c in center] for center in centers for _ in range(per_center)]


@pytest.fixture
def make_clusters():
    """make_clusters(centers, per_center, spread=1.0, seed=42) -> list of vectors"""
    def make(centers, per_center, spread=1.0, seed=42):
        return _clustered(centers, per_center, spread, random.Random(seed))
    return make
