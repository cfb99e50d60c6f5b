"""Immutable centroid snapshots, fingerprinted with xxh3_64.
- A ShardTable is never edited: re-clustering produces a new table
- fingerprint lets nodes confirm they derived the same layout without a consensus round
- seeded_rng derives a reproducible k-means rng from a shared label
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence, Tuple
import logging
import random
import struct

try:
    import xxhash
except ImportError as e:
    raise RuntimeError("xxhash is required. Install with: pip install xxhash") from e

from shard_types import EmptyCentroidSetError, KMeansResult, Vector, check_dimensions

log = logging.getLogger(__name__)

def h64(data: bytes, seed: int = 0) -> int:
    return xxhash.xxh3_64_intdigest(data, seed=seed)

def key_hash(key: str, seed: int = 0) -> int:
    return h64(key.encode("utf-8"), seed)

def seeded_rng(label: str, seed: int = 0) -> random.Random:
    """Same label and seed on every node -> same random stream."""
    return random.Random(key_hash(label, seed))

def fingerprint_centroids(centroids: Sequence[Vector], seed: int = 0) -> int:
    h = xxhash.xxh3_64(seed=seed)
    for c in centroids:
        h.update(struct.pack(f"<{len(c)}d", *c))
    return h.intdigest()


@dataclass(frozen=True)
class ShardTable:
    """Centroid set for one clustering run; shard i is centroids[i]."""
    centroids: Tuple[Tuple[float, ...], ...]
    version: int = 0
    fingerprint: int = field(init=False, compare=False)

    def __post_init__(self):
        frozen = tuple(tuple(float(x) for x in c) for c in self.centroids)
        if not frozen:
            raise EmptyCentroidSetError("ShardTable needs at least one centroid")
        check_dimensions(frozen, len(frozen[0]), "centroid")
        object.__setattr__(self, "centroids", frozen)
        object.__setattr__(self, "fingerprint", fingerprint_centroids(frozen))

    @classmethod
    def from_result(cls, result: KMeansResult, version: int = 0) -> "ShardTable":
        if not result.converged:
            log.info("building shard table v%d from unconverged run (%d iterations)", version, result.iterations)
        return cls(centroids=tuple(tuple(c) for c in result.centroids), version=version)

    @property
    def k(self) -> int:
        return len(self.centroids)

    @property
    def dimension(self) -> int:
        return len(self.centroids[0])

    def stats(self) -> dict:
        return {"version": self.version, "shards": self.k, "dimension": self.dimension, "fingerprint": f"{self.fingerprint:016x}"}
