"""Value types and errors shared by the sharding modules.
All results are frozen: routing callers may share them across threads.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

Vector = Sequence[float]

READ_FROM_LOCAL_REPLICA = "local_replica"
WRITE_TO_GLOBAL_CONSENSUS = "global_consensus"


class ShardingError(Exception):
    """Base class for caller misuse of the sharding core."""


class EmptyCentroidSetError(ShardingError, ValueError):
    pass


class DimensionMismatchError(ShardingError, ValueError):
    def __init__(self, expected: int, got: int, what: str = "vector"):
        super().__init__(f"{what} has dimension {got}, expected {expected}")
        self.expected = expected
        self.got = got


def check_dimensions(vectors: Sequence[Vector], expected: int, what: str = "vector") -> None:
    for v in vectors:
        if len(v) != expected:
            raise DimensionMismatchError(expected, len(v), what)


@dataclass(frozen=True)
class KMeansResult:
    centroids: List[List[float]]
    assignments: List[int]
    iterations: int
    converged: bool


@dataclass(frozen=True)
class ShardAssignment:
    shard_index: int
    distance: float


@dataclass(frozen=True)
class QueryRoute:
    """Shards to probe, closest first."""
    shard_indices: Tuple[int, ...]
    distances: Tuple[float, ...]


@dataclass(frozen=True)
class ShardDistribution:
    sizes: Tuple[int, ...]
    mean: float
    max_deviation: float
    largest_shard: int
    smallest_shard: int


@dataclass(frozen=True)
class RebalanceResult:
    is_balanced: bool
    recommendation: str
    shard_distribution: ShardDistribution


@dataclass(frozen=True)
class GeoLocation:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Region:
    id: str
    name: str
    location: GeoLocation


@dataclass(frozen=True)
class RegionRoute:
    region: str
    region_name: str
    distance_km: int
    read_from: str = READ_FROM_LOCAL_REPLICA
    write_to: str = WRITE_TO_GLOBAL_CONSENSUS
