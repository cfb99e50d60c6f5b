"""Vector shard assignment and query routing over centroid snapshots.
Assignment is argmin over centroids; a query probes only the num_probes closest shards.
The active ShardTable is swapped wholesale, never edited: readers never lock.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple
import logging
import math
import threading

from kmeans import squared_euclidean
from shard_table import ShardTable
from shard_types import (
    DimensionMismatchError,
    EmptyCentroidSetError,
    QueryRoute,
    ShardAssignment,
    Vector,
)

log = logging.getLogger(__name__)

DEFAULT_NUM_PROBES = 3


def _distances(vector: Vector, centroids: Sequence[Vector], what: str) -> List[Tuple[float, int]]:
    if len(centroids) == 0:
        raise EmptyCentroidSetError(f"No centroids provided for {what}")
    dim = len(centroids[0])
    if len(vector) != dim:
        raise DimensionMismatchError(dim, len(vector))
    for c in centroids:
        if len(c) != dim:
            raise DimensionMismatchError(dim, len(c), "centroid")
    # (squared distance, index): equal distances order by lowest index
    return [(squared_euclidean(vector, c), j) for j, c in enumerate(centroids)]


def assign_to_shard(vector: Vector, centroids: Sequence[Vector]) -> ShardAssignment:
    d2, j = min(_distances(vector, centroids, "shard assignment"))
    return ShardAssignment(shard_index=j, distance=math.sqrt(d2))


def route_query(vector: Vector, centroids: Sequence[Vector], num_probes: int = DEFAULT_NUM_PROBES) -> QueryRoute:
    """Shards to probe for a nearest-neighbour query, closest first.

    The first entry is always the shard assign_to_shard picks for the same
    vector, since both order the same _distances pairs. num_probes below 1
    gives an empty route.
    """
    pairs = _distances(vector, centroids, "query routing")
    probes = sorted(pairs)[:max(0, num_probes)]
    return QueryRoute(
        shard_indices=tuple(j for _, j in probes),
        distances=tuple(math.sqrt(d2) for d2, _ in probes),
    )


class VectorRouter:
    """Holds the active ShardTable and routes against it."""
    def __init__(self, table: Optional[ShardTable] = None, num_probes: int = DEFAULT_NUM_PROBES):
        self.num_probes = num_probes
        self._lock = threading.Lock()
        self._table = table

    def publish(self, table: ShardTable) -> Optional[ShardTable]:
        """Swap in a newer table; returns the one it replaced."""
        with self._lock:
            prev = self._table
            if prev is not None and table.version <= prev.version:
                raise ValueError(f"ShardTable v{table.version} is not newer than active v{prev.version}")
            self._table = table
        if prev is not None and prev.fingerprint == table.fingerprint:
            log.debug("published v%d with unchanged layout", table.version)
        log.info("published shard table v%d k=%d fingerprint=%016x", table.version, table.k, table.fingerprint)
        return prev

    def snapshot(self) -> ShardTable:
        # single reference read; callers keep using it even if a newer table lands
        table = self._table
        if table is None:
            raise EmptyCentroidSetError("No shard table published")
        return table

    @property
    def version(self) -> Optional[int]:
        table = self._table
        return None if table is None else table.version

    def assign(self, vector: Vector) -> ShardAssignment:
        return assign_to_shard(vector, self.snapshot().centroids)

    def route_query(self, vector: Vector, num_probes: Optional[int] = None) -> QueryRoute:
        if num_probes is None:
            num_probes = self.num_probes
        return route_query(vector, self.snapshot().centroids, num_probes)
