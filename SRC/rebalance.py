"""Rebalancing utilities.

Detect shard size skew and plan which vectors change shard between two centroid snapshots.
Executing the migration belongs to the storage layer.
"""
from __future__ import annotations

from typing import Dict, Hashable, Mapping, Sequence, Tuple
from collections import Counter
import logging

from shard_table import ShardTable
from shard_types import RebalanceResult, ShardDistribution, Vector
from vector_shard_router import assign_to_shard

log = logging.getLogger(__name__)

DEFAULT_BALANCE_THRESHOLD = 0.2


def compute_distribution(sizes: Sequence[int]) -> ShardDistribution:
    k = len(sizes)
    if k == 0:
        return ShardDistribution(sizes=(), mean=0.0, max_deviation=0.0, largest_shard=-1, smallest_shard=-1)
    mean = sum(sizes) / k
    max_dev = 0.0
    largest = smallest = 0
    for i, s in enumerate(sizes):
        dev = abs(s - mean) / mean if mean > 0 else 0.0
        if dev > max_dev:
            max_dev = dev
        if s > sizes[largest]:
            largest = i
        if s < sizes[smallest]:
            smallest = i
    return ShardDistribution(
        sizes=tuple(sizes),
        mean=mean,
        max_deviation=max_dev,
        largest_shard=largest,
        smallest_shard=smallest,
    )


def rebalance_shards(sizes: Sequence[int], threshold: float = DEFAULT_BALANCE_THRESHOLD) -> RebalanceResult:
    """Report whether every shard is within ``threshold`` (a ratio of the mean) and advise if not."""
    dist = compute_distribution(sizes)
    if not dist.sizes:
        return RebalanceResult(is_balanced=True, recommendation="No shards to balance.", shard_distribution=dist)

    is_balanced = dist.max_deviation <= threshold
    if is_balanced:
        recommendation = (
            f"All shards are within {threshold * 100:.0f}% of the mean "
            f"({dist.mean:.0f} items). No rebalancing needed."
        )
    else:
        big, small = dist.largest_shard, dist.smallest_shard
        recommendation = (
            f"Shard imbalance detected: max deviation is {dist.max_deviation * 100:.1f}% "
            f"(threshold: {threshold * 100:.0f}%). "
            f"Shard {big} has {dist.sizes[big]} items, shard {small} has {dist.sizes[small]} items "
            f"(mean: {dist.mean:.0f}). "
            "Recommendation: Recompute centroids via K-means on a fresh data sample "
            "and migrate affected vectors to restore balance."
        )
        log.info("imbalance max_deviation=%.3f threshold=%.3f largest=%d smallest=%d",
                 dist.max_deviation, threshold, big, small)
    return RebalanceResult(is_balanced=is_balanced, recommendation=recommendation, shard_distribution=dist)


class RebalancePlanner:
    def plan_moved(self, vectors: Mapping[Hashable, Vector], table_before: ShardTable, table_after: ShardTable) -> Dict[Hashable, Tuple[int, int]]:
        """Return dict vector id -> (from_shard, to_shard) for vectors whose shard changed."""
        moved = {}
        for vid, vec in vectors.items():
            b = assign_to_shard(vec, table_before.centroids).shard_index
            a = assign_to_shard(vec, table_after.centroids).shard_index
            if b != a:
                moved[vid] = (b, a)
        log.debug("planned v%d->v%d moved=%d of %d", table_before.version, table_after.version, len(moved), len(vectors))
        return moved

    def stats(self, plan: Dict[Hashable, Tuple[int, int]]) -> Dict[str, object]:
        by_to = Counter(to for (_, to) in plan.values())
        by_from = Counter(frm for (frm, _) in plan.values())
        return {
            "moved_count": len(plan),
            "by_to": dict(by_to),
            "by_from": dict(by_from),
        }
