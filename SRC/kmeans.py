"""K-means over vector samples to derive shard centroids.
- k-means++ seeding with an injected rng (anything with .random())
- Lloyd iterations bounded by max_iterations; non-convergence is data, not an error
- squared_euclidean is the one distance routine every router goes through
"""
from __future__ import annotations

from typing import List, Optional, Sequence
import logging
import math
import random

from shard_types import KMeansResult, Vector, check_dimensions

log = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 100
DEFAULT_TOLERANCE = 1e-6


def squared_euclidean(a: Vector, b: Vector) -> float:
    s = 0.0
    for x, y in zip(a, b):
        d = x - y
        s += d * d
    return s


def euclidean_distance(a: Vector, b: Vector) -> float:
    return math.sqrt(squared_euclidean(a, b))


def _pick(rng, n: int) -> int:
    return min(n - 1, int(rng.random() * n))


def kmeanspp_init(vectors: Sequence[Vector], k: int, rng: Optional[random.Random] = None) -> List[List[float]]:
    """Choose k starting centroids, each sampled with probability proportional
    to its squared distance from the nearest centroid already chosen."""
    rng = rng if rng is not None else random.Random()
    n = len(vectors)
    if n == 0 or k < 1:
        return []
    centroids = [list(vectors[_pick(rng, n)])]
    min_dist = [math.inf] * n
    for _ in range(1, k):
        last = centroids[-1]
        for i, v in enumerate(vectors):
            d = squared_euclidean(v, last)
            if d < min_dist[i]:
                min_dist[i] = d
        total = sum(min_dist)
        target = rng.random() * total
        selected = n - 1
        for i, d in enumerate(min_dist):
            target -= d
            if target <= 0:
                selected = i
                break
        centroids.append(list(vectors[selected]))
    return centroids


def nearest_centroid(vector: Vector, centroids: Sequence[Vector]) -> int:
    """Index of the closest centroid; ties go to the lowest index."""
    best, best_d = 0, math.inf
    for j, c in enumerate(centroids):
        d = squared_euclidean(vector, c)
        if d < best_d:
            best, best_d = j, d
    return best


def compute_shard_centroids(
    vectors: Sequence[Vector],
    k: int,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    tolerance: float = DEFAULT_TOLERANCE,
    rng: Optional[random.Random] = None,
) -> KMeansResult:
    """Cluster ``vectors`` into ``k`` shards.

    Given the same vectors, k and an identically seeded rng, two runs return
    identical centroids and assignments. A cluster left empty by an update
    step is reseeded from a random data point so k never shrinks. k below 1
    is treated as 1; max_iterations below 1 returns the k-means++ seeds
    unconverged.
    """
    n = len(vectors)
    if n == 0:
        return KMeansResult(centroids=[], assignments=[], iterations=0, converged=True)
    k = max(1, k)
    dim = len(vectors[0])
    check_dimensions(vectors, dim)
    if k >= n:
        return KMeansResult(
            centroids=[list(v) for v in vectors],
            assignments=list(range(n)),
            iterations=0,
            converged=True,
        )

    rng = rng if rng is not None else random.Random()
    centroids = kmeanspp_init(vectors, k, rng)
    assignments = [0] * n
    iterations = 0
    converged = False

    for it in range(max_iterations):
        iterations = it + 1
        for i, v in enumerate(vectors):
            assignments[i] = nearest_centroid(v, centroids)

        sums = [[0.0] * dim for _ in range(k)]
        counts = [0] * k
        for v, c in zip(vectors, assignments):
            counts[c] += 1
            acc = sums[c]
            for d in range(dim):
                acc[d] += v[d]

        updated: List[List[float]] = []
        for j in range(k):
            if counts[j]:
                updated.append([x / counts[j] for x in sums[j]])
            else:
                idx = _pick(rng, n)
                log.debug("cluster=%d empty at iteration=%d, reseeded from vector=%d", j, iterations, idx)
                updated.append(list(vectors[idx]))

        max_shift = max(squared_euclidean(old, new) for old, new in zip(centroids, updated))
        centroids = updated
        log.debug("iteration=%d max_shift=%.3g", iterations, max_shift)
        if max_shift < tolerance:
            converged = True
            break

    if converged:
        log.debug("k-means converged n=%d k=%d iterations=%d", n, k, iterations)
    else:
        log.warning("k-means did not converge n=%d k=%d after %d iterations", n, k, iterations)
    return KMeansResult(centroids=centroids, assignments=assignments, iterations=iterations, converged=converged)
