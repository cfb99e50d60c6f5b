import random

import pytest

from kmeans import compute_shard_centroids
from shard_table import ShardTable, fingerprint_centroids, key_hash, seeded_rng
from shard_types import DimensionMismatchError, EmptyCentroidSetError, KMeansResult


def test_table_freezes_centroids():
    src = [[0, 0], [10, 0]]
    table = ShardTable(centroids=src, version=3)
    src[0][0] = 99
    assert table.centroids == ((0.0, 0.0), (10.0, 0.0))
    assert table.k == 2 and table.dimension == 2 and table.version == 3
    with pytest.raises(AttributeError):
        table.version = 4


def test_table_rejects_empty_and_ragged():
    with pytest.raises(EmptyCentroidSetError):
        ShardTable(centroids=[])
    with pytest.raises(DimensionMismatchError):
        ShardTable(centroids=[[0, 0], [1, 1, 1]])


def test_fingerprint_tracks_layout_not_version():
    a = ShardTable(centroids=[[0, 0], [10, 0]], version=1)
    b = ShardTable(centroids=[[0, 0], [10, 0]], version=2)
    c = ShardTable(centroids=[[10, 0], [0, 0]], version=1)
    assert a.fingerprint == b.fingerprint
    assert a.fingerprint != c.fingerprint
    assert a.fingerprint == fingerprint_centroids([[0.0, 0.0], [10.0, 0.0]])
    assert a.stats()["fingerprint"] == f"{a.fingerprint:016x}"


def test_two_nodes_agree_on_layout(make_clusters):
    vectors = make_clusters([[0, 0], [10, 0], [0, 10]], 30)
    node_a = compute_shard_centroids(vectors, 3, rng=seeded_rng("epoch-7"))
    node_b = compute_shard_centroids(vectors, 3, rng=seeded_rng("epoch-7"))
    ta = ShardTable.from_result(node_a, version=7)
    tb = ShardTable.from_result(node_b, version=7)
    assert ta == tb
    assert ta.fingerprint == tb.fingerprint


def test_seeded_rng_is_reproducible():
    a = seeded_rng("layout", seed=1)
    b = seeded_rng("layout", seed=1)
    assert [a.random() for _ in range(5)] == [b.random() for _ in range(5)]
    assert seeded_rng("layout").random() != seeded_rng("other").random()
    assert key_hash("layout") == key_hash("layout")
    assert isinstance(a, random.Random)


def test_from_unconverged_result_still_builds():
    result = KMeansResult(centroids=[[0, 0], [1, 1]], assignments=[0, 1], iterations=100, converged=False)
    table = ShardTable.from_result(result, version=1)
    assert table.k == 2
