from kmeans import compute_shard_centroids
from shard_table import ShardTable, seeded_rng
from vector_shard_router import VectorRouter
from rebalance import RebalancePlanner, rebalance_shards
from region_router import route_to_region
from shard_types import GeoLocation
from collections import Counter
import logging


def clustered_sample(centers, per_center, spread, rng):
    return [[c + (rng.random() - 0.5) * spread for c in center] for center in centers for _ in range(per_center)]


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # 1) Cluster a sample into shard centroids; every node seeding from the same label agrees
    data_rng = seeded_rng("demo-data", seed=2025)
    sample = clustered_sample([[0, 0], [10, 0], [0, 10], [10, 10]], 50, 2.0, data_rng)
    result = compute_shard_centroids(sample, 4, rng=seeded_rng("layout-epoch-1"))
    table_v1 = ShardTable.from_result(result, version=1)
    print('Layout v1:', table_v1.stats(), 'converged:', result.converged, 'iterations:', result.iterations)

    router = VectorRouter(num_probes=2)
    router.publish(table_v1)

    # 2) Assign and route a new vector
    vec = [9.5, 9.5]
    print('Assign:', router.assign(vec))
    print('Probe:', router.route_query(vec))

    # 3) Balance check over current shard sizes
    sizes = [0] * table_v1.k
    for shard, n in Counter(result.assignments).items():
        sizes[shard] = n
    print('Balance v1:', rebalance_shards(sizes).recommendation)

    # 4) Growth in one region skews the layout; recluster and plan migration
    sample += clustered_sample([[10, 10]], 150, 4.0, data_rng)
    grown = [0] * table_v1.k
    for v in sample:
        grown[router.assign(v).shard_index] += 1
    balance = rebalance_shards(grown)
    print('Balance after growth:', balance.recommendation)
    if not balance.is_balanced:
        result_v2 = compute_shard_centroids(sample, 4, rng=seeded_rng("layout-epoch-2"))
        table_v2 = ShardTable.from_result(result_v2, version=2)
        ids = {f'vec-{i}': v for i, v in enumerate(sample)}
        planner = RebalancePlanner()
        plan = planner.plan_moved(ids, table_v1, table_v2)
        print('Vector moved stats:', planner.stats(plan))
        router.publish(table_v2)

    # 5) Region routing
    for name, loc in [('Seoul', GeoLocation(37.5665, 126.978)), ('New York', GeoLocation(40.7128, -74.006)), ('Berlin', GeoLocation(52.52, 13.405))]:
        print(name, '->', route_to_region(loc))


if __name__ == "__main__":
    main()
