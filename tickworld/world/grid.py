"""Grid world with a bucket index for neighbor queries.

``GridWorld`` supports periodic (toroidal) and unbounded N-dimensional
topologies. A query only visits the buckets overlapping the box
``[position - r, position + r]`` and then applies the exact distance test to
the agents found in them, so the cost depends on the local density rather than
on the size of the population.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from tickworld.world.buckets import BucketIndex
from tickworld.world.world import IndexedWorld, Snapshot


class GridWorld(IndexedWorld):
    """An N-dimensional grid world.

    By default "nearby" means inside the axis-aligned box of half-width ``r``
    around the query position (Chebyshev distance), not inside a ball.

    Attributes:
        periodic (bool): whether the axes wrap around
        dimension (int | None): the fixed dimension of the world, None if inferred
        extent (np.ndarray | None): the per-axis size used for wrapping, None if inferred
        metric (str): the distance metric
        bucket_size (float | None): the size of the index buckets, set by the
            first query when not configured

    Examples:
        A periodic 2D world of 6 by 6::

            world = GridWorld(periodic=True, extent=6)
    """

    def __init__(
        self,
        periodic: bool = True,
        *,
        dimension: int | None = None,
        extent: float | Sequence[float] | None = None,
        bucket_size: float | None = None,
        metric: str = "chebyshev",
    ) -> None:
        """Initialise the grid world.

        Args:
            periodic: whether the axes wrap around at ``extent``
            dimension: fix the dimension of positions; inferred from the agents when None
            extent: size of every axis (scalar) or of each axis (sequence); used
                only when periodic; when None it is inferred as ``floor(max coordinate) + 1``
                at the first successful query and kept
            bucket_size: size of the index buckets; the radius of the first successful
                query is used when None
            metric: "chebyshev" (default), "euclidean" or "manhattan"
        """
        if bucket_size is not None and not bucket_size > 0:
            raise ValueError("Bucket size must be a positive number.")
        self.bucket_size = None if bucket_size is None else float(bucket_size)
        super().__init__(periodic, dimension=dimension, extent=extent, metric=metric)

    def _index_parameters(self, r: float) -> tuple:
        if self.bucket_size is not None:
            return (self.bucket_size,)
        return (float(r) if r > 0 else 1.0,)

    def _commit(self, snapshot: Snapshot, parameters: tuple) -> None:
        super()._commit(snapshot, parameters)
        if self.bucket_size is None:
            (self.bucket_size,) = parameters

    def _build_index(
        self, positions: np.ndarray, extent: np.ndarray | None, parameters: tuple
    ) -> BucketIndex:
        (bucket_size,) = parameters
        return BucketIndex(positions, bucket_size, extent)

    def _query_index(self, snapshot: Snapshot, query: np.ndarray, r: float) -> list[int]:
        rows = snapshot.index.candidates(query - r, query + r)
        if not rows:
            return []
        rows = np.asarray(rows)
        within = self.distances(snapshot.positions[rows], query, snapshot.extent) <= r
        return rows[within].tolist()
