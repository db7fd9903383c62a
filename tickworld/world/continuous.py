"""Continuous world backed by a KD-tree.

Answers the same ``nearby`` contract as ``GridWorld`` with a
``scipy.spatial.KDTree``, which handles periodic axes through ``boxsize``.
"""

from __future__ import annotations

import numpy as np
from scipy.spatial import KDTree

from tickworld.world.world import IndexedWorld, Snapshot


class ContinuousWorld(IndexedWorld):
    """A continuous N-dimensional world.

    Attributes:
        periodic (bool): whether the axes wrap around
        dimension (int | None): the fixed dimension of the world, None if inferred
        extent (np.ndarray | None): the per-axis size used for wrapping, None if inferred
        metric (str): the distance metric
    """

    def _build_index(
        self, positions: np.ndarray, extent: np.ndarray | None, parameters: tuple
    ) -> KDTree:
        return KDTree(positions, boxsize=extent)

    def _query_index(self, snapshot: Snapshot, query: np.ndarray, r: float) -> list[int]:
        # widen by one ulp, the exact test below decides the boundary
        rows = snapshot.index.query_ball_point(query, np.nextafter(r, np.inf), p=self._p)
        if not rows:
            return []
        rows = np.asarray(rows)
        within = self.distances(snapshot.positions[rows], query, snapshot.extent) <= r
        return rows[within].tolist()
