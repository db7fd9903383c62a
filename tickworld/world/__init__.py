"""Worlds answer proximity queries over the agents of a model.

- World: the contract, ``nearby(model, position, r)``
- GridWorld: periodic or unbounded N-dimensional grid with a bucket index
- ContinuousWorld: the same contract backed by a KD-tree
"""

from tickworld.world.buckets import BucketIndex
from tickworld.world.continuous import ContinuousWorld
from tickworld.world.grid import GridWorld
from tickworld.world.world import METRICS, IndexedWorld, World

__all__ = [
    "METRICS",
    "BucketIndex",
    "ContinuousWorld",
    "GridWorld",
    "IndexedWorld",
    "World",
]
