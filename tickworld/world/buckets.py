"""Uniform bucket index for neighbor queries.

Positions are hashed into cubic buckets, and a box query only looks at the
buckets overlapping the box instead of at every position. Bucket contents are
rows into the position array the index was built from.

On periodic axes the buckets tile the extent exactly (the bucket size is
rounded up so that a whole number of buckets fits), which makes bucket
coordinates wrap modulo the bucket count just like positions wrap modulo the
extent.
"""

from __future__ import annotations

import math
from itertools import product

import numpy as np


class BucketIndex:
    """A mapping from integer bucket coordinates to the rows of the positions in it.

    Attributes:
        bucket_size (np.ndarray): the size of a bucket along each axis
        counts (np.ndarray | None): the number of buckets along each axis when
            the space is periodic, None otherwise
    """

    def __init__(
        self,
        positions: np.ndarray,
        bucket_size: float,
        extent: np.ndarray | None = None,
    ) -> None:
        """Build the index.

        Args:
            positions: (N, D) array of positions, wrapped into ``[0, extent)`` if extent is given
            bucket_size: the requested bucket size
            extent: the size of each axis of a periodic space, None if not periodic
        """
        dimension = positions.shape[1]
        if extent is None:
            self.counts = None
            # keys are floor(x * numerator / denominator), per axis
            self._numerator = np.ones(dimension)
            self._denominator = np.full(dimension, float(bucket_size))
            self.bucket_size = self._denominator.copy()
        else:
            self.counts = np.maximum(np.floor(extent / bucket_size), 1).astype(np.int64)
            self._numerator = self.counts.astype(float)
            self._denominator = np.asarray(extent, dtype=float)
            self.bucket_size = self._denominator / self._numerator

        self._buckets: dict[tuple[int, ...], list[int]] = {}
        for row, key in enumerate(map(tuple, self.keys(positions).tolist())):
            self._buckets.setdefault(key, []).append(row)

    def __len__(self) -> int:
        """Return the number of occupied buckets."""
        return len(self._buckets)

    def keys(self, positions: np.ndarray) -> np.ndarray:
        """Return the bucket coordinates of each position as an (N, D) int array."""
        keys = np.floor(positions * self._numerator / self._denominator).astype(np.int64)
        if self.counts is not None:
            keys = np.minimum(keys, self.counts - 1)
        return keys

    def axis_ranges(self, lo: np.ndarray, hi: np.ndarray) -> list[range | tuple[int, ...]]:
        """Return, per axis, the bucket coordinates overlapping ``[lo, hi]``.

        Each range is padded by one bucket on both sides, so a position whose
        key rounds across a bucket boundary is still covered.
        """
        lo_keys = np.floor(lo * self._numerator / self._denominator).astype(np.int64)
        hi_keys = np.floor(hi * self._numerator / self._denominator).astype(np.int64)

        ranges = []
        for axis, (first, last) in enumerate(zip(lo_keys.tolist(), hi_keys.tolist())):
            covering = range(first - 1, last + 2)
            if self.counts is None:
                ranges.append(covering)
                continue
            count = int(self.counts[axis])
            if len(covering) >= count:
                ranges.append(range(count))
            else:
                ranges.append(tuple(sorted({k % count for k in covering})))
        return ranges

    def candidates(self, lo: np.ndarray, hi: np.ndarray) -> list[int]:
        """Return the rows of all positions in buckets covering the box ``[lo, hi]``.

        Every position inside the box is returned; positions near the box may
        be returned too.
        """
        ranges = self.axis_ranges(lo, hi)
        n_cells = math.prod(len(r) for r in ranges)

        if n_cells > len(self._buckets):
            # fewer occupied buckets than covering cells, e.g. in high dimensions
            allowed = [r if isinstance(r, range) else frozenset(r) for r in ranges]
            keys = [
                key
                for key in self._buckets
                if all(k in axis for k, axis in zip(key, allowed))
            ]
        else:
            keys = product(*ranges)

        rows: list[int] = []
        for key in keys:
            bucket = self._buckets.get(key)
            if bucket is not None:
                rows.extend(bucket)
        return rows
