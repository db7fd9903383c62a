"""The world contract and the machinery shared by indexed worlds.

A world answers one question for a model: which of its agents lie within
distance ``r`` of a position. Worlds hold no model state of their own; they
read ``model.agents`` and each agent's ``position`` on every call. Indexed
worlds may keep a spatial index derived from one model's agents, which is
rebuilt as soon as the model, its agent sequence or any agent position changes.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from tickworld.errors import (
    DimensionMismatchError,
    IncompatibleAgentError,
    InvalidPositionError,
)
from tickworld.protocols import tracks_moves
from tickworld.tickworld_logging import create_module_logger

if TYPE_CHECKING:
    from tickworld.agent import Agent
    from tickworld.model import Model

_tickworld_logger = create_module_logger()

MAX_DIMENSION = 100

# Minkowski order for each supported metric
METRICS: dict[str, float] = {
    "chebyshev": np.inf,
    "euclidean": 2,
    "manhattan": 1,
}


class World:
    """Base class for all worlds.

    Attributes:
        periodic (bool): whether the axes wrap around
    """

    periodic: bool = False

    def nearby(self, model: Model, position, r: float) -> Iterator[Agent]:
        """Return the agents of ``model`` within distance ``r`` (inclusive) of ``position``.

        The order of the returned agents carries no meaning.
        """
        raise NotImplementedError


@dataclass
class Snapshot:
    """The agents of a model, their positions and the index built over them."""

    key: tuple
    agents: list
    positions: np.ndarray
    extent: np.ndarray | None
    index: Any
    reusable: bool

    @property
    def dimension(self) -> int:  # noqa: D102
        return self.positions.shape[1]


class IndexedWorld(World):
    """A world that answers ``nearby`` from an index over a snapshot of the model.

    Subclasses implement ``_build_index`` and ``_query_index``; validation,
    wrapping, caching and the exact distance test live here.

    Attributes:
        periodic (bool): whether the axes wrap around
        dimension (int | None): the fixed dimension of the world, None if inferred
        extent (np.ndarray | None): the per-axis size used for wrapping, None if inferred
        metric (str): one of ``METRICS``
    """

    def __init__(
        self,
        periodic: bool = True,
        *,
        dimension: int | None = None,
        extent: float | Sequence[float] | None = None,
        metric: str = "chebyshev",
    ) -> None:
        """Initialise the world.

        Args:
            periodic: whether the axes wrap around at ``extent``
            dimension: fix the dimension of positions; inferred from the agents when None
            extent: size of every axis (scalar) or of each axis (sequence); used
                only when periodic; when None it is inferred from the agents at the
                first successful query and kept from then on
            metric: "chebyshev" (per-axis box test), "euclidean" or "manhattan"
        """
        self.periodic = periodic
        self.dimension = dimension
        self.extent = None if extent is None else np.asarray(extent, dtype=float)
        self.metric = metric
        self._validate_parameters()
        self._p = METRICS[metric]
        self._cache: Snapshot | None = None
        self._inferred_extent: np.ndarray | None = None

    def _validate_parameters(self):
        if not isinstance(self.periodic, bool):
            raise ValueError("Periodic must be a boolean.")
        if self.dimension is not None and not (
            isinstance(self.dimension, int) and 1 <= self.dimension <= MAX_DIMENSION
        ):
            raise ValueError(
                f"Dimension must be an integer between 1 and {MAX_DIMENSION}."
            )
        if self.extent is not None:
            if self.extent.ndim > 1 or not np.all(self.extent > 0):
                raise ValueError("Extent must be a positive number or a list of them.")
            if (
                self.extent.ndim == 1
                and self.dimension is not None
                and self.extent.size != self.dimension
            ):
                raise ValueError(
                    f"Extent has {self.extent.size} axes but the world has dimension {self.dimension}."
                )
        if self.metric not in METRICS:
            raise ValueError(
                f"Unknown metric '{self.metric}'. Use one of {sorted(METRICS)}."
            )

    def nearby(self, model: Model, position, r: float) -> Iterator[Agent]:
        """Return the agents of ``model`` within distance ``r`` (inclusive) of ``position``.

        Args:
            model: the model whose current agents are searched
            position: the center of the query
            r: the search radius

        Returns:
            an iterator over the agents found, in no particular order

        Raises:
            ValueError: if r is negative or not finite, or if a periodic world
                without an extent has to infer it from negative coordinates
            InvalidPositionError: if position is not a numeric vector of dimension 1 to 100
            IncompatibleAgentError: if an agent of the model has no position
            DimensionMismatchError: if the dimensions of position, the agents and the world disagree
        """
        if not math.isfinite(r) or r < 0:
            raise ValueError(f"r must be a finite, non-negative number, got {r}")
        query = as_position(position)
        if self.dimension is not None and query.size != self.dimension:
            raise DimensionMismatchError(self.dimension, query.size, "query position")

        parameters = self._index_parameters(r)
        snapshot = self._snapshot(model, parameters)
        if snapshot is None:
            return iter(())
        if query.size != snapshot.dimension:
            raise DimensionMismatchError(
                snapshot.dimension, query.size, "query position"
            )
        self._commit(snapshot, parameters)

        if self.periodic:
            query = wrap(query, snapshot.extent)
        rows = self._query_index(snapshot, query, r)
        return iter([snapshot.agents[row] for row in rows])

    def distances(self, positions: np.ndarray, query: np.ndarray, extent) -> np.ndarray:
        """Return the distance from ``query`` to each row of ``positions``.

        Both must already be wrapped when the world is periodic.
        """
        deltas = np.abs(positions - query)
        if self.periodic:
            deltas = np.minimum(deltas, extent - deltas)
        return np.linalg.norm(deltas, ord=self._p, axis=1)

    def _index_parameters(self, r: float) -> tuple:
        """Parameters beyond the model state that an index for radius ``r`` depends on."""
        return ()

    def _commit(self, snapshot: Snapshot, parameters: tuple) -> None:
        """Keep what the first successful query decided about the world."""
        if self.periodic and self.extent is None and self._inferred_extent is None:
            self._inferred_extent = snapshot.extent
            _tickworld_logger.debug(f"inferred extent {snapshot.extent.tolist()}")

    def _snapshot(self, model: Model, parameters: tuple) -> Snapshot | None:
        key = (model.id, model.version, parameters)
        inferred = self._inferred_extent
        cached = self._cache
        if (
            cached is not None
            and cached.reusable
            and cached.key == key
            and (inferred is None or np.array_equal(cached.extent, inferred))
        ):
            return cached

        # take the agents once, the model may change while the index is in use
        agents = list(model.agents)
        if not agents:
            self._cache = None
            return None

        positions = positions_of(agents)
        if self.dimension is not None and positions.shape[1] != self.dimension:
            raise DimensionMismatchError(
                self.dimension, positions.shape[1], "agent position"
            )

        extent = None
        if self.periodic:
            extent = self._extent_for(positions)
            positions = wrap(positions, extent)

        snapshot = Snapshot(
            key=key,
            agents=agents,
            positions=positions,
            extent=extent,
            index=self._build_index(positions, extent, parameters),
            reusable=all(tracks_moves(agent) for agent in agents),
        )
        self._cache = snapshot
        _tickworld_logger.debug(
            f"built {type(self).__name__} index for model {model.id} over {len(agents)} agents"
        )
        return snapshot

    def _extent_for(self, positions: np.ndarray) -> np.ndarray:
        dimension = positions.shape[1]
        extent = self.extent if self.extent is not None else self._inferred_extent
        if extent is None:
            if np.any(positions < 0):
                raise ValueError(
                    "Cannot infer the extent of a periodic world from negative "
                    "coordinates; configure an extent."
                )
            return np.maximum(np.floor(positions.max(axis=0)) + 1, 1.0)
        if extent.ndim == 0:
            return np.full(dimension, float(extent))
        if extent.size != dimension:
            raise DimensionMismatchError(extent.size, dimension, "agent position")
        return extent

    def _build_index(
        self, positions: np.ndarray, extent: np.ndarray | None, parameters: tuple
    ) -> Any:
        raise NotImplementedError

    def _query_index(self, snapshot: Snapshot, query: np.ndarray, r: float) -> Sequence[int]:
        raise NotImplementedError


def as_position(position) -> np.ndarray:
    """Convert a query position into a float vector, validating it.

    Raises:
        InvalidPositionError: if the position is not a finite numeric vector of dimension 1 to 100
    """
    try:
        array = np.asarray(position, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidPositionError(position, "not a numeric vector") from exc

    if array.ndim != 1:
        raise InvalidPositionError(position, "must be a 1-D vector")
    if array.size < 1:
        raise InvalidPositionError(position, "dimension must be at least 1")
    if array.size > MAX_DIMENSION:
        raise InvalidPositionError(
            position, f"dimension must be at most {MAX_DIMENSION}"
        )
    if not np.all(np.isfinite(array)):
        raise InvalidPositionError(position, "coordinates must be finite")
    return array


def positions_of(agents: Sequence[Agent]) -> np.ndarray:
    """Stack the positions of agents into an (N, D) float array.

    Raises:
        IncompatibleAgentError: if an agent has no position
        InvalidPositionError: if a position is not a numeric vector
        DimensionMismatchError: if the agents' positions differ in dimension
    """
    raw = []
    for agent in agents:
        position = getattr(agent, "position", None)
        if position is None:
            raise IncompatibleAgentError(agent)
        raw.append(position)

    rows = []
    for agent, position in zip(agents, raw):
        try:
            row = np.asarray(position, dtype=float)
        except (TypeError, ValueError) as exc:
            raise InvalidPositionError(position, "not a numeric vector") from exc
        if row.ndim != 1:
            raise InvalidPositionError(position, "must be a 1-D vector")
        if row.size < 1:
            raise InvalidPositionError(position, "dimension must be at least 1")
        if rows and row.size != rows[0].size:
            raise DimensionMismatchError(
                rows[0].size, row.size, f"position of {agent!r}"
            )
        rows.append(row)
    return np.stack(rows)


def wrap(positions: np.ndarray, extent: np.ndarray) -> np.ndarray:
    """Wrap positions into ``[0, extent)`` on every axis."""
    wrapped = np.mod(positions, extent)
    # np.mod of a tiny negative number can round up to extent itself
    return np.where(wrapped >= extent, 0.0, wrapped)
