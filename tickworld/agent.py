"""Agent related classes.

Core Objects: Agent, GridAgent, ContinuousAgent

Every agent receives an id from a single process-wide counter when it is
created. Ids start at 0, increase strictly in creation order and are never
reused, whichever model (if any) later holds the agent.
"""

# Postpone annotation evaluation to avoid NameError from forward references (PEP 563). Remove once Python 3.14+ is required.
from __future__ import annotations

from itertools import count
from typing import TYPE_CHECKING, ClassVar

import numpy as np

from tickworld.protocols import HasPosition, PositionLike, reports_moves

if TYPE_CHECKING:
    from tickworld.model import Model

__all__ = ["Agent", "ContinuousAgent", "GridAgent", "next_id"]


class Agent:
    """Base class for a model agent.

    Agents are opaque payloads for the scheduler: a model only needs their id.
    Equality and hashing are identity based.

    Attributes:
        id (int): the unique id of the agent, assigned at construction
        model (Model | None): the model currently holding the agent

    """

    # single allocation point for the whole process
    _ids: ClassVar[count] = count(0)

    def __init__(self, *args, **kwargs) -> None:
        """Create a new agent.

        Args:
            args: passed on to super
            kwargs: passed on to super
        """
        super().__init__(*args, **kwargs)
        self._id: int = next(Agent._ids)
        self._model: Model | None = None

    @property
    def id(self) -> int:
        """The unique id of this agent."""
        return self._id

    @property
    def model(self) -> Model | None:
        """The model this agent belongs to, None if it is not in a model."""
        return self._model

    def remove(self) -> None:
        """Remove the agent from the model it belongs to."""
        if self._model is not None:
            self._model.remove(self)

    def _on_position_changed(self) -> None:
        if self._model is not None:
            self._model._touch()

    def __repr__(self) -> str:  # noqa: D105
        return f"{type(self).__name__}(id={self._id})"


class GridAgent(Agent, HasPosition):
    """Agent for use with a ``GridWorld``.

    Attributes:
        position (np.ndarray): the position of the agent, a 1-D vector

    """

    def __init__(self, position: PositionLike | None = None) -> None:
        """Create a new grid agent.

        Args:
            position: initial position of the agent
        """
        super().__init__()
        self.position = position

    def __repr__(self) -> str:  # noqa: D105
        return f"{type(self).__name__}(id={self.id}, position={self.position!r})"


class ContinuousAgent(GridAgent):
    """Agent for use with a ``ContinuousWorld``."""

    @HasPosition.position.setter
    @reports_moves
    def position(self, value: PositionLike | None) -> None:
        # positions in continuous space are always floats
        if isinstance(value, (tuple, list, np.ndarray)):
            value = np.asarray(value, dtype=float)
        HasPosition.position.fset(self, value)


def next_id() -> int:
    """Allocate and return the next agent id.

    The allocator is shared with ``Agent.__init__``, so the returned id will not
    be used by any agent.
    """
    return next(Agent._ids)
