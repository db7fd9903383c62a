"""Protocols and composition mixins for positioned agents.

This module provides:
- ``Locatable``: a Protocol defining the position interface worlds rely on
- ``HasPosition``: a composition mixin providing a writable position
- ``tracks_moves``: whether a world may trust an object to report its moves

Worlds only ever read ``agent.position``. Any object with a ``position``
attribute satisfies ``Locatable``; ``HasPosition`` additionally reports every
assignment through the ``_on_position_changed`` hook, which is what lets a
world keep a cached spatial index for the agents of a model.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

# Type alias for positions.
# - tuple[int, ...] / tuple[float, ...] / list as given by the user
# - NDArray as stored on agents
PositionLike = tuple[int, ...] | tuple[float, ...] | list | NDArray[np.number]


@runtime_checkable
class Locatable(Protocol):
    """Protocol for any object that has a position in a world.

    Examples:
        Runtime checking::

            from tickworld import GridAgent
            from tickworld.protocols import Locatable

            assert isinstance(GridAgent((3, 4)), Locatable)

    """

    @property
    def position(self) -> PositionLike | None:
        """The position of this object.

        Returns:
            The position as a 1-D numpy array, or None if the object is not placed.

        """
        ...


def reports_moves(setter):
    """Mark a ``position`` setter that always ends in ``HasPosition``'s setter.

    Subclasses that override the setter (to convert the value, say) and then
    call ``HasPosition.position.fset`` decorate the new setter with this.
    """
    setter._reports_moves = True
    return setter


class HasPosition:
    """Mixin providing a writable ``position`` attribute.

    Assigned positions are copied into a read-only numpy array, so
    ``agent.position[0] = 3`` raises and every move has to go through
    assignment::

        agent.position = agent.position + (1, 0)

    Notes:
        Base ``Agent`` does NOT include this mixin. Only agents that live in a
        world mix it in (``GridAgent``, ``ContinuousAgent``).

    """

    _position: NDArray[np.number] | None = None

    @property
    def position(self) -> NDArray[np.number] | None:
        """The position of this object in its world."""
        return self._position

    @position.setter
    @reports_moves
    def position(self, value: PositionLike | None) -> None:
        if value is not None:
            if not isinstance(value, (tuple, list, np.ndarray)):
                raise TypeError(
                    f"position must be a tuple, list or numpy array, got {type(value).__name__}"
                )
            value = np.array(value)
            value.setflags(write=False)
        self._position = value
        self._on_position_changed()

    def _on_position_changed(self) -> None:
        """Hook called after every position assignment."""


def tracks_moves(obj) -> bool:
    """Return whether every move of ``obj`` is reported through ``_on_position_changed``.

    True only when the ``position`` property of its class reads the stored
    ``HasPosition`` value and its setter is marked with ``reports_moves``. A
    derived or recomputed position can change without an assignment.
    """
    prop = getattr(type(obj), "position", None)
    return (
        isinstance(prop, property)
        and prop.fget is HasPosition.position.fget
        and getattr(prop.fset, "_reports_moves", False)
    )
