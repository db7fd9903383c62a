"""The model class for tickworld.

Core Objects: Model, StandardModel

A model owns an ordered sequence of agents, a tick counter and an update rule.
Each call to ``step()`` advances time by one and then runs the agent callback
over the agents and the model callback once, in the configured order.
"""

# Postpone annotation evaluation to avoid NameError from forward references (PEP 563). Remove once Python 3.14+ is required.
from __future__ import annotations

from collections.abc import Callable, Iterator
from itertools import count
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from tickworld.agent import Agent
from tickworld.errors import (
    AgentOwnershipError,
    ConfigurationError,
    DisposedModelError,
    DuplicateAgentError,
    NotFoundError,
    ReentrantStepError,
)
from tickworld.tickworld_logging import create_module_logger, method_logger

if TYPE_CHECKING:
    from tickworld.world import World

__all__ = ["Model", "StandardModel", "registered_models", "world_for"]

AgentStep = Callable[[Agent, "Model"], Any]
ModelStep = Callable[["Model"], Any]

_tickworld_logger = create_module_logger()

# model id -> world, one entry per live (not yet disposed) model
_registry: dict[int, World] = {}


def world_for(model_id: int) -> World:
    """Return the world registered for the model with the given id.

    Raises:
        KeyError: if no live model has this id
    """
    return _registry[model_id]


def registered_models() -> list[int]:
    """Return the ids of all models that have not been disposed."""
    return list(_registry)


A = TypeVar("A", bound=Agent)


class Model(Generic[A]):
    """Base class for models.

    Type Parameters:
        A: The agent type used in this model

    Attributes:
        id: unique id of this model instance
        time: the number of completed ticks, starts at 0
        world: the world this model delegates spatial queries to
        running: a boolean indicating if ``run_model`` should continue

    Notes:
        Agents added or removed by a callback during ``step()`` take effect
        immediately. An agent pushed mid-pass is stepped later in the same pass;
        an agent removed before its turn is not stepped. An agent that removes
        itself is not revisited, and the agent after it is still stepped.

        If a callback raises, the exception propagates out of ``step()``. Time
        has already advanced and the effects of earlier callbacks in that pass
        are kept; nothing is rolled back.

    """

    _ids: ClassVar[count] = count(0)

    @method_logger(__name__)
    def __init__(
        self,
        world: World,
        *,
        agent_step: AgentStep | None = None,
        model_step: ModelStep | None = None,
        agents_first: bool = True,
    ) -> None:
        """Create a new model.

        Args:
            world: the world answering spatial queries for this model
            agent_step: callback invoked as ``agent_step(agent, model)`` for every agent each tick
            model_step: callback invoked as ``model_step(model)`` once each tick
            agents_first: if True, the agent pass runs before the model callback

        Raises:
            ConfigurationError: if neither callback is given, or a callback is not callable

        """
        if agent_step is None and model_step is None:
            raise ConfigurationError(
                "A model needs an update rule: pass agent_step, model_step or both"
            )
        for name, callback in (("agent_step", agent_step), ("model_step", model_step)):
            if callback is not None and not callable(callback):
                raise ConfigurationError(name, "must be callable")

        self.id: int = next(Model._ids)
        self.running: bool = True
        self._time: int = 0
        self._world = world
        self._agent_step = agent_step
        self._model_step = model_step
        self.agents_first: bool = agents_first

        # two access paths into the same agents: sequence order and id
        self._agents: list[A] = []
        self._agents_by_id: dict[int, A] = {}

        # position of the agent pass over self._agents, None outside a pass
        self._cursor: int | None = None
        self._in_step: bool = False
        self._version: int = 0

        self._disposed: bool = False
        # register last, so a failing constructor leaves no entry behind
        _registry[self.id] = world

    @property
    def time(self) -> int:
        """The number of ticks this model has completed."""
        return self._time

    @property
    def world(self) -> World:
        """The world this model delegates spatial queries to."""
        return self._world

    @property
    def version(self) -> int:
        """Counter that changes whenever the agents or their positions change."""
        return self._version

    @property
    def disposed(self) -> bool:
        """Whether ``dispose()`` has been called."""
        return self._disposed

    def _touch(self) -> None:
        self._version += 1

    # agent registry
    def push(self, agent: A) -> int:
        """Append an agent to the end of the sequence.

        Args:
            agent: The agent to add.

        Returns:
            the number of agents after adding

        Raises:
            DuplicateAgentError: if the agent is already in this model
            AgentOwnershipError: if the agent belongs to another model

        """
        if self._agents_by_id.get(agent.id) is agent:
            raise DuplicateAgentError(agent.id)
        if agent.model is not None:
            raise AgentOwnershipError(agent.id, agent.model.id)

        self._agents.append(agent)
        self._agents_by_id[agent.id] = agent
        agent._model = self
        self._touch()
        _tickworld_logger.debug(
            f"pushed {agent.__class__.__name__} with agent_id {agent.id} to model {self.id}"
        )
        return len(self._agents)

    def remove(self, agent: A) -> None:
        """Remove an agent from the sequence.

        Agents after it shift down by one position.

        Args:
            agent: The agent to remove.

        Raises:
            NotFoundError: if the agent is not in this model

        """
        if self._agents_by_id.get(agent.id) is not agent:
            raise NotFoundError(agent.id)

        index = self._index_of(agent)
        del self._agents[index]
        del self._agents_by_id[agent.id]
        agent._model = None

        # keep the cursor on the first agent that has not been visited yet
        if self._cursor is not None and index < self._cursor:
            self._cursor -= 1

        self._touch()
        _tickworld_logger.debug(
            f"removed agent with agent_id {agent.id} from model {self.id}"
        )

    def remove_all_agents(self) -> None:
        """Remove all agents from the model."""
        # copy first, remove() mutates the sequence
        for agent in list(self._agents):
            self.remove(agent)

    def _index_of(self, agent: A) -> int:
        for index, candidate in enumerate(self._agents):
            if candidate is agent:
                return index
        raise NotFoundError(agent.id)

    @property
    def length(self) -> int:
        """The number of agents in the model."""
        return len(self._agents)

    def __len__(self) -> int:  # noqa: D105
        return len(self._agents)

    @property
    def agents(self) -> Iterator[A]:
        """Iterate over the agents in sequence order."""
        return iter(self._agents)

    @property
    def ids(self) -> Iterator[int]:
        """Iterate over the agent ids in sequence order."""
        return (agent.id for agent in self._agents)

    def includes(self, agent: A) -> bool:
        """Return whether this exact agent is in the model."""
        return self._agents_by_id.get(agent.id) is agent

    def __contains__(self, agent: object) -> bool:  # noqa: D105
        return isinstance(agent, Agent) and self.includes(agent)

    def agent_at(self, index: int) -> A:
        """Return the agent at a position in the sequence.

        Positions shift when agents are removed; use ``get_agent`` to find the
        same agent across ticks.

        Raises:
            IndexError: if the index is out of range
        """
        return self._agents[index]

    def get_agent(self, agent_id: int) -> A:
        """Return the agent with the given id.

        Raises:
            NotFoundError: if no agent with this id is in the model
        """
        try:
            return self._agents_by_id[agent_id]
        except KeyError:
            raise NotFoundError(agent_id) from None

    # spatial queries
    def nearby(self, position, r: float) -> Iterator[A]:
        """Return the agents within distance ``r`` of ``position``.

        See ``World.nearby``.
        """
        return self._world.nearby(self, position, r)

    def neighbors_of(self, agent: A, r: float, include_self: bool = False) -> list[A]:
        """Return the agents within distance ``r`` of an agent's position.

        Args:
            agent: the center agent
            r: search radius, inclusive
            include_self: whether to include the center agent itself
        """
        return [
            other
            for other in self._world.nearby(self, agent.position, r)
            if include_self or other is not agent
        ]

    # time
    def step(self) -> None:
        """Advance time by one tick and apply the update rule.

        Raises:
            ReentrantStepError: if called from inside a callback of this model's step
        """
        if self._in_step:
            raise ReentrantStepError(
                f"step() of model {self.id} called while a step is in progress"
            )

        self._in_step = True
        try:
            self._time += 1
            if self.agents_first:
                self._step_agents()
                if self._model_step is not None:
                    self._model_step(self)
            else:
                if self._model_step is not None:
                    self._model_step(self)
                self._step_agents()
        finally:
            self._in_step = False

    def _step_agents(self) -> None:
        if self._agent_step is None:
            return

        # walk the live sequence, remove() adjusts the cursor
        self._cursor = 0
        try:
            while self._cursor < len(self._agents):
                agent = self._agents[self._cursor]
                self._cursor += 1
                self._agent_step(agent, self)
        finally:
            self._cursor = None

    def run_for(self, ticks: int) -> None:
        """Run the model for a number of ticks."""
        if ticks < 0:
            raise ValueError(f"ticks must be non-negative, got {ticks}")
        for _ in range(ticks):
            self.step()

    def run_while(self, condition: Callable[[Model], bool]) -> None:
        """Run the model while a condition remains true."""
        while condition(self):
            self.step()

    def run_model(self) -> None:
        """Run the model until ``running`` is set to False."""
        while self.running:
            self.step()

    # lifecycle
    def dispose(self) -> None:
        """Release this model's entry in the process-wide registry.

        Raises:
            DisposedModelError: if the model was already disposed
        """
        if self._disposed:
            raise DisposedModelError(self.id)
        del _registry[self.id]
        self._disposed = True
        _tickworld_logger.debug(f"disposed model {self.id}")

    def __enter__(self) -> Model[A]:  # noqa: D105
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:  # noqa: D105
        if not self._disposed:
            self.dispose()

    def __str__(self) -> str:  # noqa: D105
        n = len(self._agents)
        world = _registry.get(self.id, self._world)
        return (
            f"{type(self).__name__}<{type(world).__name__}>: "
            f"{n} agent{'' if n == 1 else 's'}"
        )

    def __repr__(self) -> str:  # noqa: D105
        return f"<{self} (id={self.id}, time={self._time})>"


class StandardModel(Model):
    """The default concrete model type."""
