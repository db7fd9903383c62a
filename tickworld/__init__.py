"""tickworld: a kernel for discrete-time agent-based simulation.

Core Objects: Model, Agent, GridAgent, World, GridWorld.
"""

import datetime

import tickworld.world as world
from tickworld.agent import Agent, ContinuousAgent, GridAgent, next_id
from tickworld.model import Model, StandardModel
from tickworld.world import ContinuousWorld, GridWorld, World

__all__ = [
    "Agent",
    "ContinuousAgent",
    "ContinuousWorld",
    "GridAgent",
    "GridWorld",
    "Model",
    "StandardModel",
    "World",
    "next_id",
    "world",
]

__title__ = "tickworld"
__version__ = "0.1.0"
__license__ = "Apache 2.0"
_this_year = datetime.datetime.now(tz=datetime.UTC).date().year
__copyright__ = f"Copyright {_this_year} tickworld developers"
