import tickworld


class TickworldError(Exception):
    """Base class for all tickworld-specific exceptions.
    It automatically prepends the tickworld version to help with debugging reports.
    """

    def __init__(self, message: str):
        self.tickworld_version = getattr(tickworld, "__version__", "unknown")
        # Store the original message cleanly for programmatic access
        self.original_message = message
        full_message = f"[tickworld {self.tickworld_version}] {message}"
        super().__init__(full_message)


# Model Errors
class ModelError(TickworldError):
    """Generic errors related to model initialization or execution."""


class ConfigurationError(ModelError):
    """Raised when model parameters are invalid or missing."""

    def __init__(self, param_name: str = None, reason: str = None):
        # Allow flexible usage: raise ConfigurationError("Generic message")
        # OR: raise ConfigurationError("agent_step", "must be callable")
        if param_name and reason:
            message = f"Invalid configuration for '{param_name}': {reason}"
            self.param_name = param_name
        else:
            message = param_name if param_name else "Invalid configuration"
            self.param_name = None

        super().__init__(message)


class DisposedModelError(ModelError):
    """Raised when a model that was already disposed is disposed again."""

    def __init__(self, model_id: int):
        self.model_id = model_id
        super().__init__(f"Model {model_id} has already been disposed.")


class ReentrantStepError(ModelError):
    """Raised when step() is called from inside a callback of the same model's step()."""


# Agent Errors
class AgentError(TickworldError):
    """Generic errors related to agent registration or lookup."""


class DuplicateAgentError(AgentError):
    """Raised when pushing an agent that is already present in the model."""

    def __init__(self, agent_id: int):
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} is already present in this model.")


class AgentOwnershipError(AgentError):
    """Raised when pushing an agent that is owned by another model."""

    def __init__(self, agent_id: int, owner_id: int):
        self.agent_id = agent_id
        self.owner_id = owner_id
        super().__init__(f"Agent {agent_id} already belongs to model {owner_id}.")


class NotFoundError(AgentError, LookupError):
    """Raised when removing or looking up an agent that is not in the model."""

    def __init__(self, agent_id: int):
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} is not present in this model.")


# Space Errors
class SpaceError(TickworldError):
    """Generic errors related to worlds and spatial queries."""


class DimensionMismatchError(SpaceError):
    """Raised when a query position and the agents' positions differ in dimension.
    Examples: querying a 3D position against 2D agents, or agents of mixed
    dimensions in the same model.
    """

    def __init__(self, expected: int, got: int, what: str = "position"):
        self.expected = expected
        self.got = got
        message = f"Expected {what} of dimension {expected}, got dimension {got}."
        super().__init__(message)


class InvalidPositionError(SpaceError):
    """Raised when a position is not a usable coordinate vector."""

    def __init__(self, pos, reason: str):
        self.pos = pos
        message = f"Invalid position {pos!r}: {reason}."
        super().__init__(message)


class IncompatibleAgentError(SpaceError):
    """Raised when a spatial query meets an agent that carries no position."""

    def __init__(self, agent):
        self.agent = agent
        message = f"{agent!r} has no position and cannot be located in a world."
        super().__init__(message)
