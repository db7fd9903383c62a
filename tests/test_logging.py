"""Tests for tickworld logging helpers."""

import logging

import pytest

from tickworld import Agent, GridAgent, GridWorld, Model
from tickworld.tickworld_logging import (
    DEBUG,
    INFO,
    LOGGER_NAME,
    create_module_logger,
    function_logger,
    get_module_logger,
    log_to_stderr,
    method_logger,
)


@pytest.fixture
def tickworld_logger():
    """Reset the package logger around a test."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)


def test_module_logger_names():
    assert create_module_logger("some.module").name == f"{LOGGER_NAME}.some.module"
    assert create_module_logger().name == f"{LOGGER_NAME}.{__name__}"
    assert get_module_logger("x") is logging.getLogger(f"{LOGGER_NAME}.x")


def test_log_to_stderr_is_idempotent(tickworld_logger):
    log_to_stderr(INFO)
    log_to_stderr(DEBUG)
    stderr_handlers = [
        h for h in tickworld_logger.handlers if getattr(h, "_tickworld_stderr", False)
    ]
    assert len(stderr_handlers) == 1
    assert stderr_handlers[0].level == DEBUG
    assert tickworld_logger.level == DEBUG


def test_log_to_stderr_root_level(tickworld_logger):
    root_level = logging.getLogger().level
    log_to_stderr(pass_root_logger_level=True)
    assert tickworld_logger.level == root_level


def test_method_and_function_logger(caplog):
    class Thing:
        @method_logger(__name__)
        def act(self, x, y=1):
            return x + y

    @function_logger(__name__)
    def add(a, b):
        return a + b

    with caplog.at_level(DEBUG, logger=LOGGER_NAME):
        assert Thing().act(1, y=2) == 3
        assert add(2, 3) == 5

    messages = [record.getMessage() for record in caplog.records]
    assert any("Thing:" in m and "act" in m and "{'y': 2}" in m for m in messages)
    assert any(m.startswith("calling add with (2, 3)") for m in messages)


def test_model_logs_agent_registry(caplog):
    with caplog.at_level(DEBUG, logger=LOGGER_NAME):
        with Model(GridWorld(), model_step=lambda m: None) as model:
            agent = Agent()
            model.push(agent)
            model.remove(agent)

    messages = [record.getMessage() for record in caplog.records]
    assert any("Model.__init__" in m for m in messages)
    assert any(f"pushed Agent with agent_id {agent.id}" in m for m in messages)
    assert any(f"removed agent with agent_id {agent.id}" in m for m in messages)
    assert any(f"disposed model {model.id}" in m for m in messages)


def test_world_logs_index_builds(caplog):
    with caplog.at_level(DEBUG, logger=LOGGER_NAME):
        with Model(GridWorld(), model_step=lambda m: None) as model:
            model.push(GridAgent((0, 0)))
            list(model.nearby((0, 0), 1))

    messages = [record.getMessage() for record in caplog.records]
    assert any("built GridWorld index" in m for m in messages)
    assert any("inferred extent" in m for m in messages)
