"""
Shared pytest fixtures for the goldfish tests.

Provides strategy instances, deterministic configs and an engine factory.
State building helpers live in helpers.py.
"""

import pytest

from ..ai.aluren import Aluren
from ..ai.pattern_hulk import PatternHulk
from ..ai.pattern_rector import PatternRector
from ..engine.game import GameConfig
from .helpers import Engine


@pytest.fixture
def pattern_rector():
    return PatternRector()


@pytest.fixture
def pattern_hulk():
    return PatternHulk()


@pytest.fixture
def aluren():
    return Aluren()


@pytest.fixture
def ordered_config():
    """A config that keeps the library in the given order."""
    return GameConfig(shuffle=False, strict=True)


@pytest.fixture
def engine_for():
    """
    Factory building an Engine around a state.

    Usage:
        def test_something(engine_for, pattern_rector):
            engine = engine_for(build_state(hand=["Forest"]), pattern_rector)
    """
    def make(state, strategy, **kwargs) -> Engine:
        return Engine(state, strategy, **kwargs)
    return make
