"""Core engine components - lazy imports to avoid circular dependencies"""

# Core types can be imported directly
from .types import (
    Mana, CardType, Capability, EffectKind, SearchFilter, Zone, StepType,
    ActionType, OutcomeReason
)
from .errors import (
    GoldfishError, ConfigurationError, DeckOut, Unpayable, IllegalAction
)


# Other imports are lazy to avoid circular dependencies
def __getattr__(name):
    """Lazy import for engine components."""
    if name == 'Game':
        from .game import Game
        return Game
    elif name == 'GameConfig':
        from .game import GameConfig
        return GameConfig
    elif name == 'Outcome':
        from .game import Outcome
        return Outcome
    elif name == 'GameState':
        from .zones import GameState
        return GameState
    elif name == 'Card':
        from .objects import Card
        return Card
    elif name == 'Permanent':
        from .objects import Permanent
        return Permanent
    elif name == 'find_payment':
        from .mana import find_payment
        return find_payment
    elif name == 'EffectResolver':
        from .effects import EffectResolver
        return EffectResolver
    elif name == 'TurnEngine':
        from .turns import TurnEngine
        return TurnEngine
    elif name == 'WinDetector':
        from .win import WinDetector
        return WinDetector
    elif name == 'SimulationRunner':
        from .simulation import SimulationRunner
        return SimulationRunner
    elif name == 'simulate':
        from .simulation import simulate
        return simulate
    raise AttributeError(f"module 'engine' has no attribute {name!r}")
