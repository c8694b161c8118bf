"""Goldfish Engine - Error Taxonomy

ConfigurationError is fatal and raised before any game starts. DeckOut,
Unpayable and IllegalAction are raised inside a game and handled by the
engine: DeckOut becomes a loss outcome, the other two reject the action the
strategy proposed.
"""


class GoldfishError(Exception):
    """Base class for all goldfish errors."""


class ConfigurationError(GoldfishError, ValueError):
    """Unknown card, wrong deck size, unknown strategy or bad config value."""


class DeckOut(GoldfishError):
    """A draw was attempted from an empty library."""

    def __init__(self, turn: int):
        super().__init__(f"Tried to draw from an empty library on turn {turn}")
        self.turn = turn


class Unpayable(GoldfishError):
    """The available mana sources cannot pay a cost."""

    def __init__(self, cost, message: str = ""):
        super().__init__(message or f"Cannot pay {cost}")
        self.cost = cost


class IllegalAction(GoldfishError):
    """A strategy proposed an action the rules do not allow."""
