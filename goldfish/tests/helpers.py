"""
Helpers for building game states in tests.

- cards(): catalog lookups
- build_state(): a GameState with named cards placed in zones
- Engine: resolver, detector and turn engine wired around a state
- ScriptedStrategy: a strategy that plays a fixed list of actions
"""

import random
from typing import Iterable, List

from ..ai.strategy import Strategy
from ..cards.catalog import get_card
from ..engine.effects import EffectResolver
from ..engine.objects import Card
from ..engine.turns import TurnEngine
from ..engine.types import Zone
from ..engine.win import WinDetector
from ..engine.zones import GameState


def cards(*names: str) -> List[Card]:
    """Catalog cards for the given names, one per name."""
    return [get_card(name) for name in names]


def build_state(
    library: Iterable[str] = (),
    hand: Iterable[str] = (),
    battlefield: Iterable[str] = (),
    graveyard: Iterable[str] = (),
    sideboard: Iterable[str] = (),
    seed: int = 0,
    life: int = 20,
    verbose: bool = False
) -> GameState:
    """
    Build a GameState with named cards placed in zones.

    Library order is preserved (first name is the top). Permanents start
    untapped and free of summoning sickness.
    """
    placed = list(hand) + list(battlefield) + list(graveyard)
    state = GameState(cards(*placed, *library), rng=random.Random(seed),
                      starting_life=life, verbose=verbose,
                      sideboard=cards(*sideboard))
    for name in hand:
        state.move(get_card(name), Zone.LIBRARY, Zone.HAND)
    for name in battlefield:
        permanent = state.move(get_card(name), Zone.LIBRARY, Zone.BATTLEFIELD)
        permanent.tapped = False
        permanent.summoning_sick = False
    for name in graveyard:
        state.move(get_card(name), Zone.LIBRARY, Zone.GRAVEYARD)
    return state


class Engine:
    """State plus the resolver, detector and turn engine wired around it."""

    def __init__(self, state: GameState, strategy, strict: bool = True,
                 iteration_cap: int = 100):
        self.state = state
        self.strategy = strategy
        self.detector = WinDetector(strategy.win_lines(), losses=strategy.loss_lines())
        self.resolver = EffectResolver(state, strategy, iteration_cap=iteration_cap,
                                       win_check=self.detector.is_won)
        self.turns = TurnEngine(state, strategy, self.resolver, self.detector,
                                strict=strict)

    def execute(self, action):
        self.turns.execute(action)


class ScriptedStrategy(Strategy):
    """
    Strategy for engine tests: mulligans a fixed number of times, ranks the
    hand in its given order and plays a fixed list of actions.
    """

    name = "scripted"

    def __init__(self, mulligans: int = 0, actions: Iterable = ()):
        self.mulligans = mulligans
        self.actions = list(actions)

    def decide_mulligan(self, state, hand, mulligans):
        return mulligans >= self.mulligans

    def rank_hand(self, state, hand):
        return list(hand)

    def decide_action(self, state):
        return self.actions.pop(0) if self.actions else None

    def win_lines(self):
        return []
