"""
Goldfish - Strategy Decision-Making Base

Provides the Action record the turn engine executes, the ComboLoop
description the effect resolver iterates, the Strategy base class every
archetype implements, and the registry that maps strategy names to
classes.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import (
    Any, Callable, ClassVar, Dict, List, Optional, Sequence, Tuple, Type,
    TYPE_CHECKING
)

from ..engine.errors import ConfigurationError, Unpayable
from ..engine.mana import Payment, find_payment, order_sources
from ..engine.objects import Card, Permanent
from ..engine.types import ActionType, ManaCostMap

if TYPE_CHECKING:
    from ..engine.objects import Effect
    from ..engine.win import ComboLine
    from ..engine.zones import GameState


@dataclass
class Action:
    """Represents an action the strategy wants the engine to take."""
    action_type: ActionType
    card: Optional[Any] = None      # Card in hand, or Permanent to activate/sacrifice
    targets: List[Any] = field(default_factory=list)
    source: Optional[Any] = None    # Sacrifice outlet (Permanent, or Card in graveyard)
    loop: Optional['ComboLoop'] = None

    def __repr__(self) -> str:
        parts = [f"Action({self.action_type.name.lower()}"]
        if self.card is not None:
            parts.append(f", card={self.card.name}")
        if self.targets:
            parts.append(f", targets={[t.name for t in self.targets]}")
        if self.source is not None:
            parts.append(f", source={self.source.name}")
        if self.loop is not None:
            parts.append(f", loop={self.loop.name}")
        parts.append(")")
        return "".join(parts)


StepBuilder = Callable[['GameState'], Optional[Action]]


@dataclass
class ComboLoop:
    """
    A repeatable sequence of actions.

    Attributes:
        name: Name used in the trace
        precondition: The loop body may start only while this holds
        steps: Builders producing each action from the current state;
               a builder returning None stops the loop
    """
    name: str
    precondition: Callable[['GameState'], bool]
    steps: List[StepBuilder] = field(default_factory=list)


# =============================================================================
# STRATEGY BASE CLASS
# =============================================================================

class Strategy(ABC):
    """
    Base class for archetype strategies.

    Subclasses encode a fixed, hand-authored priority order for one deck.
    Every decision must be a deterministic function of the game state so a
    seeded batch replays identically.
    """

    name: ClassVar[str] = ""
    decklist: ClassVar[List[Tuple[int, str]]] = []
    sideboard: ClassVar[List[Tuple[int, str]]] = []

    @classmethod
    def deck_names(cls) -> List[str]:
        """One name per card of the default main deck."""
        return [name for count, name in cls.decklist for _ in range(count)]

    @classmethod
    def sideboard_names(cls) -> List[str]:
        return [name for count, name in cls.sideboard for _ in range(count)]

    # --- Required decisions ---

    @abstractmethod
    def decide_mulligan(self, state: 'GameState', hand: Sequence[Card],
                        mulligans: int) -> bool:
        """
        Decide whether to keep an opening hand.

        Args:
            state: Game state during setup
            hand: The seven cards drawn
            mulligans: Mulligans already taken

        Returns:
            True to keep, False to mulligan
        """
        pass

    @abstractmethod
    def rank_hand(self, state: 'GameState', hand: Sequence[Card]) -> List[Card]:
        """Order a hand from the card most worth keeping to the least."""
        pass

    @abstractmethod
    def decide_action(self, state: 'GameState') -> Optional[Action]:
        """Return the next action to take, or None to pass."""
        pass

    @abstractmethod
    def win_lines(self) -> List['ComboLine']:
        """The combo lines the win detector checks for this archetype."""
        pass

    # --- Decisions with defaults ---

    def loss_lines(self) -> List['ComboLine']:
        """States in which the combo can no longer be assembled. Default: none."""
        return []

    def decide_bottom(self, state: 'GameState', hand: Sequence[Card], n: int) -> List[Card]:
        """Choose n cards to put on the bottom, in the order they go there."""
        if n <= 0:
            return []
        worst_first = list(reversed(self.rank_hand(state, hand)))
        return worst_first[:n]

    def decide_discard(self, state: 'GameState', hand: Sequence[Card], n: int) -> List[Card]:
        """Choose n cards to discard at end of turn."""
        return self.decide_bottom(state, hand, n)

    def decide_targets(self, state: 'GameState', effect: 'Effect',
                       legal_targets: Sequence[Any]) -> List[Any]:
        """Order legal targets by preference. Default: battlefield order."""
        return list(legal_targets)

    def decide_search(self, state: 'GameState', effect: 'Effect',
                      candidates: Sequence[Card]) -> Optional[Card]:
        """Pick a card for a search or look effect. Default: the first one."""
        return candidates[0] if candidates else None

    def decide_pile(self, state: 'GameState', effect: 'Effect',
                    library: Sequence[Card]) -> List[Card]:
        """
        Pick up to ``effect.amount`` cards from the library for Intuition.

        The first card goes to hand, the others to the graveyard. The
        library is passed with every copy so the pile can hold duplicates.
        Default: the top cards.
        """
        return list(library[:effect.amount])

    def decide_mana_sources(self, cost: ManaCostMap, available: Sequence[Any]) -> List[Any]:
        """Order mana sources for the resolver: least flexible first."""
        return order_sources(available)

    # --- Helpers shared by archetypes ---

    def payment_for(self, state: 'GameState', card: Card) -> Optional[Payment]:
        """Find a payment for casting ``card`` from hand, or None."""
        cost = state.effective_cost(card)
        sources = self.decide_mana_sources(cost, state.mana_sources(exclude=card))
        try:
            return find_payment(cost, sources, state.floating, presorted=True)
        except Unpayable:
            return None

    def castable(self, state: 'GameState',
                 predicate: Optional[Callable[[Card], bool]] = None) -> List[Card]:
        """Distinct nonland cards in hand that can be paid for right now."""
        found: List[Card] = []
        for card in state.hand:
            if card.is_land or any(card is c for c in found):
                continue
            if predicate is not None and not predicate(card):
                continue
            if self.payment_for(state, card) is not None:
                found.append(card)
        return found

    def cheapest(self, cards: Sequence[Card]) -> Optional[Card]:
        return min(cards, key=lambda c: c.mana_value) if cards else None

    @staticmethod
    def land_play_key(card: Card) -> Tuple:
        """Higher is better: untapped, more colors, more uses."""
        uses = card.mana_uses if card.mana_uses is not None else 1000
        return (not card.enters_tapped, len(card.produces), uses, card.mana_amount)

    def land_to_play(self, state: 'GameState') -> Optional[Card]:
        if state.lands_played_this_turn >= state.land_limit:
            return None
        lands = [c for c in state.hand if c.is_land]
        return max(lands, key=self.land_play_key) if lands else None

    def play_land(self, state: 'GameState') -> Optional[Action]:
        land = self.land_to_play(state)
        if land is None:
            return None
        return Action(ActionType.PLAY_LAND, card=land)

    @staticmethod
    def cast(card: Card, *targets: Permanent) -> Action:
        return Action(ActionType.CAST, card=card, targets=list(targets))

    @staticmethod
    def is_mana_dork(card: Card) -> bool:
        return card.is_creature and bool(card.produces) and not card.mana_from_hand

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


# =============================================================================
# REGISTRY
# =============================================================================

def _registry() -> Dict[str, Type[Strategy]]:
    from .aluren import Aluren
    from .pattern_hulk import PatternHulk
    from .pattern_rector import PatternRector
    return {cls.name: cls for cls in (PatternRector, PatternHulk, Aluren)}


def available_strategies() -> List[str]:
    return sorted(_registry())


def get_strategy(name: str) -> Strategy:
    """
    Create a strategy by name.

    Raises:
        ConfigurationError: If no strategy has that name
    """
    key = name.strip().lower().replace("_", "-").replace(" ", "-")
    strategies = _registry()
    if key not in strategies:
        raise ConfigurationError(
            f"Unknown strategy '{name}'. Available: {', '.join(sorted(strategies))}")
    return strategies[key]()
