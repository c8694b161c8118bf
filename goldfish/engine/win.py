"""Goldfish Engine - Win Detector

Win and loss checks run after every resolved action and every drained
effect queue, the way state-based actions are checked whenever a player
would receive priority.

A combo win is expressed as one or more ComboLines. Each line is a
conjunction of predicates over the game state; the game is won as soon as
any line is fully satisfied, or the opponent has taken lethal damage.
An archetype may also name loss lines: states from which its combo can
no longer be assembled.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from .objects import Permanent
from .types import Capability, OutcomeReason
from .zones import GameState


Predicate = Callable[[GameState], bool]
PermanentFilter = Callable[[Permanent], bool]


# =============================================================================
# Predicate helpers
# =============================================================================

def named(*names: str) -> PermanentFilter:
    """Permanent filter matching any of the given card names."""
    return lambda p: p.name in names


def with_capability(capability: Capability) -> PermanentFilter:
    """Permanent filter matching a capability flag."""
    return lambda p: p.card.has(capability)


def count_permanents(state: GameState, match: PermanentFilter) -> int:
    return state.battlefield.count(match)


def has_permanent(match: PermanentFilter, at_least: int = 1) -> Predicate:
    """At least ``at_least`` permanents match."""
    return lambda state: count_permanents(state, match) >= at_least


def attached(aura: PermanentFilter, host: PermanentFilter) -> Predicate:
    """An aura matching ``aura`` is attached to a host matching ``host``."""
    def check(state: GameState) -> bool:
        return any(
            p.attached_to is not None and aura(p) and host(p.attached_to)
            for p in state.battlefield
        )
    return check


def in_graveyard(name: str, at_least: int = 1) -> Predicate:
    return lambda state: state.graveyard.count(lambda c: c.name == name) >= at_least


def damage_at_least(amount: int) -> Predicate:
    return lambda state: state.damage_dealt >= amount


def at_least(count: Callable[[GameState], int], n: int) -> Predicate:
    """Wrap a counting function into a threshold predicate."""
    return lambda state: count(state) >= n


# =============================================================================
# Combo lines
# =============================================================================

@dataclass(frozen=True)
class ComboLine:
    """
    A conjunction of predicates describing one way to win.

    Attributes:
        name: Human readable description used in the trace
        predicates: All must hold at the same time
    """
    name: str
    predicates: Tuple[Predicate, ...]

    def is_satisfied(self, state: GameState) -> bool:
        return all(predicate(state) for predicate in self.predicates)


class WinDetector:
    """
    Decides whether a game is over.

    Args:
        lines: Archetype combo lines
        opponent_life: Damage needed for a damage-based win
        losses: Archetype loss lines, checked once no win holds
    """

    def __init__(self, lines: Sequence[ComboLine], opponent_life: int = 20,
                 losses: Sequence[ComboLine] = ()):
        self.lines: List[ComboLine] = list(lines)
        self.losses: List[ComboLine] = list(losses)
        self.opponent_life = opponent_life
        self.winning_line: Optional[ComboLine] = None
        self.losing_line: Optional[ComboLine] = None

    def check(self, state: GameState) -> Optional[OutcomeReason]:
        """
        Check the state for a terminal condition.

        Returns:
            LIFE_LOSS if our life is 0 or less, COMBO_WIN if a line is
            satisfied or the opponent took lethal damage, NO_COMBO if a
            loss line holds, otherwise None
        """
        if state.life_total <= 0:
            return OutcomeReason.LIFE_LOSS
        if state.damage_dealt >= self.opponent_life:
            return OutcomeReason.COMBO_WIN
        for line in self.lines:
            if line.is_satisfied(state):
                self.winning_line = line
                return OutcomeReason.COMBO_WIN
        for line in self.losses:
            if line.is_satisfied(state):
                self.losing_line = line
                return OutcomeReason.NO_COMBO
        return None

    def is_won(self, state: GameState) -> bool:
        verdict = self.check(state)
        return verdict is not None and verdict.is_win
