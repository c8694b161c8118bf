"""
Goldfish - Pattern Hulk archetype.

The Pattern Rector engine tuned around Veteran Explorer ramp and a
sacrifice-outlet kill. It wins through the same sacrifice chains as
Pattern Rector, and concedes once the library no longer holds the
pieces any of its kills needs.
"""

from typing import List, Optional, Sequence, TYPE_CHECKING

from ..engine.objects import Card
from ..engine.types import ActionType, OutletKind
from ..engine.win import ComboLine
from .pattern_rector import (
    EXPLORER, PATTERN, RECTOR, ComboStatus, PatternRector,
    is_repeatable_outlet, pattern_on_redundant_host
)
from .strategy import Action

if TYPE_CHECKING:
    from ..engine.objects import Effect
    from ..engine.zones import GameState


BOMBARDMENT = "Goblin Bombardment"

REDUNDANT_HOST_FINDS = ["Carrion Feeder", BOMBARDMENT, "Nantuko Husk", "Phyrexian Ghoul"]
PIECE_FINDS = [RECTOR, PATTERN]
MANA_FINDS = ["Birds of Paradise", "Lotus Petal", "Wall of Roots"]
BASIC_FINDS = ["Swamp", "Plains", "Forest", "Island", "Mountain"]


def kill_available(state: 'GameState') -> bool:
    """
    Whether the library still holds one of the three kills.

    - Simple: Bombardment in play, a Drake and two of Shapeshifter,
      Karmic Guide or Body Snatcher left
    - Main: three of those three, a Drake or Body Snatcher, plus a
      Rector, a Pattern and a Bombardment left
    - Backup: two Shapeshifters, two of Karmic Guide or Body Snatcher,
      plus a Rector, a Pattern, Akroma and Caller of the Claw left
    """
    def left(name: str) -> int:
        return state.library.count(lambda c: c.name == name)

    snatcher = left("Body Snatcher")
    drake = left("Iridescent Drake")
    guide = left("Karmic Guide")
    shapeshifter = left("Volrath's Shapeshifter")
    reanimators = shapeshifter + guide + snatcher
    pieces = left(RECTOR) >= 1 and left(PATTERN) >= 1

    simple = (bool(state.permanents_named(BOMBARDMENT)) and drake >= 1
              and reanimators >= 2)
    main = (reanimators >= 3 and (drake >= 1 or snatcher >= 1) and pieces
            and left(BOMBARDMENT) >= 1)
    backup = (shapeshifter >= 2 and guide + snatcher >= 2 and pieces
              and left("Akroma, Angel of Wrath") >= 1
              and left("Caller of the Claw") >= 1)
    return simple or main or backup


def combo_out_of_reach(state: 'GameState') -> bool:
    if kill_available(state):
        return False
    return not any(c.name == BOMBARDMENT for c in state.hand)


class PatternHulk(PatternRector):
    """Strategy for the Pattern Hulk combo deck."""

    name = "pattern-hulk"
    decklist = [
        (4, "Birds of Paradise"),
        (3, "Llanowar Elves"),
        (2, EXPLORER),
        (4, "Carrion Feeder"),
        (2, "Nantuko Husk"),
        (4, PATTERN),
        (4, RECTOR),
        (2, "Lotus Petal"),
        (1, "Iridescent Drake"),
        (2, "Karmic Guide"),
        (1, "Caller of the Claw"),
        (1, "Body Snatcher"),
        (1, "Akroma, Angel of Wrath"),
        (2, "Volrath's Shapeshifter"),
        (1, BOMBARDMENT),
        (4, "Cabal Therapy"),
        (4, "City of Brass"),
        (4, "Llanowar Wastes"),
        (2, "Caves of Koilos"),
        (2, "Gemstone Mine"),
        (1, "Reflecting Pool"),
        (2, "Phyrexian Tower"),
        (3, "Forest"),
        (2, "Swamp"),
        (2, "Plains"),
    ]

    def loss_lines(self) -> List[ComboLine]:
        return [ComboLine("No kill left in the library", (combo_out_of_reach,))]

    # --- Actions ---

    def decide_action(self, state: 'GameState') -> Optional[Action]:
        land = self.play_land(state)
        if land is not None:
            return land

        patterns_in_play = len(state.permanents_named(PATTERN))

        pattern = next(iter(self.castable(state, lambda c: c.name == PATTERN)), None)
        if pattern is not None:
            host = self.pattern_host(state)
            if host is not None:
                return self.cast(pattern, host)

        if patterns_in_play == 0:
            rector = next(iter(self.castable(state, lambda c: c.name == RECTOR)), None)
            if rector is not None:
                return self.cast(rector)

        if not state.battlefield.count(lambda p: is_repeatable_outlet(p.card)):
            outlet = self.cheapest(self.castable(state, is_repeatable_outlet))
            if outlet is not None:
                return self.cast(outlet)

        ramp = self._explorer_sacrifice(state)
        if ramp is not None:
            return ramp

        dorks = self.castable(state, self.is_mana_dork)
        if dorks:
            return self.cast(max(dorks, key=lambda c: len(c.produces)))
        explorer = next(iter(self.castable(state, lambda c: c.name == EXPLORER)), None)
        if explorer is not None:
            return self.cast(explorer)

        creature = self.cheapest(self.castable(state, lambda c: c.is_creature))
        if creature is not None:
            return self.cast(creature)

        other = self.cheapest(self.castable(state, lambda c: not c.is_aura))
        if other is not None:
            return self.cast(other)
        return None

    def pattern_host(self, state: 'GameState'):
        """First creature without a Pattern, non-outlets before outlets."""
        hosted = {id(p.attached_to) for p in state.permanents_named(PATTERN)}
        creatures = state.permanents(lambda p: p.is_creature and id(p) not in hosted)
        hosts = self.order_hosts(creatures)
        return hosts[0] if hosts else None

    def _explorer_sacrifice(self, state: 'GameState') -> Optional[Action]:
        """Sacrifice Veteran Explorer to the best outlet at hand."""
        explorer = next(iter(state.permanents_named(EXPLORER)), None)
        if explorer is None:
            return None
        outlet = state.battlefield.find_first(lambda p: is_repeatable_outlet(p.card))
        if outlet is None:
            outlet = state.graveyard.find_first(lambda c: c.outlet == OutletKind.FLASHBACK)
        if outlet is None:
            outlet = state.battlefield.find_first(
                lambda p: p.card.outlet == OutletKind.TAP and not p.tapped)
        if outlet is None:
            return None
        return Action(ActionType.SACRIFICE, card=explorer, source=outlet)

    # --- Tutors ---

    def search_preferences(self, state: 'GameState',
                           candidates: Sequence[Card]) -> List[List[str]]:
        """Name lists to try in order; the first list with a candidate wins."""
        seen = list(state.hand) + [p.card for p in state.battlefield]
        status = ComboStatus.of(seen)

        preferences = []
        if pattern_on_redundant_host(state):
            preferences.append(REDUNDANT_HOST_FINDS)
        if status.rectors == 0 and status.patterns == 0:
            preferences.append(PIECE_FINDS)
        if status.outlets == 0:
            preferences.append(REDUNDANT_HOST_FINDS)
        if status.mana_sources < 4:
            lands = [c for c in candidates if c.is_land]
            if lands and state.lands_played_this_turn < state.land_limit:
                preferences.append([max(lands, key=self.land_play_key).name])
            preferences.append(MANA_FINDS)
        preferences.append(PIECE_FINDS)
        preferences.append(BASIC_FINDS)
        return preferences

    def decide_search(self, state: 'GameState', effect: 'Effect',
                      candidates: Sequence[Card]) -> Optional[Card]:
        if not candidates:
            return None
        for names in self.search_preferences(state, candidates):
            for name in names:
                found = next((c for c in candidates if c.name == name), None)
                if found is not None:
                    return found
        return candidates[0]
