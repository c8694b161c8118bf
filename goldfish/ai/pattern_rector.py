"""
Goldfish - Pattern Rector archetype.

Pattern of Rebirth and Academy Rector chain creatures and enchantments out
of the library through repeated sacrifices. The game counts as won once
one of the known deterministic sacrifice chains is assembled on the
battlefield.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, TYPE_CHECKING

from ..engine.objects import Card, Permanent
from ..engine.types import ActionType, EffectKind, OutletKind, SearchFilter
from ..engine.win import ComboLine, attached, has_permanent, named
from .strategy import Action, Strategy

if TYPE_CHECKING:
    from ..engine.objects import Effect
    from ..engine.zones import GameState


PATTERN = "Pattern of Rebirth"
RECTOR = "Academy Rector"
EXPLORER = "Veteran Explorer"


# =============================================================================
# Board reading
# =============================================================================

def is_repeatable_outlet(card: Card) -> bool:
    return card.outlet == OutletKind.REPEATABLE


def is_single_use_mana(card: Card) -> bool:
    return card.mana_from_hand or card.mana_uses == 1


def single_use_outlets(state: 'GameState') -> int:
    """Cabal Therapy waiting in the graveyard plus untapped Phyrexian Towers."""
    therapies = state.graveyard.count(lambda c: c.outlet == OutletKind.FLASHBACK)
    towers = state.battlefield.count(
        lambda p: p.card.outlet == OutletKind.TAP and not p.tapped)
    return therapies + towers


def creature_count(state: 'GameState') -> int:
    return state.battlefield.count(lambda p: p.is_creature)


def _outlet_host(permanent: Permanent) -> bool:
    return permanent.card.outlet is not None


def pattern_on_redundant_host(state: 'GameState') -> bool:
    """A Pattern sits on a creature whose death would not end the chain early."""
    outlets_in_play = state.battlefield.count(lambda p: is_repeatable_outlet(p.card))
    for pattern in state.permanents_named(PATTERN):
        host = pattern.attached_to
        if host is None:
            continue
        if not _outlet_host(host) or outlets_in_play >= 2:
            return True
    return False


@dataclass
class ComboStatus:
    """Counts of the combo pieces in the zones a decision looks at."""
    lands: int = 0
    mana_sources: int = 0
    creatures: int = 0
    rectors: int = 0
    patterns: int = 0
    outlets: int = 0

    @classmethod
    def of(cls, cards: Sequence[Card]) -> 'ComboStatus':
        status = cls()
        for card in cards:
            status.lands += card.is_land
            status.mana_sources += bool(card.produces) and not is_single_use_mana(card)
            status.creatures += card.is_creature
            status.rectors += card.name == RECTOR
            status.patterns += card.name == PATTERN
            status.outlets += is_repeatable_outlet(card)
        return status


# =============================================================================
# Strategy
# =============================================================================

class PatternRector(Strategy):
    """Strategy for the Pattern Rector combo deck."""

    name = "pattern-rector"
    decklist = [
        (4, "Birds of Paradise"),
        (3, "Llanowar Elves"),
        (4, "Carrion Feeder"),
        (3, "Nantuko Husk"),
        (1, "Phyrexian Ghoul"),
        (4, PATTERN),
        (4, RECTOR),
        (3, "Elvish Spirit Guide"),
        (1, "Iridescent Drake"),
        (2, "Karmic Guide"),
        (1, "Caller of the Claw"),
        (1, "Body Snatcher"),
        (1, "Akroma, Angel of Wrath"),
        (2, "Volrath's Shapeshifter"),
        (1, "Worship"),
        (1, "Goblin Bombardment"),
        (4, "Cabal Therapy"),
        (4, "City of Brass"),
        (4, "Llanowar Wastes"),
        (2, "Yavimaya Coast"),
        (1, "Caves of Koilos"),
        (2, "Gemstone Mine"),
        (1, "Reflecting Pool"),
        (2, "Phyrexian Tower"),
        (2, "Forest"),
        (1, "Swamp"),
        (1, "Plains"),
    ]

    # --- Win lines ---

    def win_lines(self) -> List[ComboLine]:
        outlet = lambda p: is_repeatable_outlet(p.card)
        pattern = named(PATTERN)
        rector = named(RECTOR)
        return [
            ComboLine("Outlet and Pattern on another creature", (
                has_permanent(outlet),
                attached(pattern, lambda host: not _outlet_host(host)),
            )),
            ComboLine("Two outlets and Pattern on an outlet", (
                has_permanent(outlet, at_least=2),
                attached(pattern, _outlet_host),
            )),
            ComboLine("Outlet, Rector and a redundant creature", (
                has_permanent(outlet),
                has_permanent(rector),
                lambda s: creature_count(s) >= 3,
            )),
            ComboLine("Rector, Pattern and a single-use outlet", (
                has_permanent(rector),
                has_permanent(pattern),
                lambda s: single_use_outlets(s) >= 1,
            )),
            ComboLine("Two Rectors, a single-use outlet and three creatures", (
                has_permanent(rector, at_least=2),
                lambda s: single_use_outlets(s) >= 1,
                lambda s: creature_count(s) >= 3,
            )),
            ComboLine("Two Rectors and two single-use outlets", (
                has_permanent(rector, at_least=2),
                lambda s: single_use_outlets(s) >= 2,
            )),
        ]

    # --- Mulligans ---

    def decide_mulligan(self, state: 'GameState', hand: Sequence[Card],
                        mulligans: int) -> bool:
        if mulligans >= 3:
            return True

        status = ComboStatus.of(hand)
        if status.lands == 0:
            return False
        if status.mana_sources >= 6:
            return False
        if status.lands == 1 and status.mana_sources <= 2:
            return False

        has_piece = status.patterns >= 1 or status.rectors >= 1
        if has_piece and status.outlets >= 1:
            return True
        if (has_piece or status.outlets >= 1) and status.creatures > 0 and mulligans > 1:
            return True
        return False

    def rank_hand(self, state: 'GameState', hand: Sequence[Card]) -> List[Card]:
        """
        Best first: two lands, one Pattern or Rector, one outlet, every
        mana creature, then the remaining lands, pieces, outlets and the rest.
        """
        lands, pieces, outlets, dorks, rest = [], [], [], [], []
        for card in hand:
            if card.is_land:
                lands.append(card)
            elif card.name in (PATTERN, RECTOR):
                pieces.append(card)
            elif card.outlet is not None:
                outlets.append(card)
            elif card.is_creature and card.produces:
                dorks.append(card)
            else:
                rest.append(card)

        lands.sort(key=self.land_play_key, reverse=True)
        outlets.sort(key=lambda c: c.mana_value)

        return (lands[:2] + pieces[:1] + outlets[:1] + dorks
                + lands[2:] + pieces[1:] + outlets[1:] + rest)

    # --- Actions ---

    def decide_action(self, state: 'GameState') -> Optional[Action]:
        land = self.play_land(state)
        if land is not None:
            return land

        outlets_in_play = state.battlefield.count(lambda p: is_repeatable_outlet(p.card))
        patterns_in_play = len(state.permanents_named(PATTERN))
        has_creature = state.battlefield.count(lambda p: p.is_creature) > 0

        if outlets_in_play == 0:
            outlet = self.cheapest(self.castable(state, is_repeatable_outlet))
            if outlet is not None:
                return self.cast(outlet)

        if patterns_in_play == 0 and has_creature:
            pattern = next(iter(self.castable(state, lambda c: c.name == PATTERN)), None)
            if pattern is not None:
                return self.cast(pattern, self.pattern_host(state))

        if patterns_in_play == 0:
            rector = next(iter(self.castable(state, lambda c: c.name == RECTOR)), None)
            if rector is not None:
                return self.cast(rector)

        sac = self._explorer_sacrifice(state)
        if sac is not None:
            return sac

        dorks = self.castable(state, self.is_mana_dork)
        if dorks:
            return self.cast(max(dorks, key=lambda c: len(c.produces)))

        creature = self.cheapest(self.castable(state, lambda c: c.is_creature))
        if creature is not None:
            return self.cast(creature)

        other = self.cheapest(self.castable(state, lambda c: not c.is_aura))
        if other is not None:
            return self.cast(other)
        return None

    def _explorer_sacrifice(self, state: 'GameState') -> Optional[Action]:
        explorer = next(iter(state.permanents_named(EXPLORER)), None)
        if explorer is None:
            return None
        outlet = state.battlefield.find_first(lambda p: is_repeatable_outlet(p.card))
        if outlet is None:
            return None
        return Action(ActionType.SACRIFICE, card=explorer, source=outlet)

    # --- Targets and tutors ---

    def pattern_host(self, state: 'GameState') -> Optional[Permanent]:
        hosts = self.order_hosts(state.permanents(lambda p: p.is_creature))
        return hosts[0] if hosts else None

    @staticmethod
    def order_hosts(creatures: Sequence[Permanent]) -> List[Permanent]:
        """Non-outlet creatures before outlets, each group in battlefield order."""
        return sorted(creatures, key=lambda p: (_outlet_host(p), p.timestamp))

    def decide_targets(self, state: 'GameState', effect: 'Effect',
                       legal_targets: Sequence[Any]) -> List[Any]:
        if effect.kind == EffectKind.SEARCH_TO_BATTLEFIELD:
            return self.order_hosts(legal_targets)
        return list(legal_targets)

    def best_card_to_find(self, state: 'GameState', search: SearchFilter) -> Optional[str]:
        """Name of the card a tutor should find, or None for no preference."""
        seen = list(state.hand) + [p.card for p in state.battlefield]
        status = ComboStatus.of(seen)
        redundant_host = pattern_on_redundant_host(state)

        no_piece = status.rectors == 0 and status.patterns == 0
        if search == SearchFilter.CREATURE:
            if redundant_host:
                return "Carrion Feeder"
            if no_piece:
                return RECTOR
            if status.outlets == 0:
                return "Carrion Feeder"
            if status.mana_sources < 4:
                return "Birds of Paradise"
            return RECTOR
        if search in (SearchFilter.ENCHANTMENT, SearchFilter.ENCHANTMENT_OR_ARTIFACT):
            if redundant_host:
                return "Goblin Bombardment"
            if no_piece:
                return PATTERN
            if status.outlets == 0:
                return "Goblin Bombardment"
            if status.mana_sources < 4 and search == SearchFilter.ENCHANTMENT_OR_ARTIFACT:
                return "Lotus Petal"
            return PATTERN
        return None

    def decide_search(self, state: 'GameState', effect: 'Effect',
                      candidates: Sequence[Card]) -> Optional[Card]:
        if not candidates:
            return None
        wanted = self.best_card_to_find(state, effect.search)
        fallback = [wanted, RECTOR, PATTERN, "Carrion Feeder", "Goblin Bombardment"]
        for name in fallback:
            found = next((c for c in candidates if c.name == name), None)
            if found is not None:
                return found
        if effect.search == SearchFilter.BASIC_LAND:
            return max(candidates, key=self.land_play_key)
        return candidates[0]
