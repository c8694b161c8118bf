"""
Goldfish - Aluren archetype.

With Aluren on the battlefield every creature of mana value 3 or less is
free. Maggot Carrier and Cavern Harpy then drain the opponent one life per
iteration: cast Carrier, cast Harpy returning Carrier, pay 1 life to
return Harpy. Soul Warden pays the life back.

Maggot Carrier only lives in the sideboard: Living Wish brings it in.
Intuition digs for the missing piece, binning Harpy next to Unearth.
"""

from typing import Any, List, Optional, Sequence, TYPE_CHECKING

from ..engine.objects import Card, Permanent
from ..engine.types import ActionType, EffectKind, SearchFilter
from ..engine.win import ComboLine, damage_at_least, has_permanent, named
from .strategy import Action, ComboLoop, Strategy

if TYPE_CHECKING:
    from ..engine.objects import Effect
    from ..engine.zones import GameState


ALUREN = "Aluren"
HARPY = "Cavern Harpy"
CARRIER = "Maggot Carrier"
WARDEN = "Soul Warden"
SAVAGE = "Wirewood Savage"
RAVEN = "Raven Familiar"
CLOUD = "Cloud of Faeries"
UNEARTH = "Unearth"
WISH = "Living Wish"
INTUITION = "Intuition"

OPPONENT_LIFE = 20

# Life lost per loop iteration without Soul Warden: Carrier's drain plus
# the life paid to return Harpy
LIFE_PER_ITERATION = 2


def _count(cards, name: str) -> int:
    return sum(1 for c in cards if c.name == name)


def in_play(state: 'GameState', name: str) -> bool:
    return bool(state.permanents_named(name))


def in_hand(state: 'GameState', name: str) -> bool:
    return any(c.name == name for c in state.hand)


def loop_ready(state: 'GameState') -> bool:
    """Aluren in play, both loop creatures in hand and life for one more iteration."""
    return (in_play(state, ALUREN) and in_hand(state, CARRIER) and in_hand(state, HARPY)
            and state.life_total > LIFE_PER_ITERATION)


def loop_wins(state: 'GameState') -> bool:
    """The drain loop can run until the opponent is dead."""
    if in_play(state, WARDEN):
        return True
    remaining = OPPONENT_LIFE - state.damage_dealt
    return state.life_total > LIFE_PER_ITERATION * remaining


class Aluren(Strategy):
    """Strategy for the Aluren combo deck."""

    name = "aluren"
    decklist = [
        (4, "Birds of Paradise"),
        (4, "Cabal Therapy"),
        (1, WARDEN),
        (2, UNEARTH),
        (3, HARPY),
        (1, CLOUD),
        (4, "Impulse"),
        (4, WISH),
        (1, "Ray of Revelation"),
        (2, "Wall of Roots"),
        (4, INTUITION),
        (3, RAVEN),
        (1, SAVAGE),
        (4, ALUREN),
        (4, "City of Brass"),
        (3, "Gemstone Mine"),
        (4, "Hickory Woodlot"),
        (2, "Llanowar Wastes"),
        (2, "Underground River"),
        (3, "Yavimaya Coast"),
        (2, "Forest"),
        (1, "Swamp"),
        (1, "Island"),
    ]
    sideboard = [
        (1, HARPY),
        (1, SAVAGE),
        (1, WARDEN),
        (1, CARRIER),
        (1, RAVEN),
        (1, "Auramancer"),
        (1, "Monk Realist"),
        (1, "Plague Spitter"),
        (2, "Naturalize"),
        (1, "Crippling Fatigue"),
        (1, "Uktabi Orangutan"),
        (1, "Bone Shredder"),
        (2, "Hydroblast"),
    ]

    def __init__(self):
        self.drain_loop = ComboLoop(
            name="Maggot Carrier drain",
            precondition=loop_ready,
            steps=[self._cast_carrier, self._cast_harpy, self._return_harpy],
        )

    def win_lines(self) -> List[ComboLine]:
        return [
            ComboLine("Aluren drain", (
                has_permanent(named(ALUREN)),
                damage_at_least(OPPONENT_LIFE),
            )),
        ]

    # --- Mulligans ---

    def decide_mulligan(self, state: 'GameState', hand: Sequence[Card],
                        mulligans: int) -> bool:
        if mulligans >= 3:
            return True

        lands = sum(1 for c in hand if c.is_land)
        sources = sum(1 for c in hand if c.produces and not c.mana_from_hand
                      and c.mana_uses != 1)
        if lands == 0 or sources >= 6:
            return False
        if lands == 1 and sources <= 2:
            return False

        alurens = _count(hand, ALUREN)
        engines = _count(hand, HARPY) + _count(hand, RAVEN) + _count(hand, SAVAGE)
        if alurens and engines:
            return True
        return bool(alurens) and mulligans > 0

    def rank_hand(self, state: 'GameState', hand: Sequence[Card]) -> List[Card]:
        """
        Best first. Before Aluren resolves: two lands, one Aluren, the
        drain pieces, one Harpy, one draw engine, tutors and mana creatures.
        Afterwards lands and Aluren copies lose their value.
        """
        aluren_out = in_play(state, ALUREN)
        lands, alurens, harpies, engines, tutors, wincons, dorks, rest = \
            [], [], [], [], [], [], [], []
        for card in hand:
            if card.is_land:
                lands.append(card)
            elif card.name == ALUREN:
                alurens.append(card)
            elif card.name == HARPY:
                harpies.append(card)
            elif card.name in (SAVAGE, RAVEN):
                engines.append(card)
            elif card.on_resolve is not None and card.on_resolve.kind in (
                    EffectKind.SEARCH_TO_HAND, EffectKind.SEARCH_TO_TOP,
                    EffectKind.SEARCH_SIDEBOARD, EffectKind.INTUITION):
                tutors.append(card)
            elif card.name in (CARRIER, WARDEN) or (aluren_out and card.name == UNEARTH):
                wincons.append(card)
            elif self.is_mana_dork(card):
                dorks.append(card)
            else:
                rest.append(card)

        lands.sort(key=self.land_play_key, reverse=True)
        keep_lands = 0 if aluren_out else 2
        keep_alurens = 0 if aluren_out else 1
        keep_engines = 0 if aluren_out else 1

        return (lands[:keep_lands] + alurens[:keep_alurens] + wincons + harpies[:1]
                + engines[:keep_engines] + tutors + dorks
                + lands[keep_lands:] + engines[keep_engines:] + rest
                + harpies[1:] + alurens[keep_alurens:])

    # --- Actions ---

    def decide_action(self, state: 'GameState') -> Optional[Action]:
        land = self.play_land(state)
        if land is not None:
            return land
        if in_play(state, ALUREN):
            return self._aluren_action(state)
        return self._setup_action(state)

    def _setup_action(self, state: 'GameState') -> Optional[Action]:
        priority = [ALUREN, INTUITION, WISH, "Impulse", WARDEN, CARRIER, CLOUD, SAVAGE]
        for card_name in priority:
            card = self._castable_named(state, card_name)
            if card is not None:
                return self.cast(card)
        return self._cast_best_dork(state)

    def _aluren_action(self, state: 'GameState') -> Optional[Action]:
        if (loop_ready(state) and loop_wins(state)
                and not state.turn_counters.get("combo_loops")):
            return Action(ActionType.COMBO_LOOP, loop=self.drain_loop)

        harpy = next(iter(state.permanents_named(HARPY)), None)
        if harpy is not None and state.life_total > LIFE_PER_ITERATION:
            return Action(ActionType.ACTIVATE, card=harpy)

        dork = self._cast_best_dork(state)
        if dork is not None:
            return dork

        for card_name in (WARDEN, WISH, INTUITION, SAVAGE):
            card = self._castable_named(state, card_name)
            if card is not None:
                return self.cast(card)

        # Carrier waits in hand for the loop once Harpy is around
        if not in_hand(state, HARPY):
            carrier = self._castable_named(state, CARRIER)
            if carrier is not None:
                return self.cast(carrier)

        if len(state.library) > 1:
            raven = self._castable_named(state, RAVEN)
            if raven is not None:
                return self.cast(raven)

        pieces = (CARRIER, WARDEN, SAVAGE, RAVEN, CLOUD, HARPY)
        if any(c.name in pieces for c in state.graveyard):
            unearth = self._castable_named(state, UNEARTH)
            if unearth is not None:
                return self.cast(unearth)

        something_to_bounce = (in_play(state, CARRIER)
                               or (in_play(state, RAVEN) and len(state.library) > 1))
        if something_to_bounce and state.life_total > LIFE_PER_ITERATION:
            harpy_card = self._castable_named(state, HARPY)
            if harpy_card is not None:
                return self.cast(harpy_card)
        return None

    def _castable_named(self, state: 'GameState', card_name: str) -> Optional[Card]:
        found = self.castable(state, lambda c: c.name == card_name)
        return found[0] if found else None

    def _cast_best_dork(self, state: 'GameState') -> Optional[Action]:
        dorks = self.castable(state, self.is_mana_dork)
        if not dorks:
            return None
        return self.cast(max(dorks, key=lambda c: len(c.produces)))

    # --- Loop steps ---

    def _cast_carrier(self, state: 'GameState') -> Optional[Action]:
        carrier = next((c for c in state.hand if c.name == CARRIER), None)
        return self.cast(carrier) if carrier is not None else None

    def _cast_harpy(self, state: 'GameState') -> Optional[Action]:
        harpy = next((c for c in state.hand if c.name == HARPY), None)
        return self.cast(harpy) if harpy is not None else None

    def _return_harpy(self, state: 'GameState') -> Optional[Action]:
        harpy = next(iter(state.permanents_named(HARPY)), None)
        return Action(ActionType.ACTIVATE, card=harpy) if harpy is not None else None

    # --- Targets and tutors ---

    BOUNCE_ORDER = (CARRIER, RAVEN, CLOUD)

    def decide_targets(self, state: 'GameState', effect: 'Effect',
                       legal_targets: Sequence[Any]) -> List[Any]:
        if effect.kind == EffectKind.BOUNCE:
            def bounce_key(p: Permanent):
                if p.name in self.BOUNCE_ORDER:
                    return (0, self.BOUNCE_ORDER.index(p.name))
                return (2 if p.name == HARPY else 1, 0)
            return sorted(legal_targets, key=bounce_key)
        if effect.kind == EffectKind.UNTAP_LANDS:
            return sorted(legal_targets,
                          key=lambda p: self.land_play_key(p.card), reverse=True)
        return list(legal_targets)

    def wanted_cards(self, state: 'GameState', effect: 'Effect') -> List[str]:
        """Card names a search or look effect should take, best first."""
        seen = list(state.hand) + [p.card for p in state.battlefield]
        aluren_out = in_play(state, ALUREN)
        have = lambda name: _count(seen, name) > 0

        if effect.kind == EffectKind.REANIMATE:
            return [n for n in (CARRIER, HARPY, WARDEN, SAVAGE, RAVEN, CLOUD) if not have(n)] \
                + [CARRIER, HARPY, WARDEN]

        if effect.kind == EffectKind.SEARCH_SIDEBOARD or effect.search == SearchFilter.CREATURE:
            if have(ALUREN) and have(HARPY):
                if not have(SAVAGE) and not have(RAVEN):
                    return [SAVAGE, RAVEN, WARDEN, CARRIER]
                if not have(WARDEN):
                    return [WARDEN, CARRIER]
                return [CARRIER, HARPY]
            order = []
            if not have(HARPY):
                order.append(HARPY)
            if have(ALUREN) and not have(SAVAGE):
                order.append(SAVAGE)
            for name in (RAVEN, WARDEN, CARRIER):
                if not have(name):
                    order.append(name)
            if self._mana_sources(seen) < 4:
                order.append("Birds of Paradise" if not have(ALUREN) else "Wall of Roots")
            return order + [HARPY]

        wanted = []
        if aluren_out:
            for name in (HARPY, WARDEN, CARRIER):
                if not have(name):
                    wanted.append(name)
            if not have(SAVAGE) and not have(RAVEN):
                wanted.extend([SAVAGE, RAVEN])
            wanted.append(CLOUD)
        else:
            if not have(ALUREN):
                wanted.append(ALUREN)
            if self._mana_sources(seen) < 4:
                wanted.extend(["City of Brass", "Gemstone Mine", "Birds of Paradise",
                               "Wall of Roots"])
            for name in (HARPY, RAVEN, WARDEN, CARRIER):
                if not have(name):
                    wanted.append(name)
        return wanted + [WISH, INTUITION, "Impulse"]

    @staticmethod
    def _mana_sources(cards: Sequence[Card]) -> int:
        return sum(1 for c in cards if c.produces and not c.mana_from_hand and c.mana_uses != 1)

    def decide_search(self, state: 'GameState', effect: 'Effect',
                      candidates: Sequence[Card]) -> Optional[Card]:
        if not candidates:
            return None
        for name in self.wanted_cards(state, effect):
            found = next((c for c in candidates if c.name == name), None)
            if found is not None:
                return found
        return candidates[0]

    # --- Intuition ---

    def pile_primary(self, state: 'GameState') -> str:
        """The card Intuition is cast to find."""
        seen = list(state.hand) + [p.card for p in state.battlefield]
        for name in (ALUREN, HARPY, SAVAGE, RAVEN, WARDEN):
            if _count(seen, name) == 0:
                return name
        if self._mana_sources(seen) < 4:
            return "City of Brass"
        return WISH

    @staticmethod
    def pile_priority(primary: str, library: Sequence[Card]) -> List[str]:
        if primary == ALUREN:
            return [ALUREN]
        if primary == HARPY:
            return [HARPY, UNEARTH]
        if primary in (SAVAGE, RAVEN):
            return [SAVAGE, RAVEN]
        if primary == "Birds of Paradise":
            return ["Birds of Paradise", "Wall of Roots", "City of Brass", "Gemstone Mine"]
        card = next((c for c in library if c.name == primary), None)
        if card is not None and card.is_land:
            return ["City of Brass", "Gemstone Mine", "Llanowar Wastes", "Forest"]
        if card is not None and card.is_creature:
            return [primary, UNEARTH, RAVEN, WARDEN, SAVAGE]
        return [UNEARTH, RAVEN, WARDEN, SAVAGE, "Impulse"]

    def decide_pile(self, state: 'GameState', effect: 'Effect',
                    library: Sequence[Card]) -> List[Card]:
        """
        Fill the pile by priority for the card we want, then with anything.

        The last card picked is the one kept, so a pile like Harpy,
        Unearth, X hands over X and leaves Harpy to be reanimated.
        """
        remaining = list(library)
        pile: List[Card] = []
        for name in self.pile_priority(self.pile_primary(state), library):
            for card in [c for c in remaining if c.name == name]:
                if len(pile) >= effect.amount:
                    break
                pile.append(card)
                remaining.remove(card)
        while len(pile) < effect.amount and remaining:
            pile.append(remaining.pop(0))
        return list(reversed(pile))
