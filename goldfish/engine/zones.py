"""Goldfish Engine - Zone System

This module implements the per-game mutable state: the five game zones
and the sideboard, life total, turn counter, land drops, floating mana
and counters.

Zones in a goldfish game:
- Library: Hidden, ordered. The front (index 0) is the next draw.
- Hand: Hidden, unordered
- Battlefield: Public, holds Permanent objects in the order they entered
- Graveyard: Public, ordered
- Exile: Public, unordered
- Sideboard: Outside the game; only wishes take cards from it

Every zone transfer goes through GameState.move, which keeps the card
count (main deck plus sideboard) constant and notifies zone-change
listeners (the effect resolver registers one to enqueue triggers).
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Union
import random

from .errors import DeckOut, IllegalAction
from .objects import Card, Permanent
from .types import Mana, ManaCostMap, Zone


# =============================================================================
# ZONE CHANGE TRACKING
# =============================================================================

@dataclass
class ZoneChange:
    """Information about a zone change for triggers and tracing"""
    card: Card
    from_zone: Zone
    to_zone: Zone
    permanent: Optional[Permanent] = None
    attachments: List[Permanent] = field(default_factory=list)

    @property
    def entered_battlefield(self) -> bool:
        return self.to_zone == Zone.BATTLEFIELD

    @property
    def died(self) -> bool:
        """Creature went from battlefield to graveyard"""
        return (self.from_zone == Zone.BATTLEFIELD
                and self.to_zone == Zone.GRAVEYARD
                and self.card.is_creature)


ZoneListener = Callable[[ZoneChange], None]


# =============================================================================
# BASE ZONE CLASS
# =============================================================================

class CardZone:
    """A named container of cards (or permanents on the battlefield)."""

    def __init__(self, zone_type: Zone, objects: Optional[Sequence] = None):
        self.zone_type = zone_type
        self.objects: List = list(objects or [])

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self) -> Iterator:
        return iter(list(self.objects))

    def __contains__(self, obj) -> bool:
        return any(o is obj for o in self.objects)

    def __repr__(self) -> str:
        return f"{self.zone_type.name.title()}({len(self)} objects)"

    def add(self, obj, position: Optional[int] = None):
        """Add an object. Position None appends at the end."""
        if position is None:
            self.objects.append(obj)
        else:
            self.objects.insert(position, obj)

    def remove(self, obj) -> bool:
        """Remove one occurrence of ``obj`` (by identity). Returns success."""
        for i, o in enumerate(self.objects):
            if o is obj:
                del self.objects[i]
                return True
        return False

    def filter(self, predicate: Callable) -> List:
        """Objects matching predicate, in zone order"""
        return [o for o in self.objects if predicate(o)]

    def find_first(self, predicate: Callable):
        """First object matching predicate, or None"""
        for o in self.objects:
            if predicate(o):
                return o
        return None

    def count(self, predicate: Callable) -> int:
        """Count objects matching predicate"""
        return sum(1 for o in self.objects if predicate(o))

    def names(self) -> List[str]:
        return [o.name for o in self.objects]


# =============================================================================
# LIBRARY ZONE
# =============================================================================

class Library(CardZone):
    """The library. Index 0 is the top of the library (the next draw)."""

    def __init__(self, cards: Optional[Sequence[Card]] = None):
        super().__init__(Zone.LIBRARY, cards)

    def top(self) -> Optional[Card]:
        return self.objects[0] if self.objects else None

    def pop_top(self) -> Optional[Card]:
        return self.objects.pop(0) if self.objects else None

    def put_on_top(self, card: Card):
        self.objects.insert(0, card)

    def put_on_bottom(self, card: Card):
        self.objects.append(card)

    def shuffle(self, rng: random.Random):
        """Shuffle using the game's injected generator"""
        rng.shuffle(self.objects)


# =============================================================================
# GAME STATE
# =============================================================================

class GameState:
    """
    The mutable state of one goldfish game.

    Attributes:
        library, hand, battlefield, graveyard, exile: The zones
        sideboard: Cards outside the game
        deck_size, sideboard_size: Card counts the game started with
        life_total: Our life total
        turn: Turn counter; 0 during setup
        lands_played_this_turn: Land drops used this turn
        land_limit: Land drops allowed per turn
        damage_dealt: Damage and life loss dealt to the (absent) opponent
        floating: Unspent mana in the pool
        counters: Persistent named counters
        turn_counters: Named counters cleared in the end step
        mulligans: Mulligans taken during setup
        rng: Injected random generator
    """

    def __init__(
        self,
        cards: Sequence[Card],
        rng: Optional[random.Random] = None,
        starting_life: int = 20,
        land_limit: int = 1,
        verbose: bool = False,
        sideboard: Sequence[Card] = ()
    ):
        self.library = Library(cards)
        self.hand = CardZone(Zone.HAND)
        self.battlefield = CardZone(Zone.BATTLEFIELD)
        self.graveyard = CardZone(Zone.GRAVEYARD)
        self.exile = CardZone(Zone.EXILE)
        self.sideboard = CardZone(Zone.SIDEBOARD, sideboard)

        self.deck_size = len(cards)
        self.sideboard_size = len(self.sideboard)
        self.life_total = starting_life
        self.turn = 0
        self.lands_played_this_turn = 0
        self.land_limit = land_limit
        self.damage_dealt = 0
        self.floating: Dict[Mana, int] = {}
        self.counters: Dict[str, int] = {}
        self.turn_counters: Dict[str, int] = {}
        self.mulligans = 0

        self.rng = rng or random.Random()
        self.verbose = verbose
        self.trace: List[str] = []

        self._listeners: List[ZoneListener] = []
        self._next_object_id = 1
        self._next_timestamp = 1

    # -------------------------------------------------------------------------
    # Zone access
    # -------------------------------------------------------------------------

    def zone(self, zone: Zone) -> CardZone:
        return {
            Zone.LIBRARY: self.library,
            Zone.HAND: self.hand,
            Zone.BATTLEFIELD: self.battlefield,
            Zone.GRAVEYARD: self.graveyard,
            Zone.EXILE: self.exile,
            Zone.SIDEBOARD: self.sideboard,
        }[zone]

    def total_cards(self) -> int:
        """Cards across all zones; always equals deck_size + sideboard_size."""
        return (len(self.library) + len(self.hand) + len(self.battlefield)
                + len(self.graveyard) + len(self.exile) + len(self.sideboard))

    def permanents(self, predicate: Optional[Callable[[Permanent], bool]] = None
                   ) -> List[Permanent]:
        """Permanents on the battlefield in battlefield order"""
        if predicate is None:
            return list(self.battlefield)
        return self.battlefield.filter(predicate)

    def permanents_named(self, name: str) -> List[Permanent]:
        return self.battlefield.filter(lambda p: p.name == name)

    def attachments_of(self, host: Permanent) -> List[Permanent]:
        return self.battlefield.filter(lambda p: p.attached_to is host)

    # -------------------------------------------------------------------------
    # Listeners and logging
    # -------------------------------------------------------------------------

    def add_listener(self, listener: ZoneListener):
        self._listeners.append(listener)

    def log(self, message: str, level: str = "info"):
        """
        Buffer a trace line if verbose mode is enabled.

        Args:
            message: The message to log
            level: Log level ("info", "debug", "warning", "error")
        """
        if self.verbose:
            prefix = {
                "info": "[INFO]",
                "debug": "[DEBUG]",
                "warning": "[WARN]",
                "error": "[ERROR]"
            }.get(level, "[INFO]")
            self.trace.append(f"{prefix} Turn {self.turn}: {message}")

    def log_state(self):
        """Buffer a snapshot of the zones (if verbose mode is enabled)."""
        if not self.verbose:
            return
        self.log(f"Life: {self.life_total}, damage dealt: {self.damage_dealt}, "
                 f"library: {len(self.library)}")
        self.log(f"Hand: {', '.join(self.hand.names()) or '-'}")
        board = [p.name + (" (T)" if p.tapped else "") for p in self.battlefield]
        self.log(f"Battlefield: {', '.join(board) or '-'}")
        self.log(f"Graveyard: {', '.join(self.graveyard.names()) or '-'}")

    # -------------------------------------------------------------------------
    # Zone changes
    # -------------------------------------------------------------------------

    def move(
        self,
        obj: Union[Card, Permanent],
        from_zone: Zone,
        to_zone: Zone,
        bottom: bool = False,
        attach_to: Optional[Permanent] = None
    ) -> Optional[Permanent]:
        """
        Move a card between zones.

        Args:
            obj: A Permanent when moving from the battlefield, else a Card
            from_zone: Zone the object is in now
            to_zone: Destination zone
            bottom: Put on the bottom of the library instead of the top
            attach_to: Host for an aura entering the battlefield

        Returns:
            The new Permanent when the card enters the battlefield, else None

        Raises:
            IllegalAction: If the object is not in from_zone, or an aura
                           has no host on the battlefield
        """
        source = self.zone(from_zone)
        if obj not in source:
            raise IllegalAction(f"{obj} is not in {from_zone.name.lower()}")
        if from_zone == Zone.BATTLEFIELD and not isinstance(obj, Permanent):
            raise IllegalAction(f"{obj} is not a permanent")
        card = obj.card if isinstance(obj, Permanent) else obj
        if to_zone == Zone.BATTLEFIELD:
            if not card.card_type.is_permanent:
                raise IllegalAction(f"{card} cannot enter the battlefield")
            if card.is_aura and (attach_to is None or attach_to not in self.battlefield):
                raise IllegalAction(f"{card} has no creature to enchant")

        attachments: List[Permanent] = []
        old_permanent = None
        if isinstance(obj, Permanent):
            old_permanent = obj
            attachments = self.attachments_of(obj)
            obj.attached_to = None
        source.remove(obj)

        new_permanent = None
        if to_zone == Zone.BATTLEFIELD:
            new_permanent = self._make_permanent(card, attach_to)
            self.battlefield.add(new_permanent)
        elif to_zone == Zone.LIBRARY:
            if bottom:
                self.library.put_on_bottom(card)
            else:
                self.library.put_on_top(card)
        else:
            self.zone(to_zone).add(card)

        change = ZoneChange(card=card, from_zone=from_zone, to_zone=to_zone,
                            permanent=new_permanent or old_permanent,
                            attachments=attachments)
        for listener in list(self._listeners):
            listener(change)

        # Auras go to the graveyard when their host leaves
        for aura in attachments:
            if aura in self.battlefield:
                self.move(aura, Zone.BATTLEFIELD, Zone.GRAVEYARD)

        return new_permanent

    def _make_permanent(self, card: Card, attach_to: Optional[Permanent]) -> Permanent:
        permanent = Permanent(
            card=card,
            object_id=self._next_object_id,
            timestamp=self._next_timestamp,
            tapped=card.enters_tapped,
            summoning_sick=card.is_creature,
            attached_to=attach_to if card.is_aura else None,
        )
        if card.mana_uses is not None:
            permanent.counters["uses"] = card.mana_uses
        self._next_object_id += 1
        self._next_timestamp += 1
        return permanent

    # -------------------------------------------------------------------------
    # Library operations
    # -------------------------------------------------------------------------

    def draw(self, n: int = 1) -> List[Card]:
        """
        Draw n cards from the front of the library.

        Raises:
            DeckOut: If a draw is attempted from an empty library
        """
        drawn = []
        for _ in range(n):
            card = self.library.top()
            if card is None:
                raise DeckOut(self.turn)
            self.move(card, Zone.LIBRARY, Zone.HAND)
            drawn.append(card)
        return drawn

    def shuffle_library(self):
        self.library.shuffle(self.rng)

    def put_on_bottom(self, cards: Sequence[Card]):
        """Put cards from hand on the bottom of the library, in order"""
        for card in cards:
            self.move(card, Zone.HAND, Zone.LIBRARY, bottom=True)

    def search_library(self, predicate: Callable[[Card], bool]) -> List[Card]:
        """Distinct cards in the library matching predicate, in library order"""
        seen = []
        for card in self.library:
            if predicate(card) and not any(card is s for s in seen):
                seen.append(card)
        return seen

    # -------------------------------------------------------------------------
    # Lands, untap and life
    # -------------------------------------------------------------------------

    def play_land(self, card: Card) -> Permanent:
        """
        Play a land from hand.

        Raises:
            IllegalAction: If the card is not a land in hand, or the land
                           limit for the turn is reached
        """
        if not card.is_land:
            raise IllegalAction(f"{card} is not a land")
        if card not in self.hand:
            raise IllegalAction(f"{card} is not in hand")
        if self.lands_played_this_turn >= self.land_limit:
            raise IllegalAction("Already played a land this turn")
        self.lands_played_this_turn += 1
        return self.move(card, Zone.HAND, Zone.BATTLEFIELD)

    def untap_all(self):
        for permanent in self.battlefield:
            permanent.untap()
            permanent.summoning_sick = False

    def lose_life(self, amount: int):
        self.life_total -= amount

    def gain_life(self, amount: int):
        self.life_total += amount

    def deal_damage(self, amount: int):
        self.damage_dealt += amount

    # -------------------------------------------------------------------------
    # Mana
    # -------------------------------------------------------------------------

    def effective_cost(self, card: Card) -> ManaCostMap:
        """The cost to cast ``card`` after static cost reductions."""
        if card.is_creature:
            for permanent in self.battlefield:
                limit = permanent.card.free_cast_max_mv
                if limit is not None and card.mana_value <= limit:
                    return {}
        return dict(card.cost)

    def mana_sources(self, exclude: Optional[Card] = None) -> List:
        """
        Sources that can produce mana right now, battlefield first.

        Args:
            exclude: A card in hand about to be cast; one copy of it is not
                     offered as a source for its own cost
        """
        sources: List = [p for p in self.battlefield if p.can_produce_mana]
        skipped = False
        for card in self.hand:
            if not card.mana_from_hand:
                continue
            if card is exclude and not skipped:
                skipped = True
                continue
            sources.append(card)
        return sources

    def pay(self, payment) -> None:
        """
        Commit a payment found by the mana resolver.

        Raises:
            IllegalAction: If a source is no longer available; nothing is
                           changed in that case
        """
        hand_uses: Dict[int, int] = {}
        for source, _ in payment.taps:
            if isinstance(source, Permanent):
                if source not in self.battlefield or not source.can_produce_mana:
                    raise IllegalAction(f"{source.name} cannot produce mana")
            else:
                hand_uses[id(source)] = hand_uses.get(id(source), 0) + 1
                in_hand = self.hand.count(lambda c, s=source: c is s)
                if in_hand < hand_uses[id(source)]:
                    raise IllegalAction(f"{source} is not in hand")

        for source, kind in payment.taps:
            if isinstance(source, Permanent):
                source.tap()
                if source.remaining_uses is not None:
                    source.counters["uses"] -= 1
                    if source.counters["uses"] <= 0:
                        self.move(source, Zone.BATTLEFIELD, Zone.GRAVEYARD)
            else:
                self.move(source, Zone.HAND, Zone.EXILE)
        self.floating = dict(payment.floating_after)

    def add_mana(self, kind: Mana, amount: int):
        self.floating[kind] = self.floating.get(kind, 0) + amount

    def clear_floating(self):
        self.floating = {}
