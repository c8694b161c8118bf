"""Goldfish Engine - Game Objects

Cards are immutable catalog values shared by reference between games.
A Permanent wraps a Card while it is on the battlefield and carries the
per-instance state: tapped flag, summoning sickness, attachment and
counters.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional

from .types import (
    Capability, CardType, EffectKind, Mana, ManaCostMap, OutletKind,
    SearchFilter, ObjectId, Timestamp
)


# =============================================================================
# Effect Descriptors
# =============================================================================

@dataclass(frozen=True)
class Effect:
    """
    A tagged effect descriptor.

    Attributes:
        kind: Which handler resolves the effect
        amount: Count for the handler (cards, life, lands, damage)
        search: Filter for search and look effects
        subtype: Creature subtype a watcher reacts to (None for any)
        colors: Colors a bounce target must share (empty for any), or the
                colors of mana added
    """
    kind: EffectKind
    amount: int = 1
    search: SearchFilter = SearchFilter.ANY
    subtype: Optional[str] = None
    colors: FrozenSet[Mana] = frozenset()


# =============================================================================
# Card
# =============================================================================

@dataclass(frozen=True, eq=False)
class Card:
    """
    Immutable card data.

    Cards compare by identity: the catalog hands out exactly one Card per
    name, so two copies of "Forest" in a library are the same object.
    """
    name: str
    card_type: CardType
    cost: ManaCostMap = field(default_factory=dict)
    subtypes: FrozenSet[str] = frozenset()
    basic: bool = False

    # Mana production
    produces: FrozenSet[Mana] = frozenset()
    mana_amount: int = 1
    mana_uses: Optional[int] = None
    mana_from_hand: bool = False
    enters_tapped: bool = False

    # Sacrifice outlet
    outlet: Optional[OutletKind] = None
    on_sacrifice: Optional[Effect] = None

    # Triggers and abilities
    on_resolve: Optional[Effect] = None
    on_enter: Optional[Effect] = None
    on_death: Optional[Effect] = None
    on_host_death: Optional[Effect] = None
    on_creature_enters: Optional[Effect] = None
    activated: Optional[Effect] = None
    combo_piece: bool = False

    # Static ability: creature spells up to this mana value cost nothing
    free_cast_max_mv: Optional[int] = None

    capabilities: Capability = field(init=False, default=Capability.NONE)

    def __post_init__(self):
        caps = Capability.NONE
        if self.produces:
            caps |= Capability.PRODUCES_MANA
        if self.card_type == CardType.CREATURE:
            caps |= Capability.CREATURE
        if self.on_death or self.on_host_death:
            caps |= Capability.SACRIFICE_TRIGGER
        if self.on_enter or self.on_creature_enters:
            caps |= Capability.ENTER_TRIGGER
        if self.on_resolve and self.on_resolve.kind in (
                EffectKind.SEARCH_TO_HAND, EffectKind.SEARCH_TO_TOP,
                EffectKind.SEARCH_TO_BATTLEFIELD, EffectKind.SEARCH_SIDEBOARD,
                EffectKind.INTUITION, EffectKind.LOOK_AND_TAKE):
            caps |= Capability.TUTOR
        if self.combo_piece:
            caps |= Capability.COMBO_PIECE
        if self.outlet is not None:
            caps |= Capability.SAC_OUTLET
        if self.on_host_death:
            caps |= Capability.ATTACHMENT
        object.__setattr__(self, "capabilities", caps)

    @property
    def mana_value(self) -> int:
        return sum(self.cost.values())

    @property
    def colors(self) -> FrozenSet[Mana]:
        return frozenset(k for k in self.cost if k in Mana.colors())

    @property
    def is_land(self) -> bool:
        return self.card_type == CardType.LAND

    @property
    def is_creature(self) -> bool:
        return self.card_type == CardType.CREATURE

    @property
    def is_aura(self) -> bool:
        return bool(self.capabilities & Capability.ATTACHMENT)

    def has(self, capability: Capability) -> bool:
        """Check whether the card has every flag in ``capability``."""
        return (self.capabilities & capability) == capability

    # Copies of a strategy or an action keep pointing at the catalog card
    def __copy__(self) -> 'Card':
        return self

    def __deepcopy__(self, memo) -> 'Card':
        return self

    def __repr__(self) -> str:
        return f"Card({self.name})"

    def __str__(self) -> str:
        return self.name


# =============================================================================
# Permanent
# =============================================================================

@dataclass(eq=False)
class Permanent:
    """
    A card on the battlefield.

    Attributes:
        card: The catalog card this permanent represents
        object_id: Unique id within the game
        timestamp: Battlefield order; lower entered earlier
        tapped: Tap status
        summoning_sick: True until the controller's next untap step
        attached_to: Host permanent for auras
        counters: Per-instance counters ("uses", "+1/+1")
    """
    card: Card
    object_id: ObjectId
    timestamp: Timestamp
    tapped: bool = False
    summoning_sick: bool = False
    attached_to: Optional['Permanent'] = None
    counters: Dict[str, int] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.card.name

    @property
    def is_creature(self) -> bool:
        return self.card.is_creature

    @property
    def is_land(self) -> bool:
        return self.card.is_land

    @property
    def remaining_uses(self) -> Optional[int]:
        """Mana activations left, or None for an unlimited source."""
        return self.counters.get("uses")

    @property
    def can_produce_mana(self) -> bool:
        if not self.card.produces or self.card.mana_from_hand or self.tapped:
            return False
        if self.card.is_creature and self.summoning_sick:
            return False
        return self.remaining_uses is None or self.remaining_uses > 0

    def tap(self) -> bool:
        """Tap this permanent. Returns False if it was already tapped."""
        if self.tapped:
            return False
        self.tapped = True
        return True

    def untap(self) -> bool:
        """Untap this permanent. Returns False if it was already untapped."""
        if not self.tapped:
            return False
        self.tapped = False
        return True

    def add_counter(self, name: str, amount: int = 1):
        self.counters[name] = self.counters.get(name, 0) + amount

    def __repr__(self) -> str:
        status = " (T)" if self.tapped else ""
        return f"Permanent({self.name}#{self.object_id}{status})"
