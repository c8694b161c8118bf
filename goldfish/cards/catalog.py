"""
Goldfish - Card Catalog

The catalog is a process-wide, read-only registry of every card the
supported decks use. It is built once at import time and never mutated
afterwards; games hold references to its Card objects, never copies.

Only the parts of a card that matter for an unopposed playout are
modeled: type, cost, mana production, sacrifice-outlet use and the tagged
effects the engine resolves.
"""
from typing import Dict, Iterable, List, Optional

from ..engine.errors import ConfigurationError
from ..engine.mana import parse_cost
from ..engine.objects import Card, Effect
from ..engine.types import CardType, EffectKind, Mana, OutletKind, SearchFilter


W, U, B, R, G, C = (Mana.WHITE, Mana.BLUE, Mana.BLACK, Mana.RED, Mana.GREEN,
                    Mana.COLORLESS)
ANY_COLOR = frozenset({W, U, B, R, G})


# =============================================================================
# CardCatalog
# =============================================================================

class CardCatalog:
    """
    Registry mapping card names to Card objects.

    Lookups are case-insensitive. A catalog can be frozen, after which
    adding cards raises ConfigurationError.
    """

    def __init__(self, cards: Iterable[Card] = ()):
        self.cards: Dict[str, Card] = {}
        self._name_index: Dict[str, str] = {}  # lowercase -> actual name
        self._frozen = False
        for card in cards:
            self.add(card)

    def add(self, card: Card):
        """
        Add a card to the catalog.

        Raises:
            ConfigurationError: If the catalog is frozen or the name is taken
        """
        if self._frozen:
            raise ConfigurationError("The card catalog is read-only")
        if card.name.lower() in self._name_index:
            raise ConfigurationError(f"Duplicate card in catalog: {card.name}")
        self.cards[card.name] = card
        self._name_index[card.name.lower()] = card.name

    def freeze(self) -> 'CardCatalog':
        self._frozen = True
        return self

    def find(self, name: str) -> Optional[Card]:
        """Card by name (case-insensitive), or None"""
        if name in self.cards:
            return self.cards[name]
        actual = self._name_index.get(name.strip().lower())
        return self.cards.get(actual) if actual else None

    def get(self, name: str) -> Card:
        """
        Card by name (case-insensitive).

        Raises:
            ConfigurationError: If the card is unknown
        """
        card = self.find(name)
        if card is None:
            raise ConfigurationError(f"Unknown card: {name!r}")
        return card

    def has(self, name: str) -> bool:
        return self.find(name) is not None

    def names(self) -> List[str]:
        return sorted(self.cards)

    def __len__(self) -> int:
        return len(self.cards)

    def __contains__(self, name: str) -> bool:
        return self.has(name)


# =============================================================================
# Card definitions
# =============================================================================

def _land(name: str, produces, amount: int = 1, uses: Optional[int] = None,
          basic: bool = False, enters_tapped: bool = False, **kwargs) -> Card:
    return Card(name=name, card_type=CardType.LAND, produces=frozenset(produces),
                mana_amount=amount, mana_uses=uses, basic=basic,
                enters_tapped=enters_tapped, **kwargs)


def _spell(name: str, card_type: CardType, cost: str, **kwargs) -> Card:
    return Card(name=name, card_type=card_type, cost=parse_cost(cost), **kwargs)


def _creature(name: str, cost: str, subtypes=(), **kwargs) -> Card:
    return _spell(name, CardType.CREATURE, cost, subtypes=frozenset(subtypes), **kwargs)


def _build_cards() -> List[Card]:
    lands = [
        _land("Plains", {W}, basic=True),
        _land("Island", {U}, basic=True),
        _land("Swamp", {B}, basic=True),
        _land("Mountain", {R}, basic=True),
        _land("Forest", {G}, basic=True),
        _land("City of Brass", ANY_COLOR),
        _land("Reflecting Pool", ANY_COLOR),
        _land("Gemstone Mine", ANY_COLOR, uses=3),
        _land("Llanowar Wastes", {B, G, C}),
        _land("Brushland", {W, G, C}),
        _land("Yavimaya Coast", {U, G, C}),
        _land("Caves of Koilos", {W, B, C}),
        _land("Underground River", {U, B, C}),
        _land("Taiga", {R, G}),
        _land("Scrubland", {W, B}),
        _land("Ancient Tomb", {C}, amount=2),
        _land("Hickory Woodlot", {G}, amount=2, uses=2, enters_tapped=True),
        _land("Phyrexian Tower", {C}, outlet=OutletKind.TAP,
              on_sacrifice=Effect(EffectKind.ADD_MANA, amount=2, colors=frozenset({B}))),
    ]

    mana = [
        _creature("Llanowar Elves", "{G}", ("Elf",), produces=frozenset({G})),
        _creature("Fyndhorn Elves", "{G}", ("Elf",), produces=frozenset({G})),
        _creature("Birds of Paradise", "{G}", ("Bird",), produces=ANY_COLOR),
        _creature("Wall of Roots", "{1}{G}", ("Plant", "Wall"), produces=frozenset({G})),
        _creature("Elvish Spirit Guide", "{2}{G}", ("Elf", "Spirit"),
                  produces=frozenset({G}), mana_from_hand=True),
        _spell("Lotus Petal", CardType.ARTIFACT, "{0}", produces=ANY_COLOR, mana_uses=1),
    ]

    outlets = [
        _creature("Carrion Feeder", "{B}", ("Zombie",), outlet=OutletKind.REPEATABLE,
                  on_sacrifice=Effect(EffectKind.ADD_COUNTER)),
        _creature("Nantuko Husk", "{2}{B}", ("Zombie", "Insect"),
                  outlet=OutletKind.REPEATABLE),
        _creature("Phyrexian Ghoul", "{2}{B}", ("Zombie",),
                  outlet=OutletKind.REPEATABLE),
        _spell("Goblin Bombardment", CardType.ENCHANTMENT, "{1}{R}",
               outlet=OutletKind.REPEATABLE,
               on_sacrifice=Effect(EffectKind.DEAL_DAMAGE, amount=1)),
        _spell("Altar of Dementia", CardType.ARTIFACT, "{2}",
               outlet=OutletKind.REPEATABLE),
        _spell("Cabal Therapy", CardType.SORCERY, "{B}", outlet=OutletKind.FLASHBACK),
    ]

    combo = [
        _spell("Pattern of Rebirth", CardType.ENCHANTMENT, "{3}{G}", combo_piece=True,
               on_host_death=Effect(EffectKind.SEARCH_TO_BATTLEFIELD,
                                    search=SearchFilter.CREATURE)),
        _creature("Academy Rector", "{3}{W}", ("Human", "Spirit"), combo_piece=True,
                  on_death=Effect(EffectKind.SEARCH_TO_BATTLEFIELD,
                                  search=SearchFilter.ENCHANTMENT)),
        _creature("Veteran Explorer", "{G}", ("Human", "Soldier", "Scout"),
                  on_death=Effect(EffectKind.SEARCH_TO_BATTLEFIELD, amount=2,
                                  search=SearchFilter.BASIC_LAND)),
        _spell("Aluren", CardType.ENCHANTMENT, "{2}{G}{G}", combo_piece=True,
               free_cast_max_mv=3),
        _creature("Cavern Harpy", "{U}{B}", ("Beast",), combo_piece=True,
                  on_enter=Effect(EffectKind.BOUNCE, colors=frozenset({U, B})),
                  activated=Effect(EffectKind.RETURN_SELF, amount=1)),
        _creature("Maggot Carrier", "{B}", ("Zombie",), combo_piece=True,
                  on_enter=Effect(EffectKind.EACH_PLAYER_LOSES_LIFE, amount=1)),
        _creature("Soul Warden", "{W}", ("Human", "Cleric"), combo_piece=True,
                  on_creature_enters=Effect(EffectKind.GAIN_LIFE, amount=1)),
        _creature("Wirewood Savage", "{2}{G}", ("Elf",),
                  on_creature_enters=Effect(EffectKind.DRAW, amount=1, subtype="Beast")),
        _creature("Cloud of Faeries", "{1}{U}", ("Faerie",),
                  on_enter=Effect(EffectKind.UNTAP_LANDS, amount=2)),
        _creature("Raven Familiar", "{2}{U}", ("Bird",),
                  on_enter=Effect(EffectKind.LOOK_AND_TAKE, amount=3)),
    ]

    tutors = [
        _spell("Worldly Tutor", CardType.INSTANT, "{G}",
               on_resolve=Effect(EffectKind.SEARCH_TO_TOP, search=SearchFilter.CREATURE)),
        _spell("Enlightened Tutor", CardType.INSTANT, "{W}",
               on_resolve=Effect(EffectKind.SEARCH_TO_TOP,
                                 search=SearchFilter.ENCHANTMENT_OR_ARTIFACT)),
        _spell("Eladamri's Call", CardType.INSTANT, "{G}{W}",
               on_resolve=Effect(EffectKind.SEARCH_TO_HAND, search=SearchFilter.CREATURE)),
        _spell("Impulse", CardType.INSTANT, "{1}{U}",
               on_resolve=Effect(EffectKind.LOOK_AND_TAKE, amount=4)),
        _spell("Living Wish", CardType.SORCERY, "{1}{G}",
               on_resolve=Effect(EffectKind.SEARCH_SIDEBOARD,
                                 search=SearchFilter.CREATURE_OR_LAND)),
        _spell("Intuition", CardType.INSTANT, "{2}{U}",
               on_resolve=Effect(EffectKind.INTUITION, amount=3)),
        _spell("Unearth", CardType.SORCERY, "{B}",
               on_resolve=Effect(EffectKind.REANIMATE, search=SearchFilter.CREATURE_MV3)),
    ]

    filler = [
        _creature("Iridescent Drake", "{3}{U}", ("Drake",)),
        _creature("Karmic Guide", "{3}{W}{W}", ("Angel", "Spirit")),
        _creature("Volrath's Shapeshifter", "{1}{U}{U}", ("Shapeshifter",)),
        _creature("Caller of the Claw", "{2}{G}", ("Elf",)),
        _creature("Body Snatcher", "{2}{B}{B}", ("Minion",)),
        _creature("Akroma, Angel of Wrath", "{5}{W}{W}{W}", ("Angel",)),
        _creature("Mesmeric Fiend", "{1}{B}", ("Nightmare", "Horror")),
        _spell("Worship", CardType.ENCHANTMENT, "{3}{W}"),
        _spell("Duress", CardType.SORCERY, "{B}"),
        _spell("Ray of Revelation", CardType.INSTANT, "{1}{W}"),
    ]

    # Sideboard cards a wish can find; none of them matters to a goldfish
    sideboard = [
        _creature("Auramancer", "{2}{W}", ("Human", "Wizard")),
        _creature("Monk Realist", "{1}{W}", ("Human", "Monk", "Cleric")),
        _creature("Plague Spitter", "{2}{B}", ("Phyrexian", "Horror")),
        _creature("Uktabi Orangutan", "{2}{G}", ("Ape",)),
        _creature("Bone Shredder", "{2}{B}", ("Phyrexian", "Minion")),
        _spell("Naturalize", CardType.INSTANT, "{1}{G}"),
        _spell("Crippling Fatigue", CardType.SORCERY, "{1}{B}{B}"),
        _spell("Hydroblast", CardType.INSTANT, "{U}"),
    ]

    return lands + mana + outlets + combo + tutors + filler + sideboard


_CATALOG: Optional[CardCatalog] = None


def get_catalog() -> CardCatalog:
    """Get the process-wide card catalog (built on first use)."""
    global _CATALOG
    if _CATALOG is None:
        _CATALOG = CardCatalog(_build_cards()).freeze()
    return _CATALOG


def get_card(name: str) -> Card:
    """
    Get a card by name from the global catalog.

    Raises:
        ConfigurationError: If the card is unknown
    """
    return get_catalog().get(name)
