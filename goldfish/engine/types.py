"""Goldfish Engine - Core Types and Enumerations

This module defines the fundamental enumerations and type aliases shared by
the simulation engine, the card catalog and the strategies.
"""
from enum import Enum, Flag, auto
from typing import Dict


# =============================================================================
# Type Aliases
# =============================================================================

ObjectId = int
Timestamp = int


# =============================================================================
# Mana Types
# =============================================================================

class Mana(Enum):
    """
    Kinds of mana a cost can require or a source can produce.

    GENERIC only ever appears in costs: it is the "any" requirement that
    every produced kind of mana can pay.
    """
    WHITE = 'W'
    BLUE = 'U'
    BLACK = 'B'
    RED = 'R'
    GREEN = 'G'
    COLORLESS = 'C'
    GENERIC = 'X'

    @classmethod
    def colors(cls) -> "frozenset":
        """The five colored kinds, WUBRG."""
        return frozenset({cls.WHITE, cls.BLUE, cls.BLACK, cls.RED, cls.GREEN})

    @classmethod
    def from_symbol(cls, symbol: str) -> "Mana":
        """Map a single mana symbol (W, U, B, R, G, C) to its kind."""
        for kind in cls:
            if kind.value == symbol.upper() and kind is not cls.GENERIC:
                return kind
        raise ValueError(f"Unknown mana symbol: {symbol}")


ManaCostMap = Dict[Mana, int]


# =============================================================================
# Card Types
# =============================================================================

class CardType(Enum):
    """Main card type of a catalog entry (one per card)."""
    CREATURE = auto()
    INSTANT = auto()
    SORCERY = auto()
    ENCHANTMENT = auto()
    ARTIFACT = auto()
    LAND = auto()

    @property
    def is_permanent(self) -> bool:
        return self not in (CardType.INSTANT, CardType.SORCERY)


class Capability(Flag):
    """
    Capability set of a card.

    Derived from a card's effect descriptors when the catalog entry is
    built; strategies and win predicates select cards by capability rather
    than by name wherever they can.
    """
    NONE = 0
    PRODUCES_MANA = auto()
    CREATURE = auto()
    SACRIFICE_TRIGGER = auto()
    ENTER_TRIGGER = auto()
    TUTOR = auto()
    COMBO_PIECE = auto()
    SAC_OUTLET = auto()
    ATTACHMENT = auto()


class OutletKind(Enum):
    """How a sacrifice outlet can be used."""
    REPEATABLE = auto()  # Carrion Feeder, Goblin Bombardment
    FLASHBACK = auto()   # Cabal Therapy, from the graveyard, once
    TAP = auto()         # Phyrexian Tower, untapped, once per turn


class SearchFilter(Enum):
    """What a search or look effect may find."""
    ANY = auto()
    CREATURE = auto()
    ENCHANTMENT = auto()
    ENCHANTMENT_OR_ARTIFACT = auto()
    BASIC_LAND = auto()
    CREATURE_MV3 = auto()
    CREATURE_OR_LAND = auto()


class EffectKind(Enum):
    """Tagged effect descriptors; each kind has exactly one handler."""
    SEARCH_TO_HAND = auto()
    SEARCH_TO_TOP = auto()
    SEARCH_TO_BATTLEFIELD = auto()
    SEARCH_SIDEBOARD = auto()
    INTUITION = auto()
    LOOK_AND_TAKE = auto()
    REANIMATE = auto()
    BOUNCE = auto()
    RETURN_SELF = auto()
    EACH_PLAYER_LOSES_LIFE = auto()
    GAIN_LIFE = auto()
    DEAL_DAMAGE = auto()
    DRAW = auto()
    UNTAP_LANDS = auto()
    ADD_COUNTER = auto()
    ADD_MANA = auto()


# =============================================================================
# Zones and Turn Structure
# =============================================================================

class Zone(Enum):
    """Zones a card can be in during a goldfish game."""
    LIBRARY = auto()
    HAND = auto()
    BATTLEFIELD = auto()
    GRAVEYARD = auto()
    EXILE = auto()
    SIDEBOARD = auto()  # outside the game, reachable by wishes


class StepType(Enum):
    """Steps of a turn, in the order the turn engine walks them."""
    UNTAP = auto()
    DRAW = auto()
    MAIN = auto()
    END = auto()


# =============================================================================
# Actions and Outcomes
# =============================================================================

class ActionType(Enum):
    """Kinds of actions a strategy can ask the turn engine to perform."""
    PLAY_LAND = auto()
    CAST = auto()
    ACTIVATE = auto()
    SACRIFICE = auto()
    COMBO_LOOP = auto()


class OutcomeReason(Enum):
    """Why a game ended."""
    COMBO_WIN = "combo-win"
    DECK_OUT = "deck-out-loss"
    TIMEOUT = "turn-cap-timeout"
    LIFE_LOSS = "life-loss"
    NO_COMBO = "no-combo-loss"

    @property
    def is_win(self) -> bool:
        return self is OutcomeReason.COMBO_WIN

    def __str__(self) -> str:
        return self.value
