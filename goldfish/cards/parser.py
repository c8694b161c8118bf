"""Goldfish - Decklist Parser

Parses decklist text into card names and resolves them against the card
catalog.

Accepted line forms:
    4 Card Name        (MTGO style, N copies)
    Card Name          (one copy; repeat the line for more)
    // Comment         (ignored, as are lines starting with #)

Entries after a "Sideboard" line form the sideboard. Games draw only from
the main deck; wishes fetch from the sideboard.
"""
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from ..engine.errors import ConfigurationError
from ..engine.objects import Card
from .catalog import CardCatalog, get_catalog


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class DecklistEntry:
    """
    A single entry in a decklist representing a card and its count.

    Attributes:
        count: Number of copies of this card
        card_name: The name of the card
    """
    count: int
    card_name: str

    def __post_init__(self):
        """Validate entry data."""
        if self.count < 1:
            raise ConfigurationError(f"Card count must be at least 1, got {self.count}")
        if not self.card_name or not self.card_name.strip():
            raise ConfigurationError("Card name cannot be empty")
        self.card_name = self.card_name.strip()


@dataclass
class Decklist:
    """
    A parsed decklist.

    Attributes:
        name: The name of the deck
        entries: Main deck entries in file order
        sideboard: Sideboard entries in file order
    """
    name: str
    entries: List[DecklistEntry] = field(default_factory=list)
    sideboard: List[DecklistEntry] = field(default_factory=list)

    @property
    def count(self) -> int:
        """Total number of main deck cards."""
        return sum(e.count for e in self.entries)

    @property
    def sideboard_count(self) -> int:
        return sum(e.count for e in self.sideboard)

    def card_names(self) -> List[str]:
        """One name per main deck card, in file order."""
        return _expand(self.entries)

    def sideboard_names(self) -> List[str]:
        return _expand(self.sideboard)

    def add_entry(self, count: int, card_name: str, sideboard: bool = False):
        entries = self.sideboard if sideboard else self.entries
        entries.append(DecklistEntry(count, card_name))

    @classmethod
    def from_counts(cls, name: str, counts: Sequence[Tuple[int, str]],
                    sideboard: Sequence[Tuple[int, str]] = ()) -> 'Decklist':
        return cls(name=name,
                   entries=[DecklistEntry(n, card) for n, card in counts],
                   sideboard=[DecklistEntry(n, card) for n, card in sideboard])

    def __repr__(self) -> str:
        if self.sideboard:
            return f"Decklist({self.name}: {self.count} cards, {self.sideboard_count} sideboard)"
        return f"Decklist({self.name}: {self.count} cards)"


def _expand(entries: Sequence[DecklistEntry]) -> List[str]:
    names: List[str] = []
    for entry in entries:
        names.extend([entry.card_name] * entry.count)
    return names


# =============================================================================
# Decklist Parser
# =============================================================================

class DecklistParser:
    """Parser for plain and MTGO-format decklists."""

    CARD_PATTERN = re.compile(r'^(\d+)x?\s+(.+)$')
    SIDEBOARD_MARKERS = {'sideboard', 'sb:', 'side:', 'side board'}
    COMMENT_PREFIXES = ('//', '#')

    def parse(self, text: str, deck_name: str = "Unnamed Deck") -> Decklist:
        """
        Parse decklist text.

        Args:
            text: The decklist text
            deck_name: Name for the resulting Decklist

        Returns:
            Parsed Decklist object
        """
        decklist = Decklist(name=deck_name)
        in_sideboard = False

        for line in text.splitlines():
            line = line.strip()

            if not line:
                continue
            if any(line.startswith(prefix) for prefix in self.COMMENT_PREFIXES):
                continue
            if self._is_sideboard_marker(line):
                in_sideboard = True
                continue

            match = self.CARD_PATTERN.match(line)
            if match:
                decklist.add_entry(int(match.group(1)), match.group(2), in_sideboard)
            else:
                decklist.add_entry(1, line, in_sideboard)

        return decklist

    def parse_file(self, path: Union[str, Path]) -> Decklist:
        """
        Parse a decklist from a file.

        Raises:
            ConfigurationError: If the file does not exist
        """
        filepath = Path(path)
        if not filepath.exists():
            raise ConfigurationError(f"Decklist file not found: {path}")

        name = filepath.stem.replace('_', ' ')
        with open(filepath, 'r', encoding='utf-8') as f:
            text = f.read()
        return self.parse(text, deck_name=name)

    def _is_sideboard_marker(self, line: str) -> bool:
        line_lower = line.lower().strip()
        return line_lower in self.SIDEBOARD_MARKERS or line_lower.startswith('sideboard')


# =============================================================================
# Resolution
# =============================================================================

def parse_decklist(text: str, deck_name: str = "Unnamed Deck") -> Decklist:
    return DecklistParser().parse(text, deck_name)


def load_decklist(path: Union[str, Path]) -> Decklist:
    return DecklistParser().parse_file(path)


def _resolve_names(items: Sequence[Union[str, Card]], catalog: CardCatalog) -> List[Card]:
    cards: List[Card] = []
    unknown: List[str] = []
    for item in items:
        if isinstance(item, Card):
            cards.append(item)
            continue
        card = catalog.find(item)
        if card is None:
            unknown.append(item)
        else:
            cards.append(card)

    if unknown:
        raise ConfigurationError(f"Unknown card(s) in decklist: {', '.join(sorted(set(unknown)))}")
    return cards


def resolve_decklist(
    decklist: Union[Decklist, Sequence[Union[str, Card]]],
    catalog: Optional[CardCatalog] = None,
    deck_size: Optional[int] = None
) -> List[Card]:
    """
    Resolve a decklist into the ordered sequence of catalog cards.

    Args:
        decklist: A Decklist, or a sequence of card names or Cards
        catalog: Catalog to resolve against (the global one by default)
        deck_size: Required number of cards, or None for any size

    Returns:
        One Card per main deck copy, in decklist order

    Raises:
        ConfigurationError: On unknown card names or a wrong deck size
    """
    items = decklist.card_names() if isinstance(decklist, Decklist) else list(decklist)
    cards = _resolve_names(items, catalog or get_catalog())
    if deck_size is not None and len(cards) != deck_size:
        raise ConfigurationError(
            f"Decklist has {len(cards)} cards, expected {deck_size}")
    return cards


def resolve_sideboard(
    sideboard: Union[Decklist, Sequence[Union[str, Card]]],
    catalog: Optional[CardCatalog] = None
) -> List[Card]:
    """
    Resolve a sideboard: the sideboard section of a Decklist, or a
    sequence of card names or Cards.

    Raises:
        ConfigurationError: On unknown card names
    """
    items = sideboard.sideboard_names() if isinstance(sideboard, Decklist) else list(sideboard)
    return _resolve_names(items, catalog or get_catalog())
