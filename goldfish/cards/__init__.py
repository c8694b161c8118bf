"""Card catalog and decklist parsing"""
from .catalog import CardCatalog, get_card, get_catalog
from .parser import Decklist, DecklistEntry, DecklistParser, load_decklist, parse_decklist, resolve_decklist
