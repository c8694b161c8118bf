"""Goldfish - Combo Deck Goldfishing Simulator"""
from .engine.game import Game, GameConfig, Outcome, play_game
from .engine.simulation import SimulationRunner, SimulationSummary, simulate, summarize
from .engine.types import OutcomeReason
from .engine.errors import ConfigurationError, GoldfishError
from .cards.parser import Decklist, DecklistParser, load_decklist, parse_decklist
from .cards.catalog import CardCatalog, get_catalog
from .ai.strategy import Strategy, available_strategies, get_strategy

__version__ = "1.0.0"
__all__ = ["Game", "GameConfig", "Outcome", "OutcomeReason", "play_game",
           "SimulationRunner", "SimulationSummary", "simulate", "summarize",
           "ConfigurationError", "GoldfishError", "Decklist", "DecklistParser",
           "load_decklist", "parse_decklist", "CardCatalog", "get_catalog",
           "Strategy", "available_strategies", "get_strategy"]
