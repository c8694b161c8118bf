"""Archetype strategies"""
from .strategy import Action, ComboLoop, Strategy, available_strategies, get_strategy
from .pattern_rector import PatternRector
from .pattern_hulk import PatternHulk
from .aluren import Aluren

__all__ = ["Action", "ComboLoop", "Strategy", "available_strategies", "get_strategy",
           "PatternRector", "PatternHulk", "Aluren"]
