"""Goldfish Engine - Game

This module runs one goldfish game end to end:

1. Setup (turn 0): shuffle, draw an opening hand, London mulligan loop
2. Turns until the win detector reports a verdict, the deck runs out
   during a draw, or the turn cap is reached

The optional trace is buffered on the game state and can be read after
the game through Game.trace().
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterator, Optional, Sequence
import random

from .effects import EffectResolver
from .errors import ConfigurationError, DeckOut
from .objects import Card
from .turns import TurnEngine
from .types import OutcomeReason, Zone
from .win import WinDetector
from .zones import GameState


# =============================================================================
# CONFIGURATION AND RESULT
# =============================================================================

@dataclass
class GameConfig:
    """
    Configuration settings for a game instance.

    Attributes:
        starting_life: Initial life total (default 20)
        starting_hand_size: Cards in an opening hand (default 7)
        max_hand_size: Hand size enforced in the end step (default 7)
        max_turns: Turn cap; reaching it is a timeout loss (default 30)
        deck_size: Required deck size, or None for any (default 60)
        land_limit: Land drops per turn (default 1)
        opponent_life: Damage needed for a damage-based win (default 20)
        loop_iteration_cap: Maximum iterations of one combo loop (default 100)
        max_rejections: Rejected actions tolerated per main step (default 16)
        max_actions: Actions per main step before passing (default 1000)
        on_the_play: Skip the first draw (default True)
        shuffle: Shuffle the library before the opening hand (default True)
        strict: Raise on rejected strategy actions (default False)
        verbose: Buffer a human readable trace (default False)
    """
    starting_life: int = 20
    starting_hand_size: int = 7
    max_hand_size: int = 7
    max_turns: int = 30
    deck_size: Optional[int] = 60
    land_limit: int = 1
    opponent_life: int = 20
    loop_iteration_cap: int = 100
    max_rejections: int = 16
    max_actions: int = 1000
    on_the_play: bool = True
    shuffle: bool = True
    strict: bool = False
    verbose: bool = False

    def validate(self):
        """
        Raises:
            ConfigurationError: If a value is out of range
        """
        positive = {
            "starting_life": self.starting_life,
            "max_turns": self.max_turns,
            "land_limit": self.land_limit,
            "opponent_life": self.opponent_life,
            "loop_iteration_cap": self.loop_iteration_cap,
            "max_rejections": self.max_rejections,
            "max_actions": self.max_actions,
        }
        for name, value in positive.items():
            if value < 1:
                raise ConfigurationError(f"{name} must be at least 1, got {value}")
        if self.starting_hand_size < 0 or self.max_hand_size < 0:
            raise ConfigurationError("Hand sizes cannot be negative")
        if self.deck_size is not None and self.deck_size < self.starting_hand_size:
            raise ConfigurationError(
                f"deck_size {self.deck_size} is smaller than the opening hand")


@dataclass
class Outcome:
    """
    Result of a completed game.

    Attributes:
        turn: Turn on which the game ended
        won: True for a win
        reason: How the game ended
        life_total: Our life total at the end
        damage_dealt: Damage dealt to the opponent
        mulligans: Mulligans taken before keeping
    """
    turn: int
    won: bool
    reason: OutcomeReason
    life_total: int = 20
    damage_dealt: int = 0
    mulligans: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["reason"] = self.reason.value
        return data

    def __str__(self) -> str:
        verb = "Won" if self.won else "Lost"
        return f"{verb} the game on turn {self.turn} ({self.reason.value})"


# =============================================================================
# GAME
# =============================================================================

class Game:
    """
    One goldfish game.

    Args:
        cards: The deck, one Card per copy
        strategy: Decision procedure for the deck
        config: Game configuration
        rng: Injected random generator; a fresh unseeded one if omitted
        sideboard: Cards outside the game that wishes can fetch
    """

    def __init__(self, cards: Sequence[Card], strategy, config: GameConfig = None,
                 rng: Optional[random.Random] = None, sideboard: Sequence[Card] = ()):
        self.config = config or GameConfig()
        self.config.validate()
        if self.config.deck_size is not None and len(cards) != self.config.deck_size:
            raise ConfigurationError(
                f"Deck has {len(cards)} cards, expected {self.config.deck_size}")

        self.strategy = strategy
        self.state = GameState(
            cards,
            rng=rng or random.Random(),
            starting_life=self.config.starting_life,
            land_limit=self.config.land_limit,
            verbose=self.config.verbose,
            sideboard=sideboard
        )
        self.detector = WinDetector(strategy.win_lines(), self.config.opponent_life,
                                    losses=strategy.loss_lines())
        self.resolver = EffectResolver(
            self.state, strategy,
            iteration_cap=self.config.loop_iteration_cap,
            win_check=self.detector.is_won
        )
        self.engine = TurnEngine(
            self.state, strategy, self.resolver, self.detector,
            on_the_play=self.config.on_the_play,
            max_hand_size=self.config.max_hand_size,
            max_rejections=self.config.max_rejections,
            max_actions=self.config.max_actions,
            strict=self.config.strict
        )
        self.outcome: Optional[Outcome] = None

    def log(self, message: str, level: str = "info"):
        self.state.log(message, level)

    def trace(self) -> Iterator[str]:
        """Lazily yield the buffered trace lines (empty unless verbose)."""
        for line in self.state.trace:
            yield line

    # -------------------------------------------------------------------------
    # Setup
    # -------------------------------------------------------------------------

    def setup(self):
        """
        Turn 0: shuffle and find a starting hand (London mulligan).

        Draws a full hand each time. On a keep after k mulligans, k cards
        of the strategy's choosing go to the bottom of the library in the
        order the strategy gives.

        Raises:
            DeckOut: If the library cannot provide an opening hand
        """
        hand_size = self.config.starting_hand_size
        if self.config.shuffle:
            self.state.shuffle_library()

        mulligans = 0
        while True:
            hand = self.state.draw(hand_size)
            self.log(f"Opening hand: {', '.join(c.name for c in hand)}")
            if mulligans >= hand_size or self.strategy.decide_mulligan(self.state, hand, mulligans):
                break
            self.log(f"Mulligan ({mulligans + 1})")
            for card in list(self.state.hand):
                self.state.move(card, Zone.HAND, Zone.LIBRARY)
            self.state.shuffle_library()
            mulligans += 1

        self.state.mulligans = mulligans
        if mulligans:
            chosen = self.strategy.decide_bottom(self.state, list(self.state.hand), mulligans)
            if len(chosen) != min(mulligans, len(self.state.hand)):
                raise ConfigurationError(
                    f"{self.strategy!r} chose {len(chosen)} card(s) to bottom, "
                    f"expected {mulligans}")
            self.state.put_on_bottom(chosen)
            self.log(f"Bottomed {', '.join(c.name for c in chosen)}")

    # -------------------------------------------------------------------------
    # Main loop
    # -------------------------------------------------------------------------

    def run(self) -> Outcome:
        """
        Play the game to a terminal outcome.

        Returns:
            Outcome of the game
        """
        try:
            self.setup()
        except DeckOut:
            return self._finish(OutcomeReason.DECK_OUT)

        self.state.log_state()
        while self.state.turn < self.config.max_turns:
            verdict = self.engine.play_turn()
            if verdict is not None:
                return self._finish(verdict)
        return self._finish(OutcomeReason.TIMEOUT)

    def _finish(self, reason: OutcomeReason) -> Outcome:
        self.outcome = Outcome(
            turn=self.state.turn,
            won=reason.is_win,
            reason=reason,
            life_total=self.state.life_total,
            damage_dealt=self.state.damage_dealt,
            mulligans=self.state.mulligans
        )
        if reason.is_win and self.detector.winning_line is not None:
            self.log(f"Combo assembled: {self.detector.winning_line.name}")
        elif reason == OutcomeReason.NO_COMBO and self.detector.losing_line is not None:
            self.log(f"Combo out of reach: {self.detector.losing_line.name}")
        self.log(str(self.outcome))
        return self.outcome


def play_game(cards: Sequence[Card], strategy, config: GameConfig = None,
              rng: Optional[random.Random] = None, sideboard: Sequence[Card] = ()) -> Outcome:
    """Convenience wrapper: build a Game and run it."""
    return Game(cards, strategy, config, rng, sideboard).run()
