"""Goldfish Engine - Simulation Driver

This module runs batches of goldfish games and aggregates their outcomes:
- Per-game generators derived from one batch seed
- Sequential and process-parallel execution with identical results
- Traced single games for inspection
- A statistics summary (wins per turn, cumulative win percentage)
"""

from concurrent.futures import ProcessPoolExecutor
import copy
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Optional, Sequence, Tuple
import random

from .errors import ConfigurationError
from .game import Game, GameConfig, Outcome
from .objects import Card
from .types import OutcomeReason


# =============================================================================
# SEEDING
# =============================================================================

def game_rng(seed, index: int) -> random.Random:
    """Generator for game ``index`` of a batch seeded with ``seed``."""
    return random.Random(f"{seed}:{index}")


def _chunks(count: int, parts: int) -> List[range]:
    """Split range(count) into up to ``parts`` contiguous ranges."""
    parts = max(1, min(parts, count))
    size, extra = divmod(count, parts)
    ranges = []
    start = 0
    for i in range(parts):
        stop = start + size + (1 if i < extra else 0)
        ranges.append(range(start, stop))
        start = stop
    return ranges


def _new_game(cards: List[Card], sideboard: List[Card], strategy, config: GameConfig,
              seed, index: int) -> Game:
    """Game ``index`` of a batch, with its own copy of the strategy."""
    return Game(cards, copy.deepcopy(strategy), config, game_rng(seed, index), sideboard)


def _run_chunk(cards: List[Card], sideboard: List[Card], strategy, config: GameConfig,
               seed, indices: range) -> List[Outcome]:
    """
    Run a contiguous block of games.

    Module level so ProcessPoolExecutor can pickle it.
    """
    outcomes = []
    for index in indices:
        game = _new_game(cards, sideboard, strategy, config, seed, index)
        outcomes.append(game.run())
    return outcomes


# =============================================================================
# SIMULATION RUNNER
# =============================================================================

class SimulationRunner:
    """
    Runs many games of one deck with one strategy.

    The decklist and strategy are resolved when the runner is built, so
    configuration errors surface before any game is played.

    Attributes:
        cards: The resolved deck
        sideboard: The resolved sideboard
        strategy: Strategy instance; every game plays a deep copy of it
        game_count: Number of games to run
        seed: Batch seed; drawn at random when not given
        config: Configuration shared by every game
    """

    def __init__(
        self,
        decklist,
        strategy,
        game_count: int,
        seed=None,
        config: GameConfig = None
    ):
        from ..ai.strategy import Strategy, get_strategy
        from ..cards.parser import Decklist, resolve_decklist, resolve_sideboard

        self.config = config or GameConfig()
        self.config.validate()
        if game_count < 0:
            raise ConfigurationError(f"game_count cannot be negative, got {game_count}")

        if isinstance(strategy, str):
            strategy = get_strategy(strategy)
        elif isinstance(strategy, type) and issubclass(strategy, Strategy):
            strategy = strategy()
        if not isinstance(strategy, Strategy):
            raise ConfigurationError(f"Not a strategy: {strategy!r}")
        self.strategy = strategy

        if decklist is None:
            self.cards: List[Card] = resolve_decklist(strategy.deck_names(),
                                                      deck_size=self.config.deck_size)
            self.sideboard: List[Card] = resolve_sideboard(strategy.sideboard_names())
        else:
            self.cards = resolve_decklist(decklist, deck_size=self.config.deck_size)
            self.sideboard = resolve_sideboard(decklist) if isinstance(decklist, Decklist) else []

        self.game_count = game_count
        self.seed = seed if seed is not None else random.getrandbits(64)

    def run(self) -> List[Outcome]:
        """
        Run all games sequentially.

        Returns:
            Outcomes in game index order
        """
        return _run_chunk(self.cards, self.sideboard, self.strategy, self.config,
                          self.seed, range(self.game_count))

    def run_parallel(self, num_workers: int = 4) -> List[Outcome]:
        """
        Run games in parallel using multiple processes.

        Each worker gets a contiguous block of game indices and derives the
        same per-game generators as the sequential run, so the merged list
        equals run().

        Args:
            num_workers: Number of parallel worker processes

        Returns:
            Outcomes in game index order
        """
        if num_workers <= 1 or self.game_count <= 1:
            return self.run()

        blocks = _chunks(self.game_count, num_workers)
        outcomes: List[Outcome] = []
        with ProcessPoolExecutor(max_workers=len(blocks)) as executor:
            futures = [
                executor.submit(_run_chunk, self.cards, self.sideboard, self.strategy,
                                self.config, self.seed, block)
                for block in blocks
            ]
            for future in futures:
                outcomes.extend(future.result())
        return outcomes

    def run_traced(self, index: int = 0) -> Tuple[Outcome, List[str]]:
        """
        Replay one game of the batch with the trace enabled.

        Returns:
            (outcome, trace lines)
        """
        config = replace(self.config, verbose=True)
        game = _new_game(self.cards, self.sideboard, self.strategy, config, self.seed, index)
        outcome = game.run()
        return outcome, list(game.trace())

    def iter_traced(self) -> Iterator[Tuple[Outcome, List[str]]]:
        """Traced games one at a time, in index order."""
        for index in range(self.game_count):
            yield self.run_traced(index)


def simulate(
    decklist,
    strategy,
    game_count: int,
    seed=None,
    config: GameConfig = None,
    workers: int = 1
) -> List[Outcome]:
    """
    Simulate a batch of games.

    Args:
        decklist: Decklist (its sideboard included), card names or Cards;
                  None for the strategy's own list and sideboard
        strategy: Strategy name, class or instance
        game_count: Number of games
        seed: Batch seed for reproducible results
        config: Game configuration
        workers: Worker processes; 1 runs sequentially

    Returns:
        Outcomes in game index order

    Raises:
        ConfigurationError: Before any game runs, for a bad deck or strategy
    """
    runner = SimulationRunner(decklist, strategy, game_count, seed, config)
    if workers > 1:
        return runner.run_parallel(workers)
    return runner.run()


# =============================================================================
# STATISTICS
# =============================================================================

@dataclass
class SimulationSummary:
    """
    Aggregated statistics over a batch of outcomes.

    Attributes:
        games: Number of games
        wins_by_turn: Wins keyed by the turn they happened on
        losses_by_turn: Deck-out and life losses keyed by turn
        timeouts: Games that hit the turn cap
        reasons: Count per outcome reason
    """
    games: int = 0
    wins_by_turn: Dict[int, int] = field(default_factory=dict)
    losses_by_turn: Dict[int, int] = field(default_factory=dict)
    timeouts: int = 0
    reasons: Dict[str, int] = field(default_factory=dict)

    @property
    def wins(self) -> int:
        return sum(self.wins_by_turn.values())

    @property
    def losses(self) -> int:
        return sum(self.losses_by_turn.values())

    def percentage(self, count: int) -> float:
        return 100.0 * count / self.games if self.games else 0.0

    @property
    def total_percentage(self) -> float:
        """Wins, losses and timeouts as a percentage of games (100 when non-empty)."""
        return self.percentage(self.wins + self.losses + self.timeouts)

    @property
    def average_win_turn(self) -> Optional[float]:
        if not self.wins:
            return None
        return sum(t * n for t, n in self.wins_by_turn.items()) / self.wins

    def cumulative_wins(self) -> List[Tuple[int, int, float, float]]:
        """
        Rows of (turn, wins, win %, cumulative win %) in turn order.

        The cumulative percentage never decreases.
        """
        rows = []
        cumulative = 0
        for turn in sorted(self.wins_by_turn):
            wins = self.wins_by_turn[turn]
            cumulative += wins
            rows.append((turn, wins, self.percentage(wins), self.percentage(cumulative)))
        return rows

    def format_table(self) -> str:
        lines = []
        for turn, wins, pct, cumulative in self.cumulative_wins():
            lines.append(f"Turn {turn:02d}: {wins} wins ({pct:.1f}%) - cumulative {cumulative:.1f}%")
        cumulative_losses = 0
        for turn in sorted(self.losses_by_turn):
            losses = self.losses_by_turn[turn]
            cumulative_losses += losses
            lines.append(f"Turn {turn:02d}: {losses} losses ({self.percentage(losses):.1f}%)"
                         f" - cumulative {self.percentage(cumulative_losses):.1f}%")
        if self.timeouts:
            lines.append(f"Timeouts: {self.timeouts} ({self.percentage(self.timeouts):.1f}%)")
        average = self.average_win_turn
        if average is not None:
            lines.append(f"Average win turn: {average:.2f}")
        return "\n".join(lines)


def summarize(outcomes: Sequence[Outcome]) -> SimulationSummary:
    """Build a SimulationSummary from outcomes."""
    summary = SimulationSummary(games=len(outcomes))
    for outcome in outcomes:
        reason = outcome.reason.value
        summary.reasons[reason] = summary.reasons.get(reason, 0) + 1
        if outcome.won:
            summary.wins_by_turn[outcome.turn] = summary.wins_by_turn.get(outcome.turn, 0) + 1
        elif outcome.reason == OutcomeReason.TIMEOUT:
            summary.timeouts += 1
        else:
            summary.losses_by_turn[outcome.turn] = summary.losses_by_turn.get(outcome.turn, 0) + 1
    return summary
