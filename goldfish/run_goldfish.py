#!/usr/bin/env python3
"""
Goldfish - Command Line Runner

Simulate many goldfish games of a combo deck and print the distribution of
winning turns.

Usage:
    goldfish --strategy pattern-rector [--deck deck.txt] [--games 10000]
             [--seed 42] [--workers 4] [--max-turns 30] [--verbose]

Example:
    goldfish --strategy aluren --games 1000 --seed 1
"""

import sys
import argparse
from typing import List, Optional

from .ai.strategy import available_strategies
from .cards.parser import load_decklist
from .engine.errors import ConfigurationError
from .engine.game import GameConfig
from .engine.simulation import SimulationRunner, summarize


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Goldfish a combo deck')
    parser.add_argument('--strategy', required=True,
                        help=f"Deck strategy ({', '.join(available_strategies())})")
    parser.add_argument('--deck', default=None,
                        help="Decklist file (default: the strategy's own list)")
    parser.add_argument('--games', type=int, default=1000,
                        help='Number of games (default: 1000)')
    parser.add_argument('--seed', default=None, help='Seed for reproducible runs')
    parser.add_argument('--workers', type=int, default=1,
                        help='Worker processes (default: 1)')
    parser.add_argument('--max-turns', type=int, default=GameConfig.max_turns,
                        help=f'Turn cap per game (default: {GameConfig.max_turns})')
    parser.add_argument('--verbose', action='store_true',
                        help='Print the trace of every game')
    return parser


def run(args: argparse.Namespace) -> int:
    config = GameConfig(max_turns=args.max_turns)
    decklist = load_decklist(args.deck) if args.deck else None
    runner = SimulationRunner(decklist, args.strategy, args.games, args.seed, config)

    print("=" * 60)
    print("GOLDFISH - Combo Deck Simulation")
    print("=" * 60)
    print(f"\nStrategy: {runner.strategy.name}")
    print(f"Deck: {args.deck or 'default list'} ({len(runner.cards)} cards)")
    print(f"Games: {args.games}, seed: {runner.seed}\n")

    if args.verbose:
        outcomes = []
        for index, (outcome, trace) in enumerate(runner.iter_traced()):
            print(f"--- Game {index + 1} ---")
            for line in trace:
                print(line)
            print()
            outcomes.append(outcome)
    elif args.workers > 1:
        outcomes = runner.run_parallel(args.workers)
    else:
        outcomes = runner.run()

    summary = summarize(outcomes)
    print(summary.format_table())
    print()
    print(f"Total: {summary.total_percentage:.1f}% of {summary.games} games")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
