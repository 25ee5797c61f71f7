"""
CLI for training and inspecting Threes! n-tuple agents.

Provides commands:
- train: play episodes with a slider against the random placer
- inspect: show the tables stored in a weight file

Usage:
    threes-td train --total 1000 --block 100 --slide "profile=isomorphic alpha=0.003 save=w.bin"
    threes-td train --total 100 --slider heuristic --place "seed=7"
    threes-td inspect w.bin
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import numpy as np
from tqdm import tqdm

from src.game.agents import RandomPlacer
from src.game.simulator import EpisodeResult, Simulator, summarize

from .agent import TdSlider, make_agent
from .value_function import WeightFileError, read_tables

logger = logging.getLogger(__name__)


def cmd_train(args: argparse.Namespace) -> int:
    """Train command: run episodes and print block statistics."""
    try:
        slider = make_agent(args.slider, args.slide)
        placer = RandomPlacer(args.place)
    except (WeightFileError, ValueError) as e:
        logger.error(f"Cannot create agents: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    milestone = slider.profile.milestone if isinstance(slider, TdSlider) else None
    simulator = Simulator(milestone=milestone)

    block: list[EpisodeResult] = []
    episodes = range(args.total)
    if not args.quiet:
        episodes = tqdm(episodes, desc="Episodes")

    try:
        for episode in episodes:
            block.append(simulator.run_episode(slider, placer))
            if len(block) == args.block or episode + 1 == args.total:
                summary = summarize(block)
                print(f"{episode + 1}\t{summary.format()}")
                block = []
    finally:
        if isinstance(slider, TdSlider):
            slider.close()

    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    """Inspect command: list the tables in a weight file."""
    path = Path(args.path)
    try:
        tables = read_tables(path)
    except WeightFileError as e:
        print(f"Error reading {path}: {e}", file=sys.stderr)
        return 1

    print(f"{path}: {len(tables)} tables")
    for i, table in enumerate(tables):
        nonzero = int(np.count_nonzero(table))
        if table.size:
            stats = f"min={table.min():.4f} max={table.max():.4f} mean={table.mean():.6f}"
        else:
            stats = "empty"
        print(f"  table {i}: {table.size} entries, {nonzero} nonzero, {stats}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="threes-td",
        description="Threes! n-tuple TD learning",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log training details",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    train_parser = subparsers.add_parser("train", help="Play and learn from episodes")
    train_parser.add_argument(
        "--total", "-n",
        type=int,
        default=1000,
        help="Number of episodes (default: 1000)",
    )
    train_parser.add_argument(
        "--block", "-b",
        type=int,
        default=100,
        help="Episodes per statistics block (default: 100)",
    )
    train_parser.add_argument(
        "--slider",
        choices=["td", "random", "heuristic"],
        default="td",
        help="Slider kind (default: td)",
    )
    train_parser.add_argument(
        "--slide",
        default="",
        help='Slider options, e.g. "profile=milestone alpha=0.01 load=w.bin save=w.bin"',
    )
    train_parser.add_argument(
        "--place",
        default="",
        help='Placer options, e.g. "seed=42"',
    )
    train_parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress progress bars",
    )

    inspect_parser = subparsers.add_parser("inspect", help="Show a weight file's tables")
    inspect_parser.add_argument("path", help="Weight file")

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "train": cmd_train,
        "inspect": cmd_inspect,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
