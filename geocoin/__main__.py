"""Entry point for ``python -m geocoin``.

Loads the YAML config and the saved game, applies one command, saves,
and prints the player's status followed by the caches in range.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

from geocoin.errors import UnknownCellError
from geocoin.game.config import GameConfig
from geocoin.game.engine import DIRECTIONS, GameEngine
from geocoin.setup_logging import setup_logging
from geocoin.state.persistence import FileSlot, PersistenceManager

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)
_DEFAULT_SAVE_DIR = pathlib.Path.home() / ".geocoin"


def build_parser() -> argparse.ArgumentParser:
    """Return the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="geocoin",
        description="geocoin - location-based coin collecting",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "--save-dir",
        type=pathlib.Path,
        default=_DEFAULT_SAVE_DIR,
        help="Directory holding save slots (default: ~/.geocoin)",
    )
    parser.add_argument(
        "--slot",
        default=None,
        help="Save slot name (default: from config)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log engine activity to stderr",
    )

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("status", help="Show totals and nearby caches")

    move = sub.add_parser("move", help="Step one tile")
    move.add_argument("direction", choices=sorted(DIRECTIONS))

    for name, verb in (("collect", "Take"), ("deposit", "Leave")):
        cmd = sub.add_parser(name, help=f"{verb} coins at cache I J")
        cmd.add_argument("i", type=int)
        cmd.add_argument("j", type=int)
        cmd.add_argument(
            "-n",
            type=int,
            default=1,
            help="Number of coins (default: 1, 0 for all)",
        )

    sub.add_parser("reset", help="Erase all progress")
    return parser


def format_caches(engine: GameEngine) -> list[str]:
    """Render one line per cache in range."""
    return [
        f"  cache {r.cell.i},{r.cell.j}: value {r.point_value}, {r.coin_count} coins"
        for r in engine.live_caches()
    ]


def main(argv: list[str] | None = None) -> None:
    """Parse CLI args, load the game, run one command, report."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    config = GameConfig.from_yaml(args.config)
    persistence = PersistenceManager(
        slot_storage=FileSlot(args.save_dir),
        slot=args.slot or config.save_slot,
    )
    engine = GameEngine(config=config, persistence=persistence)

    if args.command == "move":
        engine.step(args.direction)
    elif args.command in ("collect", "deposit"):
        cell = engine.registry.of_cell_index(args.i, args.j)
        n = None if args.n == 0 else args.n
        action = engine.collect if args.command == "collect" else engine.deposit
        try:
            moved = action(cell, n)
        except UnknownCellError as exc:
            parser.error(str(exc))
        if not moved:
            print(f"{args.command} refused")
    elif args.command == "reset":
        engine.reset()

    print(engine.status)
    print(f"Player at cell {engine.player_cell.key}")
    for line in format_caches(engine):
        print(line)


if __name__ == "__main__":
    main()
