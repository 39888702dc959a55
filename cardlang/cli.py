"""
Cardlang CLI - Command-line host for .card programs.

Usage:
    cardlang build <program>                  Parse and validate a program
    cardlang show <program> [--seed N]        Run setup and print every stack
    cardlang test <program> <specs.json>      Run spec tests

<program> is a path to a .card file or the name of a bundled game
(simple_scopa, first_to_five).

Non-interactive: no game logic lives here.
"""

import argparse
import os
import sys

from .config import EngineConfig, setup_logging
from .errors import CardlangError
from .games import GAMES, load_source
from .language import parse, validate_program


def main(argv=None):
    """Main CLI entry point."""
    config = EngineConfig.from_env()

    parser = argparse.ArgumentParser(
        description="Cardlang - interpreter for turn-based card game programs",
        prog="cardlang",
    )
    parser.add_argument("--log-level", default=config.log_level, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Build command
    build_parser = subparsers.add_parser("build", help="Parse and validate a program")
    build_parser.add_argument("program", help="Path to .card file or bundled game name")

    # Show command
    show_parser = subparsers.add_parser("show", help="Start a game and print its stacks")
    show_parser.add_argument("program", help="Path to .card file or bundled game name")
    show_parser.add_argument("--seed", type=int, default=config.seed, help="Shuffle seed")

    # Test command
    test_parser = subparsers.add_parser("test", help="Run spec tests against a program")
    test_parser.add_argument("program", help="Path to .card file or bundled game name")
    test_parser.add_argument("specs_file", help="JSON array of spec tests")

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "build":
        cmd_build(args)
    elif args.command == "show":
        cmd_show(args, config)
    elif args.command == "test":
        cmd_test(args, config)
    else:
        parser.print_help()
        sys.exit(1)


def read_program_source(ref):
    """Source text from a file path, or from a bundled game by name."""
    if not os.path.exists(ref) and ref in GAMES:
        return load_source(ref)
    try:
        with open(ref, "r", encoding="utf-8") as f:
            return f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {ref}")
        sys.exit(1)


def _parse_or_exit(ref):
    try:
        return parse(read_program_source(ref))
    except CardlangError as e:
        print(f"Error: {e.message}")
        sys.exit(1)


def cmd_build(args):
    """Parse and validate a program."""
    program = _parse_or_exit(args.program)

    print(f"Game: {program.name}")
    print(f"Players: {program.players} (player {program.current_player} starts)")
    print(f"Stacks: {', '.join(program.stacks) or '-'}")
    print(f"Player stacks: {', '.join(program.player_stacks) or '-'}")
    print(f"Functions: {', '.join(program.functions) or '-'}")

    warnings = validate_program(program).warnings
    if warnings:
        print("\nWarnings:")
        for w in warnings:
            print(f"  - {w}")


def cmd_show(args, config):
    """Start a game and print every stack."""
    from .session import new_game

    program = _parse_or_exit(args.program)
    try:
        state = new_game(program, seed=args.seed, config=config)
    except CardlangError as e:
        print(f"Error: {e.message}")
        sys.exit(1)

    print(f"Game: {program.name} - player {state.current_player_id} to move")
    for ref in state.all_refs():
        cards = state.cards(ref)
        print(f"  {str(ref):<16} {len(cards):>3}  {' '.join(str(c) for c in cards)}")


def cmd_test(args, config):
    """Run spec tests."""
    from pydantic import ValidationError
    from .api import load_spec_tests, run_spec_tests

    program = _parse_or_exit(args.program)
    try:
        with open(args.specs_file, "r", encoding="utf-8") as f:
            specs = load_spec_tests(f.read())
    except FileNotFoundError:
        print(f"Error: File not found: {args.specs_file}")
        sys.exit(1)
    except ValidationError as e:
        print(f"Error: invalid spec tests:\n{e}")
        sys.exit(1)

    report = run_spec_tests(program, specs, config)
    for result in report.results:
        print(f"{'PASS' if result.passed else 'FAIL'}  {result.name}")
        for failure in result.failures:
            print(f"      - {failure}")

    print(f"\n{report.passed} passed, {report.failed} failed")
    if not report.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
