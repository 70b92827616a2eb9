"""
RnR CLI - Command-line interface for the rules engine.

Usage:
    rnr serve [--host H] [--port P]         Run the HTTP API
    rnr new-game [--game-id ID] [--seed N]  Create a game in the store
    rnr show <game_id> [--player ID]        Print a game's projection as JSON
    rnr cards [--kind KIND]                 List the card catalog
    rnr validate-cards <cards_file>         Check a card-data JSON file

The store location comes from RNR_STORE_DIR (or --store-dir); without
one, games only live as long as the process.
"""

import argparse
import json
import logging
import sys

from .config import EngineConfig


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Revolution and Rebellion - Rules Engine",
        prog="rnr",
    )
    parser.add_argument("--store-dir", help="JSON game store directory (overrides RNR_STORE_DIR)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # New game command
    new_parser = subparsers.add_parser("new-game", help="Create a game in the store")
    new_parser.add_argument("--game-id", help="Game id (generated when omitted)")
    new_parser.add_argument("--seed", type=int, default=0, help="PRNG seed")
    new_parser.add_argument("--first-player", help="p1 or p2 (random when omitted)")

    # Show command
    show_parser = subparsers.add_parser("show", help="Print a game's state as JSON")
    show_parser.add_argument("game_id", help="Game id")
    show_parser.add_argument("--player", help="Project for this player (full document when omitted)")

    # Cards command
    cards_parser = subparsers.add_parser("cards", help="List the card catalog")
    cards_parser.add_argument("--kind", choices=["leader", "character", "help", "sp"], help="Filter by kind")

    # Validate command
    validate_parser = subparsers.add_parser("validate-cards", help="Validate a card-data JSON file")
    validate_parser.add_argument("cards_file", help="Path to card-data file")

    args = parser.parse_args(argv)

    config = EngineConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "new-game":
        cmd_new_game(args, config)
    elif args.command == "show":
        cmd_show(args, config)
    elif args.command == "cards":
        cmd_cards(args)
    elif args.command == "validate-cards":
        cmd_validate_cards(args)
    else:
        parser.print_help()
        sys.exit(1)


def _service(args, config):
    from .api.service import APIService
    from .storage.store import create_store

    store_dir = args.store_dir or config.store_dir
    return APIService(store=create_store(store_dir), config=config)


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import os
    import uvicorn

    if args.store_dir:
        os.environ["RNR_STORE_DIR"] = args.store_dir
    uvicorn.run("rnr_engine.api.app:app", host=args.host, port=args.port, reload=args.reload)


def cmd_new_game(args, config):
    """Create a game and print its id."""
    from .api.schemas import CreateGameRequest

    service = _service(args, config)
    envelope = service.create_game(CreateGameRequest(
        game_id=args.game_id,
        seed=args.seed,
        first_player=args.first_player,
    ))
    if not envelope.success:
        print(f"Error: {envelope.error.kind.value}: {envelope.error.message}")
        sys.exit(1)

    state = envelope.state
    print(f"Game created: {state['gameId']}")
    print(f"First player: {state['firstPlayer']}")
    if not (args.store_dir or config.store_dir):
        print("Warning: no RNR_STORE_DIR set, the game was not persisted")


def cmd_show(args, config):
    """Print a game's state as JSON."""
    service = _service(args, config)
    envelope = service.query_state(args.game_id, args.player)
    if not envelope.success:
        print(f"Error: {envelope.error.kind.value}: {envelope.error.message}")
        sys.exit(1)
    print(json.dumps(envelope.state, indent=2, sort_keys=True))


def cmd_cards(args):
    """List the card catalog."""
    from .cards.definitions import CardKind
    from .cards.registry import default_registry

    registry = default_registry()
    cards = registry.cards_of_kind(CardKind(args.kind)) if args.kind else registry.all_cards()
    for card in cards:
        traits = f" [{', '.join(card.traits)}]" if card.traits else ""
        print(f"{card.id:6} {card.kind.value:9} {card.game_type:11} {card.base_power:4}  {card.name}{traits}")
        for rule in card.effects:
            print(f"{'':8}{rule.trigger.value}: {rule.description or rule.effect.kind.value}")
    print(f"\n{len(cards)} card(s)")


def cmd_validate_cards(args):
    """Validate a card-data JSON file."""
    from .cards.registry import CardRegistry
    from .rules.validation import CardValidationError

    try:
        registry = CardRegistry.from_file(args.cards_file)
    except FileNotFoundError:
        print(f"Error: File not found: {args.cards_file}")
        sys.exit(1)
    except CardValidationError as e:
        print("INVALID")
        for error in e.errors:
            print(f"  - {error}")
        sys.exit(1)

    print(f"VALID ({len(registry)} cards, {len(registry.combos)} combos)")


if __name__ == "__main__":
    main()
