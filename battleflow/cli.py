"""
BattleFlow CLI - Command-line interface for the engine.

Usage:
    battleflow demo                 Run a hero-vs-goblin encounter
    battleflow serve                Start the inspection API
"""

import argparse
import asyncio
import logging
import sys

from .config import Settings, configure_logging

logger = logging.getLogger(__name__)


def main(argv=None):
    """Main CLI entry point."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    parser = argparse.ArgumentParser(
        description="BattleFlow - Turn-Based Combat Engine",
        prog="battleflow",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level (default: BATTLEFLOW_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run a hero-vs-goblin encounter")
    demo_parser.add_argument("--damage", type=int, default=30, help="Damage per hero attack")
    demo_parser.add_argument(
        "--history", action="store_true", help="Log the action history at the end"
    )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the inspection API")
    serve_parser.add_argument("--host", default=settings.host, help="Bind host")
    serve_parser.add_argument("--port", type=int, default=settings.port, help="Bind port")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "demo":
        cmd_demo(args)
    elif args.command == "serve":
        cmd_serve(args, settings)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_demo(args):
    """Run the demo encounter until the goblin falls."""
    if args.damage <= 0:
        print("Error: --damage must be positive")
        sys.exit(1)

    store = asyncio.run(run_demo(args.damage))

    print(f"Result: {store.current_phase.value} after {store.current_turn} turn(s)")
    if args.history:
        store.log_action_history()


async def run_demo(damage: int = 30):
    """
    Play a short scripted battle: the hero attacks until the goblin is defeated.

    Returns the store so callers can inspect the final state.
    """
    from .engine_core.action import BattleResult
    from .flow import BattleFlow

    store = BattleFlow.create_store()
    hero = BattleFlow.create_character("Hero", hp=100, attack=25)
    goblin = BattleFlow.create_character("Goblin", hp=50, attack=15, is_player=False)

    store.start_battle(players=[hero], enemies=[goblin])
    await store.settle()

    while store.alive_enemies:
        store.set_current_actor(hero.id)
        store.perform_attack(hero.id, goblin.id, damage)
        await store.settle()

        remaining = store.get_combatant(goblin.id).stats.hp
        logger.info("Goblin HP: %d", remaining)
        if store.alive_enemies:
            store.advance_turn()

    store.end_battle(BattleResult.VICTORY)
    await store.settle()
    store.log_current_state()
    return store


def cmd_serve(args, settings: Settings):
    """Start the inspection API with uvicorn."""
    import uvicorn

    from .api.app import create_app

    settings.host = args.host
    settings.port = args.port
    app = create_app(settings=settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
