"""
Main CLI entry point for the Sleeper live draft tracker.
"""

import argparse
import logging
import sys
from pathlib import Path

from . import config
from .draft.config_provider import FileConfigProvider
from .draft.errors import DraftNotFound, InvalidConfiguration, TransientFetchError
from .draft.events import (
    AutoPickSuggested,
    PickProcessed,
    RecommendationsReady,
    TimerExpired,
    TimerThreshold,
    TurnChanged,
)
from .draft.session import DraftSession
from .draft.sleeper_client import SleeperClient


def setup_logging(verbose: bool = False):
    """
    Configure logging for the application.

    Args:
        verbose: Enable verbose (DEBUG) logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def parse_arguments(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Sleeper Live Draft Tracker',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # One-shot snapshot and recommendations for a league's draft
  python -m draft_tracker.main --league-id 1234567890 --username me

  # Pre-draft plan for slot 4 in a Full-PPR league
  python -m draft_tracker.main --league-id 1234567890 --draft-position 4 --scoring ppr --plan-only

  # Follow the draft live until Ctrl+C
  python -m draft_tracker.main --draft-id 9876543210 --username me --live

  # Serve the HTTP API
  python -m draft_tracker.main --league-id 1234567890 --username me --serve
        """
    )

    parser.add_argument('--league-id', type=str, default=None, help='Sleeper league ID')
    parser.add_argument('--draft-id', type=str, default=None, help='Sleeper draft ID (default: most recent league draft)')
    parser.add_argument('--username', type=str, default=None, help='Sleeper username to track')
    parser.add_argument(
        '--scoring',
        type=str,
        default=None,
        help='Scoring format: ppr, half_ppr or standard (default: league settings)'
    )
    parser.add_argument('--draft-position', type=int, default=None, help='Your first-round draft slot')
    parser.add_argument('--teams', type=int, default=None, help='Number of teams (default: draft settings)')
    parser.add_argument(
        '--config',
        type=str,
        default=config.CONFIG_FILE,
        help=f'JSON config file (default: {config.CONFIG_FILE})'
    )
    parser.add_argument(
        '--events-dir',
        type=str,
        default=config.DRAFT_EVENTS_DIR,
        help=f'Directory for the pick log (default: {config.DRAFT_EVENTS_DIR})'
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--plan-only', action='store_true', help='Generate and print a draft plan, then exit')
    mode.add_argument('--live', action='store_true', help='Follow the draft live (Ctrl+C to stop)')
    mode.add_argument('--serve', action='store_true', help='Run the HTTP API')

    parser.add_argument('--duration', type=int, default=None, help='Stop live mode after N minutes')
    parser.add_argument('--host', type=str, default=config.API_HOST, help='API host for --serve')
    parser.add_argument('--port', type=int, default=config.API_PORT, help='API port for --serve')
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')

    return parser.parse_args(argv)


def build_session(args) -> DraftSession:
    overrides = {
        'league_id': args.league_id,
        'draft_id': args.draft_id,
        'tracked_username': args.username,
        'scoring_format': args.scoring,
        'draft_position': args.draft_position,
        'team_count': args.teams,
    }
    provider = FileConfigProvider(path=Path(args.config), overrides=overrides)
    return DraftSession(provider, SleeperClient(), events_dir=Path(args.events_dir))


def log_plan(plan) -> None:
    logger = logging.getLogger(__name__)

    logger.info("="*60)
    logger.info("DRAFT PLAN")
    logger.info("="*60)
    for round_number, plan_round in sorted(plan.rounds.items()):
        targets = ', '.join(f"{p.name} ({p.position.value}, {p.adp:.0f})" for p in plan_round.targets)
        backups = ', '.join(p.name for p in plan_round.backups)
        logger.info(f"Round {round_number:>2}: {targets or '-'}")
        if backups:
            logger.info(f"          backups: {backups}")


def log_recommendations(result) -> None:
    logger = logging.getLogger(__name__)

    flags = []
    if result.using_demo_data:
        flags.append('DEMO DATA')
    if result.roster_is_estimated:
        flags.append('roster estimated')
    if result.turn_is_estimated:
        flags.append('turn estimated')

    logger.info("="*60)
    logger.info(
        f"RECOMMENDATIONS - pick {result.overall_pick}, round {result.current_round}"
        + (f" [{', '.join(flags)}]" if flags else "")
    )
    logger.info("="*60)
    for index, recommendation in enumerate(result, 1):
        player = recommendation.player
        logger.info(
            f"{index}. {player.name} ({player.position.value}, {player.team}) "
            f"{recommendation.strategy.value} {recommendation.confidence}% - {recommendation.reason}"
        )


def log_events(events) -> None:
    """Console presentation of session events."""
    logger = logging.getLogger(__name__)

    for event in events:
        if isinstance(event, PickProcessed) and event.analysis is not None:
            analysis = event.analysis
            logger.info(f"    {analysis.grade} ({analysis.confidence}%): {'; '.join(analysis.notes)}")
            logger.info(f"    Tip: {analysis.tip}")
        elif isinstance(event, TurnChanged) and event.is_user_turn:
            logger.info("*** YOU ARE ON THE CLOCK ***")
        elif isinstance(event, RecommendationsReady):
            log_recommendations(event.recommendations)
        elif isinstance(event, TimerThreshold):
            logger.warning(f"{event.remaining_seconds}s left on the clock")
        elif isinstance(event, TimerExpired):
            logger.warning("Pick clock expired")
        elif isinstance(event, AutoPickSuggested) and event.player is not None:
            logger.warning(f"Queue suggests: {event.player.name}")


def run_plan_mode(session: DraftSession) -> None:
    plan = session.generate_plan()
    log_plan(plan)


def run_snapshot_mode(session: DraftSession) -> None:
    logger = logging.getLogger(__name__)

    try:
        session.refresh()
    except TransientFetchError as e:
        logger.warning(f"Could not fetch picks: {e}")

    snapshot = session.snapshot()
    logger.info(
        f"Draft {snapshot['draft_id']} ({snapshot['status']}): {snapshot['pick_count']} picks, "
        f"round {snapshot['current_round']}, scoring {snapshot['scoring_format']}"
    )
    logger.info(
        "Scarcity: " + ', '.join(f"{pos} {level}" for pos, level in session.state_manager.scarcity_levels().items())
    )
    log_recommendations(session.recommendations())


def run_serve_mode(session: DraftSession, host: str, port: int) -> None:
    import uvicorn
    from .draft.api_server import create_app

    uvicorn.run(create_app(session), host=host, port=port)


def main(argv=None):
    """Main execution function with mode branching."""
    # Parse arguments
    args = parse_arguments(argv)

    # Setup logging
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    logger.info("="*60)
    logger.info("Sleeper Live Draft Tracker")
    logger.info("="*60)

    session = build_session(args)

    try:
        session.open()
        session.event_bus.subscribe(log_events)

        # Branch to appropriate mode
        if args.plan_only:
            run_plan_mode(session)
        elif args.live:
            session.run_live_session(duration_minutes=args.duration)
        elif args.serve:
            run_serve_mode(session, args.host, args.port)
        else:
            run_snapshot_mode(session)

    except (InvalidConfiguration, DraftNotFound) as e:
        logger.error(str(e))
        sys.exit(1)
    except TransientFetchError as e:
        logger.error(f"Sleeper is unreachable: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("\nDraft session interrupted by user")
    finally:
        session.close()


if __name__ == '__main__':
    main()
