"""
LifeQuest - Command-Line Entry Point
====================================

Bootstrap
---------
- Config validation (on import of ``Config``)
- Logging setup (console at WARNING unless ``--verbose``)
- ConfigManager initialization (YAML tunables)
- Store selection and connection (``--backend`` or ``STORAGE_BACKEND``)
- Load dashboard -> run one command -> save if changed
- Graceful shutdown of store and logging

Commands
--------
    lifequest status
    lifequest award academics 120
    lifequest reward academics test_recorded --score 46 --max-score 50
    lifequest goal add "Run a 10k" --horizon monthly --priority high
    lifequest goal complete "Run a 10k"
    lifequest goal progress "Run a 10k" 60
    lifequest goal reopen "Run a 10k"
    lifequest habit add Meditate [--hobby]
    lifequest habit toggle Meditate [--date 2024-05-01] [--hobby]
    lifequest habit remove Meditate [--hobby]
    lifequest reset [category]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Any, Callable, Dict, List, Optional, Sequence, TextIO

from lifequest import __version__
from lifequest.core.config.config import Config
from lifequest.core.config.errors import ConfigError
from lifequest.core.config.manager import ConfigManager
from lifequest.core.logging.logger import get_logger, setup_logging, shutdown_logging
from lifequest.domain.models.category import Category
from lifequest.domain.models.base import DomainValidationError
from lifequest.domain.models.habit import TrackerKind
from lifequest.modules.persistence.gateway import PersistenceGateway, build_store
from lifequest.modules.persistence.store import SnapshotStore
from lifequest.modules.progression.service import ProgressionService, ProgressOutcome
from lifequest.modules.rewards.rules import GOAL_HORIZONS, GOAL_PRIORITIES
from lifequest.modules.shared.exceptions import LifeQuestError

logger = get_logger(__name__)

DEFAULT_USER = "local"


# ============================================================================
# Argument Parsing
# ============================================================================


def _category(value: str) -> Category:
    try:
        return Category.parse(value)
    except DomainValidationError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lifequest",
        description="Gamified self-improvement tracker: XP, levels and streaks.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--user", default=DEFAULT_USER, help="user id (default: %(default)s)")
    parser.add_argument(
        "--backend",
        choices=("local", "remote"),
        default=None,
        help="storage backend (default: STORAGE_BACKEND)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log INFO to stderr")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("status", help="show levels, XP and habits")

    award = commands.add_parser("award", help="add raw XP to a category")
    award.add_argument("category", type=_category)
    award.add_argument("amount", type=int)

    reward = commands.add_parser("reward", help="award the XP a feature action is worth")
    reward.add_argument("category", type=_category)
    reward.add_argument("action")
    reward.add_argument("--score", type=float)
    reward.add_argument("--max-score", type=float)
    reward.add_argument("--page", type=int)
    reward.add_argument("--previous-page", type=int)
    reward.add_argument("--priority", choices=GOAL_PRIORITIES)

    goal = commands.add_parser("goal", help="create and complete goals")
    goal_commands = goal.add_subparsers(dest="goal_command", required=True)
    goal_add = goal_commands.add_parser("add")
    goal_add.add_argument("title")
    goal_add.add_argument("--horizon", choices=GOAL_HORIZONS, default="weekly")
    goal_add.add_argument("--priority", choices=GOAL_PRIORITIES, default="medium")
    goal_complete = goal_commands.add_parser("complete")
    goal_complete.add_argument("goal", help="goal id or title")
    goal_progress = goal_commands.add_parser("progress")
    goal_progress.add_argument("goal", help="goal id or title")
    goal_progress.add_argument("percent", type=int, help="0-100; 100 completes the goal")
    goal_reopen = goal_commands.add_parser("reopen")
    goal_reopen.add_argument("goal", help="goal id or title")

    habit = commands.add_parser("habit", help="manage habits (or hobbies with --hobby)")
    habit_commands = habit.add_subparsers(dest="habit_command", required=True)
    for name in ("add", "toggle", "remove"):
        sub = habit_commands.add_parser(name)
        sub.add_argument("name", help="habit name (or id for toggle/remove)")
        sub.add_argument("--hobby", action="store_true", help="act on hobbies")
        if name == "toggle":
            sub.add_argument("--date", help="YYYY-MM-DD (default: today)")

    reset = commands.add_parser("reset", help="reset category ledgers to level 1")
    reset.add_argument("category", nargs="?", type=_category)

    return parser


# ============================================================================
# Command Handlers
# ============================================================================


def _kind(args: argparse.Namespace) -> TrackerKind:
    return TrackerKind.HOBBY if getattr(args, "hobby", False) else TrackerKind.HABIT


def _cmd_award(service: ProgressionService, args: argparse.Namespace) -> ProgressOutcome:
    return service.add_category_xp(args.category, args.amount)


def _cmd_reward(service: ProgressionService, args: argparse.Namespace) -> ProgressOutcome:
    params: Dict[str, Any] = {}
    if args.score is not None or args.max_score is not None:
        params.update(score=args.score, max_score=args.max_score)
    if args.page is not None:
        params.update(page=args.page, previous_page=args.previous_page)
    if args.priority:
        params["priority"] = args.priority
    return service.reward(args.category, args.action, **params)


def _cmd_goal(service: ProgressionService, args: argparse.Namespace) -> ProgressOutcome:
    if args.goal_command == "add":
        return service.add_goal(args.title, args.horizon, args.priority)
    if args.goal_command == "progress":
        outcome = service.update_goal_progress(args.goal, args.percent)
        if not outcome.xp_awarded:
            _echo(f"Progress for {args.goal!r} set to {outcome.events[-1].payload['progress']}%")
        return outcome
    if args.goal_command == "reopen":
        outcome = service.reopen_goal(args.goal)
        _echo(f"Reopened {args.goal!r}")
        return outcome
    return service.complete_goal(args.goal)


def _cmd_habit(service: ProgressionService, args: argparse.Namespace) -> Optional[ProgressOutcome]:
    kind = _kind(args)
    if args.habit_command == "add":
        item = service.add_item(args.name, kind)
        _echo(f"Added {kind.value} {item.name!r} ({item.id})")
        return None
    if args.habit_command == "remove":
        item = service.remove_item(kind, args.name)
        _echo(f"Removed {kind.value} {item.name!r}")
        return None
    return service.toggle_item(kind, args.name, on=args.date)


def _cmd_reset(service: ProgressionService, args: argparse.Namespace) -> ProgressOutcome:
    outcome = service.reset(args.category)
    _echo(f"Reset {args.category.value if args.category else 'all categories'} to level 1")
    return outcome


_HANDLERS: Dict[str, Callable[[ProgressionService, argparse.Namespace], Optional[ProgressOutcome]]] = {
    "award": _cmd_award,
    "reward": _cmd_reward,
    "goal": _cmd_goal,
    "habit": _cmd_habit,
    "reset": _cmd_reset,
}


# ============================================================================
# Output
# ============================================================================

_out: TextIO = sys.stdout


def _echo(line: str = "") -> None:
    print(line, file=_out)


def render_status(status: Dict[str, Any]) -> List[str]:
    player = status["player"]
    lines = [
        f"{player['name']}  Level {player['level']}  {player['title']}  "
        f"(lifetime XP {player['totalXP']})",
        "",
    ]
    for name, record in status["categories"].items():
        lines.append(
            f"  {name:<12} L{record['level']:<3} {record['xp']:>6}/{record['next_level_xp']:<6} "
            f"{record['progress']:5.1f}%"
        )
    discipline = status.get("discipline")
    if discipline and discipline["platforms"]:
        lines.append(f"  discipline   {discipline['score']:>3}  {discipline['label']}")
    for label in ("habits", "hobbies"):
        items = status[label]
        if not items:
            continue
        lines.extend(["", f"{label.capitalize()}:"])
        for item in items:
            mark = "x" if item["completed"] else " "
            lines.append(
                f"  [{mark}] {item['name']:<20} L{item['level']:<3} "
                f"{item['xp']:>5}/{item['next_level_xp']:<5} streak {item['streak']}"
            )
    return lines


def render_outcome(outcome: ProgressOutcome) -> List[str]:
    lines: List[str] = []
    if outcome.toggle is not None:
        state = "completed" if outcome.toggle.completed else "not completed"
        lines.append(f"{outcome.toggle.date}: {state} ({outcome.xp_awarded:+d} XP)")
    elif outcome.xp_awarded:
        lines.append(f"{outcome.xp_awarded:+d} XP")
    for achievement in outcome.unlocked:
        lines.append(f"Achievement unlocked: {achievement.title} (+{achievement.xp_reward} XP)")
    lines.extend(outcome.messages)
    return lines


# ============================================================================
# Application
# ============================================================================


async def run(args: argparse.Namespace, store: Optional[SnapshotStore] = None) -> int:
    """Load the dashboard, run one command, save when something changed."""
    gateway = PersistenceGateway(store or build_store(args.backend))
    async with gateway:
        dashboard = await gateway.load_dashboard(args.user)
        service = ProgressionService(dashboard)

        if args.command == "status":
            for line in render_status(service.status()):
                _echo(line)
        else:
            outcome = _HANDLERS[args.command](service, args)
            if outcome is not None:
                for line in render_outcome(outcome):
                    _echo(line)

        if Config.AUTOSAVE_ENABLED:
            await gateway.save_dashboard(dashboard)
        elif dashboard.is_dirty:
            logger.warning("Autosave disabled; changes not saved", extra={"user_id": args.user})
    return 0


def main(
    argv: Optional[Sequence[str]] = None,
    store: Optional[SnapshotStore] = None,
    out: Optional[TextIO] = None,
) -> int:
    """
    Console-script entry point.

    Returns the process exit code: 0 on success, 1 on any LifeQuest or
    configuration error (the message is printed to stderr).
    """
    global _out
    args = build_parser().parse_args(argv)
    _out = out or sys.stdout

    setup_logging(console_level=logging.INFO if args.verbose else logging.WARNING)
    logger.debug("Starting command", extra={"command": args.command, **Config.get_config_summary()})
    try:
        ConfigManager.initialize()
        return asyncio.run(run(args, store))
    except (LifeQuestError, ConfigError) as exc:
        logger.debug("Command failed", extra={"command": args.command, "error": str(exc)})
        print(f"error: {getattr(exc, 'message', exc)}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    finally:
        shutdown_logging()


if __name__ == "__main__":
    sys.exit(main())
