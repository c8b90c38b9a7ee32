"""
Main Entry Point for the PokerNow advisor
Wires config, Observer, Oracle, Ledger and Operator into one hand loop session
"""

__version__ = "0.1.0"

import argparse
import asyncio
import importlib
import logging
import sys

from bot.decision import DecisionQueryProtocol
from bot.hand_engine import HandLifecycleEngine
from bot.operator import AutoOperator, ConsoleOperator, Operator
from bot.oracles import create_oracle
from bot.presenter import ActionExecutor
from config import Config, config
from core.errors import ConfigurationError, SeatingError
from core.game_state import Game
from services.ledger import InMemoryLedger, Ledger, SqliteLedger
from services.logger import cleanup_logging, setup_logging
from sources.observer import Observer
from sources.replay_observer import ReplayObserver

logger = logging.getLogger(__name__)


def load_observer(path: str) -> Observer:
    """
    Instantiate an Observer from "package.module:ClassName"

    Raises:
        ConfigurationError: If the class cannot be imported or is not an Observer
    """
    module_name, _, class_name = path.partition(":")
    if not module_name or not class_name:
        raise ConfigurationError(f"Observer must be given as module:Class, got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import observer module {module_name}: {e}") from e

    observer_cls = getattr(module, class_name, None)
    if not isinstance(observer_cls, type) or not issubclass(observer_cls, Observer):
        raise ConfigurationError(f"{path} is not an Observer class")
    return observer_cls()


class Application:
    """
    Session controller
    Builds every component from config and manages their lifecycle
    """

    def __init__(self, cfg: Config, replay: str | None = None, observer_path: str | None = None):
        """
        Args:
            cfg: Validated configuration
            replay: Path to a recorded session (replay Observer)
            observer_path: module:Class of a live Observer implementation
        """
        if not replay and not observer_path:
            raise ConfigurationError("Either --replay or --observer is required")
        self.config = cfg
        self.replay = replay
        self.observer_path = observer_path

        self.observer: Observer | None = None
        self.ledger: Ledger | None = None
        self.engine: HandLifecycleEngine | None = None

    def _create_observer(self) -> Observer:
        if self.replay:
            try:
                return ReplayObserver.from_file(self.replay)
            except (FileNotFoundError, ValueError) as e:
                raise ConfigurationError(str(e)) from e
        return load_observer(self.observer_path)

    def _create_operator(self) -> Operator:
        bot = self.config.section("bot")
        if bot["automated"] and not bot["confirm_automated_actions"]:
            return AutoOperator()
        return ConsoleOperator()

    def _create_ledger(self) -> Ledger | None:
        ledger = self.config.section("ledger")
        if not ledger["enabled"]:
            return None
        if ledger["backend"] == "memory":
            return InMemoryLedger()
        return SqliteLedger(ledger["db_path"])

    async def run(self, max_hands: int | None = None) -> int:
        """
        Run one session

        Returns:
            Hands completed

        Raises:
            SeatingError: If the table cannot be entered
            ConfigurationError: On invalid components or blinds
        """
        game_cfg = self.config.section("game")
        bot = self.config.section("bot")
        oracle_cfg = self.config.section("oracle")

        self.observer = self._create_observer()
        if max_hands is None and isinstance(self.observer, ReplayObserver):
            max_hands = self.observer.hand_count

        operator = self._create_operator()
        oracle = create_oracle(
            oracle_cfg["provider"],
            operator=operator,
            model_name=oracle_cfg["model_name"],
            playstyle=oracle_cfg["playstyle"],
            api_key=oracle_cfg["api_key"],
            base_url=oracle_cfg["base_url"],
            timeout=oracle_cfg["timeout"],
            temperature=oracle_cfg["temperature"],
        )
        logger.info(f"Oracle: {oracle}")

        self.ledger = self._create_ledger()
        if self.ledger is not None:
            await self.ledger.initialize()

        game = Game(
            hero_name=game_cfg["hero_name"],
            small_blind=game_cfg["small_blind"],
            big_blind=game_cfg["big_blind"],
            variant=game_cfg["variant"],
            max_turn_length=game_cfg["max_turn_length"],
        )
        protocol = DecisionQueryProtocol(
            oracle,
            playstyle=oracle_cfg["playstyle"],
            retry_delay=bot["retry_delay"],
            max_history_messages=bot["max_history_messages"],
        )
        executor = None
        if bot["automated"]:
            executor = ActionExecutor(
                self.observer, operator, confirm_automated_actions=bot["confirm_automated_actions"]
            )

        self.engine = HandLifecycleEngine(
            self.observer,
            game,
            protocol,
            operator,
            ledger=self.ledger,
            executor=executor,
            game_id=game_cfg["game_id"],
            observe_only=bot["observe_only"],
            retries=bot["retries"],
            settle_delay=bot["settle_delay"],
            ingest_retries=bot["ingest_retries"],
            ingest_retry_delay=bot["ingest_retry_delay"],
            poll_interval=bot["poll_interval"],
            max_poll_interval=bot["max_poll_interval"],
            hand_wait_timeout=bot["hand_wait_timeout"],
            hand_end_timeout=bot["hand_end_timeout"],
        )

        try:
            return await self.engine.run(max_hands=max_hands)
        finally:
            await oracle.close()
            if self.ledger is not None:
                await self.ledger.close()
            await self.observer.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="PokerNow advisor - hand tracking and decision support",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --replay session.json --hero alice           # dry run on a recording
  %(prog)s --observer mypkg.browser:PokerNowObserver --game-id pglXXXX --hero alice
  %(prog)s --observer mypkg.browser:PokerNowObserver --oracle api --auto
        """,
    )
    parser.add_argument("--config", help="JSON config file")
    parser.add_argument("--game-id", help="PokerNow game id")
    parser.add_argument("--hero", help="Hero display name at the table")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--replay", help="Replay a recorded session instead of a live table")
    source.add_argument("--observer", help="Live Observer implementation as module:Class")
    parser.add_argument("--oracle", help="Decision source (manual, api)")
    parser.add_argument("--playstyle", help="Playstyle prompt (neutral, tag, lag, tight, loose)")
    parser.add_argument("--auto", action="store_true", help="Execute actions instead of advising")
    parser.add_argument("--observe-only", action="store_true", help="Never request a seat")
    parser.add_argument(
        "--log-level", choices=list(Config.VALID_LOG_LEVELS), help="Console log level"
    )
    parser.add_argument("--max-hands", type=int, help="Stop after this many hands")
    return parser


def apply_args(args: argparse.Namespace, cfg: Config) -> None:
    """Overlay CLI flags onto the configuration"""
    if args.config:
        cfg.load_from_file(args.config)
    if args.game_id:
        cfg.set("game", "game_id", args.game_id)
    if args.hero:
        cfg.set("game", "hero_name", args.hero)
    if args.oracle:
        cfg.set("oracle", "provider", args.oracle)
    if args.playstyle:
        cfg.set("oracle", "playstyle", args.playstyle)
    if args.auto:
        cfg.set("bot", "automated", True)
    if args.observe_only:
        cfg.set("bot", "observe_only", True)
    if args.log_level:
        cfg.set("logging", "level", args.log_level)
    if args.max_hands is not None:
        cfg.set("bot", "max_hands", args.max_hands)


def cli(argv: list[str] | None = None) -> int:
    """
    Console entry point

    Returns:
        Process exit code (1 on seating or configuration errors)
    """
    args = build_parser().parse_args(argv)

    try:
        apply_args(args, config)
        config.ensure_directories()
        root_logger = setup_logging()
        config.set_logger(root_logger)
        config.validate()

        root_logger.info("=" * 60)
        mode = "AUTOMATED" if config.get("bot", "automated") else "ADVISORY"
        root_logger.info(f"PokerNow advisor {__version__} - {mode} mode")
        root_logger.info("=" * 60)

        app = Application(config, replay=args.replay, observer_path=args.observer)
        hands = asyncio.run(app.run(max_hands=config.get("bot", "max_hands")))
        print(f"Session complete: {hands} hands")
        return 0
    except (ConfigurationError, SeatingError) as e:
        logger.critical(f"{type(e).__name__}: {e}")
        print(f"FATAL ERROR: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    finally:
        cleanup_logging()


if __name__ == "__main__":
    sys.exit(cli())
