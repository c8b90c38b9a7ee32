"""
Hand-Lifecycle Engine

Drives one advisor session against an Observer.

State Machine:
    ENTERING_TABLE → WAITING_FOR_HAND → MONITORING → HAND_ENDING → WAITING_FOR_HAND
                                            ↑   │
                                            └ PAUSED
    any state → STOPPED (quit, session end, fatal error)

States:
- ENTERING_TABLE: Navigate to the game and take a seat
- WAITING_FOR_HAND: Poll with exponential back-off until a hand starts
- MONITORING: Wait for the hero's turn or the winner; decide on each turn
- HAND_ENDING: Final log pull, per-player statistics, watermark advance
- PAUSED: Operator asked for a pause; resume or quit
- STOPPED: Session over

Cancellation (request_quit / request_pause) takes effect at the next poll
boundary.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from core.errors import (
    ActionValidationError,
    ConfigurationError,
    DecisionUnavailable,
    IncompleteMappingError,
    IngestionError,
    ObserverTimeout,
    SeatingError,
)
from core.game_state import Game
from models.actions import BotAction
from models.enums import LogEventKind, TurnSignal
from services.ledger import Ledger
from services.player_stats import PlayerStats, compute_hand_participation, merge_hand
from sources.log_cursor import LogCursor, LogIngestor, slice_hand
from sources.log_parser import IdentityMaps, require_complete
from sources.observer import Observer
from utils.timing import Backoff, compute_timeout

from .decision import DecisionQueryProtocol, fallback_action
from .operator import Operator, OperatorCommand
from .presenter import ActionExecutor, format_advice, format_fallback_advice
from .query import construct_query

logger = logging.getLogger(__name__)

MAX_WAIT_FAILURES = 3


class HandState(Enum):
    """Hand-lifecycle state."""

    ENTERING_TABLE = "entering_table"
    WAITING_FOR_HAND = "waiting_for_hand"
    MONITORING = "monitoring"
    HAND_ENDING = "hand_ending"
    PAUSED = "paused"
    STOPPED = "stopped"


class HandLifecycleEngine:
    """
    Session loop: seat, wait for hands, advise on every hero turn.

    The engine is the only writer of the Game aggregate.

    Usage:
        engine = HandLifecycleEngine(observer, game, protocol, operator)
        engine.on_state_change = lambda old, new: print(f"{old} -> {new}")
        hands = await engine.run(max_hands=10)
    """

    def __init__(
        self,
        observer: Observer,
        game: Game,
        protocol: DecisionQueryProtocol,
        operator: Operator,
        ledger: Ledger | None = None,
        executor: ActionExecutor | None = None,
        game_id: str = "",
        observe_only: bool = False,
        retries: int = 2,
        settle_delay: float = 2.0,
        ingest_retries: int = 3,
        ingest_retry_delay: float = 0.5,
        poll_interval: float = 1.0,
        max_poll_interval: float = 8.0,
        hand_wait_timeout: float = 0.0,
        hand_end_timeout: float = 30.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            observer: Table Observer
            game: Aggregate owned by this engine
            protocol: Decision protocol (Oracle + retries)
            operator: Human in the loop (AutoOperator for unattended runs)
            ledger: Player statistics store (optional)
            executor: Executes actions at the table; None means advisory mode
            game_id: PokerNow game id to navigate to
            observe_only: Never request a seat
            retries: Oracle retries per decision
            settle_delay: Seconds to wait before pulling logs on a turn
            ingest_retries: Extra pulls while identity maps are incomplete
            ingest_retry_delay: Seconds between those pulls
            poll_interval: First back-off delay while waiting for a hand
            max_poll_interval: Back-off cap
            hand_wait_timeout: Give up waiting for a hand after this many
                seconds (0 = wait forever)
            hand_end_timeout: Deadline for the Observer's hand-end wait
            sleep: Awaitable sleep (injected in tests)
        """
        self.observer = observer
        self.game = game
        self.protocol = protocol
        self.operator = operator
        self.ledger = ledger
        self.executor = executor
        self.game_id = game_id
        self.observe_only = observe_only
        self.retries = retries
        self.settle_delay = settle_delay
        self.ingest_retries = ingest_retries
        self.ingest_retry_delay = ingest_retry_delay
        self.hand_wait_timeout = hand_wait_timeout
        self.hand_end_timeout = hand_end_timeout
        self._sleep = sleep

        self.ingestor = LogIngestor(observer)
        self.cursor = LogCursor()
        self._backoff = Backoff(base=poll_interval, maximum=max(max_poll_interval, poll_interval))

        self._state = HandState.STOPPED
        self._quit_requested = False
        self._pause_requested = False
        self._hand_start_watermark = ""
        self._hand_start_first_fetch = True
        self._stats_cache: dict[str, PlayerStats] = {}

        self.hands_completed = 0
        self.turns_handled = 0
        self.fallbacks_used = 0

        # Callbacks
        self.on_state_change: Callable[[HandState, HandState], None] | None = None

    @property
    def state(self) -> HandState:
        return self._state

    @property
    def automated(self) -> bool:
        return self.executor is not None

    def _transition_to(self, new_state: HandState) -> None:
        """Transition to a new state, calling callback if set."""
        old_state = self._state
        if old_state != new_state:
            self._state = new_state
            logger.info(f"Hand state: {old_state.value} -> {new_state.value}")
            if self.on_state_change:
                self.on_state_change(old_state, new_state)

    # ========== Cancellation ==========

    def request_quit(self) -> None:
        """Stop at the next poll boundary"""
        self._quit_requested = True

    def request_pause(self) -> None:
        """Pause at the next poll boundary"""
        self._pause_requested = True

    # ========== Session ==========

    async def run(self, max_hands: int | None = None) -> int:
        """
        Run the session until quit, max_hands, or no further hand.

        Args:
            max_hands: Stop after this many completed hands (None = no limit)

        Returns:
            Number of hands completed

        Raises:
            SeatingError: If the table cannot be entered
            ConfigurationError: If the game reports an invalid big blind
        """
        try:
            await self.enter_table()
            while not self._quit_requested:
                if max_hands is not None and self.hands_completed >= max_hands:
                    logger.info(f"Hand limit reached ({max_hands})")
                    break
                if not await self.wait_for_next_hand():
                    break
                await self.monitor_hand()
                await self.finish_hand()
        finally:
            self._transition_to(HandState.STOPPED)

        logger.info(
            f"Session ended: {self.hands_completed} hands, {self.turns_handled} turns, "
            f"{self.fallbacks_used} fallbacks"
        )
        return self.hands_completed

    async def enter_table(self) -> None:
        """
        Raises:
            SeatingError: If navigation or seating fails
        """
        self._transition_to(HandState.ENTERING_TABLE)

        result = await self.observer.navigate_to_game(self.game_id)
        if not result.success:
            raise SeatingError(f"Cannot open game {self.game_id!r}: {result.error}")

        if self.observe_only:
            logger.info("Observe-only mode, not requesting a seat")
            return

        seated = await self.observer.is_seated()
        if not seated.success:
            raise SeatingError(f"Cannot read seating state: {seated.error}")
        if seated.value:
            logger.info(f"{self.game.hero_name} is already seated")
            return

        result = await self.observer.request_seat(self.game.hero_name)
        if not result.success:
            raise SeatingError(f"Seat request for {self.game.hero_name} failed: {result.error}")
        logger.info(f"Seat requested for {self.game.hero_name}")

    # ========== WAITING_FOR_HAND ==========

    async def wait_for_next_hand(self) -> bool:
        """
        Poll until a new hand begins, then reset per-hand state.

        Returns:
            True if a hand started, False if the session should end
        """
        self._transition_to(HandState.WAITING_FOR_HAND)
        self._backoff.reset()
        waited = 0.0

        while not self._quit_requested:
            result = await self.observer.wait_for_next_hand()
            if result.success and result.value:
                break
            if not result.success:
                logger.warning(f"Waiting for next hand failed: {result.error}")

            if self.hand_wait_timeout and waited >= self.hand_wait_timeout:
                logger.info(f"No new hand after {waited:.1f}s, ending session")
                return False
            delay = self._backoff.next_delay()
            waited += delay
            await self._sleep(delay)
        else:
            return False

        await self._begin_hand()
        self._transition_to(HandState.MONITORING)
        return True

    async def _begin_hand(self) -> None:
        info_result = await self.observer.get_game_info()
        info = info_result.value if info_result.success else None
        if info is None:
            logger.warning(f"Game info unavailable ({info_result.error}), keeping previous blinds")

        snapshot_result = await self.observer.get_table_snapshot()
        snapshot = snapshot_result.value if snapshot_result.success else None

        self.game.start_hand(info, num_players=snapshot.num_players if snapshot else None)
        if snapshot is not None:
            self.game.apply_snapshot(snapshot)

        self.cursor.reset_for_next_hand()
        self.protocol.reset_history()
        self._stats_cache = {}
        self._hand_start_watermark = self.cursor.last_seen_id
        self._hand_start_first_fetch = self.cursor.first_fetch

    # ========== MONITORING ==========

    async def monitor_hand(self) -> None:
        """Handle hero turns until the winner is shown or the deadline passes"""
        failures = 0
        while not self._quit_requested:
            if self._pause_requested:
                await self._pause()
                continue

            try:
                signal = await self._wait_for_turn()
            except ObserverTimeout as e:
                logger.warning(f"{e}, ending hand")
                return

            if signal is None:
                failures += 1
                if failures >= MAX_WAIT_FAILURES:
                    logger.warning(f"Turn wait failed {failures} times, ending hand")
                    return
                await self._sleep(self._backoff.base)
                continue
            failures = 0

            if signal == TurnSignal.WINNER:
                return
            await self._run_turn()

    async def _wait_for_turn(self) -> TurnSignal | None:
        """
        Raises:
            ObserverTimeout: If neither turn nor winner arrives in time
        """
        num_players = max(self.game.num_players, 2)
        timeout_ms = compute_timeout(num_players, self.game.max_turn_length)
        try:
            result = await asyncio.wait_for(
                self.observer.wait_for_bot_turn_or_winner(num_players, self.game.max_turn_length),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError as e:
            raise ObserverTimeout(
                f"No turn or winner within {timeout_ms} ms", timeout_ms=timeout_ms
            ) from e

        if not result.success:
            logger.warning(f"Turn wait failed: {result.error}")
            return None
        return TurnSignal(result.value)

    async def _run_turn(self) -> None:
        try:
            await self.handle_turn()
        except ConfigurationError:
            raise
        except IngestionError as e:
            logger.warning(f"Skipping turn: {e}")
        except ActionValidationError as e:
            logger.error(f"Could not act on recommendation: {e}")
        except Exception as e:
            logger.error(f"Turn handling failed: {e}", exc_info=True)

    async def handle_turn(self) -> BotAction:
        """
        One decision cycle for the hero.

        Returns:
            The action presented or executed

        Raises:
            IngestionError: If the log pull fails
        """
        await self._sleep(self.settle_delay)
        maps = await self._ingest()
        self.game.apply_log_batch(self.cursor.accumulated_valid_events, maps)

        snapshot = await self.observer.get_table_snapshot()
        if snapshot.success:
            self.game.apply_snapshot(snapshot.value)
        else:
            logger.warning(f"Snapshot unavailable: {snapshot.error}")

        actions_result = await self.observer.available_actions()
        available = actions_result.value if actions_result.success else None

        opponent_stats = await self._opponent_stats()
        query = construct_query(self.game, opponent_stats)

        fallback_reason = None
        try:
            action = await self.protocol.query_bot_action(
                query, self.retries, hero_stack_bb=self.game.hero_stack_bb
            )
        except DecisionUnavailable as e:
            logger.warning(f"Decision unavailable after {e.attempts} attempts, using fallback")
            fallback_reason = str(e)
            action = fallback_action(available)
            self.fallbacks_used += 1

        if self.automated:
            await self.executor.execute(action, self.game, available)
            action = self.executor.last_action or action
        elif fallback_reason is not None:
            await self.operator.present(format_fallback_advice(available, fallback_reason))
        else:
            await self.operator.present(format_advice(self.game, action, opponent_stats))

        self.game.record_action(action)
        self.turns_handled += 1

        if not self.automated:
            await self._after_advice()
        return action

    async def _ingest(self) -> IdentityMaps:
        """Pull logs, retrying while some player is missing from the identity maps"""
        for attempt in range(self.ingest_retries + 1):
            processed = await self.ingestor.pull_and_process_logs(
                self.cursor.last_seen_id, self.cursor.first_fetch
            )
            self.cursor.apply(processed)
            maps = self.cursor.identity_maps()
            try:
                require_complete(maps)
                return maps
            except IncompleteMappingError as e:
                if attempt < self.ingest_retries:
                    logger.debug(f"{e}, pulling again")
                    await self._sleep(self.ingest_retry_delay)
                else:
                    logger.warning(f"{e}; continuing with complete players only")
        return maps

    async def _opponent_stats(self) -> dict[str, PlayerStats]:
        if self.ledger is None:
            return {}
        names = [p.name for p in self.game.opponents if p.name not in self._stats_cache]
        if names:
            self._stats_cache.update(await self.ledger.get_many(names))
        return dict(self._stats_cache)

    async def _after_advice(self) -> None:
        command = await self.operator.next_command(paused=False)
        if command == OperatorCommand.QUIT:
            self.request_quit()
        elif command == OperatorCommand.PAUSE:
            self.request_pause()

    async def _pause(self) -> None:
        self._pause_requested = False
        previous = self._state
        self._transition_to(HandState.PAUSED)

        while True:
            command = await self.operator.next_command(paused=True)
            if command == OperatorCommand.QUIT:
                self.request_quit()
                return
            if command == OperatorCommand.RESUME:
                break

        self._transition_to(previous)

    # ========== HAND_ENDING ==========

    async def finish_hand(self) -> None:
        """Final pull, statistics, watermark advance, hand-end wait"""
        self._transition_to(HandState.HAND_ENDING)

        try:
            processed = await self.ingestor.pull_and_process_logs(
                self._hand_start_watermark, self._hand_start_first_fetch
            )
        except IngestionError as e:
            logger.warning(f"Final log pull failed: {e}")
        else:
            hand_events = slice_hand(processed.valid_events, self.game.hand_number)
            self.game.apply_log_batch(hand_events)
            await self._record_stats(hand_events)
            # Stop at this hand's last line so the next hand's start is pulled later
            watermark = hand_events[-1].created_at if hand_events else processed.last_seen_id
            self.cursor.advance(watermark)
            self.cursor.first_fetch = False

        self.cursor.reset_for_next_hand()
        if self._quit_requested:
            self.game.abandon_hand()
            logger.info("Quit requested, not waiting for the hand to finish")
            return
        self.game.end_hand()
        self.hands_completed += 1

        try:
            result = await asyncio.wait_for(
                self.observer.wait_for_hand_end(), timeout=self.hand_end_timeout
            )
            if not result.success:
                logger.warning(f"Hand end wait failed: {result.error}")
        except asyncio.TimeoutError:
            logger.warning(f"Hand did not finish within {self.hand_end_timeout}s")

    async def _record_stats(self, hand_events) -> None:
        if self.ledger is None or not hand_events:
            return
        kinds = {e.kind for e in hand_events}
        if LogEventKind.HAND_STARTED not in kinds or LogEventKind.HAND_ENDED not in kinds:
            logger.info("Hand log incomplete, statistics not updated")
            return

        participation = compute_hand_participation(hand_events)
        stored = await self.ledger.get_many(list(participation))
        for name, hand in participation.items():
            stats = merge_hand(stored.get(name), hand)
            await self.ledger.upsert(name, stats)
        logger.info(f"Updated statistics for {len(participation)} players")
