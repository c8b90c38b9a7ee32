"""
Game State Management Module
Single-writer aggregate for the current table and hand, with observer pattern
for reactive updates

Mutators (called only by the hand loop):
- start_hand() / end_hand() / abandon_hand()
- apply_log_batch()
- apply_snapshot()
- record_action()
"""

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from decimal import Decimal
from enum import Enum
from typing import Any

from models.actions import BotAction
from models.enums import LogActionKind, LogEventKind, Street
from models.log_events import LogEvent
from models.player import Player
from models.snapshot import GameInfo, TableSnapshot
from models.table import HandAction, Table
from sources.log_parser import IdentityMaps, build_identity_maps
from utils.value_conversion import ZERO, require_big_blind, to_big_blinds, to_decimal

logger = logging.getLogger(__name__)


class GameEvents(Enum):
    """Events emitted by aggregate mutations"""

    HAND_STARTED = "hand_started"
    HAND_ENDED = "hand_ended"
    LOG_APPLIED = "log_applied"
    SNAPSHOT_APPLIED = "snapshot_applied"
    ACTION_RECORDED = "action_recorded"


class Game:
    """
    Owns one Table plus blind sizes, variant and hand bookkeeping.

    Chip amounts are tracked in chips; every big-blind value is derived as
    chips / big_blind.
    """

    def __init__(
        self,
        hero_name: str,
        small_blind: Decimal = ZERO,
        big_blind: Decimal = ZERO,
        variant: str = "NLH",
        max_turn_length: float = 30.0,
    ):
        self.hero_name = hero_name
        self.small_blind = to_decimal(small_blind)
        self.big_blind = to_decimal(big_blind)
        self.variant = variant
        self.max_turn_length = max_turn_length

        self.table = Table()
        self.hand_number: int | None = None
        self.hand_id: str | None = None
        self.dealer_id: str | None = None
        self.hand_active = False
        self.hands_played = 0

        self.hero_hand: list[str] = []
        self.hero_stack = ZERO
        self.pot = ZERO
        self.hero_decisions: list[tuple[Street, BotAction]] = []

        self._street_contrib: dict[str, Decimal] = {}
        self._applied_keys: set[tuple[str, int]] = set()

        self._observers: dict[GameEvents, list[Callable]] = defaultdict(list)

    # ========== Observer Pattern ==========

    def subscribe(self, event: GameEvents, callback: Callable) -> None:
        self._observers[event].append(callback)

    def _emit(self, event: GameEvents, data: Any = None) -> None:
        for callback in self._observers[event]:
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Observer callback error for {event.value}: {e}", exc_info=True)

    # ========== Derived Values ==========

    def to_bb(self, chips: Decimal) -> Decimal:
        """Chips in big blinds (ConfigurationError if big blind not set)"""
        return to_big_blinds(chips, self.big_blind)

    @property
    def street(self) -> Street:
        return self.table.street

    @property
    def pot_bb(self) -> Decimal:
        return self.table.pot_bb

    @property
    def hero_stack_bb(self) -> Decimal:
        return self.to_bb(self.hero_stack)

    @property
    def community_cards(self) -> list[str]:
        return list(self.table.community_cards)

    @property
    def action_history(self) -> list[HandAction]:
        return list(self.table.action_history)

    @property
    def hero(self) -> Player | None:
        return self.table.player_by_name(self.hero_name)

    @property
    def opponents(self) -> list[Player]:
        return [p for p in self.table.players if p.name != self.hero_name]

    @property
    def num_players(self) -> int:
        if self.table.players_in_pot:
            return self.table.players_in_pot
        return len(self.table.seats)

    def _set_pot(self, chips: Decimal) -> None:
        self.pot = max(chips, ZERO)
        self.table.pot_bb = self.to_bb(self.pot)

    # ========== Hand Boundaries ==========

    def start_hand(self, info: GameInfo | None = None, num_players: int | None = None) -> None:
        """
        Reset per-hand state.

        Args:
            info: Blinds/timing read from the Observer at hand start
            num_players: Players dealt into the hand, if already known

        Raises:
            ConfigurationError: If the big blind is not positive
        """
        if info is not None:
            self.small_blind = info.small_blind
            self.big_blind = info.big_blind
            self.variant = info.variant
            self.max_turn_length = info.max_turn_length
        require_big_blind(self.big_blind)

        self.table.reset_for_hand()
        self.table.clear_seats()
        if num_players:
            self.table.players_in_pot = num_players

        self.hand_number = None
        self.hand_id = None
        self.dealer_id = None
        self.hero_hand = []
        self.hero_decisions = []
        self.pot = ZERO
        self._street_contrib = {}
        self._applied_keys = set()
        self.hand_active = True

        logger.info(
            f"Hand started (blinds {self.small_blind}/{self.big_blind}, "
            f"players: {num_players if num_players else 'unknown'})"
        )
        self._emit(GameEvents.HAND_STARTED, {"num_players": num_players})

    def end_hand(self) -> None:
        if not self.hand_active:
            return
        self.hand_active = False
        self.hands_played += 1
        logger.info(
            f"Hand #{self.hand_number} ended: {len(self.table.action_history)} actions, "
            f"board {self.table.community_cards}"
        )
        self._emit(GameEvents.HAND_ENDED, {"hand_number": self.hand_number})

    def abandon_hand(self) -> None:
        """Leave the current hand without counting it as played"""
        if self.hand_active:
            self.hand_active = False
            logger.info(f"Hand #{self.hand_number} abandoned")

    # ========== Log Application ==========

    def apply_log_batch(self, events: Iterable[LogEvent], maps: IdentityMaps | None = None) -> int:
        """
        Apply parsed log events to the table.

        Events already applied (by key) are skipped, so the full hand
        accumulation can be passed on every pull. Players are reconciled only
        for ids present in all four identity maps.

        Args:
            events: Events in log order
            maps: Identity maps for the batch (built from events if omitted)

        Returns:
            Number of events newly applied
        """
        events = sorted(events, key=lambda e: e.sort_key)
        if maps is None:
            maps = build_identity_maps(events)
        self._reconcile_players(maps)

        applied = 0
        for event in events:
            if event.key in self._applied_keys:
                continue
            self._applied_keys.add(event.key)
            self._apply_event(event)
            applied += 1

        self._sync_hero_stack()
        if applied:
            self._emit(GameEvents.LOG_APPLIED, {"applied": applied})
        return applied

    def _sync_hero_stack(self, reported: Decimal = ZERO) -> None:
        """Use the reported hero stack if known, else the hero's tracked stack"""
        if reported > 0:
            self.hero_stack = reported
            return
        hero = self.hero
        if hero is not None:
            self.hero_stack = hero.stack

    def _reconcile_players(self, maps: IdentityMaps) -> None:
        for player_id in sorted(maps.complete_ids, key=lambda pid: maps.id_to_seat[pid]):
            seat = maps.id_to_seat[player_id]
            name = maps.id_to_name[player_id]
            player = self.table.player_by_id(player_id)
            if player is None:
                player = self.table.player_by_name(name)
                if player is not None:
                    # snapshot placeholder: the log owns chips from here on
                    player.player_id = player_id
                    player.set_stack(maps.id_to_initial_stack[player_id])
                    player.bet = ZERO
            if player is None:
                player = Player(
                    player_id=player_id,
                    name=name,
                    seat=seat,
                    stack=maps.id_to_initial_stack[player_id],
                )
                logger.debug(f"Seated {name} ({player_id}) at seat {seat}")
            else:
                player.name = name
                player.seat = seat
            self.table.seat_player(player)

        if maps.complete_ids and len(self.table.seats) > self.table.players_in_pot:
            self.table.players_in_pot = len(self.table.seats)

    def _apply_event(self, event: LogEvent) -> None:
        kind = event.kind
        if kind == LogEventKind.HAND_STARTED:
            self.hand_number = event.hand_number
            self.hand_id = event.hand_id
            self.dealer_id = event.dealer_id
            self._set_pot(ZERO)
            self._street_contrib = {}
        elif kind == LogEventKind.HERO_HAND:
            self.hero_hand = list(event.cards)
            hero = self.hero
            if hero is not None:
                hero.hole_cards = list(event.cards)
        elif kind == LogEventKind.BOARD_DEALT:
            if self.table.extend_board(event.cards):
                self._street_contrib = {}
                for player in self.table.seats.values():
                    player.bet = ZERO
        elif kind == LogEventKind.ACTION:
            self._apply_action(event)
        elif kind == LogEventKind.UNCALLED_BET:
            self._set_pot(self.pot - event.amount)
            player = self.table.player_by_id(event.player_id)
            if player is not None:
                player.refund(event.amount)
        elif kind == LogEventKind.POT_COLLECTED:
            player = self.table.player_by_id(event.player_id)
            if player is not None:
                player.refund(event.amount)
        # Identity events are folded in by _reconcile_players

    def _apply_action(self, event: LogEvent) -> None:
        player = self.table.player_by_id(event.player_id)
        if player is not None and player.folded:
            logger.warning(f"Ignoring {event.action.value} by {player.name}: already folded")
            return

        street = self.table.street
        delta = ZERO
        if event.amount is not None:
            already = self._street_contrib.get(event.player_id, ZERO)
            if event.action in (LogActionKind.CALL, LogActionKind.RAISE):
                # street totals
                delta = max(event.amount - already, ZERO)
            else:
                delta = event.amount
            self._street_contrib[event.player_id] = already + delta
            self._set_pot(self.pot + delta)

        if player is not None:
            if event.action == LogActionKind.FOLD:
                player.fold()
            elif delta > 0:
                player.commit(delta)
            if event.all_in:
                player.all_in = True

        amount_bb = self.to_bb(event.amount) if event.amount is not None else None
        self.table.action_history.append(
            HandAction(
                street=street,
                player_name=event.player_name,
                action=event.action.value,
                amount_bb=amount_bb,
                is_hero=event.player_name == self.hero_name,
            )
        )

    # ========== Snapshot Application ==========

    def apply_snapshot(self, snapshot: TableSnapshot) -> None:
        """
        Overlay the freshest Observer snapshot (pot, board, hero hand/stack, seats).
        """
        self._set_pot(snapshot.pot)
        if snapshot.community_cards:
            self.table.extend_board(snapshot.community_cards)
        if snapshot.hero_hand:
            self.hero_hand = list(snapshot.hero_hand)

        for seat in snapshot.players:
            player = self.table.player_by_name(seat.name)
            if player is None:
                player = Player(player_id=seat.name, name=seat.name, seat=seat.seat)
                self.table.seat_player(player)
            if seat.stack > 0 or seat.all_in:
                player.set_stack(seat.stack)
            player.bet = seat.bet
            player.folded = player.folded or seat.folded
            player.all_in = seat.all_in
            player.is_dealer = seat.is_dealer
            player.is_current_turn = seat.is_current_turn

        hero = self.hero
        if hero is not None:
            if self.hero_hand:
                hero.hole_cards = list(self.hero_hand)
            if snapshot.hero_stack > 0:
                hero.set_stack(snapshot.hero_stack)
        # 0 means the page did not show it
        self._sync_hero_stack(snapshot.hero_stack)

        if snapshot.players and not self.table.players_in_pot:
            self.table.players_in_pot = snapshot.num_players

        self._emit(GameEvents.SNAPSHOT_APPLIED, {"source": snapshot.source})

    # ========== Decisions ==========

    def record_action(self, action: BotAction) -> None:
        """Record the action advised to (or executed for) the hero"""
        self.hero_decisions.append((self.table.street, action))
        logger.info(f"Recorded hero decision on {self.table.street.value}: {action.describe()}")
        self._emit(GameEvents.ACTION_RECORDED, {"action": action})
