"""
Table data model
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from .enums import Street
from .player import Player

logger = logging.getLogger(__name__)

VALID_BOARD_COUNTS = (0, 3, 4, 5)


@dataclass
class HandAction:
    """
    One action in the hand history

    Attributes:
        street: Street the action happened on
        player_name: Acting player
        action: Action name ("raise", "big_blind", ...)
        amount_bb: Amount in big blinds (None for check/fold)
        is_hero: Action was advised to (or taken by) the hero
    """

    street: Street
    player_name: str
    action: str
    amount_bb: Decimal | None = None
    is_hero: bool = False

    def describe(self) -> str:
        if self.amount_bb is None:
            return f"{self.player_name} {self.action}"
        return f"{self.player_name} {self.action} {self.amount_bb.normalize():f} BB"


@dataclass
class Table:
    """
    Seats, pot and board for the current hand

    Attributes:
        seats: Seat number -> Player
        pot_bb: Pot size in big blinds
        community_cards: Board cards (0/3/4/5, append-only within a hand)
        players_in_pot: Players dealt into the current hand
        action_history: Actions of the current hand, in order
    """

    seats: dict[int, Player] = field(default_factory=dict)
    pot_bb: Decimal = Decimal("0")
    community_cards: list[str] = field(default_factory=list)
    players_in_pot: int = 0
    action_history: list[HandAction] = field(default_factory=list)

    def reset_for_hand(self) -> None:
        """Clear board, pot and history; players keep their seats"""
        self.pot_bb = Decimal("0")
        self.community_cards = []
        self.players_in_pot = 0
        self.action_history = []
        for player in self.seats.values():
            player.reset_for_hand()

    def clear_seats(self) -> None:
        self.seats = {}

    def seat_player(self, player: Player) -> None:
        """Seat a player, evicting any other id holding the seat or the same id elsewhere"""
        existing = self.seats.get(player.seat)
        if existing is not None and existing.name != player.name:
            logger.warning(
                f"Seat {player.seat} reassigned from {existing.name} to {player.name}"
            )
        for seat, seated in list(self.seats.items()):
            if seated.player_id == player.player_id and seat != player.seat:
                del self.seats[seat]
        self.seats[player.seat] = player

    def player_by_id(self, player_id: str) -> Player | None:
        for player in self.seats.values():
            if player.player_id == player_id:
                return player
        return None

    def player_by_name(self, name: str) -> Player | None:
        for player in self.seats.values():
            if player.name == name:
                return player
        return None

    @property
    def players(self) -> list[Player]:
        """Players ordered by seat number"""
        return [self.seats[seat] for seat in sorted(self.seats)]

    @property
    def street(self) -> Street:
        return Street.from_board_count(len(self.community_cards))

    def extend_board(self, cards: list[str]) -> bool:
        """
        Grow the board to the given cards

        The board only grows within a hand: a shorter list, a list that does
        not extend the current board, or an invalid card count is ignored.

        Returns:
            True if the board changed
        """
        if len(cards) not in VALID_BOARD_COUNTS:
            logger.warning(f"Ignoring board with invalid card count: {cards}")
            return False
        if len(cards) <= len(self.community_cards):
            return False
        if cards[: len(self.community_cards)] != self.community_cards:
            logger.warning(
                f"Board {cards} does not extend current board {self.community_cards}, ignoring"
            )
            return False
        self.community_cards = list(cards)
        return True
