"""
Player data model
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

logger = logging.getLogger(__name__)


@dataclass
class Player:
    """
    One seated player for the current hand

    Attributes:
        player_id: Stable PokerNow id (the part after "@" in "name @ id")
        name: Display name
        seat: Seat number (unique within a hand)
        stack: Current stack in chips
        bet: Chips committed on the current street
        hole_cards: Hole cards (known only for the hero)
        folded: Player has folded this hand
        all_in: Player is all-in
        is_dealer: Player holds the dealer button
        is_current_turn: Player is on the clock
    """

    player_id: str
    name: str
    seat: int
    stack: Decimal = Decimal("0")
    bet: Decimal = Decimal("0")
    hole_cards: list[str] = field(default_factory=list)
    folded: bool = False
    all_in: bool = False
    is_dealer: bool = False
    is_current_turn: bool = False

    def __post_init__(self):
        if self.seat < 0:
            raise ValueError(f"seat cannot be negative, got {self.seat}")
        self.stack = self._clamp(self.stack)

    def _clamp(self, value: Decimal) -> Decimal:
        if value < 0:
            logger.warning(f"Stack for {self.name} went negative ({value}), clamping to 0")
            return Decimal("0")
        return value

    def set_stack(self, stack: Decimal) -> None:
        self.stack = self._clamp(stack)

    def commit(self, amount: Decimal) -> Decimal:
        """
        Move chips from the stack into the current bet

        Returns:
            Chips actually committed (never more than the stack)
        """
        committed = min(amount, self.stack)
        if committed < amount:
            logger.warning(
                f"{self.name} cannot commit {amount} with stack {self.stack}, committing {committed}"
            )
        self.stack -= committed
        self.bet += committed
        if self.stack == 0 and committed > 0:
            self.all_in = True
        return committed

    def refund(self, amount: Decimal) -> None:
        self.stack += amount

    def fold(self) -> None:
        self.folded = True
        self.is_current_turn = False

    @property
    def can_act(self) -> bool:
        return not self.folded and not self.all_in

    def reset_for_hand(self) -> None:
        """Clear per-hand state, keeping identity and stack"""
        self.bet = Decimal("0")
        self.hole_cards = []
        self.folded = False
        self.all_in = False
        self.is_dealer = False
        self.is_current_turn = False

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "name": self.name,
            "seat": self.seat,
            "stack": str(self.stack),
            "bet": str(self.bet),
            "hole_cards": list(self.hole_cards),
            "folded": self.folded,
            "all_in": self.all_in,
            "is_dealer": self.is_dealer,
        }
