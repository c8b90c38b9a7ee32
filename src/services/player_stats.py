"""
Player statistics - VPIP / PFR / walk tracking per opponent

VPIP: voluntarily put chips in pre-flop (call, bet or raise; blinds excluded)
PFR: pre-flop raise (or open bet)
Walk: big blind won uncontested because everyone else folded pre-flop
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal

from models.enums import LogActionKind, LogEventKind
from models.log_events import LogEvent

logger = logging.getLogger(__name__)

MIN_HANDS_FOR_TYPE = 10
LOOSE_VPIP = Decimal("25")
LAG_PFR = Decimal("20")
TAG_PFR = Decimal("15")


@dataclass
class PlayerStats:
    """
    Lifetime statistics for one player name

    Attributes:
        name: Player display name (Ledger key)
        total_hands: Hands dealt in
        walks: Hands won as big blind with everyone folding
        vpip_hands: Hands with a voluntary pre-flop call/bet/raise
        pfr_hands: Hands with a pre-flop raise
        last_seen: ISO timestamp of the last update
    """

    name: str
    total_hands: int = 0
    walks: int = 0
    vpip_hands: int = 0
    pfr_hands: int = 0
    last_seen: str | None = None

    @property
    def vpip(self) -> Decimal | None:
        if self.total_hands <= 0:
            return None
        return Decimal(self.vpip_hands) / Decimal(self.total_hands) * 100

    @property
    def pfr(self) -> Decimal | None:
        if self.total_hands <= 0:
            return None
        return Decimal(self.pfr_hands) / Decimal(self.total_hands) * 100

    @property
    def player_type(self) -> str:
        """LAG / LAP / TAG / TAP, or "unknown" under 10 hands"""
        if self.total_hands < MIN_HANDS_FOR_TYPE:
            return "unknown"
        vpip, pfr = self.vpip, self.pfr
        if vpip >= LOOSE_VPIP and pfr >= LAG_PFR:
            return "LAG"
        if vpip >= LOOSE_VPIP:
            return "LAP"
        if pfr >= TAG_PFR:
            return "TAG"
        return "TAP"

    def summary(self) -> str:
        """e.g. "42h, 31.0% VPIP, 22.5% PFR (LAG)\""""
        if self.total_hands <= 0:
            return "no hands recorded"
        text = f"{self.total_hands}h, {self.vpip:.1f}% VPIP, {self.pfr:.1f}% PFR"
        if self.player_type != "unknown":
            text += f" ({self.player_type})"
        return text

    def format_for_prompt(self) -> str:
        return f"{self.name}: {self.summary()}"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "total_hands": self.total_hands,
            "walks": self.walks,
            "vpip_hands": self.vpip_hands,
            "pfr_hands": self.pfr_hands,
            "last_seen": self.last_seen,
        }


@dataclass
class HandParticipation:
    """One player's flags for a single hand"""

    name: str
    vpip: bool = False
    pfr: bool = False
    walked: bool = False
    actions: list[str] = field(default_factory=list)


def compute_hand_participation(events: Iterable[LogEvent]) -> dict[str, HandParticipation]:
    """
    Derive VPIP / PFR / walk flags for every player dealt into one hand.

    Args:
        events: The hand's events in log order

    Returns:
        Player name -> HandParticipation
    """
    events = sorted(events, key=lambda e: e.sort_key)
    result: dict[str, HandParticipation] = {}

    def entry(name: str) -> HandParticipation:
        if name not in result:
            result[name] = HandParticipation(name=name)
        return result[name]

    for event in events:
        if event.kind == LogEventKind.SEAT_ASSIGNMENT and event.player_name:
            entry(event.player_name)

    preflop = True
    big_blind = None
    board_dealt = False
    for event in events:
        if event.kind == LogEventKind.BOARD_DEALT:
            preflop = False
            board_dealt = True
            continue
        if event.kind != LogEventKind.ACTION or not event.player_name:
            continue

        player = entry(event.player_name)
        player.actions.append(event.action.value)
        if not preflop:
            continue
        if event.action == LogActionKind.BIG_BLIND:
            big_blind = event.player_name
        if event.action.is_voluntary:
            player.vpip = True
        if event.action in (LogActionKind.RAISE, LogActionKind.BET):
            player.pfr = True

    others_entered = any(p.vpip for name, p in result.items() if name != big_blind)
    if big_blind is not None and not board_dealt and not others_entered:
        big_blind_entry = result[big_blind]
        if not big_blind_entry.vpip:
            big_blind_entry.walked = True

    return result


def merge_hand(stats: PlayerStats | None, participation: HandParticipation) -> PlayerStats:
    """Fold one hand into stored stats (stats may be None for a new player)"""
    base = stats if stats is not None else PlayerStats(name=participation.name)
    return replace(
        base,
        total_hands=base.total_hands + 1,
        walks=base.walks + (1 if participation.walked else 0),
        vpip_hands=base.vpip_hands + (1 if participation.vpip else 0),
        pfr_hands=base.pfr_hands + (1 if participation.pfr else 0),
        last_seen=datetime.now().isoformat(timespec="seconds"),
    )
