"""
Presentation - advice text for the operator and action execution

format_advice() renders what the hero should do; ActionExecutor turns a
BotAction into Observer clicks when the advisor runs in automated mode.
"""

import logging

from core.errors import ActionValidationError
from core.game_state import Game
from models.actions import BotAction
from models.enums import ActionKind
from services.player_stats import PlayerStats
from sources.observer import Observer, ObserverResult
from utils.value_conversion import format_bb, format_chips, pot_percentage, to_chips

logger = logging.getLogger(__name__)

TOP_OPPONENTS = 3
RULE = "-" * 40


def _top_opponents(game: Game, opponent_stats: dict[str, PlayerStats]) -> list[PlayerStats]:
    """Opponents still at the table with the most recorded hands first"""
    seated = {p.name for p in game.opponents}
    known = [s for name, s in opponent_stats.items() if name in seated and s.total_hands > 0]
    known.sort(key=lambda s: (-s.total_hands, s.name))
    return known[:TOP_OPPONENTS]


def format_advice(
    game: Game, action: BotAction, opponent_stats: dict[str, PlayerStats] | None = None
) -> str:
    """
    Render the recommendation for the operator.

    Args:
        game: Aggregate the decision was made on
        action: Validated recommendation
        opponent_stats: Player name -> stats for the opponent summary

    Returns:
        Multi-line advice text
    """
    lines = [
        RULE,
        f"Hand #{game.hand_number if game.hand_number is not None else '?'} - {game.street.value}",
        f"Hand: {' '.join(game.hero_hand) or '??'}   Board: {' '.join(game.community_cards) or '-'}",
        f"Pot: {format_bb(game.pot_bb)} ({format_chips(game.pot)})   "
        f"Stack: {format_bb(game.hero_stack_bb)} ({format_chips(game.hero_stack)})",
        f"ADVICE: {action.action_kind.value.upper()}",
    ]

    if action.action_kind.is_sized and action.size_in_big_blinds > 0:
        chips = to_chips(action.size_in_big_blinds, game.big_blind)
        sizing = f"Size: {format_bb(action.size_in_big_blinds)} ({format_chips(chips)} chips)"
        percentage = pot_percentage(action.size_in_big_blinds, game.pot_bb)
        if percentage is not None:
            sizing += f", {percentage}% of pot"
        lines.append(sizing)

    if action.rationale:
        lines.append(f"Why: {action.rationale}")

    top = _top_opponents(game, opponent_stats or {})
    if top:
        lines.append("Opponents:")
        lines.extend(f"  {stats.format_for_prompt()}" for stats in top)

    lines.append(RULE)
    return "\n".join(lines)


def format_fallback_advice(available_actions: list[str] | None, reason: str | None = None) -> str:
    """Advice shown when no recommendation could be obtained"""
    lines = [RULE, "No recommendation available" + (f": {reason}" if reason else "")]
    if available_actions:
        lines.append(f"Valid actions: {', '.join(available_actions)}")
    lines.append("Decide manually.")
    lines.append(RULE)
    return "\n".join(lines)


class ActionExecutor:
    """
    Executes BotActions through Observer primitives

    Sizes are converted from big blinds to chips with the current big blind.
    All-in is sent as a bet of the hero's whole stack.
    """

    def __init__(self, observer: Observer, operator=None, confirm_automated_actions: bool = False):
        """
        Args:
            observer: Table Observer providing check/call/fold/bet_or_raise
            operator: Operator asked for confirmation (optional)
            confirm_automated_actions: Ask before every click
        """
        self.observer = observer
        self.operator = operator
        self.confirm_automated_actions = confirm_automated_actions

        self.executed_count = 0
        self.declined_count = 0
        self.last_action: BotAction | None = None

    async def execute(
        self, action: BotAction, game: Game, available_actions: list[str] | None = None
    ) -> ObserverResult:
        """
        Execute one action at the table.

        Args:
            action: Validated action
            game: Aggregate (big blind and hero stack)
            available_actions: Buttons currently offered, if known

        Returns:
            ObserverResult from the Observer (fail if declined). The action
            actually sent is kept in last_action.

        Raises:
            ActionValidationError: If a sized action has no chip amount
        """
        self.last_action = None
        if self.confirm_automated_actions and self.operator is not None:
            approved = await self.operator.confirm(f"Execute {action.describe()}?")
            if not approved:
                self.declined_count += 1
                logger.info(f"Operator declined {action.describe()}")
                return ObserverResult.fail("declined by operator")

        kind = action.action_kind
        available = [a.lower() for a in available_actions or []]

        if kind == ActionKind.FOLD and ActionKind.CHECK.value in available:
            logger.info("Fold requested while check is free, checking instead")
            kind = ActionKind.CHECK
            action = action.model_copy(update={"action_kind": kind})

        if kind == ActionKind.CHECK:
            result = await self.observer.check()
        elif kind == ActionKind.CALL:
            result = await self.observer.call()
        elif kind == ActionKind.FOLD:
            result = await self.observer.fold()
        else:
            if kind == ActionKind.ALL_IN:
                chips = game.hero_stack
            else:
                chips = to_chips(action.size_in_big_blinds, game.big_blind)
            if chips <= 0:
                raise ActionValidationError(f"{kind.value} needs a positive chip amount, got {chips}")
            result = await self.observer.bet_or_raise(chips)

        self.last_action = action

        if result.success:
            self.executed_count += 1
            logger.info(f"Executed {kind.value} ({action.describe()})")
        else:
            logger.warning(f"Observer rejected {kind.value}: {result.error}")
        return result
