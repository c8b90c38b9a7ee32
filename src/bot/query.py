"""
Query construction - serializes the current Game into an Oracle prompt

The prompt is a pure function of the Game state and the opponent stats
passed in, so identical state always yields an identical prompt.
"""

from core.game_state import Game
from services.player_stats import PlayerStats
from utils.value_conversion import format_bb, format_chips

RESPONSE_INSTRUCTIONS = (
    "Respond with one action on the first line: check, call, fold, all-in, "
    "bet <size in BB> or raise <size in BB>. Add a one-sentence reason on the next line."
)


def _cards(cards: list[str]) -> str:
    return ", ".join(cards) if cards else "none"


def construct_query(game: Game, opponent_stats: dict[str, PlayerStats] | None = None) -> str:
    """
    Build the prompt for the current decision.

    Args:
        game: Aggregate after logs and snapshot were applied
        opponent_stats: Player name -> stats (known opponents only)

    Returns:
        Prompt text
    """
    opponent_stats = opponent_stats or {}
    lines = [
        f"Game: {game.variant}, blinds {format_chips(game.small_blind)}/{format_chips(game.big_blind)}",
        f"Street: {game.street.value}",
        f"Players in hand: {game.num_players}",
        f"Pot: {format_bb(game.pot_bb)}",
        f"Your stack: {format_bb(game.hero_stack_bb)}",
        f"Your hand: {_cards(game.hero_hand)}",
        f"Community cards: {_cards(game.community_cards)}",
    ]

    hero = game.hero
    if hero is not None:
        position = "dealer" if hero.is_dealer or hero.player_id == game.dealer_id else f"seat {hero.seat}"
        lines.append(f"Your position: {position}")

    history = game.action_history
    lines.append("Action history:")
    if history:
        for action in history:
            lines.append(f"- {action.street.value}: {action.describe()}")
    else:
        lines.append("- none")

    opponents = game.opponents
    if opponents:
        lines.append("Opponents:")
        for player in opponents:
            status = "folded" if player.folded else ("all-in" if player.all_in else "active")
            entry = f"- {player.name} (seat {player.seat}, {format_bb(game.to_bb(player.stack))}, {status})"
            stats = opponent_stats.get(player.name)
            if stats is not None and stats.total_hands > 0:
                entry += f": {stats.summary()}"
            lines.append(entry)

    lines.append("")
    lines.append(RESPONSE_INSTRUCTIONS)
    return "\n".join(lines)
