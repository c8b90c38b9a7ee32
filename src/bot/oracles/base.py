"""
Base Oracle class for decision sources
"""

import logging
from abc import ABC, abstractmethod

from models.actions import AIMessage, OracleResponse

logger = logging.getLogger(__name__)

_BASE_PROMPT = (
    "You are a No-Limit Texas Hold'em advisor at an online cash table. "
    "Every message describes the current spot: pot and stacks in big blinds, "
    "your hole cards, the board and the action so far. "
    "Reply with exactly one action (check, call, fold, all-in, bet <BB> or raise <BB>) "
    "on the first line and a short reason on the second."
)

PLAYSTYLE_PROMPTS = {
    "neutral": _BASE_PROMPT + " Play a balanced, solid strategy.",
    "tag": _BASE_PROMPT
    + " Play tight-aggressive: enter few pots pre-flop, but bet and raise for value when you do.",
    "lag": _BASE_PROMPT
    + " Play loose-aggressive: open a wide range and apply pressure with frequent bets and raises.",
    "tight": _BASE_PROMPT + " Play tight: fold marginal hands and avoid thin calls.",
    "loose": _BASE_PROMPT + " Play loose: see many flops and call down lighter against aggression.",
}


def get_playstyle_prompt(playstyle: str) -> str:
    """
    System prompt for a playstyle

    Raises:
        ValueError: If the playstyle is unknown
    """
    key = playstyle.lower()
    if key not in PLAYSTYLE_PROMPTS:
        valid = ", ".join(PLAYSTYLE_PROMPTS)
        raise ValueError(f"Invalid playstyle '{playstyle}'. Valid playstyles: {valid}")
    return PLAYSTYLE_PROMPTS[key]


class Oracle(ABC):
    """
    Abstract decision source

    query() receives the prompt for the current decision and the hand's
    conversation so far (system prompt first) and returns the raw reply.
    Parsing the reply is left to the decision protocol unless the Oracle
    already produced a structured action.
    """

    def __init__(self, model_name: str = "", playstyle: str = "neutral"):
        self.name = self.__class__.__name__
        self.model_name = model_name
        self.playstyle = playstyle
        # validate eagerly
        self.system_prompt = get_playstyle_prompt(playstyle)

    @abstractmethod
    async def query(self, prompt: str, history: list[AIMessage]) -> OracleResponse:
        """
        Ask for a recommendation

        Args:
            prompt: Current decision prompt
            history: Previous messages of this hand (system prompt first)

        Returns:
            OracleResponse with the raw text

        Raises:
            Any exception on transport failure (counted as a failed attempt)
        """
        pass

    async def close(self) -> None:  # noqa: B027
        """Release resources. Optional."""

    def __str__(self):
        return f"{self.name}({self.model_name or 'default'}, {self.playstyle})"
