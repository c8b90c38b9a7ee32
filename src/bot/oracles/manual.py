"""
ManualOracle - relays prompts through the operator to a human-driven chat model
"""

import logging

from models.actions import AIMessage, OracleResponse
from models.enums import Role

from .base import Oracle

logger = logging.getLogger(__name__)

ROLE_HEADERS = {
    Role.SYSTEM: "[SYSTEM PROMPT]",
    Role.USER: "[USER]",
    Role.ASSISTANT: "[ASSISTANT]",
}


def format_relay_prompt(prompt: str, history: list[AIMessage], system_prompt: str) -> str:
    """
    Render the conversation as one paste-able block

    The system prompt is included when the history does not already start
    with one.
    """
    messages = list(history)
    if not messages or messages[0].role != Role.SYSTEM:
        messages.insert(0, AIMessage(text=system_prompt, role=Role.SYSTEM))

    blocks = [f"{ROLE_HEADERS[m.role]}\n{m.text}" for m in messages]
    blocks.append(f"{ROLE_HEADERS[Role.USER]}\n{prompt}")
    return "\n\n".join(blocks).strip()


class ManualOracle(Oracle):
    """
    Oracle backed by a human relay

    The formatted conversation is handed to the operator, who pastes it
    into a chat model and pastes the reply back.
    """

    def __init__(self, operator, model_name: str = "manual", playstyle: str = "neutral"):
        """
        Args:
            operator: Operator providing relay()
            model_name: Label for logs
            playstyle: Playstyle key for the system prompt
        """
        super().__init__(model_name=model_name, playstyle=playstyle)
        self._operator = operator

    async def query(self, prompt: str, history: list[AIMessage]) -> OracleResponse:
        relay_text = format_relay_prompt(prompt, history, self.system_prompt)
        reply = await self._operator.relay(relay_text)
        reply = (reply or "").strip()
        if not reply:
            raise ValueError("Empty reply from relay")
        logger.debug(f"Relay reply: {reply[:200]}")
        return OracleResponse(text=reply)
