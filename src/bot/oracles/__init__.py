"""
Oracles - decision sources for the advisor

- manual: human relay of the prompt to a chat model (default)
- api: OpenAI-compatible chat-completions endpoint
"""

from .api import ChatCompletionsOracle
from .base import PLAYSTYLE_PROMPTS, Oracle, get_playstyle_prompt
from .manual import ManualOracle, format_relay_prompt

# Oracle registry
ORACLES = {
    "manual": ManualOracle,
    "api": ChatCompletionsOracle,
}


def create_oracle(provider: str, operator=None, **kwargs) -> Oracle:
    """
    Create an Oracle by provider name

    Args:
        provider: Provider name (manual, api)
        operator: Operator used by the manual relay
        **kwargs: Provider options (model_name, playstyle, api_key, base_url, timeout, temperature)

    Returns:
        Oracle instance

    Raises:
        ValueError: If the provider name or playstyle is invalid
    """
    name = provider.lower()
    if name not in ORACLES:
        valid = ", ".join(ORACLES.keys())
        raise ValueError(f"Invalid oracle '{provider}'. Valid oracles: {valid}")

    if name == "manual":
        if operator is None:
            raise ValueError("The manual oracle needs an operator to relay prompts")
        kwargs.pop("api_key", None)
        kwargs.pop("base_url", None)
        kwargs.pop("timeout", None)
        kwargs.pop("temperature", None)
        return ManualOracle(operator, **kwargs)

    return ORACLES[name](**kwargs)


def list_oracles() -> list:
    return list(ORACLES.keys())


__all__ = [
    "ChatCompletionsOracle",
    "ManualOracle",
    "Oracle",
    "ORACLES",
    "PLAYSTYLE_PROMPTS",
    "create_oracle",
    "format_relay_prompt",
    "get_playstyle_prompt",
    "list_oracles",
]
