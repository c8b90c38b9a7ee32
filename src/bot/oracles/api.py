"""
ChatCompletionsOracle - OpenAI-compatible /chat/completions endpoint over httpx
"""

import logging

import httpx

from models.actions import AIMessage, OracleResponse
from models.enums import Role

from .base import Oracle

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class ChatCompletionsOracle(Oracle):
    """
    Oracle that posts the hand conversation to a chat-completions API

    Usage:
        oracle = ChatCompletionsOracle(api_key="...", model_name="gpt-4o-mini")
        response = await oracle.query(prompt, history)
        await oracle.close()
    """

    def __init__(
        self,
        api_key: str,
        model_name: str = "gpt-4o-mini",
        playstyle: str = "neutral",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        temperature: float = 0.2,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            api_key: Bearer token
            model_name: Model identifier sent in the request body
            playstyle: Playstyle key for the system prompt
            base_url: API root (…/v1)
            timeout: Request timeout in seconds
            temperature: Sampling temperature
            client: Pre-built client (tests inject an httpx.MockTransport)
        """
        super().__init__(model_name=model_name, playstyle=playstyle)
        if not api_key and client is None:
            raise ValueError("api_key is required for the chat-completions oracle")
        self.temperature = temperature
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def build_messages(self, prompt: str, history: list[AIMessage]) -> list[dict[str, str]]:
        messages = [{"role": m.role.value, "content": m.text} for m in history]
        if not messages or messages[0]["role"] != Role.SYSTEM.value:
            messages.insert(0, {"role": Role.SYSTEM.value, "content": self.system_prompt})
        messages.append({"role": Role.USER.value, "content": prompt})
        return messages

    async def query(self, prompt: str, history: list[AIMessage]) -> OracleResponse:
        payload = {
            "model": self.model_name,
            "messages": self.build_messages(prompt, history),
            "temperature": self.temperature,
        }
        response = await self._client.post("/chat/completions", json=payload)
        response.raise_for_status()

        data = response.json()
        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Unexpected chat-completions response shape: {e}") from e

        if not text or not text.strip():
            raise ValueError("Empty completion")
        return OracleResponse(text=text.strip())

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
