# core/openai_client.py
"""
Text generation client.

Talks to a local OpenAI-compatible server (llama.cpp, Ollama, vLLM, ...)
through the openai SDK, so conversations never leave the device.
"""
import asyncio
from typing import Dict, List, Optional

from openai import OpenAI, OpenAIError

from core.exceptions import GenerationError
from utils.logger import get_logger


class OpenAIClient:
    """Wrapper for an OpenAI-compatible chat completion endpoint"""

    def __init__(
        self,
        base_url: str = "http://localhost:8080/v1",
        api_key: str = "local",
        model: str = "local-model",
        max_tokens: int = 512,
        temperature: float = 0.7,
        client: Optional[OpenAI] = None,
    ):
        self.client = client or OpenAI(base_url=base_url, api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.logger = get_logger("openai_client")

    def _complete(self, conversation: List[Dict[str, str]]) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=conversation,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        choice = response.choices[0]
        content = (choice.message.content or "").strip()
        if not content:
            self.logger.warning(
                f"Empty completion (finish_reason={getattr(choice, 'finish_reason', None)})"
            )
        return content

    async def generate(self, conversation: List[Dict[str, str]]) -> str:
        """
        Generate a reply for a role-tagged conversation.

        Args:
            conversation: [{"role": "system"|"user"|"assistant", "content": str}, ...]

        Returns:
            Generated text ("" when the model returned nothing)

        Raises:
            GenerationError: if the backend call fails
        """
        try:
            # The SDK call blocks; keep the event loop free while it runs
            return await asyncio.to_thread(self._complete, conversation)
        except OpenAIError as e:
            self.logger.error(f"Text generation failed: {e}", exc_info=True)
            raise GenerationError(str(e)) from e
