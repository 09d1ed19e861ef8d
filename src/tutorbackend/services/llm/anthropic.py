from typing import Optional
import logging
import anthropic
from .base import BaseLLM
from ...exceptions import CompletionError

logger = logging.getLogger(__name__)

class AnthropicLLM(BaseLLM):
    def __init__(
        self,
        model: str = "claude-3-5-haiku-20241022",
        api_key: Optional[str] = None,
        max_tokens: int = 1024,
    ):
        self.client = (
            anthropic.AsyncAnthropic(api_key=api_key)
            if api_key
            else anthropic.AsyncAnthropic()
        )
        self.model = model
        self.max_tokens = max_tokens

    async def complete(
        self,
        system_prompt: str,
        user_text: str,
        temperature: float = 0.7,
    ) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model,
                system=system_prompt,
                messages=[{"role": "user", "content": user_text}],
                max_tokens=self.max_tokens,
                temperature=temperature,
            )
        except anthropic.APIError as e:
            raise CompletionError(f"Anthropic API error: {e}") from e

        text = "".join(block.text for block in response.content if block.type == "text")
        if not text:
            raise CompletionError("Anthropic returned an empty response")
        return text
