from typing import Optional
import openai
from .base import BaseLLM
from ...exceptions import CompletionError

class OpenAILLM(BaseLLM):
    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: Optional[str] = None,
        max_tokens: int = 1024,
    ):
        self.client = (
            openai.AsyncOpenAI(api_key=api_key)
            if api_key
            else openai.AsyncOpenAI()
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
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_text},
                ],
                max_tokens=self.max_tokens,
                temperature=temperature,
            )
        except openai.APIError as e:
            raise CompletionError(f"OpenAI API error: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise CompletionError("OpenAI returned an empty response")
        return content
