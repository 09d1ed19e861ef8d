from abc import ABC, abstractmethod

class BaseLLM(ABC):
    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_text: str,
        temperature: float = 0.7,
    ) -> str:
        """Get a complete answer from the LLM.

        Raises:
            CompletionError: the backend failed or returned nothing usable
        """
        pass
