import asyncio
from typing import List, Optional, Tuple

import pytest

from tutorbackend.config import Settings
from tutorbackend.context import ContextAssembler
from tutorbackend.database.conversations import ConversationStore
from tutorbackend.exceptions import CompletionError
from tutorbackend.memory import InMemoryWindowStore, SqliteWindowStore
from tutorbackend.prompts import PromptTemplate
from tutorbackend.registry import ConversationRegistry
from tutorbackend.services.llm.base import BaseLLM
from tutorbackend.tutor import TutorService

TEMPLATE = "You are a tutor for {userName}."


class FakeLLM(BaseLLM):
    """Records every call and answers from a script"""

    def __init__(self, answer: str = "A for loop repeats a block for each item."):
        self.answer = answer
        self.error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[Tuple[str, str, float]] = []

    async def complete(self, system_prompt: str, user_text: str, temperature: float = 0.7) -> str:
        self.calls.append((system_prompt, user_text, temperature))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.answer


class FailingLLM(FakeLLM):
    def __init__(self):
        super().__init__()
        self.error = CompletionError("backend down")


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        window_backend="memory",
        window_capacity=50,
        completion_timeout=5.0,
        temperature=0.7,
    )


@pytest.fixture(params=["memory", "sqlite"])
def windows(request, tmp_path):
    if request.param == "memory":
        return InMemoryWindowStore(capacity=50)
    return SqliteWindowStore(str(tmp_path / "messages.db"), capacity=50)


@pytest.fixture
def store():
    return ConversationStore("sqlite://")


@pytest.fixture
def registry(store, windows):
    return ConversationRegistry(store, windows)


@pytest.fixture
def assembler():
    return ContextAssembler(PromptTemplate(TEMPLATE))


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def tutor(registry, windows, assembler, llm, settings):
    return TutorService(registry, windows, assembler, llm, settings)
