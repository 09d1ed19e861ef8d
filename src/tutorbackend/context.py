"""
Builds the system prompt sent with every completion request.

Short replies such as "yes" or "done" are ambiguous to a model that cannot
see what they answer. When a conversation has history, the base prompt is
followed by a recap of the latest messages and a directive telling the model
how to read the student's next message, based on whether the tutor's last
message asked something.

Assembly is pure: the same window and question always produce the same text.
"""

from enum import Enum
from typing import List, Optional, Sequence

from .database.models import Message
from .prompts import PromptTemplate
from .utils import truncate

DEFAULT_STUDENT_NAME = "Student"

TERMINATION_PHRASES = (
    "stop",
    "that's enough",
    "I want to stop",
    "let's change the topic",
    "I'm finished for today",
    "bye",
)

CONTINUATION_PHRASES = (
    "yes",
    "yeah",
    "ok",
    "sure",
    "done",
    "got it",
    "next",
    "continue",
    "go on",
)


class TurnKind(Enum):
    QUESTION_PENDING = "question_pending"
    STATEMENT_PENDING = "statement_pending"
    NO_DIRECTIVE = "no_directive"


def last_assistant_message(messages: Sequence[Message]) -> Optional[Message]:
    for message in reversed(messages):
        if message.role == "assistant":
            return message
    return None


def classify(messages: Sequence[Message]) -> TurnKind:
    """Did the tutor's most recent message ask the student something?

    A '?' anywhere in it counts as a question. This is a heuristic and is
    kept deliberately literal.
    """
    last = last_assistant_message(messages)
    if last is None:
        return TurnKind.NO_DIRECTIVE
    if "?" in last.content:
        return TurnKind.QUESTION_PENDING
    return TurnKind.STATEMENT_PENDING


def _quoted(phrases) -> str:
    return ", ".join(f'"{p}"' for p in phrases)


class ContextAssembler:
    def __init__(self, template: PromptTemplate, recap_size: int = 10, quote_limit: int = 150):
        if recap_size < 1:
            raise ValueError("Recap size must be at least 1")
        if quote_limit < 1:
            raise ValueError("Quote limit must be at least 1")
        self.template = template
        self.recap_size = recap_size
        self.quote_limit = quote_limit

    def base_prompt(self, user_name: Optional[str]) -> str:
        name = user_name.strip() if user_name and user_name.strip() else DEFAULT_STUDENT_NAME
        return self.template.format(userName=name)

    def assemble(
        self, messages: Sequence[Message], question: str, user_name: Optional[str] = None
    ) -> str:
        base = self.base_prompt(user_name)
        if not messages:
            return base

        recent = list(messages)[-self.recap_size:]
        sections = [
            base.rstrip(),
            self._recap(recent),
            self._directive(messages, question),
        ]
        return "\n\n".join(sections)

    def _recap(self, recent: List[Message]) -> str:
        lines = ["## Recent conversation"]
        lines.extend(f"{m.role.upper()}: {m.content}" for m in recent)
        return "\n".join(lines)

    def _directive(self, messages: Sequence[Message], question: str) -> str:
        kind = classify(messages)
        lines = ["## How to read the student's next message"]

        if kind is TurnKind.QUESTION_PENDING:
            asked = truncate(last_assistant_message(messages).content, self.quote_limit)
            lines.append(
                f'Your last message asked the student a question: "{asked}"\n'
                "The student's next message is very likely their answer to that question. "
                'Interpret short replies such as "yes", "no", "ok" or "done" as answers '
                "in the context of that question, not as a request to stop."
            )
        elif kind is TurnKind.STATEMENT_PENDING:
            said = truncate(last_assistant_message(messages).content, self.quote_limit)
            lines.append(
                f'Your last message was a statement: "{said}"\n'
                "The student's next message is a reaction to it, a follow-up question, "
                "or an acknowledgement. Build on what you just said."
            )

        if question and question.strip():
            lines.append(
                f'The student\'s next message: "{truncate(question.strip(), self.quote_limit)}"'
            )

        lines.append(
            "End the current topic only if the student clearly says something like: "
            f"{_quoted(TERMINATION_PHRASES)}.\n"
            "Keep going with the current topic when the student says something like: "
            f"{_quoted(CONTINUATION_PHRASES)}.\n"
            "If the message is ambiguous, assume the student wants to continue."
        )
        return "\n".join(lines)
