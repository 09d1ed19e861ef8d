import pytest

from tutorbackend.context import (
    CONTINUATION_PHRASES,
    TERMINATION_PHRASES,
    ContextAssembler,
    TurnKind,
    classify,
)
from tutorbackend.database.models import Message
from tutorbackend.prompts import PromptTemplate


def user(text):
    return Message(role="user", content=text)


def assistant(text):
    return Message(role="assistant", content=text)


def test_empty_window_returns_base_prompt(assembler):
    assert assembler.assemble([], "What is a for loop?", "Ada") == "You are a tutor for Ada."


@pytest.mark.parametrize("name", [None, "", "   "])
def test_blank_name_uses_generic_label(assembler, name):
    assert assembler.assemble([], "hi", name) == "You are a tutor for Student."


def test_classify_question_statement_and_none():
    assert classify([]) is TurnKind.NO_DIRECTIVE
    assert classify([user("hello")]) is TurnKind.NO_DIRECTIVE
    assert classify([user("x"), assistant("Have you tried running it?")]) is TurnKind.QUESTION_PENDING
    assert classify([user("x"), assistant("Loops repeat code.")]) is TurnKind.STATEMENT_PENDING


def test_classify_uses_the_most_recent_assistant_message():
    window = [
        assistant("Does that make sense?"),
        user("yes"),
        assistant("Great. Next we look at while loops."),
        user("ok"),
    ]
    assert classify(window) is TurnKind.STATEMENT_PENDING


def test_yes_after_a_question_is_read_as_an_answer(assembler):
    window = [
        user("My loop never ends"),
        assistant("Have you tried running it?"),
    ]

    prompt = assembler.assemble(window, "yes", "Ada")

    assert prompt.startswith("You are a tutor for Ada.")
    assert "USER: My loop never ends" in prompt
    assert "ASSISTANT: Have you tried running it?" in prompt
    assert 'Your last message asked the student a question: "Have you tried running it?"' in prompt
    assert "not as a request to stop" in prompt
    assert "Your last message was a statement" not in prompt
    assert 'The student\'s next message: "yes"' in prompt
    assert "If the message is ambiguous, assume the student wants to continue." in prompt


def test_statement_directive(assembler):
    window = [user("What is a list?"), assistant("A list holds items in order.")]

    prompt = assembler.assemble(window, "cool", None)

    assert 'Your last message was a statement: "A list holds items in order."' in prompt
    assert "asked the student a question" not in prompt


def test_no_assistant_message_still_lists_phrases(assembler):
    prompt = assembler.assemble([user("hello")], "anyone there", "Ada")

    assert "asked the student a question" not in prompt
    assert "Your last message was a statement" not in prompt
    for phrase in TERMINATION_PHRASES + CONTINUATION_PHRASES:
        assert f'"{phrase}"' in prompt


def test_recap_holds_only_the_last_ten_messages(assembler):
    window = []
    for i in range(1, 8):
        window.append(user(f"question {i}"))
        window.append(assistant(f"answer {i}."))

    prompt = assembler.assemble(window, "next", "Ada")
    recap = [line for line in prompt.splitlines() if line.startswith(("USER:", "ASSISTANT:"))]

    assert len(recap) == 10
    assert recap[0] == "USER: question 3"
    assert recap[-1] == "ASSISTANT: answer 7."


def test_quoted_messages_are_truncated():
    assembler = ContextAssembler(PromptTemplate("base"), quote_limit=150)
    long_question = "Why? " + "x" * 300
    window = [user("hi"), assistant(long_question)]

    prompt = assembler.assemble(window, "y" * 400, "Ada")

    quoted = prompt.split('asked the student a question: "')[1].split('"')[0]
    assert quoted == long_question[:150] + "..."
    assert '"' + "y" * 150 + '..."' in prompt
    assert "y" * 151 not in prompt


def test_assembly_is_deterministic(assembler):
    window = [user("What is a for loop?"), assistant("It repeats code. Want an example?")]

    first = assembler.assemble(window, "yes", "Ada")
    second = assembler.assemble(list(window), "yes", "Ada")

    assert first == second


def test_template_leaves_other_braces_alone():
    template = PromptTemplate("Hi {userName}, dicts look like {'a': 1} and {other}.")

    assert template.format(userName="Ada") == "Hi Ada, dicts look like {'a': 1} and {other}."
    assert template.format(userName=None) == "Hi , dicts look like {'a': 1} and {other}."


@pytest.mark.parametrize(
    "sizes", [{"recap_size": 0}, {"recap_size": -1}, {"quote_limit": 0}]
)
def test_recap_and_quote_sizes_must_be_positive(sizes):
    with pytest.raises(ValueError):
        ContextAssembler(PromptTemplate("You are a tutor."), **sizes)


def test_recap_of_one_shows_only_the_latest_message():
    assembler = ContextAssembler(PromptTemplate("You are a tutor."), recap_size=1)
    messages = [user("What is a loop?"), assistant("A loop repeats code. Ready?")]

    prompt = assembler.assemble(messages, "yes")

    recap = prompt.split("## Recent conversation\n")[1].split("\n\n")[0]
    assert recap == "ASSISTANT: A loop repeats code. Ready?"
