"""
Exceptions shared by the tutoring backend.

The API layer maps these onto HTTP status codes; the orchestrator swallows
CompletionError and answers with a fixed apology instead.
"""


class TutorError(Exception):
    """Base exception for the tutoring backend."""
    def __init__(self, message="Tutor service error"):
        super().__init__(message)
        self.message = message


class ValidationError(TutorError):
    """Raised for malformed input, before any side effect happens."""
    def __init__(self, message="Invalid request"):
        super().__init__(message)


class AccessError(TutorError):
    """The conversation does not exist or belongs to another user.

    Both cases carry the same message so that non-owners cannot tell
    whether a conversation exists.
    """
    def __init__(self, message="Conversation not found"):
        super().__init__(message)


class CompletionError(TutorError):
    """The language model backend failed or timed out."""
    def __init__(self, message="Completion backend failed"):
        super().__init__(message)


class StorageError(TutorError):
    """Metadata or message window persistence failed."""
    def __init__(self, message="Storage error occurred"):
        super().__init__(message)


class TemplateLoadError(TutorError):
    """The system prompt template could not be loaded at startup."""
    def __init__(self, message="Prompt template could not be loaded"):
        super().__init__(message)
