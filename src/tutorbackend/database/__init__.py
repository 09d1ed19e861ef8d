from .models import Message, Conversation, ConversationStats, ChatResponse
from .conversations import ConversationStore, ConversationModel

__all__ = [
    "Message",
    "Conversation",
    "ConversationStats",
    "ChatResponse",
    "ConversationStore",
    "ConversationModel",
]
