from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field

from ..utils import utcnow

Role = Literal["user", "assistant", "system"]

class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    timestamp: datetime = Field(default_factory=utcnow)
    # Assigned by the window store on append
    position: Optional[int] = None

class Conversation(BaseModel):
    id: str
    user_id: str
    title: str
    created_at: datetime
    updated_at: datetime
    turn_count: int = 0

class ConversationStats(BaseModel):
    conversation: Conversation
    turn_count: int
    message_count: int

class ChatResponse(BaseModel):
    answer: str
    conversation_id: str
    turn_count: int
    message_count: int
