from typing import List, Optional
from datetime import datetime
from contextlib import contextmanager
import logging
from sqlalchemy import create_engine, Column, String, DateTime, Integer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, Session
from sqlalchemy.pool import StaticPool

from ..exceptions import StorageError
from .models import Conversation

logger = logging.getLogger(__name__)

Base = declarative_base()


class ConversationModel(Base):
    __tablename__ = "conversations"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String(500), nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    turn_count = Column(Integer, nullable=False, default=0)

    def to_conversation(self) -> Conversation:
        return Conversation(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            created_at=self.created_at,
            updated_at=self.updated_at,
            turn_count=self.turn_count,
        )


class ConversationStore:
    """CRUD over conversation metadata records"""

    def __init__(self, db_url: str = "sqlite:///tutor.db"):
        if db_url.startswith("sqlite"):
            self.engine = create_engine(
                db_url, connect_args={"check_same_thread": False}, poolclass=StaticPool
            )
        else:
            self.engine = create_engine(db_url)
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session(self):
        with Session(self.engine) as session:
            try:
                yield session
            except SQLAlchemyError as e:
                session.rollback()
                logger.error(f"Conversation store error: {e}")
                raise StorageError(f"Conversation store error: {e}") from e

    def insert(self, conversation: Conversation) -> Conversation:
        with self.session() as session:
            session.add(ConversationModel(**conversation.model_dump()))
            session.commit()
            return conversation

    def get(self, conversation_id: str) -> Optional[Conversation]:
        with self.session() as session:
            db_conversation = session.get(ConversationModel, conversation_id)
            return db_conversation.to_conversation() if db_conversation else None

    def get_for_user(self, conversation_id: str, user_id: str) -> Optional[Conversation]:
        with self.session() as session:
            db_conversation = (
                session.query(ConversationModel)
                .filter_by(id=conversation_id, user_id=user_id)
                .first()
            )
            return db_conversation.to_conversation() if db_conversation else None

    def find_by_user(self, user_id: str) -> List[Conversation]:
        with self.session() as session:
            conversations = (
                session.query(ConversationModel)
                .filter_by(user_id=user_id)
                .order_by(
                    ConversationModel.updated_at.desc(),
                    ConversationModel.created_at.desc(),
                )
                .all()
            )
            return [c.to_conversation() for c in conversations]

    def update_activity(
        self, conversation_id: str, now: datetime, increment_turns: bool = False
    ) -> Optional[Conversation]:
        """Move updated_at forward to `now` (never back) and optionally count a turn"""
        with self.session() as session:
            db_conversation = session.get(ConversationModel, conversation_id)
            if not db_conversation:
                return None

            if now > db_conversation.updated_at:
                db_conversation.updated_at = now
            if increment_turns:
                db_conversation.turn_count += 1

            session.commit()
            return db_conversation.to_conversation()

    def delete(self, conversation_id: str) -> bool:
        with self.session() as session:
            deleted = session.query(ConversationModel).filter_by(id=conversation_id).delete()
            session.commit()
            return deleted > 0

    def delete_by_user(self, user_id: str) -> int:
        with self.session() as session:
            deleted = session.query(ConversationModel).filter_by(user_id=user_id).delete()
            session.commit()
            return deleted
