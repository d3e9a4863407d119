"""
Chat Messages DAO

Purpose
-------
Data-access layer for the `ChatMessage` ORM entity. Provides:
- Message creation
- Retrieval by chat (chronological), optionally limited to the latest N
- Keyword lookup over `search_text` within one chat

Design
------
- Requires an active SQLAlchemy `Session` provided by the caller.
- Retrieval uses a subquery for "latest-first then re-order ascending" semantics,
  which is what the summarizer needs (last 40 messages, oldest first).
- `searchMessages` only filters: every token must appear (case-insensitive) in
  `search_text`. Ranking happens in the service layer.
"""

import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session, aliased

from chatnao.database.entities.messages import ChatMessage

logger = logging.getLogger(__name__)


def _escape_like(token: str) -> str:
    return token.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ChatMessagesDao:
    """
    Data Access Object (DAO) for managing chat messages.
    """

    def createMessage(self, session: Session, message: ChatMessage) -> ChatMessage:
        """
        Stage a new message record.

        Returns
        -------
        ChatMessage
            The message object that was added.
        """
        try:
            session.add(message)
            return message
        except Exception:
            logger.exception("Error in ChatMessagesDao.createMessage")
            raise

    def fetchMessagesByChatId(
        self, session: Session, chat_id: UUID, limit: Optional[int] = None
    ) -> List[ChatMessage]:
        """
        Fetch messages in a chat ordered by creation time (ascending).
        Internally, retrieves the latest messages first via a subquery,
        then re-orders them chronologically.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        chat_id : UUID
            Unique identifier of the chat.
        limit : int | None
            Keep only the most recent `limit` messages.

        Returns
        -------
        list[ChatMessage]
            Messages oldest first.
        """
        try:
            subq = (
                session.query(ChatMessage)
                .filter(ChatMessage.chat_id == chat_id)
                .order_by(desc(ChatMessage.timestamp), desc(ChatMessage.created_on))
            )
            if limit is not None:
                subq = subq.limit(limit)
            subq = subq.subquery()

            recentMessages = aliased(ChatMessage, subq)

            return (
                session.query(recentMessages)
                .order_by(asc(recentMessages.timestamp), asc(recentMessages.created_on))
                .all()
            )
        except Exception:
            logger.exception("Error in ChatMessagesDao.fetchMessagesByChatId")
            raise

    def searchMessages(self, session: Session, chat_id: UUID, tokens: Sequence[str]) -> List[ChatMessage]:
        """
        Return the messages of a chat whose `search_text` contains every token.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        chat_id : UUID
            Chat to search in.
        tokens : Sequence[str]
            Non-empty keywords; LIKE wildcards inside them are escaped.

        Returns
        -------
        list[ChatMessage]
            Matching messages, newest first.
        """
        try:
            query = session.query(ChatMessage).filter(ChatMessage.chat_id == chat_id)
            for token in tokens:
                query = query.filter(
                    ChatMessage.search_text.ilike(f"%{_escape_like(token)}%", escape="\\")
                )
            return query.order_by(desc(ChatMessage.timestamp)).all()
        except Exception:
            logger.exception("Error in ChatMessagesDao.searchMessages")
            raise
