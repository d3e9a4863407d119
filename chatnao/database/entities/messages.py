"""
ChatMessage ORM Model
=====================

The ``ChatMessage`` ORM model represents a single message within a chat. Messages
are written once by the send pipeline and never edited.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Foreign keys to ``chat.id`` and the sender (``app_user.id``)
- ``original_text`` as typed (empty for audio-only messages)
- ``translated_text``: the recipient-facing rewrite (empty when there was no text)
- ``search_text``: original and rewrite joined by a newline, used by keyword search
- Optional ``audio_storage_id`` (object key in the audio bucket)
- ``timestamp`` in epoch milliseconds plus a tz-aware ``created_on`` tie-breaker
"""

import uuid
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import TEXT, BigInteger, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from chatnao.database.config.connection_engine import declarativeBase


class ChatMessage(declarativeBase):
    """
    ORM model for the `message` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    chat_id : UUID
        The chat this message belongs to.
    sender_id : UUID
        The user who sent it.
    original_text : str
        Trimmed text as sent.
    translated_text : str
        LLM rewrite for the recipient.
    search_text : str
        Combined text indexed for search.
    audio_storage_id : str | None
        Key of the uploaded audio clip, if any.
    timestamp : int
        Server capture time in epoch milliseconds.
    created_on : datetime
        Same instant as a tz-aware datetime.
    """

    __tablename__ = "message"
    __table_args__ = (Index("ix_message_chat_timestamp", "chat_id", "timestamp"),)

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)

    chat_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("chat.id"), nullable=False)

    sender_id: Mapped[UUID] = mapped_column(Uuid, ForeignKey("app_user.id"), nullable=False)

    original_text: Mapped[str] = mapped_column(TEXT, nullable=False, default="")

    translated_text: Mapped[str] = mapped_column(TEXT, nullable=False, default="")

    search_text: Mapped[str] = mapped_column(TEXT, nullable=False, default="")

    audio_storage_id: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)

    created_on: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __init__(
        self,
        chat_id: UUID,
        sender_id: UUID,
        original_text: str,
        translated_text: str,
        search_text: str,
        created_on: datetime,
        audio_storage_id: Optional[str] = None,
    ):
        """
        Initialize a new ChatMessage.

        Parameters
        ----------
        chat_id : UUID
            Owning chat.
        sender_id : UUID
            Sender.
        original_text : str
            Trimmed original text.
        translated_text : str
            Rewrite for the recipient.
        search_text : str
            Combined search text.
        created_on : datetime | str
            Capture time. Accepts datetime or ISO8601 string; `timestamp` is derived from it.
        audio_storage_id : str | None
            Audio object key.
        """
        self.id = uuid.uuid4()
        self.chat_id = chat_id
        self.sender_id = sender_id
        self.original_text = original_text
        self.translated_text = translated_text
        self.search_text = search_text
        self.audio_storage_id = audio_storage_id
        if isinstance(created_on, str):
            created_on = datetime.fromisoformat(created_on)
        self.created_on = created_on
        self.timestamp = int(created_on.timestamp() * 1000)

    def __str__(self) -> str:
        return (
            f"Chat: id:{self.chat_id}, "
            f"sender: {self.sender_id}, "
            f"time_created: {self.timestamp}"
        )
