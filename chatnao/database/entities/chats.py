"""
Chat ORM Model
==============

The ``Chat`` ORM model represents the conversation between exactly one doctor and
one patient, stored in the ``chat`` table.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Foreign keys to both participants (``doctor_id``, ``patient_id`` → ``app_user.id``)
- Unique constraint on the (doctor, patient) pair, which backs the idempotent create
- ``specialty_context``: the doctor's specialty at creation time, never re-synced
- ``summary``: nullable until the first summarization
- ``status``: ``active``; ``archived`` is reserved and currently never written
"""

import uuid
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import TEXT, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from chatnao.database.config.connection_engine import declarativeBase


class Chat(declarativeBase):
    """
    ORM model for the `chat` table.

    Attributes
    ----------
    id : UUID
        Primary key.
    doctor_id : UUID
        The doctor participant.
    patient_id : UUID
        The patient participant.
    specialty_context : str | None
        Specialty snapshot taken when the chat was created.
    status : str
        ``active`` or ``archived``.
    summary : str | None
        Latest AI-generated summary.
    created_on : datetime
        Creation timestamp (UTC).
    """

    __tablename__ = "chat"
    __table_args__ = (
        UniqueConstraint("doctor_id", "patient_id", name="uq_chat_doctor_patient"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)

    doctor_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("app_user.id"), nullable=False, index=True
    )
    """Foreign key to the doctor participant."""

    patient_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("app_user.id"), nullable=False, index=True
    )
    """Foreign key to the patient participant."""

    specialty_context: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    status: Mapped[str] = mapped_column(TEXT, nullable=False, default="active")

    summary: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)

    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    def __init__(
        self,
        doctor_id: UUID,
        patient_id: UUID,
        specialty_context: Optional[str] = None,
        status: str = "active",
        summary: Optional[str] = None,
        chat_id: Optional[UUID] = None,
    ):
        self.id = chat_id or uuid.uuid4()
        self.doctor_id = doctor_id
        self.patient_id = patient_id
        self.specialty_context = specialty_context
        self.status = status
        self.summary = summary
        self.created_on = datetime.now(timezone.utc)

    def __str__(self) -> str:
        return f"Chat: id:{self.id}, doctor: {self.doctor_id}, patient: {self.patient_id}, status: {self.status}"
