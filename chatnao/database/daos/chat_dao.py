"""
Chat DAO

Purpose
-------
Data-access layer for the `Chat` ORM entity:
- Atomic get-or-create keyed by the (doctor, patient) pair
- Query by id or by participant
- Update the summary

Design
------
- Requires an active SQLAlchemy `Session` supplied by the caller.
- `upsertChat` issues `INSERT ... ON CONFLICT DO NOTHING` against the unique
  (doctor_id, patient_id) constraint on PostgreSQL and SQLite, then reads the row
  back. Two first-contact requests racing each other therefore both end up with the
  same chat. Other dialects fall back to a SAVEPOINT around a plain insert.

Error Handling
--------------
- Methods log with `logger.exception(...)` and re-raise.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
import uuid
from uuid import UUID

from sqlalchemy import insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from chatnao.database.entities.chats import Chat

logger = logging.getLogger(__name__)


class ChatDao:
    """
    Data Access Object (DAO) for managing Chat entities.
    """

    def upsertChat(
        self,
        session: Session,
        doctor_id: UUID,
        patient_id: UUID,
        specialty_context: Optional[str],
    ) -> Chat:
        """
        Return the chat for (doctor_id, patient_id), creating it if it does not exist.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        doctor_id : UUID
            The doctor participant.
        patient_id : UUID
            The patient participant.
        specialty_context : str | None
            Specialty snapshot stored only when the row is created.

        Returns
        -------
        Chat
            The existing or newly created chat.
        """
        values = {
            "id": uuid.uuid4(),
            "doctor_id": doctor_id,
            "patient_id": patient_id,
            "specialty_context": specialty_context,
            "status": "active",
            "summary": None,
            "created_on": datetime.now(timezone.utc),
        }
        try:
            dialect = session.get_bind().dialect.name
            if dialect in ("postgresql", "sqlite"):
                dialect_insert = pg_insert if dialect == "postgresql" else sqlite_insert
                stmt = (
                    dialect_insert(Chat)
                    .values(**values)
                    .on_conflict_do_nothing(index_elements=["doctor_id", "patient_id"])
                )
                session.execute(stmt)
            else:
                try:
                    with session.begin_nested():
                        session.execute(insert(Chat).values(**values))
                except IntegrityError:
                    pass

            return (
                session.query(Chat)
                .filter(Chat.doctor_id == doctor_id, Chat.patient_id == patient_id)
                .one()
            )
        except Exception:
            logger.exception("Error in ChatDao.upsertChat")
            raise

    def createChat(self, session: Session, chat: Chat) -> Chat:
        """Stage a fully built chat (used by seeding)."""
        try:
            session.add(chat)
            return chat
        except Exception:
            logger.exception("Error in ChatDao.createChat")
            raise

    def fetchChatById(self, session: Session, chat_id: UUID) -> List[Chat]:
        """
        Fetch a chat by id.

        Returns
        -------
        list[Chat]
            Zero or one chat.
        """
        try:
            return session.query(Chat).filter(Chat.id == chat_id).limit(1).all()
        except Exception:
            logger.exception("Error in ChatDao.fetchChatById")
            raise

    def fetchChatByParticipants(self, session: Session, doctor_id: UUID, patient_id: UUID) -> List[Chat]:
        try:
            return (
                session.query(Chat)
                .filter(Chat.doctor_id == doctor_id, Chat.patient_id == patient_id)
                .limit(1)
                .all()
            )
        except Exception:
            logger.exception("Error in ChatDao.fetchChatByParticipants")
            raise

    def fetchChatsByDoctorId(self, session: Session, doctor_id: UUID) -> List[Chat]:
        """Fetch all chats where the user is the doctor, oldest first."""
        try:
            return (
                session.query(Chat)
                .filter(Chat.doctor_id == doctor_id)
                .order_by(Chat.created_on)
                .all()
            )
        except Exception:
            logger.exception("Error in ChatDao.fetchChatsByDoctorId")
            raise

    def fetchChatsByPatientId(self, session: Session, patient_id: UUID) -> List[Chat]:
        """Fetch all chats where the user is the patient, oldest first."""
        try:
            return (
                session.query(Chat)
                .filter(Chat.patient_id == patient_id)
                .order_by(Chat.created_on)
                .all()
            )
        except Exception:
            logger.exception("Error in ChatDao.fetchChatsByPatientId")
            raise

    def updateChatSummary(self, session: Session, chat_id: UUID, summary: str) -> None:
        """
        Store a new summary on a chat.

        Raises
        ------
        sqlalchemy.orm.exc.NoResultFound
            If the chat does not exist.
        """
        try:
            chat = session.query(Chat).filter(Chat.id == chat_id).one()
            chat.summary = summary
        except Exception:
            logger.exception("Error in ChatDao.updateChatSummary")
            raise
