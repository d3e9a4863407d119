"""
Demo data loader.

Creates two doctors, two patients (all with password ``Test1234!``), one chat per
doctor with a stored summary, and two messages in each chat. Users are matched by
email and chats by their (doctor, patient) pair, so running it again adds nothing.

Run with the ``chatnao-seed`` console script.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict

from sqlalchemy.orm import Session

from chatnao.crypt.encrypt_decrypt import EncryptionDec
from chatnao.database.config.config import load_settings
from chatnao.database.config.connection_engine import bind_engine, build_engine, init_schema
from chatnao.database.core.message_pipeline import compose_search_text
from chatnao.database.daos.chat_dao import ChatDao
from chatnao.database.daos.message_dao import ChatMessagesDao
from chatnao.database.daos.user_dao import UserDao
from chatnao.database.entities.chats import Chat
from chatnao.database.entities.messages import ChatMessage
from chatnao.database.entities.user import User
from chatnao.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)

SEED_PASSWORD = "Test1234!"

SEED_USERS = [
    {"key": "patel", "name": "Dr. Maya Patel", "email": "maya.patel@chatnao.test",
     "role": "doctor", "age": 42, "gender": "female", "specialty": "Cardiology"},
    {"key": "chen", "name": "Dr. Lucas Chen", "email": "lucas.chen@chatnao.test",
     "role": "doctor", "age": 38, "gender": "male", "specialty": "Pediatrics"},
    {"key": "bello", "name": "Aisha Bello", "email": "aisha.bello@chatnao.test",
     "role": "patient", "age": 29, "gender": "female"},
    {"key": "ruiz", "name": "Marco Ruiz", "email": "marco.ruiz@chatnao.test",
     "role": "patient", "age": 34, "gender": "male"},
]

SEED_CHATS = [
    {
        "doctor": "patel",
        "patient": "bello",
        "specialty_context": "Cardiology",
        "summary": (
            "Patient reports intermittent chest tightness and fatigue. "
            "Follow-up planned with lab work and activity adjustments."
        ),
        "messages": [
            ("bello", 45,
             "I have a tight feeling in my chest after climbing stairs.",
             "I feel tightness in my chest when I climb stairs."),
            ("patel", 40,
             "Please note any shortness of breath and we will schedule an ECG and blood tests.",
             "Please watch for any shortness of breath. We will schedule heart tests and blood work."),
        ],
    },
    {
        "doctor": "chen",
        "patient": "ruiz",
        "specialty_context": "Pediatrics",
        "summary": "Patient reports knee pain after activity and requests guidance on next steps.",
        "messages": [
            ("ruiz", 30,
             "My knee aches after soccer practice, mostly on the right.",
             "My right knee hurts after soccer practice."),
            ("chen", 25,
             "Try resting the knee for 48 hours and apply ice. Let me know if swelling appears.",
             "Rest your knee for two days and use ice. Tell me if swelling shows up."),
        ],
    },
]
"""Each message is (sender key, minutes before now, original text, rewritten text)."""


def _ensure_user(session: Session, entry: dict, enc: EncryptionDec) -> User:
    user_dao = UserDao()
    existing = user_dao.fetchUserByEmail(session, entry["email"])
    if existing:
        return existing[0]

    user = User(
        name=entry["name"],
        email=entry["email"],
        password=SEED_PASSWORD,
        role=entry["role"],
        age=entry["age"],
        gender=entry["gender"],
        specialty=entry.get("specialty"),
    )
    user_dao.createUser(session, user, enc)
    return user


@transactional
def seed(session: Session, enc: EncryptionDec) -> Dict[str, list]:
    """
    Insert the demo users, chats and messages that are not present yet.

    Returns
    -------
    dict
        ``{"users": [...], "chats": [...]}`` with the ids of every seed record,
        whether it was created now or already existed.
    """
    users = {entry["key"]: _ensure_user(session, entry, enc) for entry in SEED_USERS}
    now = datetime.now(timezone.utc)

    chat_dao = ChatDao()
    message_dao = ChatMessagesDao()
    chat_ids = []
    for entry in SEED_CHATS:
        doctor, patient = users[entry["doctor"]], users[entry["patient"]]
        existing = chat_dao.fetchChatByParticipants(session, doctor.id, patient.id)
        if existing:
            chat_ids.append(str(existing[0].id))
            continue

        chat = chat_dao.createChat(
            session,
            Chat(
                doctor_id=doctor.id,
                patient_id=patient.id,
                specialty_context=entry["specialty_context"],
                summary=entry["summary"],
            ),
        )
        # no ORM relationships, so the chat row must exist before its messages
        session.flush()
        for sender_key, minutes_ago, original, rewritten in entry["messages"]:
            message_dao.createMessage(
                session,
                ChatMessage(
                    chat_id=chat.id,
                    sender_id=users[sender_key].id,
                    original_text=original,
                    translated_text=rewritten,
                    search_text=compose_search_text(original, rewritten),
                    created_on=now - timedelta(minutes=minutes_ago),
                ),
            )
        chat_ids.append(str(chat.id))
        logger.info("Seeded chat %s", chat.id)

    return {"users": [str(user.id) for user in users.values()], "chats": chat_ids}


def main():
    settings = load_settings()
    logging.basicConfig(level=settings.LOG_LEVEL)

    engine = build_engine(settings)
    init_schema(engine)
    bind_engine(engine)
    try:
        result = seed(enc=EncryptionDec(rounds=settings.BCRYPT_ROUNDS))
        logger.info("Seed complete: %d users, %d chats", len(result["users"]), len(result["chats"]))
    finally:
        engine.dispose()


if __name__ == "__main__":
    main()
