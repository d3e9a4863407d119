from __future__ import annotations

from chatnao.database.core.funcs import list_chats_for_user, list_doctors, login_user
from chatnao.database.core.message_pipeline import list_by_chat, search_messages
from chatnao.database.core.seed import SEED_PASSWORD, seed
from chatnao.api.models import Role


def test_seed_creates_demo_accounts(engine, enc):
    seed(enc=enc)

    doctors = list_doctors()
    assert [(d.name, d.specialty.value) for d in doctors] == [
        ("Dr. Lucas Chen", "Pediatrics"),
        ("Dr. Maya Patel", "Cardiology"),
    ]

    aisha = login_user(email="aisha.bello@chatnao.test", password=SEED_PASSWORD, enc=enc)
    assert aisha.role == "patient"
    assert aisha.age == 29


def test_seed_chats_have_summaries_and_messages(engine, enc, audio_storage):
    result = seed(enc=enc)
    patel = login_user(email="maya.patel@chatnao.test", password=SEED_PASSWORD, enc=enc)

    chats = list_chats_for_user(user_id=patel.user_id, role=Role.DOCTOR)
    assert len(chats) == 1
    chat = chats[0]
    assert chat.chat_id in result["chats"]
    assert chat.other_user.name == "Aisha Bello"
    assert chat.specialty_context.value == "Cardiology"
    assert chat.summary.startswith("Patient reports intermittent chest tightness")

    messages = list_by_chat(chat_id=chat.chat_id, audio_storage=audio_storage)
    assert [m.original_text for m in messages] == [
        "I have a tight feeling in my chest after climbing stairs.",
        "Please note any shortness of breath and we will schedule an ECG and blood tests.",
    ]
    assert messages[0].timestamp < messages[1].timestamp

    hits = search_messages(chat_id=chat.chat_id, query="stairs")
    assert [h.message_id for h in hits] == [messages[0].message_id]


def test_seed_is_idempotent(engine, enc):
    first = seed(enc=enc)
    second = seed(enc=enc)

    assert first == second
    assert len(list_doctors()) == 2
