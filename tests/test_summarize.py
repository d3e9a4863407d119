from __future__ import annotations

import uuid

from chatnao.api.llm_rewriter import RewriteStatus


def _summary_of(client, user, role):
    chats = client.get("/api/chats", params={"userId": user["userId"], "role": role}).json()
    return chats[0]["summary"]


def test_summary_is_returned_and_stored(client, make_chat, rewriter):
    chat_id, doctor, patient = make_chat()
    client.post("/api/messages", json={"chatId": chat_id, "senderId": patient["userId"], "originalText": "chest tightness"})
    client.post("/api/messages", json={"chatId": chat_id, "senderId": doctor["userId"], "originalText": "book an ECG"})

    response = client.post(f"/api/chats/{chat_id}/summary")

    assert response.status_code == 200
    assert response.json() == {"summary": rewriter.summary_text}
    assert _summary_of(client, doctor, "doctor") == rewriter.summary_text
    assert rewriter.summary_calls == [
        "patient: [for doctor] chest tightness\ndoctor: [for patient] book an ECG"
    ]


def test_transcript_falls_back_to_original_and_unknown_role(client, make_chat, insert_message, rewriter):
    chat_id, _, patient = make_chat()
    insert_message(chat_id, patient["userId"], "voice note transcript", "", minutes=1)
    insert_message(chat_id, str(uuid.uuid4()), "from nowhere", "", minutes=2)

    client.post(f"/api/chats/{chat_id}/summary")

    assert rewriter.summary_calls == ["patient: voice note transcript\nunknown: from nowhere"]


def test_only_the_last_forty_messages_are_summarized(client, make_chat, insert_message, rewriter):
    chat_id, _, patient = make_chat()
    for minute in range(45):
        insert_message(chat_id, patient["userId"], f"note {minute}", minutes=minute)

    client.post(f"/api/chats/{chat_id}/summary")

    lines = rewriter.summary_calls[0].split("\n")
    assert len(lines) == 40
    assert lines[0] == "patient: note 5"
    assert lines[-1] == "patient: note 44"


def test_empty_chat_has_no_content(client, make_chat, rewriter):
    chat_id, doctor, _ = make_chat()

    response = client.post(f"/api/chats/{chat_id}/summary")

    assert response.status_code == 409
    assert response.json() == {"error": "No messages to summarize", "code": "no_content"}
    assert rewriter.summary_calls == []
    assert _summary_of(client, doctor, "doctor") is None


def test_unknown_chat_is_404(client):
    response = client.post(f"/api/chats/{uuid.uuid4()}/summary")
    assert response.status_code == 404
    assert response.json()["code"] == "chat_not_found"


def test_failed_summary_keeps_previous_one(client, make_chat, insert_message, rewriter):
    chat_id, doctor, patient = make_chat()
    insert_message(chat_id, patient["userId"], "still coughing")
    client.post(f"/api/chats/{chat_id}/summary")

    rewriter.failure = RewriteStatus.QUOTA_EXCEEDED
    response = client.post(f"/api/chats/{chat_id}/summary")

    assert response.status_code == 502
    assert response.json()["status"] == "quota_exceeded"
    assert _summary_of(client, doctor, "doctor") == rewriter.summary_text
