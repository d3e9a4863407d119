from __future__ import annotations

import uuid

from chatnao.api.aws_bucket_funcs.funcs import AudioStorage, is_audio_key
from chatnao.api.llm_rewriter import RewriteStatus
from chatnao.database.core.message_pipeline import compose_search_text


def _send(client, chat_id, sender_id, text="", audio=None):
    body = {"chatId": chat_id, "senderId": sender_id, "originalText": text}
    if audio is not None:
        body["audioStorageId"] = audio
    return client.post("/api/messages", json=body)


def test_cardiology_consultation_end_to_end(client, make_user, rewriter):
    doctor = make_user("doctor", name="Dr. Maya Patel", specialty="Cardiology")
    patient = make_user("patient", name="Aisha Bello")
    chat_id = client.post(
        "/api/chats", json={"doctorId": doctor["userId"], "patientId": patient["userId"]}
    ).json()["chatId"]

    sent = _send(client, chat_id, patient["userId"], "I have chest pain since yesterday")
    assert sent.status_code == 200
    body = sent.json()
    assert body["processedText"] == "[for doctor] I have chest pain since yesterday"
    assert rewriter.rewrite_calls == [("patient", "I have chest pain since yesterday")]

    messages = client.get(f"/api/chats/{chat_id}/messages").json()
    assert len(messages) == 1
    message = messages[0]
    assert message["messageId"] == body["messageId"]
    assert message["chatId"] == chat_id
    assert message["senderId"] == patient["userId"]
    assert message["originalText"] == "I have chest pain since yesterday"
    assert message["translatedText"] == "[for doctor] I have chest pain since yesterday"
    assert message["audioUrl"] is None
    assert isinstance(message["timestamp"], int)

    hits = client.get(f"/api/chats/{chat_id}/search", params={"query": "chest"}).json()
    assert hits == [{"messageId": body["messageId"], "preview": "[for doctor] I have chest pain since yesterday"}]


def test_doctor_message_is_rewritten_for_patient(client, make_chat, rewriter):
    chat_id, doctor, _ = make_chat()

    response = _send(client, chat_id, doctor["userId"], "Schedule an ECG.")

    assert response.json()["processedText"] == "[for patient] Schedule an ECG."
    assert rewriter.rewrite_calls == [("doctor", "Schedule an ECG.")]


def test_text_is_trimmed_before_rewrite_and_storage(client, make_chat, rewriter):
    chat_id, _, patient = make_chat()

    _send(client, chat_id, patient["userId"], "   dizzy in the mornings \n")

    assert rewriter.rewrite_calls == [("patient", "dizzy in the mornings")]
    stored = client.get(f"/api/chats/{chat_id}/messages").json()[0]
    assert stored["originalText"] == "dizzy in the mornings"


def test_viewer_sees_own_original_first(client, make_chat):
    chat_id, doctor, patient = make_chat()
    _send(client, chat_id, patient["userId"], "My knee aches")

    as_patient = client.get(f"/api/chats/{chat_id}/messages", params={"viewerId": patient["userId"]}).json()[0]
    as_doctor = client.get(f"/api/chats/{chat_id}/messages", params={"viewerId": doctor["userId"]}).json()[0]

    assert as_patient["primaryText"] == "My knee aches"
    assert as_patient["secondaryText"] == "[for doctor] My knee aches"
    assert as_doctor["primaryText"] == "[for doctor] My knee aches"
    assert as_doctor["secondaryText"] == "My knee aches"


def test_viewer_id_spelling_does_not_change_primary_text(client, make_chat):
    chat_id, _, patient = make_chat()
    _send(client, chat_id, patient["userId"], "My knee aches")

    for spelling in (patient["userId"].upper(), patient["userId"].replace("-", "")):
        view = client.get(f"/api/chats/{chat_id}/messages", params={"viewerId": spelling}).json()[0]
        assert view["primaryText"] == "My knee aches"
        assert view["secondaryText"] == "[for doctor] My knee aches"

    stranger = client.get(f"/api/chats/{chat_id}/messages", params={"viewerId": "someone"}).json()[0]
    assert stranger["primaryText"] == "[for doctor] My knee aches"


def test_messages_are_listed_oldest_first(client, make_chat):
    chat_id, doctor, patient = make_chat()
    sent = [
        _send(client, chat_id, patient["userId"], "first").json()["messageId"],
        _send(client, chat_id, doctor["userId"], "second").json()["messageId"],
        _send(client, chat_id, patient["userId"], "third").json()["messageId"],
    ]

    messages = client.get(f"/api/chats/{chat_id}/messages").json()

    assert [m["messageId"] for m in messages] == sent
    timestamps = [m["timestamp"] for m in messages]
    assert timestamps == sorted(timestamps)


def test_audio_only_message_skips_rewrite(client, make_chat, rewriter, s3):
    chat_id, _, patient = make_chat()
    upload = client.post("/api/uploads").json()

    response = _send(client, chat_id, patient["userId"], "", audio=upload["storageId"])

    assert response.status_code == 200
    assert response.json()["processedText"] == ""
    assert rewriter.rewrite_calls == []

    message = client.get(f"/api/chats/{chat_id}/messages").json()[0]
    assert message["originalText"] == ""
    assert message["translatedText"] == ""
    assert upload["storageId"] in message["audioUrl"]
    assert "action=get" in message["audioUrl"]
    assert s3.calls[-1][0] == "get_object"


def test_upload_urls_use_fresh_audio_keys(client, settings):
    first = client.post("/api/uploads").json()
    second = client.post("/api/uploads").json()

    assert first["storageId"].startswith("audio/")
    assert first["storageId"] != second["storageId"]
    assert first["storageId"] in first["uploadUrl"]
    assert "action=put" in first["uploadUrl"]
    assert settings.BUCKET_NAME in first["uploadUrl"]


def test_empty_message_is_rejected(client, make_chat, rewriter):
    chat_id, _, patient = make_chat()

    empty = _send(client, chat_id, patient["userId"], "")
    blank = _send(client, chat_id, patient["userId"], "   ")

    assert empty.status_code == blank.status_code == 400
    assert empty.json() == {"error": "Message must contain text or audio", "code": "validation_error"}
    assert rewriter.rewrite_calls == []
    assert client.get(f"/api/chats/{chat_id}/messages").json() == []


def test_foreign_audio_key_is_rejected(client, make_chat, rewriter, s3):
    chat_id, _, patient = make_chat()

    for key in ("private/other-tenant/report.pdf", "audio/../secrets.txt", f"audio/{uuid.uuid1()}"):
        response = _send(client, chat_id, patient["userId"], "", audio=key)
        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"
        assert response.json()["fields"] == ["audioStorageId"]

    with_text = _send(client, chat_id, patient["userId"], "hello", audio="private/other-tenant/report.pdf")
    assert with_text.status_code == 400
    assert rewriter.rewrite_calls == []
    assert client.get(f"/api/chats/{chat_id}/messages").json() == []
    assert not any(call[0] == "get_object" for call in s3.calls)


def test_only_issued_upload_keys_are_valid(audio_storage):
    issued = audio_storage.create_upload_url()["storage_id"]

    assert is_audio_key(issued)
    assert AudioStorage.is_valid_key(issued)
    assert not is_audio_key(issued.upper())
    assert not is_audio_key(issued[len("audio/"):])
    assert not is_audio_key(issued + "/extra")
    assert not is_audio_key(None)


def test_empty_message_to_unknown_chat_is_404(client, make_user, rewriter):
    patient = make_user("patient")

    response = _send(client, str(uuid.uuid4()), patient["userId"], "")

    assert response.status_code == 404
    assert response.json()["code"] == "chat_not_found"


def test_unknown_chat_is_404(client, make_user, rewriter):
    patient = make_user("patient")

    unknown = _send(client, str(uuid.uuid4()), patient["userId"], "hello")
    malformed = _send(client, "nope", patient["userId"], "hello")

    assert unknown.status_code == malformed.status_code == 404
    assert unknown.json()["code"] == "chat_not_found"
    assert rewriter.rewrite_calls == []


def test_unknown_sender_is_404(client, make_chat, rewriter):
    chat_id, _, _ = make_chat()

    response = _send(client, chat_id, str(uuid.uuid4()), "hello")

    assert response.status_code == 404
    assert response.json()["code"] == "sender_not_found"
    assert rewriter.rewrite_calls == []


def test_outsider_cannot_send(client, make_chat, make_user, rewriter):
    chat_id, _, _ = make_chat()
    outsider = make_user("patient")

    response = _send(client, chat_id, outsider["userId"], "hello")

    assert response.status_code == 400
    assert rewriter.rewrite_calls == []


def test_missing_recipient_is_404(client, make_user, insert_chat, rewriter):
    doctor = make_user("doctor")
    chat_id = insert_chat(doctor["userId"], str(uuid.uuid4()))

    response = _send(client, chat_id, doctor["userId"], "hello")

    assert response.status_code == 404
    assert response.json()["code"] == "recipient_not_found"
    assert rewriter.rewrite_calls == []


def test_rewrite_failure_persists_nothing(client, make_chat, rewriter):
    chat_id, _, patient = make_chat()
    rewriter.failure = RewriteStatus.TIMEOUT

    response = _send(client, chat_id, patient["userId"], "I feel faint")

    assert response.status_code == 502
    assert response.json() == {"error": "Message rewrite failed", "code": "rewrite_failed", "status": "timeout"}
    assert client.get(f"/api/chats/{chat_id}/messages").json() == []


def test_messages_of_unknown_or_malformed_chat_are_empty(client):
    for chat_id in (uuid.uuid4(), "not-an-id"):
        response = client.get(f"/api/chats/{chat_id}/messages")
        assert response.status_code == 200
        assert response.json() == []


def test_search_text_joins_non_empty_parts():
    assert compose_search_text("chest pain", "[for doctor] chest pain") == "chest pain\n[for doctor] chest pain"
    assert compose_search_text("", "") == ""
    assert compose_search_text("only original", "") == "only original"
