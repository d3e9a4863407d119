from __future__ import annotations

import itertools
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from chatnao.api.aws_bucket_funcs.funcs import AudioStorage
from chatnao.api.llm_rewriter import Rewriter, RewriteResult, RewriteStatus
from chatnao.crypt.encrypt_decrypt import EncryptionDec
from chatnao.database.config.config import load_settings
from chatnao.database.config.connection_engine import bind_engine, build_engine, init_schema
from chatnao.database.core.message_pipeline import compose_search_text
from chatnao.database.daos.chat_dao import ChatDao
from chatnao.database.daos.message_dao import ChatMessagesDao
from chatnao.database.entities.chats import Chat
from chatnao.database.entities.messages import ChatMessage
from chatnao.database.helpers.transactionManagement import transactional
from chatnao.main import create_app


class FakeRewriter(Rewriter):
    """Deterministic rewriter: tags the text with its audience and records every call."""

    def __init__(self):
        self.rewrite_calls: list[tuple[str, str]] = []
        self.summary_calls: list[str] = []
        self.failure: Optional[RewriteStatus] = None
        self.summary_text = "Chest tightness on exertion; ECG and blood tests scheduled."

    def rewrite_for_audience(self, sender_role: str, text: str) -> RewriteResult:
        self.rewrite_calls.append((sender_role, text))
        if self.failure is not None:
            return RewriteResult.failure(self.failure, "scripted failure")
        audience = "patient" if sender_role == "doctor" else "doctor"
        return RewriteResult.success(f"[for {audience}] {text}")

    def summarize(self, transcript: str) -> RewriteResult:
        self.summary_calls.append(transcript)
        if self.failure is not None:
            return RewriteResult.failure(self.failure, "scripted failure")
        return RewriteResult.success(self.summary_text)


class FakeS3:
    """Stands in for a boto3 S3 client; only presigning is used."""

    def __init__(self):
        self.calls: list[tuple[str, dict, int]] = []

    def generate_presigned_url(self, ClientMethod, Params=None, ExpiresIn=3600, HttpMethod=None):
        self.calls.append((ClientMethod, Params, ExpiresIn))
        action = "put" if ClientMethod == "put_object" else "get"
        return f"https://s3.test/{Params['Bucket']}/{Params['Key']}?action={action}&expires={ExpiresIn}"


@pytest.fixture
def settings(tmp_path):
    return load_settings(
        API_KEY="test-key",
        DB_DRIVER_NAME="sqlite",
        DB_DATABASE_NAME=str(tmp_path / "chatnao-test.sqlite"),
        BCRYPT_ROUNDS=4,
        BUCKET_NAME="chatnao-test-audio",
        _env_file=None,
    )


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    init_schema(engine)
    bind_engine(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def enc() -> EncryptionDec:
    return EncryptionDec(rounds=4)


@pytest.fixture
def rewriter() -> FakeRewriter:
    return FakeRewriter()


@pytest.fixture
def s3() -> FakeS3:
    return FakeS3()


@pytest.fixture
def audio_storage(settings, s3) -> AudioStorage:
    return AudioStorage(settings, s3_client=s3)


@pytest.fixture
def client(settings, engine, rewriter, audio_storage):
    app = create_app(settings, rewriter=rewriter, audio_storage=audio_storage, engine=engine)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(client) -> Callable[..., dict]:
    counter = itertools.count(1)

    def _make(role: str = "patient", **overrides) -> dict:
        n = next(counter)
        payload = {
            "name": f"{role.title()} {n}",
            "email": f"{role}{n}@chatnao.test",
            "password": "Secret123!",
            "role": role,
            "age": 40,
            "gender": "female",
        }
        if role == "doctor":
            payload["specialty"] = "Cardiology"
        payload.update(overrides)
        response = client.post("/api/auth/signup", json=payload)
        assert response.status_code == 200, response.text
        return response.json()["user"]

    return _make


@pytest.fixture
def make_chat(client, make_user) -> Callable[..., tuple[str, dict, dict]]:
    def _make(doctor: Optional[dict] = None, patient: Optional[dict] = None):
        doctor = doctor or make_user("doctor")
        patient = patient or make_user("patient")
        response = client.post(
            "/api/chats", json={"doctorId": doctor["userId"], "patientId": patient["userId"]}
        )
        assert response.status_code == 200, response.text
        return response.json()["chatId"], doctor, patient

    return _make


@transactional
def _insert_message(session, chat_id, sender_id, original, translated, created_on):
    message = ChatMessage(
        chat_id=UUID(str(chat_id)),
        sender_id=UUID(str(sender_id)),
        original_text=original,
        translated_text=translated,
        search_text=compose_search_text(original, translated),
        created_on=created_on,
    )
    ChatMessagesDao().createMessage(session, message)
    return str(message.id)


@pytest.fixture
def insert_message(engine) -> Callable[..., str]:
    """Write a message row directly, bypassing the pipeline, with a controllable timestamp."""
    base = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)

    def _insert(chat_id, sender_id, original, translated="", minutes: int = 0) -> str:
        return _insert_message(
            chat_id=chat_id,
            sender_id=sender_id,
            original=original,
            translated=translated,
            created_on=base + timedelta(minutes=minutes),
        )

    return _insert


@transactional
def _insert_chat(session, doctor_id, patient_id, specialty_context):
    chat = Chat(
        doctor_id=UUID(str(doctor_id)),
        patient_id=UUID(str(patient_id)),
        specialty_context=specialty_context,
    )
    ChatDao().createChat(session, chat)
    return str(chat.id)


@pytest.fixture
def insert_chat(engine) -> Callable[..., str]:
    """Write a chat row directly; participants need not exist."""

    def _insert(doctor_id, patient_id, specialty_context: Optional[str] = None) -> str:
        return _insert_chat(
            doctor_id=doctor_id, patient_id=patient_id, specialty_context=specialty_context
        )

    return _insert
