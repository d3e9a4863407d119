"""
FastAPI Router — Auth • Roster • Chats • Messages • Search • Summaries • Uploads
===============================================================================

Purpose
-------
Defines the HTTP API for:
- Authentication: login, signup
- Roster: list doctors
- Chats: list for a user, get-or-create for a doctor/patient pair, summarize
- Messages: send (rewrite pipeline), list with per-viewer texts, keyword search
- Audio: presigned upload URLs

Key Notes
---------
- Input validation via Pydantic models in `chatnao.api.models`; JSON keys are camelCase.
- The two auth routes convert failures themselves so their statuses stay fixed
  (login: 400 for missing fields, 401 for everything else; signup: 400 for everything).
- Every other route lets `ChatNaoError` propagate to the app-level handler
  registered in `chatnao.main`, which maps it to a status and an `{error, code}` body.
- Routes are plain `def` so the blocking database, bcrypt and LLM calls run in
  FastAPI's threadpool.
- Collaborators (`rewriter`, `audio_storage`, `enc`) are read from `app.state`,
  where `create_app` put them.
"""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from chatnao.api.aws_bucket_funcs.funcs import AudioStorage
from chatnao.api.llm_rewriter import Rewriter
from chatnao.api.models import (
    AuthResponse,
    ChatSummary,
    ChatSummaryResult,
    CreateChatRequest,
    CreateChatResult,
    DoctorSummary,
    ErrorBody,
    LoginRequest,
    MessageView,
    Role,
    SearchHit,
    SendMessageRequest,
    SendMessageResult,
    UploadUrl,
    signup_adapter,
)
from chatnao.crypt.encrypt_decrypt import EncryptionDec
from chatnao.database.core.funcs import (
    create_chat,
    list_chats_for_user,
    list_doctors,
    login_user,
    signup_user,
)
from chatnao.database.core.message_pipeline import (
    list_by_chat,
    search_messages,
    send_message,
    summarize_chat,
)
from chatnao.errors import ChatNaoError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")
"""Creates the FastAPI router in which we define its routes"""


def get_rewriter(request: Request) -> Rewriter:
    return request.app.state.rewriter


def get_audio_storage(request: Request) -> AudioStorage:
    return request.app.state.audio_storage


def get_enc(request: Request) -> EncryptionDec:
    return request.app.state.enc


def _auth_payload(user) -> AuthResponse:
    return AuthResponse(user=user)


def _missing_fields(exc: PydanticValidationError) -> List[str]:
    return [".".join(str(p) for p in err["loc"]) for err in exc.errors()]


@router.post(
    "/auth/login",
    response_model=AuthResponse,
    responses={400: {"model": ErrorBody}, 401: {"model": ErrorBody}},
)
def login(payload: Any = Body(None), enc: EncryptionDec = Depends(get_enc)):
    """Authenticate a user by email and password.

    Request body:
        {email, password}

    Response:
        200: {"user": {userId, name, email, role, age, gender, specialty}}
        400: {"error": "Email and password are required", "code": "validation_error"}
        401: {"error": "Invalid email or password", "code": "invalid_credentials"}
             for an unknown email and a wrong password alike; any other failure is
             also reported as 401.
    """
    try:
        data = LoginRequest.model_validate(payload if isinstance(payload, dict) else {})
    except PydanticValidationError as e:
        err = ValidationError("Email and password are required", fields=_missing_fields(e))
        return JSONResponse(status_code=400, content=err.to_dict())

    try:
        user = login_user(email=data.email, password=data.password, enc=enc)
    except ChatNaoError as e:
        return JSONResponse(status_code=401, content=e.to_dict())
    except Exception:
        logger.exception("Login failed")
        return JSONResponse(status_code=401, content={"error": "Login failed", "code": "auth_error"})

    return _auth_payload(user)


@router.post("/auth/signup", response_model=AuthResponse, responses={400: {"model": ErrorBody}})
def signup(payload: Any = Body(None), enc: EncryptionDec = Depends(get_enc)):
    """Register a doctor or patient account.

    Request body:
        {name, email, password, role, age (integer), gender, specialty?}
        `specialty` is only accepted for doctors.

    Response:
        200: {"user": {...}}
        400: {"error", "code"} for missing or mistyped fields, a duplicate email,
             or any other failure.
    """
    try:
        data = signup_adapter.validate_python(payload if isinstance(payload, dict) else {})
    except PydanticValidationError as e:
        err = ValidationError(fields=_missing_fields(e))
        return JSONResponse(status_code=400, content=err.to_dict())

    try:
        user = signup_user(data=data, enc=enc)
    except ChatNaoError as e:
        return JSONResponse(status_code=400, content=e.to_dict())
    except Exception:
        logger.exception("Signup failed")
        return JSONResponse(status_code=400, content={"error": "Signup failed", "code": "error"})

    return _auth_payload(user)


@router.get("/doctors", response_model=List[DoctorSummary])
def get_doctors():
    """All doctors as {userId, name, specialty}, ordered by name."""
    return list_doctors()


@router.get("/chats", response_model=List[ChatSummary])
def get_chats(user_id: str = Query(..., alias="userId"), role: Role = Query(...)):
    """Chats the user takes part in, each with the other participant's public profile."""
    return list_chats_for_user(user_id=user_id, role=role)


@router.post("/chats", response_model=CreateChatResult)
def new_chat(data: CreateChatRequest):
    """Get or create the chat for a doctor/patient pair. Repeated calls return the same id."""
    chat_id = create_chat(doctor_id=data.doctor_id, patient_id=data.patient_id)
    return CreateChatResult(chat_id=chat_id)


@router.get("/chats/{chat_id}/messages", response_model=List[MessageView])
def get_messages(
    chat_id: str,
    viewer_id: Optional[str] = Query(None, alias="viewerId"),
    audio_storage: AudioStorage = Depends(get_audio_storage),
):
    """Messages of a chat, oldest first.

    When `viewerId` is given each message also carries `primaryText` and
    `secondaryText` ordered for that viewer.
    """
    return list_by_chat(chat_id=chat_id, audio_storage=audio_storage, viewer_id=viewer_id)


@router.get("/chats/{chat_id}/search", response_model=List[SearchHit])
def search(chat_id: str, query: str = Query("")):
    """Keyword search within a chat; at most 8 previews."""
    return search_messages(chat_id=chat_id, query=query)


@router.post("/chats/{chat_id}/summary", response_model=ChatSummaryResult)
def summarize(chat_id: str, rewriter: Rewriter = Depends(get_rewriter)):
    """Summarize the last 40 messages of a chat and store the summary on it.

    Returns 409 when the chat has no messages and 502 when the LLM call fails.
    """
    summary = summarize_chat(rewriter=rewriter, chat_id=chat_id)
    return ChatSummaryResult(summary=summary)


@router.post("/messages", response_model=SendMessageResult)
def new_message(data: SendMessageRequest, rewriter: Rewriter = Depends(get_rewriter)):
    """Send a message through the rewrite pipeline.

    The text is trimmed and rewritten for the recipient's role; audio-only messages
    skip the rewrite. If the rewrite fails nothing is stored and the response is 502.
    """
    return send_message(
        rewriter=rewriter,
        chat_id=data.chat_id,
        sender_id=data.sender_id,
        original_text=data.original_text,
        audio_storage_id=data.audio_storage_id,
    )


@router.post("/uploads", response_model=UploadUrl)
def new_upload(audio_storage: AudioStorage = Depends(get_audio_storage)):
    """Allocate a storage id and a presigned PUT URL for one audio clip."""
    return UploadUrl(**audio_storage.create_upload_url())
