"""
Message pipeline, read views, search and summaries.

Sending a message is a linear pipeline where every step can abort the send:

    resolve chat → resolve sender → derive + resolve recipient
        → require text or an issued audio key
        → rewrite for the recipient (only when there is text)
        → compose search text → persist with a server timestamp → return

The reads and the final write run in separate `@transactional` calls and the LLM
call sits between them, outside any transaction. If the rewrite fails nothing is
written.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from chatnao.api.aws_bucket_funcs.funcs import AudioStorage, is_audio_key
from chatnao.api.llm_rewriter import Rewriter
from chatnao.api.models import MessageView, SearchHit, SendMessageResult
from chatnao.database.core.funcs import optional_id, parse_id
from chatnao.database.daos.chat_dao import ChatDao
from chatnao.database.daos.message_dao import ChatMessagesDao
from chatnao.database.daos.user_dao import UserDao
from chatnao.database.entities.messages import ChatMessage
from chatnao.database.helpers.transactionManagement import transactional
from chatnao.errors import (
    ChatNotFound,
    NoContent,
    RecipientNotFound,
    RewriteFailed,
    SenderNotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 8
PREVIEW_LENGTH = 180
SUMMARY_MESSAGE_LIMIT = 40


@dataclass(frozen=True)
class Participants:
    """The resolved parties of one send."""
    chat_id: object
    sender_id: object
    sender_role: str
    recipient_id: object


def compose_search_text(original: str, rewritten: str) -> str:
    """Newline join of the non-empty parts."""
    return "\n".join(part for part in (original, rewritten) if part)


def display_texts(message: ChatMessage, viewer_id: Optional[UUID]):
    """
    Return (primary, secondary) text for a viewer.

    Ids are compared as UUIDs, so any spelling of the sender's id matches.

    The sender reads their own words first with the rewrite underneath; the
    recipient reads the rewrite first with the original underneath.
    """
    if message.sender_id == viewer_id:
        return message.original_text, message.translated_text
    return message.translated_text, message.original_text


@transactional
def resolve_participants(session: Session, chat_id: str, sender_id: str) -> Participants:
    """
    Steps 1-4 of the pipeline.

    Raises
    ------
    ChatNotFound, SenderNotFound, RecipientNotFound
        When the corresponding row is missing.
    ValidationError
        When the sender is not one of the chat's participants.
    """
    chats = ChatDao().fetchChatById(session, parse_id(chat_id, ChatNotFound))
    if not chats:
        raise ChatNotFound()
    chat = chats[0]

    user_dao = UserDao()
    senders = user_dao.fetchUserById(session, parse_id(sender_id, SenderNotFound))
    if not senders:
        raise SenderNotFound()
    sender = senders[0]

    if sender.id not in (chat.doctor_id, chat.patient_id):
        raise ValidationError("Sender is not a participant in this chat")
    recipient_id = chat.patient_id if sender.id == chat.doctor_id else chat.doctor_id

    if not user_dao.fetchUserById(session, recipient_id):
        raise RecipientNotFound()

    return Participants(
        chat_id=chat.id,
        sender_id=sender.id,
        sender_role=sender.role,
        recipient_id=recipient_id,
    )


@transactional
def persist_message(
    session: Session,
    participants: Participants,
    original_text: str,
    translated_text: str,
    audio_storage_id: Optional[str],
) -> str:
    """Steps 6-7: build the row with the combined search text and a server timestamp."""
    message = ChatMessage(
        chat_id=participants.chat_id,
        sender_id=participants.sender_id,
        original_text=original_text,
        translated_text=translated_text,
        search_text=compose_search_text(original_text, translated_text),
        audio_storage_id=audio_storage_id,
        created_on=datetime.now(timezone.utc),
    )
    ChatMessagesDao().createMessage(session, message)
    return str(message.id)


def send_message(
    rewriter: Rewriter,
    chat_id: str,
    sender_id: str,
    original_text: str,
    audio_storage_id: Optional[str] = None,
) -> SendMessageResult:
    """
    Run the full send pipeline.

    Parameters
    ----------
    rewriter : Rewriter
        Role-aware rewrite capability.
    chat_id : str
        Target chat.
    sender_id : str
        Sending user; must be the chat's doctor or patient.
    original_text : str
        Text as typed. Trimmed before use; may be empty for an audio-only message.
    audio_storage_id : str | None
        Key returned by `create_upload_url`, if audio was recorded.

    Returns
    -------
    SendMessageResult
        The new message id and the rewritten text (empty for audio-only messages).

    Raises
    ------
    ValidationError
        If there is neither text nor audio, or the audio key was not issued by
        `create_upload_url`.
    ChatNotFound, SenderNotFound, RecipientNotFound
        From participant resolution.
    RewriteFailed
        If the rewrite call times out, hits its quota or fails in transport.
    """
    participants = resolve_participants(chat_id=chat_id, sender_id=sender_id)

    trimmed = (original_text or "").strip()
    if not trimmed and not audio_storage_id:
        raise ValidationError("Message must contain text or audio")
    if audio_storage_id and not is_audio_key(audio_storage_id):
        raise ValidationError("Unknown audio storage id", fields=["audioStorageId"])

    processed_text = ""
    if trimmed:
        result = rewriter.rewrite_for_audience(participants.sender_role, trimmed)
        if not result.ok:
            logger.warning(
                "Rewrite failed for chat %s with status %s", participants.chat_id, result.status.value
            )
            raise RewriteFailed(result.status.value)
        processed_text = result.text

    message_id = persist_message(
        participants=participants,
        original_text=trimmed,
        translated_text=processed_text,
        audio_storage_id=audio_storage_id,
    )
    logger.info("Stored message %s in chat %s", message_id, participants.chat_id)
    return SendMessageResult(message_id=message_id, processed_text=processed_text)


@transactional
def list_by_chat(
    session: Session,
    chat_id: str,
    audio_storage: AudioStorage,
    viewer_id: Optional[str] = None,
) -> List[MessageView]:
    """
    Messages of a chat, oldest first, with playable audio URLs.

    When `viewer_id` is given each item also carries the viewer's
    `primary_text` / `secondary_text`. A malformed chat id lists nothing, the
    same as an unknown one.
    """
    cid = optional_id(chat_id)
    if cid is None:
        return []
    viewer = optional_id(viewer_id) if viewer_id is not None else None
    messages = ChatMessagesDao().fetchMessagesByChatId(session, cid)

    views = []
    for message in messages:
        view = MessageView(
            message_id=str(message.id),
            chat_id=str(message.chat_id),
            sender_id=str(message.sender_id),
            original_text=message.original_text,
            translated_text=message.translated_text,
            audio_url=audio_storage.get_url(message.audio_storage_id) if message.audio_storage_id else None,
            timestamp=message.timestamp,
        )
        if viewer_id is not None:
            view.primary_text, view.secondary_text = display_texts(message, viewer)
        views.append(view)
    return views


def _relevance(search_text: str, tokens: List[str]) -> int:
    lowered = search_text.lower()
    return sum(lowered.count(token.lower()) for token in tokens)


@transactional
def search_messages(session: Session, chat_id: str, query: str) -> List[SearchHit]:
    """
    Keyword search within one chat.

    Every whitespace-separated token of `query` must occur in a message's search
    text (case-insensitive). Hits are ranked by how often the tokens occur, newest
    first on ties, and cut to `SEARCH_LIMIT`. Each preview is the leading
    `PREVIEW_LENGTH` characters of the rewrite, or of the original when there is no rewrite.
    """
    tokens = query.split()
    cid = optional_id(chat_id)
    if not tokens or cid is None:
        return []

    matches = ChatMessagesDao().searchMessages(session, cid, tokens)
    ranked = sorted(matches, key=lambda m: (-_relevance(m.search_text, tokens), -m.timestamp))

    return [
        SearchHit(
            message_id=str(message.id),
            preview=(message.translated_text or message.original_text)[:PREVIEW_LENGTH],
        )
        for message in ranked[:SEARCH_LIMIT]
    ]


@transactional
def build_transcript(session: Session, chat_id: str, limit: int = SUMMARY_MESSAGE_LIMIT) -> str:
    """
    Role-tagged transcript of the last `limit` messages, oldest first.

    Each line reads ``"<sender role>: <text>"`` using the rewrite when present.

    Raises
    ------
    ChatNotFound
        If the chat does not exist.
    """
    cid = parse_id(chat_id, ChatNotFound)
    if not ChatDao().fetchChatById(session, cid):
        raise ChatNotFound()

    messages = ChatMessagesDao().fetchMessagesByChatId(session, cid, limit=limit)
    senders = UserDao().fetchUsersByIds(session, [m.sender_id for m in messages])

    lines = []
    for message in messages:
        sender = senders.get(message.sender_id)
        role = sender.role if sender is not None else "unknown"
        content = message.translated_text or message.original_text
        lines.append(f"{role}: {content}".strip())
    return "\n".join(lines)


@transactional
def store_summary(session: Session, chat_id: str, summary: str) -> None:
    ChatDao().updateChatSummary(session, parse_id(chat_id, ChatNotFound), summary)


def summarize_chat(rewriter: Rewriter, chat_id: str) -> str:
    """
    Summarize a chat and persist the summary on it.

    Raises
    ------
    ChatNotFound
        If the chat does not exist.
    NoContent
        If the chat has no messages; the stored summary is left untouched.
    RewriteFailed
        If the summary call does not succeed.
    """
    transcript = build_transcript(chat_id=chat_id)
    if not transcript:
        raise NoContent()

    result = rewriter.summarize(transcript)
    if not result.ok:
        logger.warning("Summary failed for chat %s with status %s", chat_id, result.status.value)
        raise RewriteFailed(result.status.value, "Summary generation failed")

    store_summary(chat_id=chat_id, summary=result.text)
    logger.info("Stored summary for chat %s", chat_id)
    return result.text
