"""
Service-layer operations for authentication, the doctor roster and chats.

Functions that touch the database are wrapped with the `@transactional` decorator,
which manages SQLAlchemy sessions and transactions automatically. Each of them
accepts an injected `session: Session`; callers pass every other argument by keyword.

Failures are raised as `chatnao.errors` exceptions; the API layer decides how they
map to HTTP responses.
"""

import logging
from typing import List, Optional, Type
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from chatnao.api.models import (
    ChatSummary,
    Counterpart,
    DoctorProfile,
    DoctorSignup,
    DoctorSummary,
    PatientProfile,
    Role,
)
from chatnao.crypt.encrypt_decrypt import EncryptionDec
from chatnao.database.daos.chat_dao import ChatDao
from chatnao.database.daos.user_dao import UserDao
from chatnao.database.entities.user import User
from chatnao.database.helpers.transactionManagement import transactional
from chatnao.errors import (
    DuplicateEmail,
    InvalidCredentials,
    NotFoundError,
    UserNotFound,
    ValidationError,
)

logger = logging.getLogger(__name__)


def parse_id(value, error_cls: Type[NotFoundError] = NotFoundError) -> UUID:
    """
    Convert an id coming from a client into a UUID.

    A malformed id cannot match any row, so it is reported as `error_cls`
    (a `NotFoundError` subclass) rather than as a validation problem.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise error_cls() from None


def optional_id(value) -> Optional[UUID]:
    """Like `parse_id`, but a malformed id gives None."""
    try:
        return parse_id(value)
    except NotFoundError:
        return None


def profile_from_user(user: User):
    """Build the public `DoctorProfile` / `PatientProfile` for a user row."""
    if user.role == Role.DOCTOR.value:
        return DoctorProfile(
            user_id=str(user.id),
            name=user.name,
            email=user.email,
            age=user.age,
            gender=user.gender,
            specialty=user.specialty,
        )
    return PatientProfile(
        user_id=str(user.id),
        name=user.name,
        email=user.email,
        age=user.age,
        gender=user.gender,
    )


@transactional
def signup_user(session: Session, data, enc: EncryptionDec):
    """
    Create a doctor or patient account.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    data : DoctorSignup | PatientSignup
        Validated signup payload.
    enc : EncryptionDec
        Password hasher.

    Returns
    -------
    DoctorProfile | PatientProfile
        The new user's public profile.

    Raises
    ------
    DuplicateEmail
        If an account already uses the email, including when a concurrent
        signup wins the race and the unique index rejects this insert.
    """
    user_dao = UserDao()
    if user_dao.fetchUserByEmail(session, data.email):
        raise DuplicateEmail()

    specialty = data.specialty.value if isinstance(data, DoctorSignup) and data.specialty else None
    user = User(
        name=data.name,
        email=data.email,
        password=data.password,
        role=data.role,
        age=data.age,
        gender=data.gender.value,
        specialty=specialty,
    )
    try:
        user_dao.createUser(session, user, enc)
    except IntegrityError:
        raise DuplicateEmail()

    logger.info("Created %s account %s", user.role, user.id)
    return profile_from_user(user)


@transactional
def login_user(session: Session, email: str, password: str, enc: EncryptionDec):
    """
    Authenticate a user by email and password.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    email : str
        Email to authenticate.
    password : str
        Plaintext password to verify.
    enc : EncryptionDec
        Password hasher.

    Returns
    -------
    DoctorProfile | PatientProfile
        Public profile of the authenticated user.

    Raises
    ------
    InvalidCredentials
        For an unknown email and for a wrong password alike. An unknown email is
        still checked against a dummy hash so both paths cost one bcrypt comparison.
    """
    users = UserDao().fetchUserByEmail(session, email)
    user = users[0] if users else None
    stored_hash = user.password_hash if user is not None else enc.dummy_hash()
    password_matches = enc.check_passwords(password, stored_hash)

    if user is None or not password_matches:
        logger.info("Rejected login attempt")
        raise InvalidCredentials()

    return profile_from_user(user)


@transactional
def list_doctors(session: Session) -> List[DoctorSummary]:
    """All doctors projected to (id, name, specialty)."""
    doctors = UserDao().fetchUsersByRole(session, Role.DOCTOR.value)
    return [
        DoctorSummary(user_id=str(doctor.id), name=doctor.name, specialty=doctor.specialty)
        for doctor in doctors
    ]


@transactional
def list_chats_for_user(session: Session, user_id: str, role: Role) -> List[ChatSummary]:
    """
    List the chats a user takes part in, each with the counterpart's public profile.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session (injected by @transactional).
    user_id : str
        The user whose chats are listed.
    role : Role
        Which side of the chat the user is on; selects the doctor or patient lookup.

    Returns
    -------
    list[ChatSummary]
        If a counterpart row is missing, the entry carries a placeholder named
        "Unknown" with the opposite role instead of failing the whole list.
    """
    uid = parse_id(user_id, UserNotFound)
    chat_dao = ChatDao()
    if role == Role.DOCTOR:
        chats = chat_dao.fetchChatsByDoctorId(session, uid)
    else:
        chats = chat_dao.fetchChatsByPatientId(session, uid)

    other_ids = [chat.patient_id if role == Role.DOCTOR else chat.doctor_id for chat in chats]
    others = UserDao().fetchUsersByIds(session, other_ids)

    result = []
    for chat, other_id in zip(chats, other_ids):
        other = others.get(other_id)
        if other is not None:
            counterpart = Counterpart(
                user_id=str(other.id), name=other.name, role=other.role, specialty=other.specialty
            )
        else:
            counterpart = Counterpart(user_id=str(other_id), name="Unknown", role=role.opposite)
        result.append(
            ChatSummary(
                chat_id=str(chat.id),
                status=chat.status,
                summary=chat.summary,
                specialty_context=chat.specialty_context,
                other_user=counterpart,
            )
        )
    return result


def _require_role(session: Session, user_id: UUID, role: Role) -> User:
    users = UserDao().fetchUserById(session, user_id)
    if not users:
        raise UserNotFound(f"{role.value.capitalize()} not found")
    if users[0].role != role.value:
        raise ValidationError(f"User {user_id} is not a {role.value}")
    return users[0]


@transactional
def create_chat(session: Session, doctor_id: str, patient_id: str) -> str:
    """
    Get or create the chat between a doctor and a patient.

    The doctor's current specialty is copied into the chat when it is first
    created; later calls return the existing chat unchanged.

    Returns
    -------
    str
        The chat id, identical for every call with the same pair.

    Raises
    ------
    UserNotFound
        If either participant does not exist.
    ValidationError
        If `doctor_id` is not a doctor or `patient_id` is not a patient.
    """
    doctor = _require_role(session, parse_id(doctor_id, UserNotFound), Role.DOCTOR)
    patient = _require_role(session, parse_id(patient_id, UserNotFound), Role.PATIENT)

    chat = ChatDao().upsertChat(session, doctor.id, patient.id, specialty_context=doctor.specialty)
    logger.info("Chat %s ready for doctor %s and patient %s", chat.id, doctor.id, patient.id)
    return str(chat.id)
