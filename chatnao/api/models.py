"""
Pydantic models used for request/response validation and API data contracts.

Each class defines the structure of data expected in API endpoints, ensuring
validation and automatic OpenAPI schema generation. JSON keys are camelCase
(`userId`, `translatedText`, ...); Python attributes are snake_case.

Role-conditional shapes are discriminated unions over `role`: a doctor carries a
`specialty`, a patient never does (it always serializes as `null`).
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, TypeAdapter
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    DOCTOR = "doctor"
    PATIENT = "patient"

    @property
    def opposite(self) -> "Role":
        return Role.PATIENT if self is Role.DOCTOR else Role.DOCTOR


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"
    PREFER_NOT_TO_SAY = "prefer_not_to_say"


class Specialty(str, Enum):
    """Fixed clinical categories a doctor can declare."""
    GENERAL_PRACTICE = "General Practice"
    CARDIOLOGY = "Cardiology"
    PEDIATRICS = "Pediatrics"
    NEUROLOGY = "Neurology"
    ORTHOPEDICS = "Orthopedics"
    DERMATOLOGY = "Dermatology"
    PSYCHIATRY = "Psychiatry"
    ONCOLOGY = "Oncology"
    ENDOCRINOLOGY = "Endocrinology"
    GASTROENTEROLOGY = "Gastroenterology"


class ChatStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"   # reserved, nothing transitions a chat here yet


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# -----------------------
# Auth
# -----------------------

class LoginRequest(CamelModel):
    """Login credentials."""
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class _SignupBase(CamelModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    age: StrictInt = Field(..., ge=0)
    gender: Gender


class DoctorSignup(_SignupBase):
    """Signup payload for a doctor; `specialty` is optional."""
    role: Literal["doctor"]
    specialty: Optional[Specialty] = None


class PatientSignup(_SignupBase):
    """Signup payload for a patient; a non-null `specialty` is rejected."""
    role: Literal["patient"]
    specialty: None = None


SignupRequest = Annotated[Union[DoctorSignup, PatientSignup], Field(discriminator="role")]
signup_adapter = TypeAdapter(SignupRequest)
"""Validates a raw signup body into `DoctorSignup` or `PatientSignup`."""


class DoctorProfile(CamelModel):
    user_id: str
    name: str
    email: str
    role: Literal["doctor"] = "doctor"
    age: int
    gender: Gender
    specialty: Optional[Specialty] = None


class PatientProfile(CamelModel):
    user_id: str
    name: str
    email: str
    role: Literal["patient"] = "patient"
    age: int
    gender: Gender
    specialty: None = None


UserProfile = Annotated[Union[DoctorProfile, PatientProfile], Field(discriminator="role")]


class AuthResponse(BaseModel):
    """Body returned by login and signup: `{"user": {...}}`."""
    user: UserProfile


# -----------------------
# Chats & roster
# -----------------------

class Counterpart(CamelModel):
    """Public profile of the other participant in a chat."""
    user_id: str
    name: str
    role: Role
    specialty: Optional[Specialty] = None


class ChatSummary(CamelModel):
    chat_id: str
    status: ChatStatus
    summary: Optional[str] = None
    specialty_context: Optional[Specialty] = None
    other_user: Counterpart


class DoctorSummary(CamelModel):
    user_id: str
    name: str
    specialty: Optional[Specialty] = None


class CreateChatRequest(CamelModel):
    doctor_id: str
    patient_id: str


class CreateChatResult(CamelModel):
    chat_id: str


class ChatSummaryResult(CamelModel):
    summary: str


# -----------------------
# Messages
# -----------------------

class SendMessageRequest(CamelModel):
    """A new message. `original_text` may be empty when `audio_storage_id` is set."""
    chat_id: str
    sender_id: str
    original_text: str = ""
    audio_storage_id: Optional[str] = None


class SendMessageResult(CamelModel):
    message_id: str
    processed_text: str


class MessageView(CamelModel):
    """
    A message as read back by a client.

    `primary_text` / `secondary_text` are filled when the list was requested for a
    viewer: the sender sees their original first, anyone else sees the rewrite first.
    """
    message_id: str
    chat_id: str
    sender_id: str
    original_text: str
    translated_text: str
    audio_url: Optional[str] = None
    timestamp: int
    primary_text: Optional[str] = None
    secondary_text: Optional[str] = None


class SearchHit(CamelModel):
    message_id: str
    preview: str


class UploadUrl(CamelModel):
    """A one-time upload target: PUT the audio blob to `upload_url`, then send `storage_id`."""
    upload_url: str
    storage_id: str


class ErrorBody(BaseModel):
    error: str
    code: str
    fields: Optional[List[str]] = None
