"""
User ORM Model
==============

The ``User`` ORM model represents a registered doctor or patient. It maps to the
``app_user`` table.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Unique email, bcrypt password hash
- Role (``doctor`` | ``patient``), age, gender
- Specialty, present only for doctors
"""

import uuid
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import TEXT, VARCHAR, DateTime, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from chatnao.database.config.connection_engine import declarativeBase


class User(declarativeBase):
    """
    ORM model for the `app_user` table.

    Attributes
    ----------
    id : UUID
        Primary key. Unique identifier for the user.
    name : str
        Display name.
    email : str
        Email address, unique across users.
    password_hash : str
        bcrypt hash of the user's password.
    role : str
        ``doctor`` or ``patient``.
    age : int
        Age in years.
    gender : str
        ``male``, ``female``, ``other`` or ``prefer_not_to_say``.
    specialty : str | None
        Clinical specialty (doctors only).
    created_on : datetime
        Creation timestamp (UTC).
    """

    __tablename__ = "app_user"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    """Primary key. UUID of the user."""

    name: Mapped[str] = mapped_column(VARCHAR(255), nullable=False)
    """Display name of the user."""

    email: Mapped[str] = mapped_column(VARCHAR(255), nullable=False, unique=True, index=True)
    """Email address of the user (unique)."""

    password_hash: Mapped[str] = mapped_column(TEXT, nullable=False)
    """bcrypt hash of the user's password."""

    role: Mapped[str] = mapped_column(TEXT, nullable=False, index=True)
    """Role of the user (doctor or patient)."""

    age: Mapped[int] = mapped_column(Integer, nullable=False)

    gender: Mapped[str] = mapped_column(TEXT, nullable=False)

    specialty: Mapped[Optional[str]] = mapped_column(TEXT, nullable=True)
    """Clinical specialty; NULL for patients."""

    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    def __init__(
        self,
        name: str,
        email: str,
        password: str,
        role: str,
        age: int,
        gender: str,
        specialty: Optional[str] = None,
    ):
        """
        Initialize a new User object.

        Parameters
        ----------
        name : str
            Display name.
        email : str
            Email address.
        password : str
            Plaintext password; `UserDao.createUser` replaces it with its hash before insert.
        role : str
            ``doctor`` or ``patient``.
        age : int
            Age in years.
        gender : str
            Gender value.
        specialty : str | None
            Specialty (doctors only).
        """
        self.id = uuid.uuid4()
        self.name = name
        self.email = email
        self.password_hash = password
        self.role = role
        self.age = age
        self.gender = gender
        self.specialty = specialty
        self.created_on = datetime.now(timezone.utc)

    def __str__(self) -> str:
        return f"User: id:{self.id}, name: {self.name}, role: {self.role}"
