"""
User DAO

Purpose
-------
Thin data-access layer for the `User` ORM entity. Provides:
- Creation with password hashing
- Lookup by id, a set of ids, email, or role

Design
------
- The DAO expects an active SQLAlchemy `Session` supplied by the caller.
- Business logic (uniqueness messages, credential checks) lives in `core.funcs`.
- Passwords are hashed using `EncryptionDec.hash_password(...)` before insert.

Error Handling
--------------
- Each method logs the failure with `logger.exception(...)` and re-raises.
- `createUser` flushes so that a concurrent duplicate email surfaces here as an
  `IntegrityError` rather than at commit time.
"""

import logging
from typing import Dict, Iterable, List
from uuid import UUID

from sqlalchemy.orm import Session

from chatnao.crypt.encrypt_decrypt import EncryptionDec
from chatnao.database.entities.user import User

logger = logging.getLogger(__name__)


class UserDao:
    """
    Data Access Object (DAO) for managing User entities.
    """

    def createUser(self, session: Session, user_data: User, enc: EncryptionDec) -> bool:
        """
        Create a new user in the database with a hashed password.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        user_data : User
            User entity whose `password_hash` still holds the plaintext password.
        enc : EncryptionDec
            Hasher configured with the deployment's cost factor.

        Returns
        -------
        bool
            True if user creation is successful.

        Raises
        ------
        sqlalchemy.exc.IntegrityError
            If the email already exists.
        """
        try:
            user_data.password_hash = enc.hash_password(text=user_data.password_hash)
            session.add(user_data)
            session.flush()
            return True
        except Exception:
            logger.exception("Error in UserDao.createUser")
            raise

    def fetchUserById(self, session: Session, user_id: UUID) -> List[User]:
        """
        Fetch a user by id.

        Returns
        -------
        list[User]
            A list containing the matching user (empty if none).
        """
        try:
            return session.query(User).filter(User.id == user_id).limit(1).all()
        except Exception:
            logger.exception("Error in UserDao.fetchUserById")
            raise

    def fetchUsersByIds(self, session: Session, user_ids: Iterable[UUID]) -> Dict[UUID, User]:
        """
        Fetch several users at once.

        Returns
        -------
        dict[UUID, User]
            Users keyed by id; ids with no row are simply absent.
        """
        ids = set(user_ids)
        if not ids:
            return {}
        try:
            users = session.query(User).filter(User.id.in_(ids)).all()
            return {user.id: user for user in users}
        except Exception:
            logger.exception("Error in UserDao.fetchUsersByIds")
            raise

    def fetchUserByEmail(self, session: Session, email: str) -> List[User]:
        """
        Fetch a user by email (exact match).

        Returns
        -------
        list[User]
            A list containing the matching user (at most one due to limit(1)).
        """
        try:
            return session.query(User).filter(User.email == email).limit(1).all()
        except Exception:
            logger.exception("Error in UserDao.fetchUserByEmail")
            raise

    def fetchUsersByRole(self, session: Session, role: str) -> List[User]:
        """
        Fetch every user with the given role, ordered by name.
        """
        try:
            return (
                session.query(User)
                .filter(User.role == role)
                .order_by(User.name)
                .all()
            )
        except Exception:
            logger.exception("Error in UserDao.fetchUsersByRole")
            raise
