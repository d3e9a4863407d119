"""
DAOs Package — Data Access Layer (SQLAlchemy 2.0)
=================================================

The `daos` package provides the Data Access Layer for the application.
It encapsulates all interactions with SQLAlchemy ORM entities, providing
clean CRUD APIs for the service layer while hiding direct query details.

Conventions
-----------
- SQLAlchemy 2.0 typed mappings (Mapped[...] / mapped_column)
- Session lifecycle (open/commit/rollback) is handled by callers (`@transactional`)
- DAOs log and re-raise so upper layers decide error policy

Contents
--------
- UserDao
    * Creates users with password hashing
    * Fetches users by id, ids, email, or role

- ChatDao
    * Atomic get-or-create of the chat for a (doctor, patient) pair
    * Fetches chats by id or by participant
    * Updates the chat summary

- ChatMessagesDao
    * Creates messages
    * Fetches messages by chat (chronological, optionally only the latest N)
    * Keyword lookup over `search_text` within a chat
"""
