"""
Entities Package — SQLAlchemy 2.0 ORM Models (UUID + UTC)
=========================================================

The `entities` package defines the ORM models of the application, mapping
database tables to Python classes using SQLAlchemy 2.0-typed mappings.
These classes are consumed by DAOs (`daos` package).

Tech Stack & Conventions
------------------------
- Portable `Uuid` primary keys (native UUID on PostgreSQL, CHAR(32) on SQLite)
- Timezone-aware timestamps (UTC)
- SQLAlchemy 2.0 style `Mapped[...]` + `mapped_column(...)`
- Clear foreign keys for relational integrity

Contents
--------
- User
    A doctor or patient account.
    * `email` is unique; `password_hash` is a bcrypt hash
    * `specialty` is only set for doctors

- Chat
    The single conversation between one doctor and one patient.
    * Unique on (`doctor_id`, `patient_id`)
    * `specialty_context` snapshots the doctor's specialty at creation
    * `summary` is written by the summarize operation; `status` is `active` (`archived` is reserved)

- ChatMessage
    An immutable message within a chat.
    * `original_text`, `translated_text` (LLM rewrite for the recipient), `search_text`
    * Optional `audio_storage_id` (object key in the audio bucket)
    * `timestamp` in epoch milliseconds, captured by the server
"""
