"""
ChatNao backend — doctor/patient messaging with role-aware LLM rewriting
========================================================================

Packages
--------
- api
    FastAPI router, Pydantic contracts, the LLM rewrite adapter and the S3 audio helpers.

- crypt
    bcrypt password hashing and verification.

- database
    Settings, SQLAlchemy engine/entities/DAOs, transaction helpers and the
    service-layer functions (auth, chats, message pipeline, search, summaries, seeding).

- errors
    Tagged error taxonomy shared by the service layer and the HTTP boundary.

- main
    Application factory (`create_app`) and the `chatnao-api` entry point.
"""
