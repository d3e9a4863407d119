"""
The `database` package is responsible for all interactions with the application's database.
It provides configuration, entity definitions, CRUD operations, and the service-layer
functions that the API router calls.

Contents:
    - config:
        Settings loaded from the environment and the SQLAlchemy engine bootstrap.

    - entities:
        SQLAlchemy entity models for users, chats and messages.

    - daos:
        Data Access Objects (DAOs) providing CRUD operations for the entities.

    - core:
        Service functions that orchestrate DAOs, the LLM rewriter and audio storage
        (auth, chat roster, message pipeline, search, summaries, seeding).

    - helpers:
        The `@transactional` decorator and the context-held session.
"""
