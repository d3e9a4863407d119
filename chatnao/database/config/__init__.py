"""
The `config` package provides two core building blocks for establishing and managing database connections.

Contents:
    - config: Configuration layer - strongly typed app settings loaded from environment variables (with .env support), built once by the process entry point and passed to each service
    - connection_engine: Database layer - builds the SQLAlchemy Engine from those settings, binds the session factory, and defines the shared MetaData and declarative base for ORM models
"""
