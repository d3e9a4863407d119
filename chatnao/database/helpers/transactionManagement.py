"""
Database Transaction Management
===============================

This module provides utilities for managing SQLAlchemy database sessions
using Python context variables and a decorator-based transaction wrapper.

It allows seamless propagation of a database session across function calls
without explicitly threading it through arguments. Functions can be safely
decorated with ``@transactional`` to ensure they run inside a managed
transactional context.

Key features
~~~~~~~~~~~~
- Context variable to store the active session
- Implicit reuse of existing sessions
- Automatic commit and rollback handling
- Clean session closure after execution

Sessions come from ``SessionFactory`` in ``connection_engine``, which the entry
point binds to its engine with ``bind_engine``.
"""

import contextvars
from functools import wraps

from chatnao.database.config.connection_engine import SessionFactory

# --------------------------------------------------------------------
# Context variable to store the current database session.
# --------------------------------------------------------------------
db_session_context = contextvars.ContextVar("db_session_context", default=None)
"""Context variable storing the active SQLAlchemy session."""


def transactional(func):
    """
    Decorator to wrap functions in a managed SQLAlchemy transaction.

    Ensures that:
    - If a session already exists in context, it is reused.
    - Otherwise, a new session is created, committed, and closed.
    - On errors, the session is rolled back and closed.

    Parameters
    ----------
    func : callable
        The function to wrap. It must accept a `session` keyword argument,
        and callers pass every other argument by keyword.

    Returns
    -------
    callable
        The wrapped function, executed within a database transaction.

    Example
    -------
    >>> @transactional
    ... def create_user(session, user):
    ...     session.add(user)
    ...     return user
    ...
    >>> new_user = create_user(user=User(...))
    """
    @wraps(func)
    def wrap_func(*args, **kwargs):
        session = db_session_context.get()
        if session is not None:
            return func(*args, session=session, **kwargs)

        session = SessionFactory()
        token = db_session_context.set(session)

        try:
            result = func(*args, session=session, **kwargs)
            session.flush()
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
            db_session_context.reset(token)

        return result

    return wrap_func
