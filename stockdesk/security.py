"""Shared security helpers and decorators for view protection."""

from __future__ import annotations

from functools import wraps

from flask import abort

from stockdesk.extensions import login_manager
from stockdesk.permissions import current_session


def require_action(action: str):
    """Decorator ensuring the active user holds the capability ``action``."""

    def decorator(view_func):
        @wraps(view_func)
        def wrapped(*args, **kwargs):
            context = current_session()
            if context is None:
                return login_manager.unauthorized()

            if not context.can(action):
                abort(403)

            return view_func(*args, **kwargs)

        return wrapped

    return decorator


def require_admin(view_func):
    """Decorator specialized for user management."""

    return require_action("users.manage")(view_func)
