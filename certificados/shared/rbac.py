from functools import wraps

from flask import abort, redirect, session, url_for

from ..app import db
from ..models import User


def current_admin() -> User | None:
    user_id = session.get("user_id")
    if not user_id:
        return None
    user = db.session.get(User, user_id)
    if not user or not user.is_admin:
        return None
    return user


def admin_required(fn):
    """Page guard: anonymous users go to login, non-admins get 403."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        user_id = session.get("user_id")
        if not user_id:
            return redirect(url_for("auth.login"))
        user = current_admin()
        if not user:
            abort(403)
        return fn(*args, **kwargs, current_user=user)

    return wrapper
