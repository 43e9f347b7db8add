from __future__ import annotations

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    session as flask_session,
    url_for,
)

from ..app import db
from ..models import User
from ..shared.time import now_utc

bp = Blueprint("auth", __name__)


@bp.route("/login", methods=["GET", "POST"], endpoint="login")
def login():
    if request.method == "POST":
        email = (request.form.get("email") or "").strip().lower()
        password = request.form.get("password", "")
        user = (
            db.session.query(User)
            .filter(db.func.lower(User.email) == email)
            .one_or_none()
        )
        if not user or not user.check_password(password):
            current_app.logger.info(f"[AUTH-FAIL] email={email}")
            flash("Correo o contraseña inválidos.", "error")
            return redirect(url_for("auth.login"))
        flask_session.clear()
        flask_session["user_id"] = user.id
        current_app.logger.info(
            f"[AUTH] staff login email={email} at={now_utc().isoformat()}"
        )
        return redirect(url_for("admin.expedir"))
    return render_template("login.html")


@bp.get("/logout")
def logout():
    flask_session.clear()
    flash("Sesión cerrada.", "success")
    return redirect(url_for("auth.login"))
