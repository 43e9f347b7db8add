from flask import Blueprint, render_template

from ..constants import PUBLIC_CEDULA_MAX_LENGTH, PUBLIC_CEDULA_MIN_LENGTH

bp = Blueprint("public", __name__)


@bp.get("/mis-certificados")
def mis_certificados():
    return render_template(
        "public/mis_certificados.html",
        min_length=PUBLIC_CEDULA_MIN_LENGTH,
        max_length=PUBLIC_CEDULA_MAX_LENGTH,
    )
