from __future__ import annotations

import re
from typing import Any, Callable, Mapping, NamedTuple

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from ..app import db
from ..constants import (
    ADMIN_TOKEN_SCOPE,
    PUBLIC_CEDULA_MAX_LENGTH,
    PUBLIC_CEDULA_MIN_LENGTH,
    STUDENT_TOKEN_SCOPE,
)
from ..errors import CertificadosError, InternalError, SecurityError, ValidationError
from ..models import IssuedCertificate
from ..services.contacts import find_contact
from ..services.pdf import generate_certificate
from ..services.verifications import register_verification
from ..shared.certificates import CertificateFieldSet
from ..shared.csrf import verify_token
from ..shared.rbac import current_admin
from ..shared.time import fmt_date

bp = Blueprint("ajax", __name__)

_PUBLIC_CEDULA_RE = re.compile(
    r"[0-9]{%d,%d}" % (PUBLIC_CEDULA_MIN_LENGTH, PUBLIC_CEDULA_MAX_LENGTH)
)


class Action(NamedTuple):
    scope: str
    admin_only: bool
    handler: Callable[[Mapping[str, str]], Any]


def _required_cedula(form: Mapping[str, str]) -> str:
    cedula = (form.get("cedula") or "").strip()
    if not cedula:
        raise ValidationError("Cédula no proporcionada.")
    return cedula


def buscar_contacto(form):
    return find_contact(_required_cedula(form)).to_dict()


def guardar_verificacion(form):
    register_verification(_required_cedula(form))
    return {"message": "Verificación registrada correctamente."}


def generar_certificado(form):
    result = generate_certificate(CertificateFieldSet.from_form(form))
    message = "PDF generado y guardado exitosamente."
    if result.record_id is not None:
        message += " Registro creado."
    return {"message": message, "pdf_url": result.url, "file_name": result.filename}


def fetch_student_certificates(form):
    cedula = _required_cedula(form)
    # validated before any query
    if not _PUBLIC_CEDULA_RE.fullmatch(cedula):
        raise ValidationError("Formato de cédula inválido.")
    try:
        rows = (
            db.session.query(IssuedCertificate)
            .filter(IssuedCertificate.cedula == cedula)
            .order_by(IssuedCertificate.issued_at.desc(), IssuedCertificate.id.desc())
            .all()
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("[AJAX] student certificates query failed")
        raise InternalError(
            "Error al consultar la base de datos de certificados.", detail=str(exc)
        ) from exc
    return [
        {
            "course_name": row.course_name,
            "certificate_filename": row.filename,
            "certificate_url": row.url,
            "date_issued_formatted": fmt_date(row.issued_at),
            "validation_id": row.validation_id,
        }
        for row in rows
    ]


ACTIONS: dict[str, Action] = {
    "gcp_buscar_contacto_por_cedula": Action(ADMIN_TOKEN_SCOPE, True, buscar_contacto),
    "gcp_guardar_verificacion_registro": Action(
        ADMIN_TOKEN_SCOPE, True, guardar_verificacion
    ),
    "gcp_generar_certificado_pdf": Action(ADMIN_TOKEN_SCOPE, True, generar_certificado),
    "gcp_fetch_student_certificates": Action(
        STUDENT_TOKEN_SCOPE, False, fetch_student_certificates
    ),
}


def _error(message: str, status: int):
    return jsonify({"success": False, "data": {"message": message}}), status


@bp.post("/ajax")
def dispatch():
    name = request.form.get("action", "")
    action = ACTIONS.get(name)
    if action is None:
        current_app.logger.info(f"[AJAX] unknown action={name!r}")
        return _error("Acción no válida.", 400)

    try:
        if not verify_token(request.form.get("nonce"), action.scope):
            raise SecurityError()
        if action.admin_only and current_admin() is None:
            raise SecurityError("No tienes permisos suficientes para realizar esta acción.")
        data = action.handler(request.form)
    except CertificadosError as exc:
        level = "warning" if exc.status_code >= 500 else "info"
        getattr(current_app.logger, level)(
            f"[AJAX] action={name} status={exc.status_code} "
            f"error={type(exc).__name__} detail={exc.detail}"
        )
        return _error(exc.message, exc.status_code)
    except Exception:
        current_app.logger.exception(f"[AJAX] action={name} unexpected failure")
        return _error(CertificadosError.default_message, 500)

    return jsonify({"success": True, "data": data})
