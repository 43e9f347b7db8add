from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..app import db
from ..errors import PersistError
from ..models import AdmissionVerification
from ..shared.time import now_local
from .contacts import find_contact
from .crm_client import FluentCRMClient


def register_verification(
    cedula: str, client: FluentCRMClient | None = None
) -> AdmissionVerification:
    """Look the contact up and log one admission verification for it."""
    contact = find_contact(cedula, client=client)
    row = AdmissionVerification(
        cedula=cedula,
        external_contact_id=_as_int(contact.id),
        first_name=contact.first_name,
        last_name=contact.last_name,
        email=contact.email,
        course_name=contact.value_of("nombre_del_curso"),
        course_stage=contact.value_of("etapa_del_curso"),
        employer_nit=contact.value_of("nit_de_la_empresa_emplead"),
        employer_name=contact.value_of("nombre_de_la_empresa_empl"),
        verified_at=now_local(),
    )
    try:
        db.session.add(row)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception(
            "[VERIFY] failed to store verification cedula=%s", cedula
        )
        raise PersistError(
            "Error al guardar la verificación en la base de datos.", detail=str(exc)
        ) from exc
    current_app.logger.info(
        "[VERIFY] recorded id=%s cedula=%s contact=%s", row.id, cedula, contact.id
    )
    return row


def _as_int(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def list_verifications(
    cedula: str | None = None, nit: str | None = None
) -> list[AdmissionVerification]:
    query = db.session.query(AdmissionVerification)
    if cedula:
        query = query.filter(AdmissionVerification.cedula == cedula)
    if nit:
        query = query.filter(AdmissionVerification.employer_nit == nit)
    return query.order_by(
        AdmissionVerification.verified_at.desc(), AdmissionVerification.id.desc()
    ).all()
