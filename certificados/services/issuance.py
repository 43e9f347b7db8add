from __future__ import annotations

from typing import Callable, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..app import db
from ..errors import PersistError, ValidationError
from ..models import IssuedCertificate
from ..shared.storage import remove_certificate_file
from ..shared.time import now_local
from .contacts import contact_id_for


def record_issuance(
    cedula: str,
    course_name: str,
    filename: str,
    url: str,
    validation_id: Optional[str] = None,
    contact_lookup: Callable[[str], Optional[int]] = contact_id_for,
) -> int:
    """Append one ledger row for a generated PDF and return its id.

    Every successful generation gets its own row; re-issuing the same course
    to the same person is legitimate. A storage failure leaves the PDF on
    disk.
    """
    cedula = (cedula or "").strip()
    course_name = (course_name or "").strip()
    if not cedula or not course_name:
        current_app.logger.warning(
            "[CERT-LEDGER] missing cedula or course for %s", filename
        )
        raise ValidationError(
            "Faltan la cédula o el nombre del curso para registrar el certificado."
        )

    try:
        external_id = contact_lookup(cedula)
    except Exception:
        current_app.logger.warning(
            "[CERT-LEDGER] contact id lookup failed cedula=%s", cedula, exc_info=True
        )
        external_id = None

    cert = IssuedCertificate(
        cedula=cedula,
        external_contact_id=external_id,
        course_name=course_name,
        filename=filename,
        url=url,
        issued_at=now_local(),
        validation_id=validation_id or None,
    )
    try:
        db.session.add(cert)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception(
            "[CERT-LEDGER] failed to insert certificate record cedula=%s", cedula
        )
        raise PersistError(detail=str(exc)) from exc
    current_app.logger.info(
        "[CERT-LEDGER] recorded id=%s cedula=%s file=%s", cert.id, cedula, filename
    )
    return cert.id


def certificates_for(cedula: str | None = None) -> list[IssuedCertificate]:
    query = db.session.query(IssuedCertificate)
    if cedula:
        query = query.filter(IssuedCertificate.cedula == cedula)
    return query.order_by(
        IssuedCertificate.issued_at.desc(), IssuedCertificate.id.desc()
    ).all()


def delete_certificate(cert_id: int) -> bool:
    """Delete the ledger row, then try to remove its PDF."""
    cert = db.session.get(IssuedCertificate, cert_id)
    if cert is None:
        return False
    filename = cert.filename
    try:
        db.session.delete(cert)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("[CERT-LEDGER] delete failed id=%s", cert_id)
        raise PersistError(
            "Error al eliminar el certificado de la base de datos.", detail=str(exc)
        ) from exc
    removed = remove_certificate_file(filename)
    current_app.logger.info(
        "[CERT-LEDGER] deleted id=%s file=%s file_removed=%s", cert_id, filename, removed
    )
    return True
