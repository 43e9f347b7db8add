"""HTML certificate to PDF on disk, plus its ledger row."""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Optional

from flask import current_app
from PyPDF2 import PdfReader, PdfWriter

from ..app import db
from ..errors import PersistError, RenderError, ValidationError
from ..models import Trainer
from ..shared.certificates import (
    CertificateFieldSet,
    TrainerInfo,
    render_certificate_html,
)
from ..shared.slugs import slugify
from ..shared.storage import (
    certificate_path,
    certificate_url,
    remove_certificate_file,
    reserve_filename,
    write_atomic,
)
from ..shared.time import now_local
from .issuance import record_issuance


@dataclass(frozen=True)
class GeneratedCertificate:
    filename: str
    url: str
    record_id: Optional[int]


def lookup_trainer(trainer_id: str) -> Optional[TrainerInfo]:
    try:
        pk = int(trainer_id)
    except (TypeError, ValueError):
        return None
    trainer = db.session.get(Trainer, pk)
    if not trainer:
        return None
    return TrainerInfo(
        name=trainer.name or "",
        license=trainer.license or "",
        signature_url=trainer.signature_url or "",
    )


def render_pdf_bytes(html: str) -> bytes:
    from weasyprint import HTML  # heavy native deps, load on first use

    return HTML(string=html, base_url=current_app.root_path, encoding="utf-8").write_pdf()


def stamp_metadata(pdf: bytes, title: str, subject: str = "") -> bytes:
    reader = PdfReader(BytesIO(pdf))
    writer = PdfWriter()
    for page in reader.pages:
        writer.add_page(page)
    metadata = {"/Title": title, "/Creator": "gcp-certificados"}
    if subject:
        metadata["/Subject"] = subject
    writer.add_metadata(metadata)
    out = BytesIO()
    writer.write(out)
    return out.getvalue()


def build_filename_base(fields: CertificateFieldSet) -> str:
    return "Certificado-{}-{}-{}".format(
        slugify(fields.nombre_completo, "contacto"),
        slugify(fields.nombre_del_curso, "curso"),
        now_local().strftime("%Y%m%d-%H%M%S"),
    )


def generate_certificate(fields: CertificateFieldSet) -> GeneratedCertificate:
    if not fields.nombre_completo or not fields.nombre_del_curso or not fields.cedula:
        raise ValidationError(
            "Faltan datos esenciales para generar el certificado (nombre, curso o cédula)."
        )

    html = render_certificate_html(
        fields,
        trainer_lookup=lookup_trainer,
        logo_url=current_app.config.get("CERTIFICATE_LOGO_URL", ""),
    )
    try:
        pdf = render_pdf_bytes(html)
        pdf = stamp_metadata(
            pdf,
            title=f"Certificado - {fields.nombre_completo}",
            subject=fields.id_ministerio_del_curso,
        )
    except Exception as exc:
        current_app.logger.exception(
            "[CERT-PDF] engine failure cedula=%s course=%s",
            fields.cedula,
            fields.nombre_del_curso,
        )
        raise RenderError(detail=str(exc)) from exc

    filename = reserve_filename(build_filename_base(fields))
    try:
        write_atomic(certificate_path(filename), pdf)
    except OSError as exc:
        remove_certificate_file(filename)
        current_app.logger.exception("[CERT-PDF] could not write %s", filename)
        raise RenderError(
            "Error crítico: No se pudo guardar el PDF en el servidor.", detail=str(exc)
        ) from exc
    url = certificate_url(filename)
    current_app.logger.info(
        "[CERT-PDF] cedula=%s file=%s bytes=%s", fields.cedula, filename, len(pdf)
    )

    record_id = None
    try:
        record_id = record_issuance(
            fields.cedula,
            fields.nombre_del_curso,
            filename,
            url,
            fields.id_ministerio_del_curso or None,
        )
    except PersistError:
        current_app.logger.error(
            "[CERT-PDF] ledger insert failed, PDF kept at %s", filename
        )
    return GeneratedCertificate(filename=filename, url=url, record_id=record_id)
