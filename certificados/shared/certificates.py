from __future__ import annotations

import os
from dataclasses import dataclass, fields as dataclass_fields
from typing import Callable, Mapping, Optional
from urllib.parse import urlparse

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..constants import (
    CERTIFIER_LEGAL_REPRESENTATIVE,
    DEFAULT_TRAINER_LICENSE,
    DEFAULT_TRAINER_NAME,
    ISSUING_CITY,
    MINTRABAJO_FILING,
    MINTRABAJO_RESOLUTION,
    SST_LICENSE_TEXT,
    VERIFICATION_PHONES,
    VERIFICATION_URL,
    VERIFICATION_URL_DISPLAY,
)
from .time import now_local

FORM_PREFIX = "gcp_"
TEMPLATE_NAME = "certificado.html"

PLACEHOLDERS = {
    "nombre_completo": "[Nombre no disponible]",
    "nombre_del_curso": "[Curso no especificado]",
    "cedula": "[Cédula no disponible]",
    "intensidad_horaria": "[N/A]",
    "nit_de_la_empresa_emplead": "[N/A]",
    "arl": "[N/A]",
    "fecha_de_realizado": "[Fecha no especificada]",
    "id_ministerio_del_curso": "[N/A]",
    "representante_legal_de_la": "[N/A]",
    "fecha_de_inicio": "[FECHA INICIO PENDIENTE]",
}

_env = Environment(
    loader=FileSystemLoader(
        os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates", "certificate")
    ),
    autoescape=select_autoescape(["html"]),
)


@dataclass
class CertificateFieldSet:
    """Values printed on one certificate; empty strings fall back to placeholders."""

    nombre_completo: str = ""
    nombre_del_curso: str = ""
    cedula: str = ""
    fecha_de_expedicion: str = ""
    intensidad_horaria: str = ""
    nit_de_la_empresa_emplead: str = ""
    arl: str = ""
    fecha_de_realizado: str = ""
    id_ministerio_del_curso: str = ""
    representante_legal_de_la: str = ""
    fecha_de_inicio: str = ""
    trainer_id: str = ""
    trainer_name: str = ""
    trainer_license: str = ""
    trainer_signature: str = ""

    @classmethod
    def from_form(cls, form: Mapping[str, str]) -> "CertificateFieldSet":
        """Collect ``gcp_*`` keys with the prefix stripped; other keys are ignored."""
        known = {f.name for f in dataclass_fields(cls)}
        values = {}
        for key, value in form.items():
            if not key.startswith(FORM_PREFIX):
                continue
            name = key[len(FORM_PREFIX):]
            if name in known:
                values[name] = (value or "").strip()
        return cls(**values)


@dataclass(frozen=True)
class TrainerInfo:
    name: str
    license: str
    signature_url: str


def safe_http_url(value: Optional[str]) -> str:
    """Return ``value`` when it is an absolute http(s) URL, else ``""``."""
    value = (value or "").strip()
    if not value:
        return ""
    parsed = urlparse(value)
    if parsed.scheme.lower() not in ("http", "https") or not parsed.netloc:
        return ""
    return value


def _resolve_trainer(
    fields: CertificateFieldSet,
    trainer_lookup: Optional[Callable[[str], Optional[TrainerInfo]]],
) -> TrainerInfo:
    name = fields.trainer_name or DEFAULT_TRAINER_NAME
    license_ = fields.trainer_license or DEFAULT_TRAINER_LICENSE
    signature = fields.trainer_signature
    if not fields.trainer_name and fields.trainer_id and trainer_lookup:
        trainer = trainer_lookup(fields.trainer_id)
        if trainer:
            name = trainer.name or name
            license_ = trainer.license or license_
            signature = trainer.signature_url or signature
    return TrainerInfo(name=name, license=license_, signature_url=safe_http_url(signature))


def render_certificate_html(
    fields: CertificateFieldSet,
    trainer_lookup: Optional[Callable[[str], Optional[TrainerInfo]]] = None,
    logo_url: str = "",
) -> str:
    values = {
        key: getattr(fields, key) or placeholder
        for key, placeholder in PLACEHOLDERS.items()
    }
    values["fecha_de_expedicion"] = (
        fields.fecha_de_expedicion or now_local().strftime("%d/%m/%Y")
    )
    trainer = _resolve_trainer(fields, trainer_lookup)
    template = _env.get_template(TEMPLATE_NAME)
    return template.render(
        **values,
        trainer=trainer,
        logo_url=safe_http_url(logo_url),
        certifier_legal_representative=CERTIFIER_LEGAL_REPRESENTATIVE,
        issuing_city=ISSUING_CITY,
        mintrabajo_resolution=MINTRABAJO_RESOLUTION,
        mintrabajo_filing=MINTRABAJO_FILING,
        sst_license_text=SST_LICENSE_TEXT,
        verification_phones=VERIFICATION_PHONES,
        verification_url=VERIFICATION_URL,
        verification_url_display=VERIFICATION_URL_DISPLAY,
    )
