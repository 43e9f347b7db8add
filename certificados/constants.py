CEDULA_SLUG = "cedula"

# Canonical FluentCRM custom field slugs, in form order. Several are truncated
# upstream, hence the trailing underscores.
CUSTOM_FIELD_SLUGS = [
    "nombre_del_curso",
    "nombre_de_la_empresa_empl",
    "nit_de_la_empresa_emplead",
    "estado_de_pago_del_curso",
    "id_ministerio_del_curso",
    "rut_empresa",
    "cedula_escaneada",
    "seguridad_social",
    "curso_avanzado_o_trabajad",
    "certificado_sg_sst",
    "certificado_de_curso_reen",
    "examen_medico_en_alturas",
    "intensidad_horaria",
    "fecha_de_realizado",
    "fecha_de_expedicion",
    "arl",
    "representante_legal_de_la",
    "etapa_del_curso",
    "_estado_de_la_documentaci",
    "numero_factura",
    "nci",
    "fecha_de_inicio",
    "tipo_de_documento",
    "nombre_de_contacto_de_la_",
    "correo_electronico_de_la_",
    "telefono",
]

CANONICAL_SLUGS = [CEDULA_SLUG] + CUSTOM_FIELD_SLUGS

FIELD_LABELS = {
    "nombre_del_curso": "Nombre curso",
    "nombre_de_la_empresa_empl": "Nombre de la empresa empleadora",
    "nit_de_la_empresa_emplead": "Nit de la empresa",
    "estado_de_pago_del_curso": "Estado de pago del curso",
    "id_ministerio_del_curso": "Validación del certificado",
    "rut_empresa": "Rut empresa",
    "cedula_escaneada": "Cédula escaneada (URL/Path)",
    "seguridad_social": "Seguridad social",
    "curso_avanzado_o_trabajad": "Curso avanzado o trabajador autorizado",
    "certificado_sg_sst": "Certificado SG-SST",
    "certificado_de_curso_reen": "Certificado de curso reentrenamiento",
    "examen_medico_en_alturas": "Examen médico en alturas",
    "intensidad_horaria": "Intensidad horaria",
    "fecha_de_realizado": "Fecha de realizado",
    "fecha_de_expedicion": "Fecha de expedición",
    "arl": "ARL",
    "representante_legal_de_la": "Representante legal de la empresa",
    "etapa_del_curso": "Etapa del curso",
    "_estado_de_la_documentaci": "Estado de la documentación",
    "numero_factura": "Número factura",
    "nci": "NCI",
    "fecha_de_inicio": "Fecha de inicio",
    "tipo_de_documento": "Tipo de documento",
    "nombre_de_contacto_de_la_": "Nombre de contacto de la empresa empleadora",
    "correo_electronico_de_la_": "Correo electrónico de la empresa empleadora",
    "telefono": "Teléfono",
}

SLUG_CACHE_TTL_SECONDS = 24 * 60 * 60

CRM_SCHEMA_TIMEOUT = 20
CRM_SUBSCRIBER_TIMEOUT = 30

TOKEN_MAX_AGE_SECONDS = 24 * 60 * 60
ADMIN_TOKEN_SCOPE = "gcp_buscar_contacto"
STUDENT_TOKEN_SCOPE = "gcp_student_download"

PUBLIC_CEDULA_MIN_LENGTH = 5
PUBLIC_CEDULA_MAX_LENGTH = 12

# Certifying organisation, printed on every certificate.
DEFAULT_TRAINER_NAME = "RUBY HIGUITA"
DEFAULT_TRAINER_LICENSE = "[LICENCIA SST RUBY AQUÍ]"
CERTIFIER_LEGAL_REPRESENTATIVE = "Mónica Marcela Cañas Gomez"
VERIFICATION_URL = "https://www.hseqdelgolfo.com.co"
VERIFICATION_URL_DISPLAY = "www.hseqdelgolfo.com.co"
SST_LICENSE_TEXT = (
    "Resolución 202460390983 Licencia de Seguridad y Salud en Trabajo de la "
    "Secretaría de Salud y Protección Social de Antioquia"
)
VERIFICATION_PHONES = "310 463 2102 - 311 609 5867"
ISSUING_CITY = "Apartadó, Antioquia"
MINTRABAJO_RESOLUTION = "4272 de 2021 Mintrabajo"
MINTRABAJO_FILING = "MINTRABAJO N° RADICADO 08SE2018220000000030200"
