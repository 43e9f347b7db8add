from __future__ import annotations


class CertificadosError(RuntimeError):
    """Base error; ``message`` is safe to show to the caller."""

    status_code = 500
    default_message = "Ocurrió un error inesperado."

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(CertificadosError):
    status_code = 400
    default_message = "Datos de entrada inválidos."


class SecurityError(CertificadosError):
    status_code = 403
    default_message = "Error de seguridad: Nonce inválido."


class NotFound(CertificadosError):
    status_code = 404
    default_message = "No se encontró ningún contacto con la cédula proporcionada."


class ConfigurationError(CertificadosError):
    status_code = 500
    default_message = "Error de configuración de API para obtener detalles del contacto."


class UpstreamError(CertificadosError):
    status_code = 502
    default_message = "Error de comunicación con FluentCRM."


class InternalError(CertificadosError):
    status_code = 500
    default_message = "Error durante la búsqueda interna del contacto por cédula."


class PersistError(CertificadosError):
    status_code = 500
    default_message = "Error al guardar en la base de datos."


class RenderError(CertificadosError):
    status_code = 500
    default_message = "No se pudo generar el PDF del certificado."
