from __future__ import annotations

from flask import (
    Blueprint,
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from ..app import db
from ..constants import CUSTOM_FIELD_SLUGS, FIELD_LABELS
from ..errors import PersistError
from ..models import Settings, Trainer
from ..services.issuance import certificates_for, delete_certificate
from ..services.slug_cache import get_known_slugs, get_slug_cache
from ..services.verifications import list_verifications
from ..shared.certificates import safe_http_url
from ..shared.csrf import verify_token
from ..shared.rbac import admin_required

bp = Blueprint("admin", __name__, url_prefix="/admin")


def _check_form_token(scope: str) -> None:
    if not verify_token(request.form.get("_token"), scope):
        current_app.logger.info(f"[ADMIN] rejected form token scope={scope}")
        abort(403)


def _trainers():
    return db.session.query(Trainer).order_by(Trainer.name).all()


@bp.get("/expedir")
@admin_required
def expedir(current_user):
    return render_template(
        "admin/expedir.html",
        slugs=CUSTOM_FIELD_SLUGS,
        labels=FIELD_LABELS,
        trainers=_trainers(),
    )


@bp.get("/verificacion")
@admin_required
def verificacion(current_user):
    return render_template(
        "admin/verificacion.html", slugs=CUSTOM_FIELD_SLUGS, labels=FIELD_LABELS
    )


@bp.get("/estudiantes")
@admin_required
def estudiantes(current_user):
    s_cedula = (request.args.get("s_cedula") or "").strip()
    s_nit = (request.args.get("s_nit") or "").strip()
    rows = list_verifications(cedula=s_cedula or None, nit=s_nit or None)
    return render_template(
        "admin/estudiantes.html", rows=rows, s_cedula=s_cedula, s_nit=s_nit
    )


@bp.get("/certificados")
@admin_required
def certificados(current_user):
    s_cedula = (request.args.get("s_cedula") or "").strip()
    rows = certificates_for(s_cedula or None)
    return render_template("admin/certificados.html", rows=rows, s_cedula=s_cedula)


@bp.post("/certificados/<int:cert_id>/delete")
@admin_required
def certificados_delete(cert_id: int, current_user):
    _check_form_token(f"gcp_delete_certificate_{cert_id}")
    try:
        deleted = delete_certificate(cert_id)
    except PersistError as exc:
        flash(exc.message, "error")
        return redirect(url_for("admin.certificados"))
    if deleted:
        flash("Certificado eliminado correctamente.", "success")
    else:
        flash("El certificado no existe.", "error")
    return redirect(url_for("admin.certificados", s_cedula=request.form.get("s_cedula") or None))


@bp.route("/instructores", methods=["GET", "POST"])
@admin_required
def instructores(current_user):
    edit_id = request.args.get("trainer_id", type=int)
    if request.method == "POST":
        _check_form_token("gcp_save_trainer")
        name = (request.form.get("trainer_name") or "").strip()
        license_ = (request.form.get("trainer_license") or "").strip()
        raw_signature = (request.form.get("trainer_signature") or "").strip()
        signature = safe_http_url(raw_signature)
        trainer_id = request.form.get("trainer_id", type=int)
        if not name:
            flash("El nombre del instructor es obligatorio.", "error")
            return redirect(url_for("admin.instructores", trainer_id=trainer_id))
        if raw_signature and not signature:
            flash("La URL de la firma debe comenzar con http:// o https://.", "error")
            return redirect(url_for("admin.instructores", trainer_id=trainer_id))
        trainer = db.session.get(Trainer, trainer_id) if trainer_id else None
        if trainer_id and not trainer:
            abort(404)
        if trainer is None:
            trainer = Trainer()
            db.session.add(trainer)
        trainer.name = name
        trainer.license = license_
        trainer.signature_url = signature
        db.session.commit()
        current_app.logger.info(f"[ADMIN] trainer saved id={trainer.id} by={current_user.email}")
        flash("Instructor guardado correctamente.", "success")
        return redirect(url_for("admin.instructores"))
    editing = db.session.get(Trainer, edit_id) if edit_id else None
    return render_template(
        "admin/instructores.html", trainers=_trainers(), editing=editing
    )


@bp.post("/instructores/<int:trainer_id>/delete")
@admin_required
def instructores_delete(trainer_id: int, current_user):
    _check_form_token(f"gcp_delete_trainer_{trainer_id}")
    trainer = db.session.get(Trainer, trainer_id)
    if not trainer:
        abort(404)
    db.session.delete(trainer)
    db.session.commit()
    current_app.logger.info(f"[ADMIN] trainer deleted id={trainer_id} by={current_user.email}")
    flash("Instructor eliminado.", "success")
    return redirect(url_for("admin.instructores"))


@bp.route("/crm", methods=["GET", "POST"])
@admin_required
def crm(current_user):
    settings = Settings.get()
    if not settings:
        settings = Settings(
            id=1,
            crm_api_url=current_app.config.get("FLUENTCRM_API_URL", ""),
            crm_api_username=current_app.config.get("FLUENTCRM_API_USERNAME", ""),
        )
    if request.method == "POST":
        _check_form_token("gcp_crm_settings")
        settings.crm_api_url = (request.form.get("crm_api_url") or "").strip()
        settings.crm_api_username = (request.form.get("crm_api_username") or "").strip()
        pwd = request.form.get("crm_api_password", "")
        if pwd:
            settings.set_crm_pass(pwd)
        db.session.merge(settings)
        db.session.commit()
        flash("Configuración guardada.", "success")
        return redirect(url_for("admin.crm"))
    return render_template(
        "admin/crm.html",
        settings=settings,
        known_slugs=get_slug_cache().value or [],
    )


@bp.post("/crm/refresh-slugs")
@admin_required
def crm_refresh_slugs(current_user):
    _check_form_token("gcp_crm_settings")
    slugs = get_known_slugs(force_refresh=True)
    current_app.logger.info(f"[CRM] slug refresh requested by={current_user.email} count={len(slugs)}")
    if slugs:
        flash(f"Campos personalizados actualizados ({len(slugs)}).", "success")
    else:
        flash("No se pudieron obtener los campos personalizados de FluentCRM.", "error")
    return redirect(url_for("admin.crm"))
