from datetime import datetime

import pytest

from certificados.app import db
from certificados.models import AdmissionVerification, IssuedCertificate, Settings, Trainer, User
from certificados.services.crm_client import load_crm_config
from certificados.services.slug_cache import init_slug_cache


ADMIN_PAGES = [
    "/admin/expedir",
    "/admin/verificacion",
    "/admin/estudiantes",
    "/admin/certificados",
    "/admin/instructores",
    "/admin/crm",
]


def text(resp):
    return resp.get_data(as_text=True)


def test_login_and_logout(client, admin_user):
    resp = client.post(
        "/login",
        data={"email": "Admin@Example.com", "password": "pw"},
        follow_redirects=True,
    )
    assert resp.request.path == "/admin/expedir"
    resp = client.get("/logout", follow_redirects=True)
    assert resp.request.path == "/login"
    assert "Sesión cerrada." in text(resp)


def test_wrong_password(client, admin_user):
    resp = client.post(
        "/login", data={"email": "admin@example.com", "password": "nope"}, follow_redirects=True
    )
    assert resp.request.path == "/login"
    assert "Correo o contraseña inválidos." in text(resp)


@pytest.mark.parametrize("path", ADMIN_PAGES)
def test_anonymous_is_sent_to_login(client, path):
    resp = client.get(path)
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/login")


def test_non_admin_forbidden(client):
    user = User(email="staff@example.com", full_name="Staff", is_admin=False)
    db.session.add(user)
    db.session.commit()
    with client.session_transaction() as sess:
        sess["user_id"] = user.id
    assert client.get("/admin/expedir").status_code == 403


@pytest.mark.parametrize("path", ADMIN_PAGES)
def test_admin_pages_render(admin_client, path):
    resp = admin_client.get(path)
    assert resp.status_code == 200


def test_expedir_page_has_fields_and_token(admin_client):
    db.session.add(Trainer(name="Laura Gil", license="LIC-9", signature_url=""))
    db.session.commit()
    body = text(admin_client.get("/admin/expedir"))
    assert 'id="gcp_nonce"' in body
    assert 'data-slug="nombre_del_curso"' in body
    assert "Laura Gil" in body


def test_estudiantes_filters(admin_client):
    db.session.add_all(
        [
            AdmissionVerification(cedula="111", employer_nit="NIT-A", first_name="Uno", verified_at=datetime(2025, 1, 1)),
            AdmissionVerification(cedula="222", employer_nit="NIT-B", first_name="Dos", verified_at=datetime(2025, 1, 2)),
        ]
    )
    db.session.commit()
    body = text(admin_client.get("/admin/estudiantes?s_nit=NIT-B"))
    assert "Dos" in body
    assert "Uno" not in body


def test_delete_certificate_requires_token(admin_client, token_for):
    cert = IssuedCertificate(
        cedula="123", course_name="C", filename="x.pdf", url="/x.pdf", issued_at=datetime(2025, 1, 1)
    )
    db.session.add(cert)
    db.session.commit()
    cert_id = cert.id

    resp = admin_client.post(f"/admin/certificados/{cert_id}/delete", data={"_token": "bad"})
    assert resp.status_code == 403
    assert db.session.get(IssuedCertificate, cert_id) is not None

    resp = admin_client.post(
        f"/admin/certificados/{cert_id}/delete",
        data={"_token": token_for(f"gcp_delete_certificate_{cert_id}")},
        follow_redirects=True,
    )
    assert "Certificado eliminado correctamente." in text(resp)
    assert db.session.get(IssuedCertificate, cert_id) is None


def test_token_for_one_certificate_does_not_delete_another(admin_client, token_for):
    cert = IssuedCertificate(
        cedula="123", course_name="C", filename="x.pdf", url="/x.pdf", issued_at=datetime(2025, 1, 1)
    )
    db.session.add(cert)
    db.session.commit()
    resp = admin_client.post(
        f"/admin/certificados/{cert.id}/delete",
        data={"_token": token_for(f"gcp_delete_certificate_{cert.id + 1}")},
    )
    assert resp.status_code == 403


def test_trainer_create_edit_delete(admin_client, token_for):
    resp = admin_client.post(
        "/admin/instructores",
        data={
            "_token": token_for("gcp_save_trainer"),
            "trainer_name": "Pedro",
            "trainer_license": "LIC-1",
            "trainer_signature": "https://cdn.example.com/p.png",
        },
        follow_redirects=True,
    )
    assert "Instructor guardado correctamente." in text(resp)
    trainer = db.session.query(Trainer).one()

    admin_client.post(
        "/admin/instructores",
        data={
            "_token": token_for("gcp_save_trainer"),
            "trainer_id": trainer.id,
            "trainer_name": "Pedro Gómez",
            "trainer_license": "LIC-2",
            "trainer_signature": "",
        },
    )
    db.session.refresh(trainer)
    assert trainer.name == "Pedro Gómez"
    assert trainer.signature_url == ""

    resp = admin_client.post(
        f"/admin/instructores/{trainer.id}/delete",
        data={"_token": token_for(f"gcp_delete_trainer_{trainer.id}")},
        follow_redirects=True,
    )
    assert "Instructor eliminado." in text(resp)
    assert db.session.query(Trainer).count() == 0


def test_trainer_signature_rejects_other_schemes(admin_client, token_for):
    resp = admin_client.post(
        "/admin/instructores",
        data={
            "_token": token_for("gcp_save_trainer"),
            "trainer_name": "Pedro",
            "trainer_signature": "javascript:alert(1)",
        },
        follow_redirects=True,
    )
    assert "http:// o https://" in text(resp)
    assert db.session.query(Trainer).count() == 0


def test_crm_settings_saved(admin_client, token_for, app):
    resp = admin_client.post(
        "/admin/crm",
        data={
            "_token": token_for("gcp_crm_settings"),
            "crm_api_url": "https://crm.example.com/wp-json/fluent-crm/v2/",
            "crm_api_username": "api",
            "crm_api_password": "s3cret",
        },
        follow_redirects=True,
    )
    assert "Configuración guardada." in text(resp)
    settings = Settings.get()
    assert settings.crm_api_pass_enc != "s3cret"
    assert settings.get_crm_pass() == "s3cret"
    config = load_crm_config()
    assert config.base_url == "https://crm.example.com/wp-json/fluent-crm/v2"
    assert config.username == "api"


def test_crm_refresh_slugs(admin_client, token_for, app):
    init_slug_cache(app, fetcher=lambda: ["cedula", "arl"])
    resp = admin_client.post(
        "/admin/crm/refresh-slugs",
        data={"_token": token_for("gcp_crm_settings")},
        follow_redirects=True,
    )
    body = text(resp)
    assert "Campos personalizados actualizados (2)." in body
    assert "<code>arl</code>" in body
