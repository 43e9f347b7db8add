from __future__ import annotations

import base64

from flask import current_app
from sqlalchemy.orm import validates

from ..app import db
from ..shared.passwords import hash_password, check_password


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255))
    full_name = db.Column(db.String(255))
    is_admin = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    __table_args__ = (
        db.Index("ix_users_email_lower", db.func.lower(email), unique=True),
    )

    @validates("email")
    def lower_email(self, key, value):  # pragma: no cover - simple normalizer
        return value.lower()

    def set_password(self, plain: str) -> None:
        self.password_hash = hash_password(plain)

    def check_password(self, plain: str) -> bool:
        if not self.password_hash:
            return False
        return check_password(plain, self.password_hash)


class Settings(db.Model):
    __tablename__ = "settings"
    id = db.Column(db.Integer, primary_key=True, default=1)
    crm_api_url = db.Column(db.String(512))
    crm_api_username = db.Column(db.String(255))
    crm_api_pass_enc = db.Column(db.Text)
    updated_at = db.Column(
        db.DateTime, server_default=db.func.now(), onupdate=db.func.now()
    )

    # always enforce singleton row id=1
    @staticmethod
    def get() -> "Settings | None":
        return db.session.get(Settings, 1)

    def set_crm_pass(self, plain: str) -> None:
        if not plain:
            self.crm_api_pass_enc = None
            return
        key = current_app.config.get("SECRET_KEY", "").encode()
        data = plain.encode()
        xored = bytes([b ^ key[i % len(key)] for i, b in enumerate(data)])
        self.crm_api_pass_enc = base64.b64encode(xored).decode()

    def get_crm_pass(self) -> str | None:
        if not self.crm_api_pass_enc:
            return None
        try:
            key = current_app.config.get("SECRET_KEY", "").encode()
            raw = base64.b64decode(self.crm_api_pass_enc.encode())
            data = bytes([b ^ key[i % len(key)] for i, b in enumerate(raw)])
            return data.decode()
        except (ValueError, UnicodeDecodeError):
            return None


class Trainer(db.Model):
    __tablename__ = "trainers"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    license = db.Column(db.String(255), nullable=False, default="")
    signature_url = db.Column(db.String(1024), nullable=False, default="")
    created_at = db.Column(db.DateTime, server_default=db.func.now())


class ContactIndexEntry(db.Model):
    """Key/value rows pointing a CRM subscriber at its searchable attributes."""

    __tablename__ = "contact_index"

    id = db.Column(db.Integer, primary_key=True)
    subscriber_id = db.Column(db.BigInteger, nullable=False)
    key = db.Column(db.String(64), nullable=False)
    value = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, default="")
    first_name = db.Column(db.String(255), nullable=False, default="")
    last_name = db.Column(db.String(255), nullable=False, default="")
    __table_args__ = (
        db.Index("ix_contact_index_key_value", "key", "value"),
        db.UniqueConstraint("subscriber_id", "key", name="uix_contact_index_subscriber_key"),
    )


class IssuedCertificate(db.Model):
    __tablename__ = "issued_certificates"

    id = db.Column(db.Integer, primary_key=True)
    cedula = db.Column(db.String(255), nullable=False, index=True)
    external_contact_id = db.Column(db.BigInteger)
    course_name = db.Column(db.String(255), nullable=False)
    filename = db.Column(db.String(255), nullable=False)
    url = db.Column(db.Text, nullable=False)
    issued_at = db.Column(db.DateTime, nullable=False)
    validation_id = db.Column(db.String(255))
    extra_data = db.Column(db.JSON)


class AdmissionVerification(db.Model):
    __tablename__ = "contact_verifications"

    id = db.Column(db.Integer, primary_key=True)
    cedula = db.Column(db.String(255), nullable=False, index=True)
    external_contact_id = db.Column(db.BigInteger)
    first_name = db.Column(db.String(255), nullable=False, default="")
    last_name = db.Column(db.String(255), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False, default="")
    course_name = db.Column(db.String(255), nullable=False, default="")
    course_stage = db.Column(
        "etapa_del_curso", db.String(255), nullable=False, default=""
    )
    employer_nit = db.Column(db.String(255), nullable=False, default="")
    employer_name = db.Column(db.String(255), nullable=False, default="")
    verified_at = db.Column(db.DateTime, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
