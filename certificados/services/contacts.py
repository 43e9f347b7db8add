from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..app import db
from ..constants import CANONICAL_SLUGS, CEDULA_SLUG
from ..errors import InternalError, NotFound
from ..models import ContactIndexEntry
from ..shared.slugs import candidate_keys, resolve_field, sanitize_key
from .crm_client import FluentCRMClient, get_crm_client
from .slug_cache import SlugCache, get_slug_cache


@dataclass
class ContactRecord:
    id: Any
    first_name: str
    last_name: str
    email: str
    custom_fields: dict[str, str]
    extra_fields: dict[str, str] = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def value_of(self, slug: str) -> str:
        return self.custom_fields.get(slug, "")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "email": self.email,
            "custom_fields": dict(self.custom_fields),
            "extra_fields": dict(self.extra_fields),
        }


def _coalesce(*values: Any) -> str:
    for value in values:
        if value is not None:
            return str(value)
    return ""


def flatten_custom_values(raw: Any) -> dict[str, str]:
    """Sanitize keys and join list values with ", " into display strings."""
    flat: dict[str, str] = {}
    if not isinstance(raw, dict):
        return flat
    for slug, value in raw.items():
        if isinstance(value, (list, tuple)):
            value = ", ".join("" if item is None else str(item) for item in value)
        flat[sanitize_key(slug)] = "" if value is None else str(value)
    return flat


def map_custom_fields(flat: dict[str, str]) -> tuple[dict[str, str], dict[str, str]]:
    """Split flattened values into canonical fields and unknown extras."""
    canonical: dict[str, str] = {}
    consumed: set[str] = set()
    for slug in CANONICAL_SLUGS:
        canonical[slug] = resolve_field(flat, slug)
        for key in candidate_keys(slug):
            if key in flat:
                consumed.add(key)
                break
    extras = {key: value for key, value in flat.items() if key not in consumed}
    return canonical, extras


def lookup_index_entry(cedula: str) -> ContactIndexEntry | None:
    try:
        return (
            db.session.query(ContactIndexEntry)
            .filter_by(key=CEDULA_SLUG, value=cedula)
            .first()
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("[CRM] contact index lookup failed cedula=%s", cedula)
        raise InternalError(detail=str(exc)) from exc


def contact_id_for(cedula: str) -> int | None:
    """Best-effort CRM id for ``cedula``; ``None`` when unknown or on error."""
    try:
        entry = lookup_index_entry(cedula)
    except InternalError:
        return None
    return entry.subscriber_id if entry else None


def find_contact(
    cedula: str,
    client: FluentCRMClient | None = None,
    slug_cache: SlugCache | None = None,
) -> ContactRecord:
    """Resolve ``cedula`` to a ContactRecord through the index and the CRM.

    Raises NotFound, InternalError, ConfigurationError or UpstreamError.
    """
    entry = lookup_index_entry(cedula)
    if entry is None:
        raise NotFound()

    client = client or get_crm_client()
    subscriber = client.subscriber(entry.subscriber_id)

    flat = flatten_custom_values(subscriber.get("custom_values"))
    custom_fields, extra_fields = map_custom_fields(flat)

    if not any(key in flat for key in candidate_keys(CEDULA_SLUG)):
        known = (slug_cache or get_slug_cache()).get()
        if not known or CEDULA_SLUG in known:
            custom_fields[CEDULA_SLUG] = cedula

    return ContactRecord(
        id=subscriber.get("id", entry.subscriber_id),
        first_name=_coalesce(subscriber.get("first_name"), entry.first_name),
        last_name=_coalesce(subscriber.get("last_name"), entry.last_name),
        email=_coalesce(subscriber.get("email"), entry.email),
        custom_fields=custom_fields,
        extra_fields=extra_fields,
    )


def sync_contact_index(client: FluentCRMClient | None = None) -> dict[str, int]:
    """Upsert ``cedula`` index rows from the CRM subscriber listing."""
    client = client or get_crm_client()
    summary = {"seen": 0, "created": 0, "updated": 0, "removed": 0, "skipped": 0}
    for record in client.iter_subscribers():
        summary["seen"] += 1
        subscriber_id = record.get("id")
        if not subscriber_id:
            summary["skipped"] += 1
            continue
        flat = flatten_custom_values(record.get("custom_values"))
        cedula = resolve_field(flat, CEDULA_SLUG).strip()
        entry = (
            db.session.query(ContactIndexEntry)
            .filter_by(subscriber_id=subscriber_id, key=CEDULA_SLUG)
            .one_or_none()
        )
        if not cedula:
            # a cleared cedula must stop resolving to this subscriber
            if entry is not None:
                db.session.delete(entry)
                summary["removed"] += 1
            else:
                summary["skipped"] += 1
            continue
        if entry is None:
            entry = ContactIndexEntry(subscriber_id=subscriber_id, key=CEDULA_SLUG)
            db.session.add(entry)
            summary["created"] += 1
        else:
            summary["updated"] += 1
        entry.value = cedula
        entry.email = _coalesce(record.get("email"))
        entry.first_name = _coalesce(record.get("first_name"))
        entry.last_name = _coalesce(record.get("last_name"))
    db.session.commit()
    current_app.logger.info(
        "[CRM] contact index sync seen=%(seen)s created=%(created)s "
        "updated=%(updated)s removed=%(removed)s skipped=%(skipped)s",
        summary,
    )
    return summary
